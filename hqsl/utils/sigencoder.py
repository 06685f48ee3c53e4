"""Text encoding for raw signature bytes.

Signatures travel inside the card text, which must stay URL-fragment safe
and comma free, so the bytes are written as a base-36 big number over
``0-9A-Z``. Leading zero bytes are kept as leading ``0`` characters, the
same convention as the "base-x" family of encoders.
"""

from __future__ import annotations

import re

ALPHABET = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"
BASE = len(ALPHABET)

SIGNATURE_RE = re.compile(r"^[0-9A-Z]+$")

_INDEX = {ch: i for i, ch in enumerate(ALPHABET)}


def encode(data: bytes) -> str:
    """Encode bytes into the signature alphabet."""
    data = bytes(data)
    if not data:
        return ""

    zeroes = len(data) - len(data.lstrip(b"\x00"))
    number = int.from_bytes(data, "big")

    digits = []
    while number:
        number, rem = divmod(number, BASE)
        digits.append(ALPHABET[rem])

    return ALPHABET[0] * zeroes + "".join(reversed(digits))


def decode(text: str) -> bytes:
    """Decode text produced by :func:`encode`.

    Raises:
        ValueError: if ``text`` contains characters outside the alphabet.
    """
    if not text:
        return b""

    number = 0
    for ch in text:
        try:
            number = number * BASE + _INDEX[ch]
        except KeyError:
            raise ValueError(f"Non-alphabet character {ch!r} in signature") from None

    zeroes = len(text) - len(text.lstrip(ALPHABET[0]))
    body = number.to_bytes((number.bit_length() + 7) // 8, "big") if number else b""
    return b"\x00" * zeroes + body
