"""Canonical text form of an HQSL card.

A card serializes to ten comma-separated fields::

    from,where,to,yyyyMMddHHmm,signal,freq,mode,extra,reserved,signature

The first nine fields are the signable text. The tenth holds the encoded
detached signature, or ``UNSIGNED``. Card text is often carried in a URL
fragment, so anything up to the last ``#`` is ignored when parsing.
"""

from __future__ import annotations

import math
import re
from typing import Callable, List, Tuple

from hqsl.errors import CardSyntaxError, RangeError
from hqsl.models.card import Card
from hqsl.utils import sigencoder
from hqsl.utils.date import from_ham_date
from hqsl.utils.frequency import normalize_freq

FIELD_SEPARATOR = ","
FIELD_COUNT = 10

#: Signature field value of a card that carries no signature.
UNSIGNED = "UNSIGNED"

CALLSIGN_RE = re.compile(r"^[A-Z0-9/-]+$")

# Not perfect, but it catches the common typos.
GRID_RE = re.compile(r"^[A-Ra-r]{2}[0-9]{2}([A-Xa-x]{2})*([0-9]{2})*([A-Xa-x]{2})*$")

# Characters that survive a URL fragment unescaped.
CARD_RE = re.compile(r"^[0-9A-Za-z?:@._~!$&'()*+;=,\-/]+$")

# Free-form fields: the card alphabet minus the separator.
FIELD_RE = re.compile(r"^[0-9A-Za-z?:@._~!$&'()*+;=\-/]+$")

# Plain decimal numbers only; Python extras like "1_0" or "nan" are out.
FREQ_RE = re.compile(r"^-?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][-+]?[0-9]+)?$")

# Fields that must be present, checked in this order.
REQUIRED_FIELDS: List[Tuple[str, Callable[[Card], object]]] = [
    ("from", lambda c: c.from_),
    ("to", lambda c: c.to),
    ("where", lambda c: c.where),
    ("when", lambda c: c.when),
    ("mode", lambda c: c.mode),
    ("freq", lambda c: c.freq),
]

# Optional fields which, when set, must fit FIELD_RE.
OPTIONAL_FIELDS: List[Tuple[str, Callable[[Card], object]]] = [
    ("signal", lambda c: c.signal),
    ("extra", lambda c: c.extra),
    ("reserved", lambda c: c.reserved),
]


def _matches(pattern: re.Pattern, value) -> bool:
    return isinstance(value, str) and pattern.match(value) is not None


def signed_data(card: Card) -> str:
    """Build the signable text of a card.

    Raises:
        CardSyntaxError: if a required field is missing or any field is
            malformed.
    """
    for name, accessor in REQUIRED_FIELDS:
        if not accessor(card):
            raise CardSyntaxError(f"Missing required field: {name}")

    if not (
        _matches(CALLSIGN_RE, card.from_)
        and _matches(CALLSIGN_RE, card.to)
        and _matches(GRID_RE, card.where)
        and _matches(FIELD_RE, card.mode)
    ):
        raise CardSyntaxError("Incomplete or malformed HQSL cannot be signed.")

    for name, accessor in OPTIONAL_FIELDS:
        value = accessor(card)
        if value and not _matches(FIELD_RE, value):
            raise CardSyntaxError(f"Malformed field: {name}")

    try:
        freq = normalize_freq(card.freq)
    except RangeError as e:
        raise CardSyntaxError(f"Malformed frequency: {card.freq!r}") from e

    return FIELD_SEPARATOR.join(
        [
            card.from_,
            card.where,
            card.to,
            card.ham_date,
            card.signal or "",
            freq,
            card.mode,
            card.extra or "",
            card.reserved or "",
        ]
    )


def to_string(card: Card) -> str:
    """Format a complete card, signature field included."""
    sig = sigencoder.encode(card.signature) if card.signature else UNSIGNED
    return signed_data(card) + FIELD_SEPARATOR + sig


def from_string(text: str) -> Card:
    """Parse card text, applying every check that is feasible without keys.

    A URL prefix ending in ``#`` is ignored.

    Raises:
        CardSyntaxError: describing the first problem found.
    """
    if not text:
        raise CardSyntaxError("Empty string")

    src = text.split("#")[-1]
    if not src or not CARD_RE.match(src):
        raise CardSyntaxError("Wrong characters in HQSL text")

    fields = src.split(FIELD_SEPARATOR)
    if len(fields) != FIELD_COUNT:
        raise CardSyntaxError("Incorrect number of fields")

    h_from, h_where, h_to, h_when, h_signal, h_freq, h_mode, h_extra, h_reserved, h_sig = fields

    if not CALLSIGN_RE.match(h_from) or not CALLSIGN_RE.match(h_to):
        raise CardSyntaxError("Malformed callsign")

    if not GRID_RE.match(h_where) or len(h_where) < 4 or len(h_where) % 2:
        raise CardSyntaxError("Malformed grid square")

    try:
        when = from_ham_date(h_when)
    except ValueError as e:
        raise CardSyntaxError("Malformed datetime") from e

    if not FREQ_RE.match(h_freq):
        raise CardSyntaxError("Malformed frequency")
    freq = float(h_freq)
    if not math.isfinite(freq):
        raise CardSyntaxError("Malformed frequency")

    if h_sig and not sigencoder.SIGNATURE_RE.match(h_sig):
        raise CardSyntaxError("Malformed signature")

    signature = None
    if h_sig and h_sig != UNSIGNED:
        signature = sigencoder.decode(h_sig)

    return Card(
        from_=h_from,
        where=h_where,
        to=h_to,
        when=when,
        signal=h_signal,
        freq=freq,
        mode=h_mode,
        extra=h_extra,
        reserved=h_reserved,
        signature=signature,
    )
