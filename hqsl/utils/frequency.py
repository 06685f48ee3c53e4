"""Frequency helpers: band lookups and the HQSL normalized frequency form."""

from __future__ import annotations

import math
from decimal import Decimal
from typing import Optional

from hqsl.adapters.bandmap import get_bandmap_adapter
from hqsl.errors import RangeError


def freq_band(f: float) -> str:
    """Convert a frequency in MHz to an ADIF band name (``"??"`` if unknown)."""
    return get_bandmap_adapter().band_for(f)


def band_freq(band: Optional[str]) -> Optional[float]:
    """Convert an ADIF band name to its midpoint frequency in MHz, or ``None``."""
    return get_bandmap_adapter().frequency_for(band)


def normalize_freq(n: float) -> str:
    """Normalize a frequency in MHz according to the HQSL standard.

    1. ``.`` is the decimal separator.
    2. Frequencies above 1 MHz keep at most 3 digits after the decimal
       point; extra digits are cut, not rounded.
    3. Trailing zeroes and a leading zero whole part are omitted, so sub-1 MHz
       frequencies start with the decimal point.
    4. A trailing decimal point is removed.

    Raises:
        RangeError: for NaN, infinite or non-numeric input.
    """
    try:
        value = float(n)
    except (TypeError, ValueError) as e:
        raise RangeError(f"Bogus frequency: {n!r}") from e
    if not math.isfinite(value):
        raise RangeError(f"Bogus frequency: {n!r}")

    # repr() gives the shortest round-tripping digits; Decimal keeps it out
    # of exponent notation for very small and very large values.
    textual = format(Decimal(repr(value)), "f")
    whole, _, fractional = textual.partition(".")

    if math.trunc(value) > 1:
        fractional = fractional[:3]

    fractional = fractional.rstrip("0")

    if whole == "0":
        whole = ""

    return f"{whole}.{fractional}".rstrip(".")
