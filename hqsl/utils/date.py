"""Date and time formats used by HQSL cards and ADIF records.

All HQSL timestamps are UTC with minute precision and carry no timezone
suffix in text form.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone

HAM_TIME_FORMAT = "%Y%m%d%H%M"
DISPLAY_TIME_FORMAT = "%Y-%m-%d %H:%M"

_HAM_DATE_RE = re.compile(r"^\d{12}$")


def as_utc(d: datetime) -> datetime:
    """Return ``d`` as an aware UTC datetime, treating naive values as UTC."""
    if d.tzinfo is None:
        return d.replace(tzinfo=timezone.utc)
    return d.astimezone(timezone.utc)


def from_ham_date(s: str) -> datetime:
    """Parse a ``yyyyMMddHHmm`` string into an aware UTC datetime.

    Raises:
        ValueError: if the string is not exactly twelve digits or does not
            name a real calendar minute.
    """
    if not isinstance(s, str) or not _HAM_DATE_RE.match(s):
        raise ValueError(f"Malformed HQSL datetime: {s!r}")
    return datetime.strptime(s, HAM_TIME_FORMAT).replace(tzinfo=timezone.utc)


def to_ham_date(d: datetime) -> str:
    return as_utc(d).strftime(HAM_TIME_FORMAT)


def display_ham_date(d: datetime) -> str:
    return as_utc(d).strftime(DISPLAY_TIME_FORMAT)


def adif_date(d: datetime) -> str:
    """Format a datetime for the ADIF ``QSO_DATE`` field."""
    return as_utc(d).strftime("%Y%m%d")


def adif_time(d: datetime) -> str:
    """Format a datetime for the ADIF ``TIME_ON`` field."""
    return as_utc(d).strftime("%H%M")
