"""ADIF import and export for HQSL cards.

Only the ADI (tagged text) flavour of ADIF is handled. Parsed records are
plain dicts keyed by lower-cased field names; records to be written use the
upper-case names the ADIF standard spells out.
"""

from __future__ import annotations

import math
import re
from typing import Dict, Iterable, List, Mapping, Optional

from hqsl.codec import to_string
from hqsl.errors import CardSyntaxError
from hqsl.models.card import Card
from hqsl.utils.date import adif_date, adif_time, from_ham_date
from hqsl.utils.frequency import band_freq

ADIF_VERSION = "3.1.4"
HEADER_TEXT = "Cryptographically signed QSO delivered in HQSL format"

ADIF_FIELD_RE = re.compile(
    r"<(?P<name>[A-Za-z0-9_]+):(?P<len>\d+)(:[A-Za-z0-9]+)?>",
    re.IGNORECASE,
)


def parse_adi(content: str) -> List[Dict[str, str]]:
    """Parse an ADI document into a list of records.

    The header, if any, is skipped at ``<EOH>``. Each record ends with
    ``<EOR>``; a trailing record without one is kept as long as it has
    any fields. Tags are case-insensitive and values are read by the
    length given in the tag.
    """
    records: List[Dict[str, str]] = []
    current: Dict[str, str] = {}
    idx = 0
    length = len(content)
    lower_content = content.lower()

    while idx < length:
        if lower_content.startswith("<eor>", idx):
            if current:
                records.append(current)
            current = {}
            idx += 5
            continue
        if lower_content.startswith("<eoh>", idx):
            current = {}
            idx += 5
            continue
        m = ADIF_FIELD_RE.match(content, idx)
        if not m:
            idx += 1
            continue
        name = m.group("name").lower()
        value_start = m.end()
        value_end = value_start + int(m.group("len"))
        value = content[value_start:value_end].strip()
        if value:
            current[name] = value
        idx = value_end

    if current:
        records.append(current)
    return records


def _tag(name: str, value: str) -> str:
    return f"<{name}:{len(value)}>{value}"


def format_adi(
    records: Iterable[Mapping[str, object]],
    header_text: str = HEADER_TEXT,
    adif_ver: str = ADIF_VERSION,
) -> str:
    """Format records as an ADI document. ``None`` and empty values are skipped."""
    lines = [header_text, _tag("ADIF_VER", adif_ver), "<EOH>", ""]
    for record in records:
        for name, value in record.items():
            if value is None or value == "":
                continue
            lines.append(_tag(name.upper(), str(value)))
        lines.append("<EOR>")
        lines.append("")
    return "\n".join(lines)


def _adif_number(value: float) -> str:
    text = repr(float(value))
    return text[:-2] if text.endswith(".0") else text


def to_adif_record(card: Card) -> Dict[str, str]:
    """Map a signable card onto ADIF fields, as the recipient would log it.

    Raises:
        CardSyntaxError: if the card cannot be serialized.
    """
    full_text = to_string(card)
    where = card.where or ""

    record: Dict[str, Optional[str]] = {
        "CALL": card.from_,
        "OPERATOR": card.to,
        "QSO_DATE": adif_date(card.when),
        "TIME_ON": adif_time(card.when),
        "GRIDSQUARE": where[:8],
        "GRIDSQUARE_EXT": where[8:12] if len(where) > 8 else None,
        "RST_RCVD": card.signal,
        "MODE": card.mode,
        "FREQ": _adif_number(card.freq) if card.freq else None,
        "BAND": card.band,
        "QSL_RCVD": "Y",
        "APP_HQSL_DATA": full_text,
        # Underscore stands in for a space in card text.
        "COMMENT": card.extra.replace("_", " ", 1) if card.extra else None,
    }
    return {k: v for k, v in record.items() if v}


def to_adif(card: Card) -> str:
    """Format a card as a single-QSO ADI document."""
    return format_adi([to_adif_record(card)])


def _record_freq(record: Mapping[str, str]) -> float:
    try:
        freq = float(record.get("freq", ""))
    except ValueError:
        freq = 0.0
    if freq and math.isfinite(freq):
        return freq
    return band_freq(record.get("band")) or 0.0


def from_adif_records(
    records: Iterable[Mapping[str, str]], call: str, grid: str
) -> List[Card]:
    """Build cards from parsed ADIF records.

    Whether the cards are signable depends on how complete the log was.

    Args:
        records: Records with lower-cased field names, as from :func:`parse_adi`.
        call: Callsign to assume when a record names no operator.
        grid: Grid square to assume when a record has none.

    Raises:
        CardSyntaxError: if a record's QSO date and time cannot be parsed.
    """
    cards: List[Card] = []
    for record in records:
        my_grid = record.get("my_gridsquare")
        where = my_grid + record.get("my_gridsquare_ext", "") if my_grid else grid

        time_on = (record.get("time_on") or "0000")[:4]
        try:
            when = from_ham_date(record.get("qso_date", "") + time_on)
        except ValueError as e:
            raise CardSyntaxError(
                f"Bad QSO date/time in record for {record.get('call')}"
            ) from e

        sender = record.get("operator") or record.get("station_callsign") or call
        cards.append(
            Card(
                from_=sender.upper() if sender else sender,
                where=where,
                to=record.get("call"),
                when=when,
                signal=record.get("rst_sent"),
                freq=_record_freq(record),
                mode=record.get("mode"),
                extra=record.get("comment"),
            )
        )
    return cards


def from_adif(content: str, call: str, grid: str) -> List[Card]:
    """Parse an ADI document into cards. See :func:`from_adif_records`."""
    return from_adif_records(parse_adi(content), call, grid)
