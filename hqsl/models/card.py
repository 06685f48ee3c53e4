"""Pydantic model for an HQSL card.

A card is constructed without validation; checks happen when the card is
turned into signable text (see :mod:`hqsl.codec`), so a half-filled card can
be built up field by field, e.g. from an ADIF record.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from hqsl.models.verification import Verification
from hqsl.utils.date import display_ham_date, to_ham_date
from hqsl.utils.frequency import freq_band


class Card(BaseModel):
    """One QSO through its parsing, signing and verification life cycle."""

    model_config = ConfigDict(populate_by_name=True, arbitrary_types_allowed=True)

    from_: Optional[str] = Field(default=None, alias="from")  # Sender's call sign
    where: Optional[str] = None  # Sender's Maidenhead grid square
    to: Optional[str] = None  # Correspondent's call sign
    when: Optional[datetime] = None  # QSO datetime in UTC
    signal: Optional[str] = None  # Signal report
    freq: Optional[float] = None  # Frequency in MHz
    mode: Optional[str] = None
    extra: Optional[str] = None
    reserved: Optional[str] = None  # Reserved by the standard, don't use it
    signature: Optional[bytes] = None  # Raw detached OpenPGP signature
    verification: Optional[Verification] = Field(default=None, exclude=True)

    @property
    def band(self) -> str:
        """ADIF band name derived from the frequency."""
        return freq_band(self.freq) if self.freq else ""

    @property
    def ham_date(self) -> str:
        """QSO datetime in the HQSL ``yyyyMMddHHmm`` format."""
        return to_ham_date(self.when) if self.when else ""

    @property
    def display_date(self) -> str:
        return display_ham_date(self.when) if self.when else ""
