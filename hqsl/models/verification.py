"""Pydantic models for verification results and certification ranges.

Key fields hold ``pgpy.PGPKey`` objects; they are typed loosely so that the
models stay importable without touching the OpenPGP layer.
"""

from __future__ import annotations

from datetime import datetime
from enum import IntEnum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict


class Verdict(IntEnum):
    """Verification verdict."""

    #: The card is not signed at all, though it may be valid otherwise.
    NOT_SIGNED = 0
    #: Everything checks out.
    VALID = 1
    #: The signature is unparseable, does not validate, or breaks the format.
    INVALID = 2
    #: No key server returned the signer key (unreachable or timed out).
    KEY_NOT_FOUND = 3
    #: A valid signature by an available key, but no trusted key certified
    #: that key for the callsign at the time of the QSO.
    KEY_NOT_CERTIFIED = 4


class Verification(BaseModel):
    """Verification result, with the keys involved where they make sense."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    verdict: Verdict
    signer_key: Optional[Any] = None
    certifier_key: Optional[Any] = None


class CertificationRange(BaseModel):
    """A time span during which a signer key may certify QSOs for a callsign.

    ``start`` and ``end`` are exclusive bounds in UTC.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    call: str  # Callsign, with no prefixes or suffixes
    start: datetime
    end: datetime
    key: Any  # The trusted key that certified this range

    def covers(self, call_tokens, when: datetime) -> bool:
        """Check whether this range certifies any of ``call_tokens`` at ``when``."""
        return self.call in call_tokens and self.start < when < self.end
