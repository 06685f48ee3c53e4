"""Model exports."""

from .verification import CertificationRange, Verdict, Verification
from .card import Card
from .api import (
    CardRecord,
    CardTextRequest,
    CertificationRecord,
    FrequencyBand,
    KeyCertifications,
    VerificationRecord,
)

__all__ = [
    "Card",
    "CertificationRange",
    "Verdict",
    "Verification",
    "CardTextRequest",
    "CardRecord",
    "VerificationRecord",
    "FrequencyBand",
    "CertificationRecord",
    "KeyCertifications",
]
