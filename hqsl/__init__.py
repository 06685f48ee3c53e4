"""HQSL: signed, portable amateur radio QSO confirmations."""

from .errors import (
    CardSyntaxError,
    HQSLError,
    KeyNotFoundError,
    RangeError,
    SignatureFormatError,
)
from .models import Card, CertificationRange, Verdict, Verification
from .codec import UNSIGNED, from_string, signed_data, to_string
from .adapters.adif import from_adif, to_adif
from .verifier import HQSLVerifier

__version__ = "0.3.0"

__all__ = [
    "Card",
    "CertificationRange",
    "Verdict",
    "Verification",
    "HQSLVerifier",
    "UNSIGNED",
    "from_string",
    "to_string",
    "signed_data",
    "from_adif",
    "to_adif",
    "HQSLError",
    "CardSyntaxError",
    "RangeError",
    "KeyNotFoundError",
    "SignatureFormatError",
]
