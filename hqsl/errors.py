"""Exception types raised by the HQSL codec and key handling.

Verification outcomes are not exceptions; see :class:`hqsl.models.Verdict`.
"""


class HQSLError(Exception):
    """Base class for HQSL errors."""


class CardSyntaxError(HQSLError, ValueError):
    """Card text or card fields are missing or malformed."""


class RangeError(ValueError):
    """A numeric value, such as a frequency, is unusable."""


class KeyNotFoundError(HQSLError):
    """No configured key server returned a key for the query."""


class SignatureFormatError(HQSLError):
    """Signature bytes do not form a sequence of OpenPGP signature packets."""
