"""Pydantic models for the HTTP API request and response bodies."""

from typing import List, Optional

from pydantic import BaseModel


class CardTextRequest(BaseModel):
    """Card text, optionally with a URL prefix ending in ``#``."""

    card: str


class CardRecord(BaseModel):
    """Flat, JSON friendly view of a parsed card."""

    text: Optional[str] = None  # Canonical card text, if the card is signable
    from_call: str
    where: str
    to: str
    when: str  # ISO 8601, UTC
    display_date: str
    signal: Optional[str] = None
    freq: float
    band: str
    mode: Optional[str] = None
    extra: Optional[str] = None
    reserved: Optional[str] = None
    signed: bool


class VerificationRecord(BaseModel):
    verdict: str  # Verdict name, e.g. "VALID"
    code: int
    signer: Optional[str] = None  # Signer key fingerprint
    certifier: Optional[str] = None  # Certifying root key fingerprint
    card: CardRecord


class FrequencyBand(BaseModel):
    frequency: str  # Normalized frequency in MHz
    band: str  # ADIF band name, "??" if unknown


class CertificationRecord(BaseModel):
    call: str
    start: str  # ISO 8601, UTC
    end: str
    certifier: str  # Root key fingerprint


class KeyCertifications(BaseModel):
    fingerprint: str
    certifications: List[CertificationRecord]
