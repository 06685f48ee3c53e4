"""Narrow wrapper over PGPy.

Everything the rest of the package needs from OpenPGP goes through these
functions; no other module imports :mod:`pgpy`. Keys are ``PGPKey`` objects,
signatures are ``PGPSignature`` objects, user ids are ``PGPUID`` objects.
"""

from __future__ import annotations

import contextlib
from datetime import datetime
from typing import Iterator, List, Optional, Union

from pgpy import PGPKey, PGPSignature, PGPUID
from pgpy.constants import SignatureType
from pgpy.errors import PGPError
from pgpy.packet import Packet
from pgpy.packet.packets import Signature

from hqsl.errors import SignatureFormatError

CERTIFICATION_TYPES = frozenset(
    {
        SignatureType.Generic_Cert,
        SignatureType.Persona_Cert,
        SignatureType.Casual_Cert,
        SignatureType.Positive_Cert,
    }
)


def parse_keys(blob: Union[str, bytes, bytearray]) -> List[PGPKey]:
    """Read every primary key from an armored or binary key blob.

    Raises:
        ValueError: if the blob holds no usable key (PGPy errors propagate
            as they are).
    """
    first, others = PGPKey.from_blob(blob)
    keys = [first]
    for key in others.values():
        if key is not first and key.is_primary and key not in keys:
            keys.append(key)
    return keys


def parse_signature(blob: Union[bytes, bytearray]) -> List[PGPSignature]:
    """Read every signature packet from a binary blob.

    Raises:
        SignatureFormatError: on an empty blob, a truncated or corrupt packet,
            or any packet that is not a signature.
    """
    data = bytearray(blob)
    if not data:
        raise SignatureFormatError("Empty signature")

    signatures: List[PGPSignature] = []
    while data:
        remaining = len(data)
        try:
            pkt = Packet(data)
        except Exception as e:
            raise SignatureFormatError(f"Unparseable signature packet: {e}") from e
        if len(data) >= remaining:
            raise SignatureFormatError("Signature packet parser made no progress")
        if not isinstance(pkt, Signature):
            raise SignatureFormatError(
                f"Expected a signature packet, got {pkt.__class__.__name__}"
            )
        sig = PGPSignature()
        sig |= pkt
        signatures.append(sig)
    return signatures


def _signer_key_id(sig: PGPSignature) -> Optional[str]:
    # PGPy reads the Issuer subpacket without checking that there is one.
    if "Issuer" in sig._signature.subpackets:
        return sig.signer.upper()
    if sig.signer_fingerprint:
        return sig.signer_fingerprint.keyid.upper()
    return None


def signing_key_ids(signatures: List[PGPSignature]) -> List[str]:
    """Issuer key id of each signature, as 16 upper-case hex digits.

    The id comes from the Issuer subpacket, or from the IssuerFingerprint
    one when that is all there is. Signatures naming no issuer are left out.
    """
    ids = []
    for sig in signatures:
        key_id = _signer_key_id(sig)
        if key_id:
            ids.append(key_id)
    return ids


def verify_detached(message: str, signature: PGPSignature, key: PGPKey) -> bool:
    """Check a detached signature over ``message`` with ``key`` or its subkeys."""
    try:
        return bool(key.verify(message, signature))
    except PGPError:
        # Signature was not made by this key or any of its subkeys.
        return False


def sign_detached(message: str, private_key: PGPKey, created: datetime) -> bytes:
    """Produce a binary detached signature. The key must be unlocked."""
    return bytes(private_key.sign(message, created=created))


@contextlib.contextmanager
def unlocked(private_key: PGPKey, passphrase: Optional[str] = None) -> Iterator[PGPKey]:
    """Unlock ``private_key`` for the duration of the block, if it is locked."""
    if private_key.is_protected and not private_key.is_unlocked:
        with private_key.unlock(passphrase or ""):
            yield private_key
    else:
        yield private_key


def _issued_by(sig: PGPSignature, key: PGPKey) -> bool:
    if sig.signer_fingerprint:
        return sig.signer_fingerprint == key.fingerprint
    return _signer_key_id(sig) == key.fingerprint.keyid


def _verifies(key: PGPKey, subject, sig: PGPSignature) -> bool:
    try:
        return bool(key.verify(subject, sig))
    except PGPError:
        return False


def is_key_revoked(key: PGPKey) -> bool:
    return any(_verifies(key, key, sig) for sig in key.revocation_signatures)


def verify_self_certification(uid: PGPUID) -> bool:
    """Check that the newest self-signature on ``uid`` is a valid certification."""
    selfsig = uid.selfsig
    if selfsig is None or selfsig.type not in CERTIFICATION_TYPES:
        return False
    return _verifies(uid.parent, uid, selfsig)


def verify_primary_key(key: PGPKey) -> bool:
    """A key is usable when it is unrevoked, unexpired and has a self-certified user id."""
    if is_key_revoked(key) or key.is_expired:
        return False
    return any(verify_self_certification(uid) for uid in key.userids)


def certifications_by(uid: PGPUID, root: PGPKey) -> List[PGPSignature]:
    """Third-party certifications on ``uid`` claiming ``root`` as issuer, unverified."""
    return [
        sig
        for sig in uid.third_party_certifications
        if sig.type in CERTIFICATION_TYPES and _issued_by(sig, root)
    ]


def verify_certificate(uid: PGPUID, cert: PGPSignature, root: PGPKey) -> bool:
    return _verifies(root, uid, cert)


def is_revoked(uid: PGPUID, cert: PGPSignature, root: PGPKey) -> bool:
    """Check for a valid revocation of ``cert`` by its issuer on the same user id.

    Creation dates are not compared: once a root revokes its certification
    of an identity, every certification it made on that identity counts as
    revoked.
    """
    for sig in uid.__sig__:
        if sig.type != SignatureType.CertRevocation:
            continue
        if _signer_key_id(sig) != _signer_key_id(cert) or not _issued_by(sig, root):
            continue
        if _verifies(root, uid, sig):
            return True
    return False


def certificate_created(cert: PGPSignature) -> datetime:
    return cert.created


def certificate_notations(cert: PGPSignature, name: str) -> List[str]:
    """Values of every hashed notation called ``name``, duplicates included."""
    values = []
    for notation in cert._signature.subpackets["h_NotationData"]:
        if notation.name != name:
            continue
        value = notation.value
        if isinstance(value, (bytes, bytearray)):
            values.append(bytes(value).decode("utf-8", errors="replace"))
        else:
            # PGPy reads human-readable values as latin-1.
            try:
                value = value.encode("latin-1").decode("utf-8")
            except UnicodeError:
                pass
            values.append(value)
    return values


def user_ids(key: PGPKey) -> List[PGPUID]:
    return [uid for uid in key.userids if uid.is_uid]


def fingerprint(key: PGPKey) -> str:
    """Fingerprint as upper-case hex without spaces."""
    return str(key.fingerprint).replace(" ", "").upper()


def armor(key: PGPKey) -> str:
    """ASCII-armored public part of ``key``."""
    return str(key.pubkey if not key.is_public else key)
