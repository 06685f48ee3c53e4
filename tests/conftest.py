"""Pytest configuration and shared fixtures.

OpenPGP keys are generated once per session with PGPy (Ed25519, which is
fast). Public halves are round-tripped through armor, the way a key server
would hand them out. Key server traffic is served by ``httpx.MockTransport``.
"""

from __future__ import annotations

import base64
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Optional

import httpx
import pytest
from pgpy import PGPKey, PGPUID
from pgpy.types import Armorable
from pgpy.constants import (
    CompressionAlgorithm,
    EllipticCurveOID,
    HashAlgorithm,
    KeyFlags,
    PubKeyAlgorithm,
    SymmetricKeyAlgorithm,
)

from hqsl import Card, HQSLVerifier

CALL = "AC1PZ"
NOTATION = "qsl@hqsl.net"
KEYSERVER = "https://keys.example.org"

# AC1PZ is certified for 2023-01-01 00:00 to 2030-01-01 00:00 (UTC).
CERTIFIED = f"{CALL},202301010000,203001010000"

# Signed with an openpgp.js key, id F57910A00457D478.
REFERENCE_CARD = (
    "AC1PZ,FN42gv,W1KOT,202402081323,+00,18.101,FT8,59_05,,"
    "19H4V9DABY5VH3WE05MV34Z5JBEBJRD9Q7VTLB98L789GFL79P56QWFX0JHV3U6VSEXRODMY"
    "LOZ40UM798EV4FSPVY8YVMQ0WLZA66Q38VW0G6PV23O6Y65PK94NZE5B381MHOPR4NJJU67QC"
    "25JW85JL23V644BLP0HD8KBY2MODEBRICTZ5C0LC"
)
REFERENCE_KEY_ID = "F57910A00457D478"


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Key helpers
# ---------------------------------------------------------------------------
def make_key(uid_text: str, created: Optional[datetime] = None, **prefs) -> PGPKey:
    """Generate a private Ed25519 key with one self-certified user id."""
    key = PGPKey.new(PubKeyAlgorithm.EdDSA, EllipticCurveOID.Ed25519, created=created)
    key.add_uid(
        PGPUID.new(uid_text),
        usage={KeyFlags.Sign, KeyFlags.Certify},
        hashes=[HashAlgorithm.SHA256, HashAlgorithm.SHA512],
        ciphers=[SymmetricKeyAlgorithm.AES256],
        compression=[CompressionAlgorithm.Uncompressed],
        **prefs,
    )
    return key


def certify(root: PGPKey, key: PGPKey, value: str, created: Optional[datetime] = None) -> None:
    """Have ``root`` certify the first user id of ``key`` with an HQSL notation."""
    uid = key.userids[0]
    uid |= root.certify(uid, notation={NOTATION: value}, created=created)


def public(key: PGPKey) -> PGPKey:
    """Public half of ``key``, parsed back from armor."""
    pub, _ = PGPKey.from_blob(str(key.pubkey))
    return pub


def armored(key: PGPKey) -> str:
    return str(key if key.is_public else key.pubkey)


def armor_keys(*keys: PGPKey) -> str:
    """One armored block holding several public keys, as HKP servers send them."""
    data = b"".join(bytes(k if k.is_public else k.pubkey) for k in keys)
    body = base64.b64encode(data).decode()
    lines = [body[i : i + 64] for i in range(0, len(body), 64)]
    crc = base64.b64encode(Armorable.crc24(bytearray(data)).to_bytes(3, "big")).decode()
    return (
        "-----BEGIN PGP PUBLIC KEY BLOCK-----\n\n"
        + "\n".join(lines)
        + f"\n={crc}\n-----END PGP PUBLIC KEY BLOCK-----\n"
    )


def key_directory(*keys: PGPKey, index: Optional[Dict[str, str]] = None) -> httpx.MockTransport:
    """A fake HKP server that knows ``keys`` by ``0x<key id>``.

    ``index`` adds or overrides replies for specific queries.
    """
    index = {**{f"0x{k.fingerprint.keyid}": armored(k) for k in keys}, **(index or {})}

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/pks/lookup":
            found = index.get(request.url.params.get("search", ""))
            if found is None:
                return httpx.Response(404, text="No results found")
            return httpx.Response(200, text=found)
        if request.url.path == "/pks/add":
            return httpx.Response(200, text="Key added")
        return httpx.Response(400)

    return httpx.MockTransport(handler)


# ---------------------------------------------------------------------------
# Keys
# ---------------------------------------------------------------------------
@pytest.fixture(scope="session")
def root_key() -> PGPKey:
    return make_key("HQSL Test Root")


@pytest.fixture(scope="session")
def root_public(root_key: PGPKey) -> PGPKey:
    return public(root_key)


@pytest.fixture(scope="session")
def untrusted_root_key() -> PGPKey:
    return make_key("Someone Else Entirely")


@pytest.fixture(scope="session")
def signer_key(root_key: PGPKey) -> PGPKey:
    """Signing key certified by the root for AC1PZ."""
    key = make_key(f"Amateur Radio Callsign: {CALL}")
    certify(root_key, key, CERTIFIED, created=utc(2023, 1, 1))
    return key


@pytest.fixture(scope="session")
def uncertified_key() -> PGPKey:
    return make_key(f"Amateur Radio Callsign: {CALL}")


@pytest.fixture(scope="session")
def foreign_signed_key(untrusted_root_key: PGPKey) -> PGPKey:
    """Certified, but by a root nobody trusts."""
    key = make_key(f"Amateur Radio Callsign: {CALL}")
    certify(untrusted_root_key, key, CERTIFIED, created=utc(2023, 1, 1))
    return key


@pytest.fixture(scope="session")
def revoked_key(root_key: PGPKey) -> PGPKey:
    """Certified, then revoked by its owner."""
    key = make_key(f"Amateur Radio Callsign: {CALL}")
    certify(root_key, key, CERTIFIED, created=utc(2023, 1, 1))
    key |= key.revoke(key)
    return key


@pytest.fixture(scope="session")
def recertified_key(root_key: PGPKey) -> PGPKey:
    """Certified, certification revoked, then certified again."""
    key = make_key(f"Amateur Radio Callsign: {CALL}")
    certify(root_key, key, CERTIFIED, created=utc(2023, 1, 1))
    uid = key.userids[0]
    uid |= root_key.revoke(uid, created=utc(2023, 6, 1))
    certify(root_key, key, CERTIFIED, created=utc(2023, 7, 1))
    return key


@pytest.fixture(scope="session")
def superseded_key(root_key: PGPKey) -> PGPKey:
    """Certified twice; only the newer certification counts."""
    key = make_key(f"Amateur Radio Callsign: {CALL}")
    certify(root_key, key, f"{CALL},202301010000,202302010000", created=utc(2023, 1, 1))
    certify(root_key, key, f"{CALL},202401010000,202501010000", created=utc(2024, 1, 1))
    return key


@pytest.fixture(scope="session")
def expired_key(root_key: PGPKey) -> PGPKey:
    key = make_key(
        f"Amateur Radio Callsign: {CALL}",
        created=utc(2020, 1, 1),
        key_expiration=timedelta(days=1),
    )
    certify(root_key, key, CERTIFIED, created=utc(2020, 1, 1, 12))
    return key


@pytest.fixture(scope="session")
def protected_key(root_key: PGPKey) -> PGPKey:
    key = make_key(f"Amateur Radio Callsign: {CALL}")
    certify(root_key, key, CERTIFIED, created=utc(2023, 1, 1))
    key.protect("correct horse", SymmetricKeyAlgorithm.AES256, HashAlgorithm.SHA256)
    return key


# ---------------------------------------------------------------------------
# Cards and verifiers
# ---------------------------------------------------------------------------
@pytest.fixture
def card() -> Card:
    """A complete, unsigned card inside the certified period."""
    return Card(
        from_=CALL,
        where="FN42gv",
        to="W1KOT",
        when=utc(2024, 2, 8, 13, 23),
        signal="+00",
        freq=18.101,
        mode="FT8",
        extra="59_05",
    )


@pytest.fixture
def make_verifier(root_public: PGPKey) -> Callable[..., HQSLVerifier]:
    """Build a verifier trusting the test root, backed by a fake key server."""

    def factory(*directory_keys: PGPKey, trusted=None) -> HQSLVerifier:
        client = httpx.AsyncClient(transport=key_directory(*directory_keys))
        return HQSLVerifier.setup(
            [root_public] if trusted is None else trusted,
            key_servers=[KEYSERVER],
            client=client,
        )

    return factory
