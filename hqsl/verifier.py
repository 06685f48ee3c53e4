"""Signing and verification of HQSL cards.

:class:`HQSLVerifier` holds the trusted root keys and the key server client.
It is read-only after construction, so one instance can verify many cards
concurrently.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Union

import httpx

from hqsl.adapters import openpgp
from hqsl.adapters.keyserver import KeyServerClient
from hqsl.certification import certification_ranges
from hqsl.codec import signed_data
from hqsl.errors import CardSyntaxError, KeyNotFoundError, SignatureFormatError
from hqsl.middleware.logging import log_info, log_warning
from hqsl.models.card import Card
from hqsl.models.verification import CertificationRange, Verdict, Verification
from hqsl.utils.date import as_utc

KeyMaterial = Union[str, bytes, bytearray, object]


def load_keys(keys: Iterable[KeyMaterial]) -> list:
    """Read keys given as armored text, binary blobs or ready ``PGPKey`` objects.

    One armored block may carry several keys; all of them are kept.
    """
    loaded = []
    for key in keys:
        if isinstance(key, (str, bytes, bytearray)):
            loaded.extend(openpgp.parse_keys(key))
        elif key is not None:
            loaded.append(key)
    return loaded


class HQSLVerifier:
    """Verifies and signs cards against a fixed set of trusted keys."""

    def __init__(
        self,
        trusted_keys: Iterable,
        key_servers: Optional[Iterable[str]] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.trusted_keys = tuple(trusted_keys)
        self.keyserver = KeyServerClient(key_servers, timeout, client=client)

    @classmethod
    def setup(
        cls,
        trusted_keys: Iterable[KeyMaterial],
        key_servers: Optional[Iterable[str]] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> "HQSLVerifier":
        """Build a verifier from key material in any supported form.

        Args:
            trusted_keys: Root keys whose certifications are trusted.
            key_servers: HKP/HKPS server URLs; ``https://hqsl.net`` if empty.
            timeout: Per-request key server timeout in seconds (default 1).
            client: Shared HTTP client, mostly for tests.
        """
        keys = load_keys(trusted_keys)
        log_info(
            "trusted_keys_loaded",
            count=len(keys),
            fingerprints=[openpgp.fingerprint(k) for k in keys],
        )
        return cls(keys, key_servers=key_servers, timeout=timeout, client=client)

    @property
    def key_servers(self) -> List[str]:
        return self.keyserver.key_servers

    @property
    def timeout(self) -> float:
        return self.keyserver.timeout

    async def lookup(self, query: str) -> list:
        """Look keys up on the configured servers. See :meth:`KeyServerClient.lookup`."""
        return await self.keyserver.lookup(query)

    def certifications(self, key) -> List[CertificationRange]:
        """Callsign/time ranges ``key`` is certified for by the trusted keys."""
        return certification_ranges(key, self.trusted_keys)

    async def verify(self, card: Card) -> Verification:
        """Work out a verdict for ``card`` without modifying it."""
        result = await self._verify(card)
        log_info(
            "verification_result",
            call=card.from_,
            to=card.to,
            verdict=result.verdict.name,
            signer=openpgp.fingerprint(result.signer_key) if result.signer_key else None,
        )
        return result

    async def _verify(self, card: Card) -> Verification:
        # Cards assembled from parts may lack these.
        if not card.from_ or not card.when:
            return Verification(verdict=Verdict.INVALID)

        if not card.signature:
            return Verification(verdict=Verdict.NOT_SIGNED)

        try:
            signatures = openpgp.parse_signature(card.signature)
        except SignatureFormatError as e:
            log_warning("signature_unparseable", call=card.from_, error=str(e))
            return Verification(verdict=Verdict.INVALID)

        # Several issuers on one card are not supported.
        try:
            key_ids = openpgp.signing_key_ids(signatures)
        except Exception as e:
            log_warning("signature_unparseable", call=card.from_, error=str(e))
            return Verification(verdict=Verdict.INVALID)
        if len(signatures) != 1 or len(key_ids) != 1:
            return Verification(verdict=Verdict.INVALID)

        try:
            found_keys = await self.lookup(f"0x{key_ids[0]}")
        except KeyNotFoundError:
            return Verification(verdict=Verdict.KEY_NOT_FOUND)

        try:
            message = signed_data(card)
        except CardSyntaxError:
            return Verification(verdict=Verdict.INVALID)

        when = as_utc(card.when)
        # Prefixes and suffixes are hard to tell from the call itself, but
        # only real calls get certified, so any token may match.
        tokens = card.from_.split("/")

        # Key ids can collide, so every returned key gets a chance.
        for signer_key in found_keys:
            try:
                verified = openpgp.verify_detached(message, signatures[0], signer_key)
            except Exception as e:
                log_warning(
                    "signature_check_failed",
                    key=openpgp.fingerprint(signer_key),
                    error=str(e),
                )
                continue
            if not verified:
                continue

            try:
                ranges = self.certifications(signer_key)
            except Exception as e:
                # Broken packets on a served key certify nothing.
                log_warning(
                    "certification_check_failed",
                    key=openpgp.fingerprint(signer_key),
                    error=str(e),
                )
                ranges = []
            for certified in ranges:
                if certified.covers(tokens, when):
                    return Verification(
                        verdict=Verdict.VALID,
                        signer_key=signer_key,
                        certifier_key=certified.key,
                    )
            return Verification(verdict=Verdict.KEY_NOT_CERTIFIED, signer_key=signer_key)

        return Verification(verdict=Verdict.INVALID)

    async def check(self, card: Card) -> Card:
        """Verify ``card`` and store the result on it, replacing any earlier one."""
        card.verification = None
        card.verification = await self.verify(card)
        return card

    async def check_all(self, cards: Iterable[Card]) -> List[Card]:
        """Check several cards concurrently."""
        return list(await asyncio.gather(*(self.check(card) for card in cards)))

    def sign(
        self,
        card: Card,
        private_key,
        passphrase: Optional[str] = None,
        signing_date: Optional[datetime] = None,
    ) -> Card:
        """Sign ``card`` in place and return it.

        Args:
            card: A signable card; any previous signature is replaced.
            private_key: ``PGPKey`` or armored private key text.
            passphrase: Needed only when the key is locked.
            signing_date: Signature creation time, now by default.

        Raises:
            CardSyntaxError: if the card is incomplete or malformed.
        """
        message = signed_data(card)

        if isinstance(private_key, (str, bytes, bytearray)):
            private_key = openpgp.parse_keys(private_key)[0]

        created = as_utc(signing_date) if signing_date else datetime.now(timezone.utc)
        with openpgp.unlocked(private_key, passphrase) as key:
            card.signature = openpgp.sign_detached(message, key, created)
        return card

    async def publish(self, key, target: Optional[str] = None) -> list:
        """Publish a public key in the background. See :meth:`KeyServerClient.publish`."""
        return await self.keyserver.publish(key, target)
