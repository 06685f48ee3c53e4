"""Certification ranges: when may a key certify QSOs for which callsign.

A trusted (root) key certifies a user id of the form
``Amateur Radio Callsign: <CALL>`` on a signer key, and attaches a single
notation ``qsl@hqsl.net`` to that certification::

    <CALL>,<start>,<end>[,<start>,<end>...]

Every start/end pair is a ``yyyyMMddHHmm`` UTC time span during which the
signer key speaks for the callsign.
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import List, Optional, Sequence

from hqsl.adapters import openpgp
from hqsl.models.verification import CertificationRange
from hqsl.utils.date import from_ham_date

NOTATION_NAME = "qsl@hqsl.net"

UID_RE = re.compile(r"Amateur Radio Callsign: ([0-9A-Z]+)")


def ranges_from_notations(call: str, notations: Sequence[str], root) -> List[CertificationRange]:
    """Turn the notation values of one certification into ranges.

    More than one notation with our name is ambiguous: OpenPGP permits it,
    but too many libraries mishandle it, so such a certification yields
    nothing. So does a notation for another callsign or with an unpaired
    date. Pairs that fail to parse or do not move forward in time are
    dropped one by one.
    """
    if len(notations) != 1:
        return []

    components = notations[0].split(",")
    if len(components) % 2 != 1 or components[0] != call:
        return []

    results = []
    for start_text, end_text in zip(components[1::2], components[2::2]):
        try:
            start = from_ham_date(start_text)
            end = from_ham_date(end_text)
        except ValueError:
            continue
        if end > start:
            results.append(CertificationRange(call=call, start=start, end=end, key=root))
    return results


def _latest_certification(uid, root):
    """Newest unrevoked certification of ``uid`` by ``root`` that verifies."""
    relevant = None
    latest: Optional[datetime] = None
    for cert in openpgp.certifications_by(uid, root):
        created = openpgp.certificate_created(cert)
        if latest is not None and not created > latest:
            continue
        if openpgp.is_revoked(uid, cert, root):
            continue
        if openpgp.verify_certificate(uid, cert, root):
            relevant = cert
            latest = created
    return relevant


def certification_ranges(signer_key, trusted_keys: Sequence) -> List[CertificationRange]:
    """List the callsign/time ranges ``signer_key`` is certified for.

    Used internally during verification, but also handy for checking an
    arbitrary message signed with an HQSL signing key.

    Args:
        signer_key: The public key to inspect.
        trusted_keys: Root keys whose certifications count.

    Returns:
        Ranges aggregated over every callsign user id and every root, in that
        order, without deduplication. A revoked, expired or otherwise broken
        signer key gets an empty list.
    """
    results: List[CertificationRange] = []

    if not openpgp.verify_primary_key(signer_key):
        return results

    for uid in openpgp.user_ids(signer_key):
        m = UID_RE.search(uid.userid or "")
        if not m:
            continue
        if not openpgp.verify_self_certification(uid):
            continue
        call = m.group(1)

        for root in trusted_keys:
            cert = _latest_certification(uid, root)
            if cert is None:
                continue
            notations = openpgp.certificate_notations(cert, NOTATION_NAME)
            results.extend(ranges_from_notations(call, notations, root))

    return results
