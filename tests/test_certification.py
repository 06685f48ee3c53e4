"""Tests for certification ranges."""

from __future__ import annotations

import pytest

from hqsl.adapters import openpgp
from hqsl.certification import (
    NOTATION_NAME,
    UID_RE,
    certification_ranges,
    ranges_from_notations,
)

from .conftest import CALL, make_key, public, utc

ROOT = object()


# ---------------------------------------------------------------------------
# Notation values
# ---------------------------------------------------------------------------
class TestRangesFromNotations:
    def test_single_range(self):
        [r] = ranges_from_notations(CALL, ["AC1PZ,202301010000,203001010000"], ROOT)
        assert r.call == CALL
        assert r.start == utc(2023, 1, 1)
        assert r.end == utc(2030, 1, 1)
        assert r.key is ROOT

    def test_several_ranges(self):
        ranges = ranges_from_notations(
            CALL, ["AC1PZ,202301010000,202302010000,202401010000,202402010000"], ROOT
        )
        assert [(r.start, r.end) for r in ranges] == [
            (utc(2023, 1, 1), utc(2023, 2, 1)),
            (utc(2024, 1, 1), utc(2024, 2, 1)),
        ]

    @pytest.mark.parametrize(
        "notations",
        [
            [],
            ["AC1PZ,202301010000,203001010000", "AC1PZ,202301010000,203001010000"],
            ["AC1PZ,202301010000"],
            ["AC1PZ,202301010000,203001010000,202401010000"],
            ["W1KOT,202301010000,203001010000"],
            ["ac1pz,202301010000,203001010000"],
        ],
    )
    def test_unusable_notations(self, notations):
        assert ranges_from_notations(CALL, notations, ROOT) == []

    def test_bad_pairs_are_dropped_individually(self):
        ranges = ranges_from_notations(
            CALL,
            [
                "AC1PZ,"
                "203001010000,202301010000,"  # backwards
                "202301010000,202301010000,"  # empty
                "2023010100,202401010000,"  # short date
                "202401010000,202501010000"
            ],
            ROOT,
        )
        assert [(r.start, r.end) for r in ranges] == [(utc(2024, 1, 1), utc(2025, 1, 1))]


class TestCovers:
    def test_bounds_are_exclusive(self):
        [r] = ranges_from_notations(CALL, ["AC1PZ,202301010000,202401010000"], ROOT)
        assert r.covers(["AC1PZ"], utc(2023, 6, 1))
        assert not r.covers(["AC1PZ"], utc(2023, 1, 1))
        assert not r.covers(["AC1PZ"], utc(2024, 1, 1))

    def test_any_token_may_match(self):
        [r] = ranges_from_notations(CALL, ["AC1PZ,202301010000,202401010000"], ROOT)
        assert r.covers("VE3/AC1PZ/P".split("/"), utc(2023, 6, 1))
        assert not r.covers(["AC1PZX"], utc(2023, 6, 1))


class TestUidPattern:
    @pytest.mark.parametrize(
        "uid,call",
        [
            ("Amateur Radio Callsign: AC1PZ", "AC1PZ"),
            ("Eugene Medvedev (Amateur Radio Callsign: AC1PZ)", "AC1PZ"),
            ("Amateur Radio Callsign: R62SWL", "R62SWL"),
        ],
    )
    def test_call_is_captured(self, uid, call):
        assert UID_RE.search(uid).group(1) == call

    def test_other_uids_do_not_match(self):
        assert UID_RE.search("Eugene Medvedev <ac1pz@example.org>") is None


# ---------------------------------------------------------------------------
# Keys
# ---------------------------------------------------------------------------
class TestCertificationRanges:
    def test_certified_key(self, signer_key, root_public):
        [r] = certification_ranges(public(signer_key), [root_public])
        assert r.call == CALL
        assert (r.start, r.end) == (utc(2023, 1, 1), utc(2030, 1, 1))
        assert openpgp.fingerprint(r.key) == openpgp.fingerprint(root_public)

    def test_no_trusted_keys(self, signer_key):
        assert certification_ranges(public(signer_key), []) == []

    def test_uncertified_key(self, uncertified_key, root_public):
        assert certification_ranges(public(uncertified_key), [root_public]) == []

    def test_certified_by_someone_else(self, foreign_signed_key, root_public):
        assert certification_ranges(public(foreign_signed_key), [root_public]) == []

    def test_other_root_is_trusted_too(self, foreign_signed_key, root_public, untrusted_root_key):
        ranges = certification_ranges(
            public(foreign_signed_key), [root_public, public(untrusted_root_key)]
        )
        assert [openpgp.fingerprint(r.key) for r in ranges] == [
            openpgp.fingerprint(untrusted_root_key)
        ]

    def test_revoked_key(self, revoked_key, root_public):
        assert certification_ranges(public(revoked_key), [root_public]) == []

    def test_expired_key(self, expired_key, root_public):
        assert certification_ranges(public(expired_key), [root_public]) == []

    def test_revoked_certification_stays_revoked(self, recertified_key, root_public):
        assert certification_ranges(public(recertified_key), [root_public]) == []

    def test_newest_certification_wins(self, superseded_key, root_public):
        [r] = certification_ranges(public(superseded_key), [root_public])
        assert (r.start, r.end) == (utc(2024, 1, 1), utc(2025, 1, 1))

    def test_non_callsign_uid_is_ignored(self, root_key, root_public):
        key = make_key("Just A Name <name@example.org>")
        uid = key.userids[0]
        uid |= root_key.certify(
            uid, notation={NOTATION_NAME: "AC1PZ,202301010000,203001010000"}
        )
        assert certification_ranges(public(key), [root_public]) == []
