"""Tests for the signature text encoding."""

import pytest

from hqsl.utils import sigencoder


class TestSigEncoder:
    def test_alphabet(self):
        assert sigencoder.encode(b"\x23") == "Z"
        assert sigencoder.encode(b"\x24") == "10"
        assert sigencoder.decode("10") == b"\x24"

    def test_empty(self):
        assert sigencoder.encode(b"") == ""
        assert sigencoder.decode("") == b""

    def test_leading_zero_bytes_are_kept(self):
        data = b"\x00\x00\x01\x02"
        text = sigencoder.encode(data)
        assert text.startswith("00")
        assert sigencoder.decode(text) == data

    def test_all_zero_bytes(self):
        assert sigencoder.encode(b"\x00\x00") == "00"
        assert sigencoder.decode("00") == b"\x00\x00"

    def test_output_matches_signature_pattern(self):
        text = sigencoder.encode(bytes(range(256)))
        assert sigencoder.SIGNATURE_RE.match(text)
        assert sigencoder.decode(text) == bytes(range(256))

    @pytest.mark.parametrize("text", ["abc", "A-B", "UNSIGNED!"])
    def test_foreign_characters_raise(self, text):
        with pytest.raises(ValueError):
            sigencoder.decode(text)
