# tests/unit/cache/test_unit_fingerprint.py — v1
"""Tests for cache/fingerprint.py — rolling hash and SHA-256 fingerprints."""

from __future__ import annotations

import pytest

from ecfrcount.cache.fingerprint import (
    RollingHashFingerprinter,
    Sha256Fingerprinter,
    create_fingerprinter,
    fingerprint,
)
from ecfrcount.config.settings import Settings


class TestRollingHash:
    @pytest.mark.parametrize(
        ("text", "expected"),
        [("", "0"), ("a", "61"), ("ab", "c21")],
    )
    def test_known_values(self, text, expected):
        assert fingerprint(text) == expected

    def test_deterministic(self):
        text = "The marketing service sets grading standards."
        assert fingerprint(text) == fingerprint(text)

    def test_different_text_differs(self):
        assert fingerprint("alpha") != fingerprint("beta")

    def test_truncated_lowercase_hex(self):
        fp = fingerprint("x" * 5000)
        assert 1 <= len(fp) <= 10
        assert all(c in "0123456789abcdef" for c in fp)

    def test_wraps_to_signed_32_bit(self):
        # 31**7 overflows 32 bits; the result is the magnitude of the signed value
        fp = RollingHashFingerprinter().fingerprint("zzzzzzzzz")
        assert int(fp, 16) <= 2**31

    def test_non_bmp_hashes_as_surrogate_pair(self):
        # U+1F600 is the surrogate pair D83D DE00
        expected = format(0xD83D * 31 + 0xDE00, "x")
        assert fingerprint("\U0001F600") == expected

    def test_custom_length(self):
        assert len(RollingHashFingerprinter(length=4).fingerprint("some longer text")) <= 4


class TestSha256:
    def test_length_and_determinism(self):
        fp = Sha256Fingerprinter().fingerprint("abc")
        assert fp == "ba7816bf8f01cfea"
        assert Sha256Fingerprinter().fingerprint("abc") == fp


class TestFactory:
    def test_default_is_rolling(self):
        assert create_fingerprinter().name == "rolling"

    def test_from_settings(self):
        settings = Settings(_env_file=None, fingerprint_algorithm="sha256")
        assert create_fingerprinter(settings).name == "sha256"
