"""
Tests for digest verification — determinism, sensitivity, fail-closed.
"""

import hashlib
import io
from pathlib import Path

import pytest

from binstall.core.models import ExpectedDigest
from binstall.core.services.artifact_install import (
    IntegrityError,
    compute_digest,
    digest_matches,
    verify,
)

DATA = b"attio release bytes\x00\x01\x02" * 100


def _expected(data: bytes = DATA) -> str:
    return "sha256:" + hashlib.sha256(data).hexdigest()


class TestComputeDigest:
    def test_deterministic(self):
        assert compute_digest(DATA, "sha256") == compute_digest(DATA, "sha256")

    def test_sources_agree(self, tmp_path: Path):
        path = tmp_path / "artifact"
        path.write_bytes(DATA)
        from_bytes = compute_digest(DATA, "sha256")
        assert compute_digest(path, "sha256") == from_bytes
        assert compute_digest(io.BytesIO(DATA), "sha256") == from_bytes

    def test_sha512(self):
        assert compute_digest(DATA, "sha512") == hashlib.sha512(DATA).hexdigest()


class TestVerify:
    def test_match_returns_actual(self):
        assert verify(DATA, _expected()) == hashlib.sha256(DATA).hexdigest()

    def test_case_insensitive(self):
        expected = "sha256:" + hashlib.sha256(DATA).hexdigest().upper()
        verify(DATA, expected)

    def test_accepts_parsed_digest(self):
        verify(DATA, ExpectedDigest.parse(_expected()))

    def test_mismatch_raises(self):
        with pytest.raises(IntegrityError) as exc:
            verify(DATA + b"!", _expected())
        err = exc.value
        assert err.expected == hashlib.sha256(DATA).hexdigest()
        assert err.actual == hashlib.sha256(DATA + b"!").hexdigest()
        assert not err.retryable

    @pytest.mark.parametrize("offset", [0, 1, len(DATA) // 2, len(DATA) - 1])
    def test_single_byte_tamper_detected(self, offset):
        tampered = bytearray(DATA)
        tampered[offset] ^= 0x01
        assert not digest_matches(bytes(tampered), _expected())

    def test_truncation_detected(self):
        assert not digest_matches(DATA[:-1], _expected())

    def test_empty_input(self):
        assert digest_matches(b"", _expected(b""))
        assert not digest_matches(b"", _expected())

    def test_unreadable_file_fails_closed(self, tmp_path: Path):
        with pytest.raises(IntegrityError, match="Could not compute"):
            verify(tmp_path / "missing", _expected())

    def test_garbage_expected_fails_closed(self):
        with pytest.raises(IntegrityError):
            verify(DATA, "not-a-digest")
