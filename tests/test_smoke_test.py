"""
Tests for the post-install smoke test.
"""

from pathlib import Path

import pytest

from artifact_helpers import FAKE_ATTIO
from binstall.core.models import SmokeTestSpec
from binstall.core.services.artifact_install import SmokeTestFailed, run_smoke_test


def _script(tmp_path: Path, body: bytes, name: str = "attio") -> Path:
    path = tmp_path / name
    path.write_bytes(body)
    path.chmod(0o755)
    return path


class TestSmokeTest:
    def test_passes_on_marker(self, tmp_path):
        result = run_smoke_test(_script(tmp_path, FAKE_ATTIO))
        assert result.ok
        assert result.exit_code == 0
        assert "version\t0.1.0" in result.output

    def test_stderr_counts_as_output(self, tmp_path):
        binary = _script(tmp_path, b"#!/bin/sh\necho 'attio version 0.1.0' >&2\n")
        assert "attio version" in run_smoke_test(binary).output

    def test_custom_spec(self, tmp_path):
        binary = _script(tmp_path, b'#!/bin/sh\necho "ok: $1 $2"\n')
        result = run_smoke_test(binary, SmokeTestSpec(args=("--help", "-v"), expect="ok: --help -v"))
        assert result.ok

    def test_missing_marker(self, tmp_path):
        binary = _script(tmp_path, b"#!/bin/sh\necho hello\n")
        with pytest.raises(SmokeTestFailed, match="does not contain") as exc:
            run_smoke_test(binary)
        assert exc.value.output.strip() == "hello"
        assert exc.value.exit_code == 0

    def test_non_zero_exit(self, tmp_path):
        binary = _script(tmp_path, b"#!/bin/sh\necho version\nexit 3\n")
        with pytest.raises(SmokeTestFailed) as exc:
            run_smoke_test(binary)
        assert exc.value.exit_code == 3
        assert "version" in exc.value.output

    def test_missing_binary(self, tmp_path):
        with pytest.raises(SmokeTestFailed, match="Cannot execute") as exc:
            run_smoke_test(tmp_path / "attio")
        assert exc.value.exit_code is None

    def test_timeout(self, tmp_path):
        binary = _script(tmp_path, b"#!/bin/sh\nexec sleep 5\n")
        with pytest.raises(SmokeTestFailed, match="timed out"):
            run_smoke_test(binary, SmokeTestSpec(timeout=0.2))

    def test_failure_keeps_binary(self, tmp_path):
        binary = _script(tmp_path, b"#!/bin/sh\nexit 1\n")
        with pytest.raises(SmokeTestFailed):
            run_smoke_test(binary)
        assert binary.exists()
        assert not SmokeTestFailed("x").retryable
