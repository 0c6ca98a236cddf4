"""
Shared test fixtures: release archives, a fake attio binary, and a
patched ``urllib.request.urlopen`` that serves artifact bytes by URL.
"""

from __future__ import annotations

from pathlib import Path
from unittest import mock

import pytest

from artifact_helpers import (
    FAKE_ATTIO,
    URL_A,
    URL_B,
    FakeServer,
    descriptor,
    make_tar_gz,
)
from binstall.core.models import ArtifactMatrix, SmokeTestSpec, VersionedPackage


@pytest.fixture
def attio_archive() -> bytes:
    """A release tarball holding a working fake ``attio`` binary."""
    return make_tar_gz({
        "attio": FAKE_ATTIO,
        "LICENSE": b"MIT\n",
        "README.md": b"# attio\n",
    })


@pytest.fixture
def attio_package(attio_archive: bytes) -> VersionedPackage:
    """darwin/arm64 → URL A and linux/amd64 → URL B, both the same tarball."""
    return VersionedPackage(
        name="attio",
        version="0.1.0",
        smoke_test=SmokeTestSpec(args=("version",), expect="version"),
        matrix=ArtifactMatrix(entries=(
            descriptor("darwin", "arm64", attio_archive, URL_A),
            descriptor("linux", "amd64", attio_archive, URL_B),
        )),
    )


@pytest.fixture
def server(attio_archive: bytes):
    """Patch ``urlopen`` with a FakeServer serving both attio URLs."""
    fake = FakeServer()
    fake.add(URL_A, attio_archive)
    fake.add(URL_B, attio_archive)
    with mock.patch("urllib.request.urlopen", side_effect=fake.urlopen):
        yield fake


@pytest.fixture
def target_dir(tmp_path: Path) -> Path:
    """Install directory that does not exist yet."""
    return tmp_path / "bin"
