"""
Tests for platform resolution — exact match, declared fallbacks, failures.
"""

import logging

import pytest

from artifact_helpers import URL_A, URL_B, descriptor
from binstall.core.models import ArtifactMatrix, FallbackRule
from binstall.core.services.artifact_install import (
    PACKAGES,
    UnsupportedPlatform,
    resolve,
    supported_platforms,
)


@pytest.fixture
def matrix() -> ArtifactMatrix:
    return ArtifactMatrix(
        entries=(
            descriptor("darwin", "arm64", b"mac-arm", URL_A),
            descriptor("linux", "amd64", b"linux-x86", URL_B),
            descriptor("linux", "arm64", b"linux-arm"),
        ),
        fallbacks=(
            FallbackRule(os="linux", arch="arm64", match=("arm*",)),
        ),
    )


class TestExactMatch:
    def test_every_entry_resolves_to_itself(self, matrix):
        for entry in matrix.entries:
            assert resolve(entry.platform.os, entry.platform.arch, matrix) is entry

    def test_example_scenario(self, matrix):
        d = resolve("macOS", "arm64", matrix)
        assert d.url == URL_A

    def test_spelling_variants(self, matrix):
        assert resolve("Linux", "x86_64", matrix).url == URL_B
        assert resolve("darwin", "aarch64", matrix).url == URL_A

    def test_deterministic(self, matrix):
        assert resolve("linux", "amd64", matrix) == resolve("linux", "amd64", matrix)


class TestFallback:
    def test_declared_fallback_used(self, matrix, caplog):
        with caplog.at_level(logging.WARNING):
            d = resolve("linux", "armv7l", matrix)
        assert str(d.platform) == "linux/arm64"
        assert "fallback" in caplog.text

    def test_fallback_is_per_os(self, matrix):
        """The linux ARM rule never applies to darwin."""
        with pytest.raises(UnsupportedPlatform):
            resolve("darwin", "armv7l", matrix)

    def test_unmatched_arch_is_not_guessed(self, matrix):
        with pytest.raises(UnsupportedPlatform):
            resolve("linux", "riscv64", matrix)

    def test_first_matching_rule_wins(self):
        m = ArtifactMatrix(
            entries=(
                descriptor("linux", "amd64", b"a"),
                descriptor("linux", "arm64", b"b"),
            ),
            fallbacks=(
                FallbackRule(os="linux", arch="arm64", match=("armv8*",)),
                FallbackRule(os="linux", arch="amd64", match=("*",)),
            ),
        )
        assert str(resolve("linux", "armv8l", m).platform) == "linux/arm64"
        assert str(resolve("linux", "mips", m).platform) == "linux/amd64"


class TestUnsupported:
    def test_missing_os(self, matrix):
        with pytest.raises(UnsupportedPlatform) as exc:
            resolve("windows", "amd64", matrix)
        err = exc.value
        assert err.os_name == "windows"
        assert err.arch == "amd64"
        assert "linux/amd64" in err.supported
        assert not err.retryable
        assert err.kind == "unsupported_platform"

    def test_empty_names(self, matrix):
        with pytest.raises(UnsupportedPlatform):
            resolve("", "", matrix)

    def test_supported_platforms_sorted(self, matrix):
        assert supported_platforms(matrix) == ["darwin/arm64", "linux/amd64", "linux/arm64"]

    def test_dangling_fallback_skipped(self):
        # model_construct skips the check that every fallback target has an entry
        m = ArtifactMatrix.model_construct(
            entries=(descriptor("linux", "amd64", b"linux-x86", URL_B),),
            fallbacks=(FallbackRule(os="linux", arch="arm64", match=("arm*",)),),
        )
        with pytest.raises(UnsupportedPlatform) as exc:
            resolve("linux", "armv7l", m)
        assert exc.value.supported == ["linux/amd64"]


class TestBuiltinAttio:
    """The built-in attio 0.1.0 table mirrors the upstream release assets."""

    @pytest.mark.parametrize("os_name,arch,suffix", [
        ("darwin", "arm64", "darwin_arm64.tar.gz"),
        ("darwin", "x86_64", "darwin_amd64.tar.gz"),
        ("linux", "aarch64", "linux_arm64.tar.gz"),
        ("linux", "amd64", "linux_amd64.tar.gz"),
    ])
    def test_exact(self, os_name, arch, suffix):
        d = resolve(os_name, arch, PACKAGES["attio"].matrix)
        assert d.url.endswith(f"attio_0.1.0_{suffix}")
        assert d.digest.algorithm == "sha256"

    @pytest.mark.parametrize("arch,expected", [
        ("armv7l", "arm64"),
        ("armv6l", "arm64"),
        ("i686", "amd64"),
        ("i386", "amd64"),
    ])
    def test_variant_fallbacks(self, arch, expected):
        d = resolve("linux", arch, PACKAGES["attio"].matrix)
        assert d.platform.arch == expected

    def test_windows_unsupported(self):
        with pytest.raises(UnsupportedPlatform):
            resolve("windows", "amd64", PACKAGES["attio"].matrix)

    def test_known_digest(self):
        d = resolve("darwin", "arm64", PACKAGES["attio"].matrix)
        assert d.digest.hex.startswith("2b6937f905bd")
