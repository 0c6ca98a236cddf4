"""
L0 Data — Built-in package definitions.

Each entry is one released version of one tool, keyed by package name.
Pure data: the models validate the tables at import time.
"""

from __future__ import annotations

from binstall.core.models.package import (
    ArchiveFormat,
    ArtifactDescriptor,
    ArtifactMatrix,
    FallbackRule,
    PlatformKey,
    SmokeTestSpec,
    VersionedPackage,
)

_ATTIO_VERSION = "0.1.0"
_ATTIO_RELEASES = (
    f"https://github.com/exhibiton/attio-cli/releases/download/v{_ATTIO_VERSION}"
)


def _attio_asset(os_name: str, arch: str, sha256: str) -> ArtifactDescriptor:
    return ArtifactDescriptor(
        platform=PlatformKey(os=os_name, arch=arch),
        url=f"{_ATTIO_RELEASES}/attio_{_ATTIO_VERSION}_{os_name}_{arch}.tar.gz",
        digest=f"sha256:{sha256}",
        archive_format=ArchiveFormat.TAR_GZ,
    )


# Any ARM build goes to arm64 and any x86 build to amd64.  Listed per OS so
# a new OS never inherits these by accident.
_ARM_VARIANTS = ("arm*", "aarch64*")
_X86_VARIANTS = ("x86*", "i?86", "386")

ATTIO = VersionedPackage(
    name="attio",
    version=_ATTIO_VERSION,
    description="Command-line interface for Attio API",
    homepage="https://github.com/exhibiton/attio-cli",
    binaries=("attio",),
    smoke_test=SmokeTestSpec(args=("version",), expect="version"),
    matrix=ArtifactMatrix(
        entries=(
            _attio_asset(
                "darwin", "arm64",
                "2b6937f905bd6710d8a3177fe521c9aba7dcebbf4bff94f7ee518071b82b3658",
            ),
            _attio_asset(
                "darwin", "amd64",
                "ae6205ca9fc0d370fd170be753355679de42cb509d4e2443297247120b8dddd0",
            ),
            _attio_asset(
                "linux", "arm64",
                "5659aaa04aac83e5bfa6eaca3a955f35119b9a2fc0e411046b8a5c91ec05eec9",
            ),
            _attio_asset(
                "linux", "amd64",
                "74ddad596677d267989cab284307ff667a7d4316c744cf549832601138b34ca0",
            ),
        ),
        fallbacks=(
            FallbackRule(os="darwin", arch="arm64", match=_ARM_VARIANTS),
            FallbackRule(os="darwin", arch="amd64", match=_X86_VARIANTS),
            FallbackRule(os="linux", arch="arm64", match=_ARM_VARIANTS),
            FallbackRule(os="linux", arch="amd64", match=_X86_VARIANTS),
        ),
    ),
)

PACKAGES: dict[str, VersionedPackage] = {
    ATTIO.name: ATTIO,
}
