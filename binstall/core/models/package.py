"""
Package model — one released version of a tool and its artifact matrix.

A VersionedPackage is built once, when the release is cut, and never
edited afterwards.  Every model here is frozen: a new version is a new
instance.
"""

from __future__ import annotations

import re
from enum import StrEnum
from fnmatch import fnmatchcase
from typing import Any
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# Operating system name normalization.
#
# ``platform.system()`` reports ``Darwin``/``Linux``/``Windows``; manifests
# tend to say ``macos`` or ``osx``.  Everything is folded to the GOOS-style
# names used in release asset file names.
_OS_ALIASES: dict[str, str] = {
    "darwin": "darwin",
    "macos": "darwin",
    "macosx": "darwin",
    "osx": "darwin",
    "mac": "darwin",
    "linux": "linux",
    "windows": "windows",
    "win32": "windows",
    "win": "windows",
    "freebsd": "freebsd",
}

# Architecture name normalization.
#
# Only spellings of the SAME instruction set are folded together.  Other
# CPU variants (armv7l, armv6l, i686) keep their own names; sending them to
# another architecture is a fallback rule declared in the matrix.
_ARCH_ALIASES: dict[str, str] = {
    "x86_64": "amd64",
    "x86-64": "amd64",
    "x64": "amd64",
    "amd64": "amd64",
    "aarch64": "arm64",
    "arm64": "arm64",
    "armv8": "arm64",
    "i386": "386",
    "386": "386",
}

# Digest algorithms accepted in an artifact matrix, keyed to hex length.
DIGEST_HEX_LENGTHS: dict[str, int] = {
    "sha256": 64,
    "sha384": 96,
    "sha512": 128,
}

_SEMVER_RE = re.compile(
    r"^(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)"
    r"(?:-[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*)?"
    r"(?:\+[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*)?$"
)
_NAME_RE = re.compile(r"^[a-z0-9][a-z0-9._+-]*$")
_HEX_RE = re.compile(r"^[0-9a-f]+$")


def normalize_os(name: str) -> str:
    """Fold an OS spelling (``Darwin``, ``macOS``) to its canonical name."""
    key = name.strip().lower()
    return _OS_ALIASES.get(key, key)


def normalize_arch(name: str) -> str:
    """Fold an architecture spelling (``x86_64``, ``aarch64``) to its canonical name."""
    key = name.strip().lower()
    return _ARCH_ALIASES.get(key, key)


class PlatformKey(BaseModel):
    """An (operating system, architecture) pair used as a lookup key."""

    model_config = ConfigDict(frozen=True)

    os: str
    arch: str

    @field_validator("os", mode="before")
    @classmethod
    def _canonical_os(cls, v: Any) -> Any:
        return normalize_os(v) if isinstance(v, str) else v

    @field_validator("arch", mode="before")
    @classmethod
    def _canonical_arch(cls, v: Any) -> Any:
        return normalize_arch(v) if isinstance(v, str) else v

    @field_validator("os", "arch")
    @classmethod
    def _not_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("must not be empty")
        return v

    def __str__(self) -> str:
        return f"{self.os}/{self.arch}"


class ExpectedDigest(BaseModel):
    """An algorithm-tagged hex digest, e.g. ``sha256:2b69...``."""

    model_config = ConfigDict(frozen=True)

    algorithm: str
    hex: str

    @model_validator(mode="before")
    @classmethod
    def _from_string(cls, data: Any) -> Any:
        if isinstance(data, str):
            return cls._split(data)
        return data

    @staticmethod
    def _split(value: str) -> dict[str, str]:
        value = value.strip()
        if ":" in value:
            algo, hex_part = value.split(":", 1)
            return {"algorithm": algo, "hex": hex_part}
        # Bare hex: the length implies the algorithm
        for algo, length in DIGEST_HEX_LENGTHS.items():
            if len(value) == length:
                return {"algorithm": algo, "hex": value}
        raise ValueError(
            f"Cannot infer digest algorithm from a {len(value)}-character value; "
            "use the '<algorithm>:<hex>' form"
        )

    @field_validator("algorithm")
    @classmethod
    def _known_algorithm(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in DIGEST_HEX_LENGTHS:
            raise ValueError(
                f"Unsupported digest algorithm '{v}' "
                f"(supported: {', '.join(DIGEST_HEX_LENGTHS)})"
            )
        return v

    @field_validator("hex")
    @classmethod
    def _lower_hex(cls, v: str) -> str:
        v = v.strip().lower()
        if not _HEX_RE.match(v):
            raise ValueError("digest must be hexadecimal")
        return v

    @model_validator(mode="after")
    def _length_matches(self) -> ExpectedDigest:
        want = DIGEST_HEX_LENGTHS[self.algorithm]
        if len(self.hex) != want:
            raise ValueError(
                f"{self.algorithm} digest must be {want} hex characters, got {len(self.hex)}"
            )
        return self

    @classmethod
    def parse(cls, value: str) -> ExpectedDigest:
        return cls.model_validate(value)

    def __str__(self) -> str:
        return f"{self.algorithm}:{self.hex}"


class ArchiveFormat(StrEnum):
    """How the artifact bytes are packaged."""

    TAR_GZ = "tar.gz"
    TAR_XZ = "tar.xz"
    ZIP = "zip"
    RAW = "raw"

    @classmethod
    def from_url(cls, url: str) -> ArchiveFormat:
        """Infer the format from the URL path suffix."""
        path = urlparse(url).path.lower()
        if path.endswith((".tar.gz", ".tgz")):
            return cls.TAR_GZ
        if path.endswith((".tar.xz", ".txz")):
            return cls.TAR_XZ
        if path.endswith(".zip"):
            return cls.ZIP
        return cls.RAW


class ArtifactDescriptor(BaseModel):
    """Where to download one platform's artifact and what it must hash to."""

    model_config = ConfigDict(frozen=True)

    platform: PlatformKey
    url: str
    digest: ExpectedDigest
    archive_format: ArchiveFormat

    @field_validator("url")
    @classmethod
    def _well_formed_url(cls, v: str) -> str:
        parsed = urlparse(v)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(f"artifact URL must be an absolute http(s) URL: {v!r}")
        return v

    @property
    def filename(self) -> str:
        """Last path segment of the URL (the asset name)."""
        return urlparse(self.url).path.rsplit("/", 1)[-1]


class FallbackRule(BaseModel):
    """Send unmatched CPU variants of one OS to a declared architecture.

    ``match`` holds glob patterns (``arm*``, ``i?86``) tested against the
    canonical detected architecture.  There is deliberately no catch-all:
    an empty ``match`` is rejected.
    """

    model_config = ConfigDict(frozen=True)

    os: str
    arch: str
    match: tuple[str, ...]

    @field_validator("os", mode="before")
    @classmethod
    def _canonical_os(cls, v: Any) -> Any:
        return normalize_os(v) if isinstance(v, str) else v

    @field_validator("arch", mode="before")
    @classmethod
    def _canonical_arch(cls, v: Any) -> Any:
        return normalize_arch(v) if isinstance(v, str) else v

    @field_validator("match")
    @classmethod
    def _has_patterns(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        patterns = tuple(p.strip().lower() for p in v if p.strip())
        if not patterns:
            raise ValueError("fallback rule needs at least one architecture pattern")
        return patterns

    @property
    def target(self) -> PlatformKey:
        return PlatformKey(os=self.os, arch=self.arch)

    def matches(self, key: PlatformKey) -> bool:
        if key.os != self.os:
            return False
        return any(fnmatchcase(key.arch, pattern) for pattern in self.match)


class ArtifactMatrix(BaseModel):
    """Immutable platform → artifact table for one package version.

    Invariants checked at construction:
      - at least one entry
      - exactly one descriptor per platform key
      - one digest algorithm for the whole matrix
      - every fallback points at an existing entry
    """

    model_config = ConfigDict(frozen=True)

    entries: tuple[ArtifactDescriptor, ...]
    fallbacks: tuple[FallbackRule, ...] = ()

    @model_validator(mode="after")
    def _check_invariants(self) -> ArtifactMatrix:
        if not self.entries:
            raise ValueError("artifact matrix must contain at least one entry")

        seen: set[PlatformKey] = set()
        for entry in self.entries:
            if entry.platform in seen:
                raise ValueError(f"duplicate artifact for platform {entry.platform}")
            seen.add(entry.platform)

        algorithms = {entry.digest.algorithm for entry in self.entries}
        if len(algorithms) > 1:
            raise ValueError(
                f"mixed digest algorithms in one matrix: {', '.join(sorted(algorithms))}"
            )

        for rule in self.fallbacks:
            if rule.target not in seen:
                raise ValueError(f"fallback target {rule.target} has no artifact entry")
        return self

    def get(self, key: PlatformKey) -> ArtifactDescriptor | None:
        """Exact lookup; no fallback."""
        for entry in self.entries:
            if entry.platform == key:
                return entry
        return None

    @property
    def platforms(self) -> list[PlatformKey]:
        return [entry.platform for entry in self.entries]

    @property
    def algorithm(self) -> str:
        return self.entries[0].digest.algorithm


class SmokeTestSpec(BaseModel):
    """How to check a freshly installed binary."""

    model_config = ConfigDict(frozen=True)

    args: tuple[str, ...] = ("version",)
    expect: str = "version"
    timeout: float = 10.0


class VersionedPackage(BaseModel):
    """One released version of a named tool."""

    model_config = ConfigDict(frozen=True)

    name: str
    version: str
    description: str = ""
    homepage: str = ""
    binaries: tuple[str, ...] = Field(default=())
    smoke_test: SmokeTestSpec = Field(default_factory=SmokeTestSpec)
    matrix: ArtifactMatrix

    @field_validator("name")
    @classmethod
    def _valid_name(cls, v: str) -> str:
        if not _NAME_RE.match(v):
            raise ValueError(f"invalid package name: {v!r}")
        return v

    @field_validator("version")
    @classmethod
    def _semver(cls, v: str) -> str:
        v = v.strip().removeprefix("v")
        if not _SEMVER_RE.match(v):
            raise ValueError(f"version must be a semantic version, got {v!r}")
        return v

    @field_validator("binaries")
    @classmethod
    def _plain_names(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        for binary in v:
            if not binary or "/" in binary or "\\" in binary or binary in (".", ".."):
                raise ValueError(f"binary name must be a bare file name: {binary!r}")
        return v

    @model_validator(mode="before")
    @classmethod
    def _default_binary(cls, data: Any) -> Any:
        # A package ships one executable named after itself unless told otherwise
        if isinstance(data, dict) and not data.get("binaries") and data.get("name"):
            data = {**data, "binaries": (data["name"],)}
        return data

    @property
    def primary_binary(self) -> str:
        return self.binaries[0]

    def __str__(self) -> str:
        return f"{self.name} {self.version}"
