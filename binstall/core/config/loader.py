"""
Manifest loader — reads a package manifest YAML into a VersionedPackage.

The manifest is the externally supplied table of (OS, architecture, URL,
digest, format) rows for one release.  This module only parses and
validates; nothing here touches the network.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from binstall.core.models.package import ArchiveFormat, VersionedPackage

logger = logging.getLogger(__name__)

# Keys that carry a bare hex digest for a specific algorithm
_DIGEST_KEYS = ("sha256", "sha384", "sha512")


class ConfigError(Exception):
    """Raised when a package manifest is missing or invalid."""


def _artifact_row(row: Any, index: int) -> dict[str, Any]:
    """Turn one manifest ``artifacts`` row into ArtifactDescriptor input."""
    if not isinstance(row, dict):
        raise ConfigError(f"artifacts[{index}] must be a mapping, got {type(row).__name__}")

    missing = [k for k in ("os", "arch", "url") if not row.get(k)]
    if missing:
        raise ConfigError(f"artifacts[{index}] is missing {', '.join(missing)}")

    digest = row.get("digest")
    for key in _DIGEST_KEYS:
        if row.get(key):
            if digest:
                raise ConfigError(f"artifacts[{index}] declares more than one digest")
            digest = f"{key}:{row[key]}"
    if not digest:
        raise ConfigError(f"artifacts[{index}] has no digest (sha256/sha384/sha512/digest)")

    url = str(row["url"])
    fmt = row.get("format") or ArchiveFormat.from_url(url)
    return {
        "platform": {"os": str(row["os"]), "arch": str(row["arch"])},
        "url": url,
        "digest": str(digest),
        "archive_format": fmt,
    }


def parse_manifest(data: Any, source: str = "<manifest>") -> VersionedPackage:
    """Validate already-parsed manifest data.

    Raises:
        ConfigError: If the structure or any value is invalid.
    """
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {source}, got {type(data).__name__}")

    # Allow the whole manifest to sit under a "package" key
    if "package" in data:
        data = data["package"]
        if not isinstance(data, dict):
            raise ConfigError(
                f"'package' in {source} must be a mapping, got {type(data).__name__}"
            )

    artifacts = data.get("artifacts")
    if not isinstance(artifacts, list) or not artifacts:
        raise ConfigError(f"{source}: 'artifacts' must be a non-empty list")

    payload: dict[str, Any] = {
        key: data[key]
        for key in ("name", "version", "description", "homepage", "binaries", "smoke_test")
        if data.get(key) is not None
    }
    # YAML reads "1.0" as a float; keep version strings textual
    if "version" in payload:
        payload["version"] = str(payload["version"])

    payload["matrix"] = {
        "entries": [_artifact_row(row, i) for i, row in enumerate(artifacts)],
        "fallbacks": data.get("fallbacks") or [],
    }

    try:
        package = VersionedPackage.model_validate(payload)
    except ValidationError as e:
        raise ConfigError(f"Invalid package manifest {source}: {e}") from e

    logger.info(
        "Loaded %s from %s with %d platform(s)",
        package, source, len(package.matrix.entries),
    )
    return package


def load_manifest(path: Path) -> VersionedPackage:
    """Load and validate a package manifest file.

    Raises:
        ConfigError: If the file is missing, unreadable or invalid.
    """
    path = Path(path)
    if not path.is_file():
        raise ConfigError(f"Manifest not found: {path}")

    logger.debug("Loading package manifest from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    return parse_manifest(data, source=str(path))


def get_package(name: str, manifest: Path | None = None) -> VersionedPackage:
    """Look a package up in a manifest file or the built-in table.

    Raises:
        ConfigError: Unknown package, or the manifest defines another name.
    """
    if manifest is not None:
        package = load_manifest(manifest)
        if package.name != name:
            raise ConfigError(
                f"Manifest {manifest} defines '{package.name}', not '{name}'"
            )
        return package

    from binstall.core.services.artifact_install.data.formulas import PACKAGES

    package = PACKAGES.get(name)
    if package is None:
        known = ", ".join(sorted(PACKAGES)) or "none"
        raise ConfigError(f"Unknown package '{name}' (built-in: {known})")
    return package
