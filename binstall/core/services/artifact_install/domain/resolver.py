"""
L1 Domain — Platform resolution (pure).

Maps a detected (OS, architecture) onto exactly one matrix entry.
No I/O, no environment probing: the caller supplies the platform.
"""

from __future__ import annotations

import logging

from pydantic import ValidationError

from binstall.core.models.package import ArtifactDescriptor, ArtifactMatrix, PlatformKey
from binstall.core.services.artifact_install.domain.errors import UnsupportedPlatform

logger = logging.getLogger(__name__)


def supported_platforms(matrix: ArtifactMatrix) -> list[str]:
    """Sorted ``os/arch`` labels the matrix has artifacts for."""
    return sorted(str(key) for key in matrix.platforms)


def resolve(os_name: str, arch: str, matrix: ArtifactMatrix) -> ArtifactDescriptor:
    """Pick the artifact for ``os_name``/``arch``.

    Exact match first.  Failing that, the first fallback rule declared for
    that OS whose patterns match ``arch``.  Never guesses beyond the table.

    Raises:
        UnsupportedPlatform: No entry and no applicable fallback.
    """
    try:
        key = PlatformKey(os=os_name, arch=arch)
    except ValidationError as e:
        raise UnsupportedPlatform(os_name, arch, supported_platforms(matrix)) from e

    exact = matrix.get(key)
    if exact is not None:
        logger.debug("Resolved %s → %s", key, exact.url)
        return exact

    for rule in matrix.fallbacks:
        if rule.matches(key):
            target = matrix.get(rule.target)
            if target is None:
                continue
            logger.warning(
                "No %s artifact; using declared fallback %s (patterns: %s)",
                key, rule.target, ", ".join(rule.match),
            )
            return target

    raise UnsupportedPlatform(key.os, key.arch, supported_platforms(matrix))
