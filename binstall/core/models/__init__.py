"""
Domain models — Pydantic types for packages, artifacts and install outcomes.

All models are re-exported here for convenient access:

    from binstall.core.models import VersionedPackage, ArtifactMatrix, PlatformKey
"""

from binstall.core.models.outcome import (
    InstallationResult,
    PipelineOutcome,
    PipelineStage,
    SmokeTestResult,
    StageFailure,
)
from binstall.core.models.package import (
    ArchiveFormat,
    ArtifactDescriptor,
    ArtifactMatrix,
    ExpectedDigest,
    FallbackRule,
    PlatformKey,
    SmokeTestSpec,
    VersionedPackage,
    normalize_arch,
    normalize_os,
)

__all__ = [
    # package.py
    "ArchiveFormat",
    "ArtifactDescriptor",
    "ArtifactMatrix",
    "ExpectedDigest",
    "FallbackRule",
    # outcome.py
    "InstallationResult",
    "PipelineOutcome",
    "PipelineStage",
    "PlatformKey",
    "SmokeTestResult",
    "SmokeTestSpec",
    "StageFailure",
    "VersionedPackage",
    "normalize_arch",
    "normalize_os",
]
