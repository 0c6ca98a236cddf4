"""
Outcome models — what an install run produced.

InstallationResult is the Installer's payload; PipelineOutcome is what the
caller (CLI, package manager) receives for a whole run.  Neither is
persisted here.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from binstall.core.models.package import ArtifactDescriptor, PlatformKey


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class PipelineStage(StrEnum):
    """Pipeline states, in the only order they may be reached."""

    RESOLVED = "resolved"
    FETCHED = "fetched"
    VERIFIED = "verified"
    INSTALLED = "installed"
    TESTED = "tested"

    @property
    def order(self) -> int:
        return list(PipelineStage).index(self)


class InstallationResult(BaseModel):
    """Files placed by one successful install call."""

    model_config = ConfigDict(frozen=True)

    installed_path: Path                 # primary executable
    installed_files: tuple[Path, ...]    # every executable written to target_dir
    target_dir: Path
    verified_digest_matched: bool
    extracted_entries: tuple[str, ...]   # archive members, relative, sorted


class SmokeTestResult(BaseModel):
    """A passing smoke test run."""

    model_config = ConfigDict(frozen=True)

    ok: bool = True
    output: str = ""
    exit_code: int = 0
    elapsed_ms: int = 0


class StageFailure(BaseModel):
    """Why a run stopped, and in which stage."""

    kind: str
    stage: str                  # stage that was being attempted
    message: str
    retryable: bool = False
    details: dict[str, Any] = Field(default_factory=dict)


class PipelineOutcome(BaseModel):
    """Result of one install pipeline run.

    ``last_stage`` is the last state successfully reached (None when even
    resolution failed).  ``failure`` is set whenever the run did not reach
    its final state; a smoke-test failure leaves ``last_stage`` at
    ``installed``.
    """

    package: str
    version: str
    platform: PlatformKey | None = None
    last_stage: PipelineStage | None = None
    descriptor: ArtifactDescriptor | None = None
    installation: InstallationResult | None = None
    smoke_output: str = ""
    failure: StageFailure | None = None

    started_at: str = Field(default_factory=_now_iso)
    ended_at: str = ""
    duration_ms: int = 0

    @property
    def ok(self) -> bool:
        """Whether the run finished without any failure."""
        return self.failure is None

    @property
    def installed(self) -> bool:
        """Whether files were placed in the target directory."""
        return self.installation is not None

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json")
