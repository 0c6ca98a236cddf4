"""
L5 Orchestration — The install pipeline.

States (strictly linear, no re-entry):

    resolved → fetched → verified → installed → tested

Each stage either hands its payload to the next or raises one of the
``InstallError`` kinds.  The run stops at the first failure and reports the
last state reached together with the failure.  A smoke-test failure is
reported but leaves the installation in place.
"""

from __future__ import annotations

import logging
import time
from datetime import UTC, datetime
from pathlib import Path

from pydantic import ValidationError

from binstall.core.models.outcome import (
    InstallationResult,
    PipelineOutcome,
    PipelineStage,
    StageFailure,
)
from binstall.core.models.package import (
    ArtifactDescriptor,
    ArtifactMatrix,
    PlatformKey,
    VersionedPackage,
)
from binstall.core.services.artifact_install.data.constants import DEFAULT_FETCH_TIMEOUT
from binstall.core.services.artifact_install.detection.host_platform import detect_platform
from binstall.core.services.artifact_install.domain.errors import (
    InstallError,
    UnsupportedPlatform,
)
from binstall.core.services.artifact_install.domain.integrity import verify
from binstall.core.services.artifact_install.domain.resolver import resolve, supported_platforms
from binstall.core.services.artifact_install.execution.cancellation import CancelToken
from binstall.core.services.artifact_install.execution.fetcher import fetch_artifact
from binstall.core.services.artifact_install.execution.installer import (
    default_install_dir,
    install_artifact,
)
from binstall.core.services.artifact_install.execution.smoke_test import run_smoke_test

logger = logging.getLogger(__name__)

# What is being attempted after each state
_NEXT_STEP: dict[PipelineStage | None, str] = {
    None: "resolve",
    PipelineStage.RESOLVED: "fetch",
    PipelineStage.FETCHED: "verify",
    PipelineStage.VERIFIED: "install",
    PipelineStage.INSTALLED: "test",
}


class PipelineRun:
    """Tracks one run through the state machine.

    ``advance`` only accepts the state immediately after the current one;
    anything else is a programming error, not an install failure.
    """

    def __init__(self, package: VersionedPackage):
        self.package = package
        self.stage: PipelineStage | None = None
        self.platform: PlatformKey | None = None
        self.descriptor: ArtifactDescriptor | None = None
        self.installation: InstallationResult | None = None
        self.smoke_output = ""
        self.failure: StageFailure | None = None
        self._started_at = datetime.now(UTC).isoformat()
        self._t0 = time.monotonic()

    def advance(self, stage: PipelineStage) -> None:
        expected = 0 if self.stage is None else self.stage.order + 1
        if stage.order != expected:
            raise RuntimeError(
                f"Illegal pipeline transition {self.stage} → {stage}"
            )
        self.stage = stage
        logger.info("%s: %s", self.package, stage.value)

    @property
    def next_step(self) -> str:
        return _NEXT_STEP.get(self.stage, "done")

    def fail(self, error: InstallError) -> None:
        details = error.to_dict()
        for key in ("kind", "message", "retryable"):
            details.pop(key, None)
        self.failure = StageFailure(
            kind=error.kind,
            stage=self.next_step,
            message=str(error),
            retryable=error.retryable,
            details=details,
        )
        after = f"after {self.stage.value}" if self.stage else "before resolution"
        logger.error("%s: %s failed %s: %s", self.package, self.next_step, after, error)

    def outcome(self) -> PipelineOutcome:
        return PipelineOutcome(
            package=self.package.name,
            version=self.package.version,
            platform=self.platform,
            last_stage=self.stage,
            descriptor=self.descriptor,
            installation=self.installation,
            smoke_output=self.smoke_output,
            failure=self.failure,
            started_at=self._started_at,
            ended_at=datetime.now(UTC).isoformat(),
            duration_ms=int((time.monotonic() - self._t0) * 1000),
        )


def _target_platform(
    os_name: str | None, arch: str | None, matrix: ArtifactMatrix,
) -> PlatformKey:
    if not (os_name and arch):
        host = detect_platform()
        os_name = os_name or host.os
        arch = arch or host.arch
    try:
        return PlatformKey(os=os_name, arch=arch)
    except ValidationError as e:
        raise UnsupportedPlatform(os_name, arch, supported_platforms(matrix)) from e


def install_package(
    package: VersionedPackage,
    target_dir: Path | None = None,
    *,
    os_name: str | None = None,
    arch: str | None = None,
    timeout: float = DEFAULT_FETCH_TIMEOUT,
    cancel: CancelToken | None = None,
    run_test: bool = True,
    workdir: Path | None = None,
) -> PipelineOutcome:
    """Resolve, fetch, verify, install and smoke-test ``package``.

    Args:
        package: Release to install.
        target_dir: Install directory (default: ``default_install_dir()``).
        os_name: Target OS; detected from the host when omitted.
        arch: Target architecture; detected from the host when omitted.
        timeout: Network timeout in seconds.
        cancel: Optional cancel token for fetch and extraction.
        run_test: Run the smoke test after installing.
        workdir: Where the download temp file goes.

    Returns:
        PipelineOutcome.  Install failures are reported there, never raised.
    """
    run = PipelineRun(package)
    target = Path(target_dir).expanduser() if target_dir else default_install_dir()

    try:
        run.platform = _target_platform(os_name, arch, package.matrix)
        run.descriptor = resolve(run.platform.os, run.platform.arch, package.matrix)
        run.advance(PipelineStage.RESOLVED)

        with fetch_artifact(
            run.descriptor, timeout=timeout, cancel=cancel, workdir=workdir,
        ) as artifact:
            run.advance(PipelineStage.FETCHED)

            verify(artifact.path, run.descriptor.digest)
            run.advance(PipelineStage.VERIFIED)

            run.installation = install_artifact(
                artifact.path,
                run.descriptor.archive_format,
                target,
                binaries=package.binaries,
                digest_verified=True,
                cancel=cancel,
            )
            run.advance(PipelineStage.INSTALLED)

        if run_test:
            result = run_smoke_test(run.installation.installed_path, package.smoke_test)
            run.smoke_output = result.output
            run.advance(PipelineStage.TESTED)
    except InstallError as e:
        run.fail(e)
        output = getattr(e, "output", None)
        if isinstance(output, str):
            run.smoke_output = output

    return run.outcome()
