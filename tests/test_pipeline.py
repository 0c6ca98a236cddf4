"""
End-to-end install pipeline tests against the fake artifact server.
"""

from unittest import mock

import pytest

from artifact_helpers import (
    FAKE_ATTIO, URL_A, URL_B, FakeResponse, descriptor, make_zip, set_zip_method,
)
from binstall.core.models import (
    ArchiveFormat, ArtifactMatrix, PipelineStage, PlatformKey, SmokeTestSpec,
)
from binstall.core.services.artifact_install import CancelToken, PACKAGES, install_package
from binstall.core.services.artifact_install.orchestration import pipeline
from binstall.core.services.artifact_install.orchestration.pipeline import PipelineRun


@pytest.fixture
def workdir(tmp_path):
    path = tmp_path / "downloads"
    path.mkdir()
    return path


class TestPipelineSuccess:
    def test_full_run(self, server, attio_package, target_dir, workdir):
        outcome = install_package(
            attio_package, target_dir, os_name="darwin", arch="arm64", workdir=workdir,
        )

        assert outcome.ok
        assert outcome.last_stage is PipelineStage.TESTED
        assert outcome.platform == PlatformKey(os="darwin", arch="arm64")
        assert outcome.descriptor.url == URL_A
        assert outcome.installation.installed_path == target_dir / "attio"
        assert "version" in outcome.smoke_output
        assert server.requests == [URL_A]
        assert list(workdir.iterdir()) == []

    def test_linux_amd64_uses_url_b(self, server, attio_package, target_dir, workdir):
        outcome = install_package(
            attio_package, target_dir, os_name="Linux", arch="x86_64", workdir=workdir,
        )
        assert outcome.ok
        assert server.requests == [URL_B]

    def test_skip_test_stops_at_installed(self, server, attio_package, target_dir, workdir):
        outcome = install_package(
            attio_package, target_dir, os_name="darwin", arch="arm64",
            run_test=False, workdir=workdir,
        )
        assert outcome.ok
        assert outcome.last_stage is PipelineStage.INSTALLED
        assert outcome.smoke_output == ""

    def test_host_platform_used_by_default(self, server, attio_package, target_dir, workdir):
        with mock.patch.object(
            pipeline, "detect_platform", return_value=PlatformKey(os="linux", arch="amd64"),
        ):
            outcome = install_package(attio_package, target_dir, workdir=workdir)
        assert outcome.ok
        assert server.requests == [URL_B]

    def test_repeat_install(self, server, attio_package, target_dir, workdir):
        first = install_package(attio_package, target_dir, os_name="darwin", arch="arm64", workdir=workdir)
        second = install_package(attio_package, target_dir, os_name="darwin", arch="arm64", workdir=workdir)
        assert first.installation == second.installation
        assert sorted(p.name for p in target_dir.iterdir()) == ["attio"]

    def test_to_dict_is_json_ready(self, server, attio_package, target_dir, workdir):
        data = install_package(
            attio_package, target_dir, os_name="darwin", arch="arm64", workdir=workdir,
        ).to_dict()
        assert data["last_stage"] == "tested"
        assert data["platform"] == {"os": "darwin", "arch": "arm64"}
        assert data["installation"]["installed_path"] == str(target_dir / "attio")
        assert data["failure"] is None


class TestPipelineFailures:
    def test_unsupported_platform_never_touches_network(
        self, server, attio_package, target_dir, workdir,
    ):
        outcome = install_package(
            attio_package, target_dir, os_name="windows", arch="amd64", workdir=workdir,
        )
        assert not outcome.ok
        assert outcome.last_stage is None
        assert outcome.failure.kind == "unsupported_platform"
        assert outcome.failure.stage == "resolve"
        assert server.requests == []
        assert not target_dir.exists()

    def test_tampered_artifact_not_installed(self, server, attio_package, target_dir, workdir):
        server.add(URL_A, b"tampered bytes")
        outcome = install_package(
            attio_package, target_dir, os_name="darwin", arch="arm64", workdir=workdir,
        )
        assert outcome.last_stage is PipelineStage.FETCHED
        assert outcome.failure.kind == "integrity_error"
        assert outcome.failure.stage == "verify"
        assert outcome.failure.details["expected"] == attio_package.matrix.entries[0].digest.hex
        assert not outcome.installed
        assert not target_dir.exists()
        assert list(workdir.iterdir()) == []

    def test_http_error_is_retryable(self, server, attio_package, target_dir, workdir):
        server.add(URL_A, FakeResponse(b"", status=502))
        outcome = install_package(
            attio_package, target_dir, os_name="darwin", arch="arm64", workdir=workdir,
        )
        assert outcome.last_stage is PipelineStage.RESOLVED
        assert outcome.failure.kind == "http_status_error"
        assert outcome.failure.stage == "fetch"
        assert outcome.failure.retryable
        assert outcome.failure.details["status_code"] == 502

    def test_smoke_failure_keeps_installation(self, server, attio_package, target_dir, workdir):
        package = attio_package.model_copy(
            update={"smoke_test": SmokeTestSpec(args=("version",), expect="attio 9.9.9")},
        )
        outcome = install_package(
            package, target_dir, os_name="darwin", arch="arm64", workdir=workdir,
        )
        assert outcome.last_stage is PipelineStage.INSTALLED
        assert outcome.failure.kind == "smoke_test_failed"
        assert outcome.failure.stage == "test"
        assert outcome.installed
        assert (target_dir / "attio").exists()
        assert "version" in outcome.smoke_output

    def test_cancelled(self, server, attio_package, target_dir, workdir):
        token = CancelToken()
        token.cancel()
        outcome = install_package(
            attio_package, target_dir, os_name="darwin", arch="arm64",
            cancel=token, workdir=workdir,
        )
        assert outcome.last_stage is PipelineStage.RESOLVED
        assert outcome.failure.kind == "cancelled"
        assert server.requests == []

    def test_builtin_windows_unsupported(self, server, target_dir, workdir):
        outcome = install_package(
            PACKAGES["attio"], target_dir, os_name="windows", arch="amd64", workdir=workdir,
        )
        assert outcome.failure.kind == "unsupported_platform"
        assert server.requests == []


    def test_unreadable_zip_is_extraction_error(self, server, attio_package, target_dir, workdir):
        url = "https://releases.example.com/attio_darwin_arm64.zip"
        bad_zip = set_zip_method(make_zip({"attio": FAKE_ATTIO}), 99)
        server.add(url, bad_zip)
        package = attio_package.model_copy(update={"matrix": ArtifactMatrix(entries=(
            descriptor("darwin", "arm64", bad_zip, url, archive_format=ArchiveFormat.ZIP),
        ))})
        outcome = install_package(
            package, target_dir, os_name="darwin", arch="arm64", workdir=workdir,
        )
        assert outcome.last_stage is PipelineStage.VERIFIED
        assert outcome.failure.kind == "extraction_error"
        assert not outcome.failure.retryable
        assert not target_dir.exists()
        assert list(workdir.iterdir()) == []

    @pytest.mark.parametrize("os_name, arch", [(" ", "amd64"), ("linux", "  ")])
    def test_blank_platform_is_unsupported(
        self, server, attio_package, target_dir, workdir, os_name, arch,
    ):
        outcome = install_package(
            attio_package, target_dir, os_name=os_name, arch=arch, workdir=workdir,
        )
        assert not outcome.ok
        assert outcome.last_stage is None
        assert outcome.failure.kind == "unsupported_platform"
        assert outcome.failure.stage == "resolve"
        assert server.requests == []


class TestPipelineRun:
    def test_stages_must_be_in_order(self, attio_package):
        run = PipelineRun(attio_package)
        run.advance(PipelineStage.RESOLVED)
        with pytest.raises(RuntimeError, match="Illegal"):
            run.advance(PipelineStage.VERIFIED)

    def test_no_reentry(self, attio_package):
        run = PipelineRun(attio_package)
        run.advance(PipelineStage.RESOLVED)
        with pytest.raises(RuntimeError):
            run.advance(PipelineStage.RESOLVED)

    def test_next_step(self, attio_package):
        run = PipelineRun(attio_package)
        assert run.next_step == "resolve"
        for stage in PipelineStage:
            run.advance(stage)
        assert run.next_step == "done"
