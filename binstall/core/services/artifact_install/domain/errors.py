"""
L1 Domain — Install error taxonomy.

Every pipeline stage either returns its payload or raises exactly one of
these.  ``retryable`` tells the caller which failures are worth repeating
with backoff; nothing in this package retries on its own.
"""

from __future__ import annotations

from typing import Any


class InstallError(Exception):
    """Base class for all artifact installation failures."""

    kind = "install_error"
    retryable = False

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "message": str(self), "retryable": self.retryable}


class UnsupportedPlatform(InstallError):
    """No matrix entry and no declared fallback for the requested platform."""

    kind = "unsupported_platform"

    def __init__(self, os_name: str, arch: str, supported: list[str] | None = None):
        self.os_name = os_name
        self.arch = arch
        self.supported = supported or []
        msg = f"No artifact for {os_name}/{arch}"
        if self.supported:
            msg += f" (available: {', '.join(self.supported)})"
        super().__init__(msg)


class NetworkError(InstallError):
    """Transport failure: refused connection, DNS failure, timeout, short read."""

    kind = "network_error"
    retryable = True


class HTTPStatusError(InstallError):
    """The server answered with a non-success status."""

    kind = "http_status_error"
    retryable = True

    def __init__(self, url: str, status_code: int, reason: str = ""):
        self.url = url
        self.status_code = status_code
        self.reason = reason
        super().__init__(f"HTTP {status_code} {reason}".rstrip() + f" for {url}")

    def to_dict(self) -> dict[str, Any]:
        d = super().to_dict()
        d["status_code"] = self.status_code
        return d


class IntegrityError(InstallError):
    """Computed digest differs from the expected one, or could not be computed."""

    kind = "integrity_error"

    def __init__(self, message: str, *, expected: str = "", actual: str = ""):
        self.expected = expected
        self.actual = actual
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        d = super().to_dict()
        d["expected"] = self.expected
        d["actual"] = self.actual
        return d


class ExtractionError(InstallError):
    """Archive is malformed, truncated, unsafe, or lacks the expected binary."""

    kind = "extraction_error"


class FilesystemError(InstallError):
    """Permission, disk space or other OS failure on the install directory."""

    kind = "filesystem_error"


class SmokeTestFailed(InstallError):
    """The installed binary did not produce the expected diagnostic output."""

    kind = "smoke_test_failed"

    def __init__(self, reason: str, *, output: str = "", exit_code: int | None = None):
        self.reason = reason
        self.output = output
        self.exit_code = exit_code
        super().__init__(reason)

    def to_dict(self) -> dict[str, Any]:
        d = super().to_dict()
        d["output"] = self.output
        d["exit_code"] = self.exit_code
        return d


class Cancelled(InstallError):
    """The caller's cancel token tripped (explicit cancel or deadline)."""

    kind = "cancelled"
