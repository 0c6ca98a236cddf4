"""
L4 Execution — Artifact download.

Streams the resolved URL into a scoped temporary file.  The file lives
exactly as long as the ``with fetch_artifact(...)`` block and is deleted on
every exit path.  No retries: the caller owns retry policy.
"""

from __future__ import annotations

import http.client
import logging
import os
import tempfile
import time
import urllib.error
import urllib.request
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO

from binstall import __version__
from binstall.core.models.package import ArtifactDescriptor
from binstall.core.services.artifact_install.data.constants import (
    CHUNK_SIZE,
    DEFAULT_FETCH_TIMEOUT,
    PROGRESS_STEP_PCT,
)
from binstall.core.services.artifact_install.domain.download_helpers import (
    _fmt_rate,
    _fmt_size,
    _progress_milestone,
)
from binstall.core.services.artifact_install.domain.errors import (
    FilesystemError,
    HTTPStatusError,
    NetworkError,
)
from binstall.core.services.artifact_install.execution.cancellation import (
    CancelToken,
    _bounded_timeout,
)

logger = logging.getLogger(__name__)

_TRANSPORT_ERRORS = (TimeoutError, ConnectionError, http.client.HTTPException)


@dataclass(frozen=True)
class FetchedArtifact:
    """Downloaded bytes on disk, valid only inside the fetch block."""

    path: Path
    size: int
    url: str

    def open(self) -> BinaryIO:
        return open(self.path, "rb")

    def read_bytes(self) -> bytes:
        return self.path.read_bytes()


def _content_length(resp: http.client.HTTPResponse) -> int:
    raw = resp.headers.get("Content-Length") if resp.headers else None
    try:
        return int(raw) if raw else 0
    except ValueError:
        return 0


def _stream_to(
    url: str,
    out: BinaryIO,
    *,
    timeout: float,
    cancel: CancelToken | None,
) -> int:
    """GET ``url`` and copy the body into ``out``.  Returns bytes written."""
    req = urllib.request.Request(url, headers={"User-Agent": f"binstall/{__version__}"})
    try:
        resp = urllib.request.urlopen(req, timeout=_bounded_timeout(timeout, cancel))
    except urllib.error.HTTPError as e:
        raise HTTPStatusError(url, e.code, str(e.reason or "")) from e
    except urllib.error.URLError as e:
        raise NetworkError(f"Cannot reach {url}: {e.reason}") from e
    except _TRANSPORT_ERRORS as e:
        raise NetworkError(f"Connection to {url} failed: {e}") from e

    with resp:
        status = resp.getcode()
        if status is not None and not 200 <= status < 300:
            raise HTTPStatusError(url, status, getattr(resp, "reason", "") or "")

        total = _content_length(resp)
        downloaded = 0
        last_milestone = -1
        while True:
            if cancel is not None:
                cancel.raise_if_cancelled("fetch")
            try:
                chunk = resp.read(CHUNK_SIZE)
            except (urllib.error.URLError, *_TRANSPORT_ERRORS) as e:
                raise NetworkError(
                    f"Download of {url} interrupted after {_fmt_size(downloaded)}: {e}"
                ) from e
            if not chunk:
                break
            try:
                out.write(chunk)
            except OSError as e:
                raise FilesystemError(f"Cannot write download to temp file: {e}") from e
            downloaded += len(chunk)

            milestone = _progress_milestone(downloaded, total, PROGRESS_STEP_PCT)
            if milestone is not None and milestone > last_milestone:
                last_milestone = milestone
                logger.info(
                    "Download progress: %d%% (%s / %s)",
                    milestone, _fmt_size(downloaded), _fmt_size(total),
                )

    if total and downloaded != total:
        raise NetworkError(
            f"Truncated download from {url}: got {downloaded} of {total} bytes"
        )
    return downloaded


@contextmanager
def fetch_artifact(
    descriptor: ArtifactDescriptor,
    *,
    timeout: float = DEFAULT_FETCH_TIMEOUT,
    cancel: CancelToken | None = None,
    workdir: Path | None = None,
) -> Iterator[FetchedArtifact]:
    """Download ``descriptor.url`` to a temp file and yield it.

    Usage::

        with fetch_artifact(descriptor) as artifact:
            verify(artifact.path, descriptor.digest)

    Args:
        descriptor: Resolved artifact.
        timeout: Socket timeout in seconds (clamped to the cancel deadline).
        cancel: Optional token checked between chunks.
        workdir: Directory for the temp file (default: system temp dir).

    Raises:
        NetworkError: Transport failure or truncated body.
        HTTPStatusError: Non-success response status.
        FilesystemError: The temp file could not be created or written.
        Cancelled: The token tripped.
    """
    if cancel is not None:
        cancel.raise_if_cancelled("fetch")

    try:
        fd, name = tempfile.mkstemp(
            prefix="binstall-", suffix=f"-{descriptor.filename}", dir=workdir,
        )
    except OSError as e:
        raise FilesystemError(f"Cannot create download temp file: {e}") from e
    path = Path(name)

    try:
        logger.info("Downloading %s", descriptor.url)
        started = time.monotonic()
        with os.fdopen(fd, "wb") as out:
            size = _stream_to(descriptor.url, out, timeout=timeout, cancel=cancel)
        logger.info(
            "Downloaded %s (%s, %s)",
            descriptor.filename, _fmt_size(size), _fmt_rate(size, time.monotonic() - started),
        )
        yield FetchedArtifact(path=path, size=size, url=descriptor.url)
    finally:
        path.unlink(missing_ok=True)
