"""
L4 Execution — Archive extraction and binary placement.

Extracts a verified artifact into a private staging directory, then moves
the executables into the install directory with a copy-then-rename so the
target never holds a half-written binary.  Re-installing the same artifact
overwrites in place and yields the same result.
"""

from __future__ import annotations

import gzip
import logging
import lzma
import os
import shutil
import tarfile
import tempfile
import zipfile
import zlib
from collections.abc import Sequence
from pathlib import Path, PurePosixPath

from binstall.core.models.outcome import InstallationResult
from binstall.core.models.package import ArchiveFormat
from binstall.core.services.artifact_install.data.constants import (
    SYSTEM_BIN_DIR,
    USER_BIN_DIR,
)
from binstall.core.services.artifact_install.domain.errors import (
    ExtractionError,
    FilesystemError,
    IntegrityError,
)
from binstall.core.services.artifact_install.execution.cancellation import CancelToken

logger = logging.getLogger(__name__)

_EXEC_MODE = 0o755

# Errors that mean "the archive bytes are bad", as opposed to the disk
_CORRUPT_ARCHIVE_ERRORS = (
    tarfile.TarError,
    zipfile.BadZipFile,
    EOFError,
    zlib.error,
    lzma.LZMAError,
    gzip.BadGzipFile,
)

_TAR_MODES = {
    ArchiveFormat.TAR_GZ: "r:gz",
    ArchiveFormat.TAR_XZ: "r:xz",
}


def default_install_dir() -> Path:
    """``/usr/local/bin`` when writable, otherwise ``~/.local/bin``."""
    if os.access(SYSTEM_BIN_DIR, os.W_OK):
        return Path(SYSTEM_BIN_DIR)
    user_dir = Path(USER_BIN_DIR).expanduser()
    logger.info("Using %s (%s not writable)", user_dir, SYSTEM_BIN_DIR)
    return user_dir


def _escapes_root(name: str) -> bool:
    """True for member names that would land outside the extraction root."""
    if name.startswith(("/", "\\")) or (len(name) > 1 and name[1] == ":"):
        return True
    return ".." in PurePosixPath(name.replace("\\", "/")).parts


def _member_label(name: str) -> str:
    return str(PurePosixPath(name.replace("\\", "/")))


def _extract_tar(
    archive: Path, mode: str, staging: Path, cancel: CancelToken | None,
) -> list[str]:
    entries: list[str] = []
    with tarfile.open(archive, mode) as tf:
        for member in tf:
            if cancel is not None:
                cancel.raise_if_cancelled("extraction")
            # "data" filter rejects absolute paths, "..", escaping links, devices
            tf.extract(member, staging, filter="data")
            if member.isfile():
                entries.append(_member_label(member.name))
    return entries


def _extract_zip(archive: Path, staging: Path, cancel: CancelToken | None) -> list[str]:
    entries: list[str] = []
    with zipfile.ZipFile(archive) as zf:
        for info in zf.infolist():
            if cancel is not None:
                cancel.raise_if_cancelled("extraction")
            if _escapes_root(info.filename):
                raise ExtractionError(f"Unsafe path in zip archive: {info.filename!r}")
            try:
                zf.extract(info, staging)
            except (NotImplementedError, RuntimeError) as e:
                # Unsupported compression method, or an encrypted member
                raise ExtractionError(f"Cannot extract {info.filename!r} from zip: {e}") from e
            if not info.is_dir():
                entries.append(_member_label(info.filename))
    return entries


def extract_archive(
    archive: Path,
    archive_format: ArchiveFormat,
    staging: Path,
    *,
    binaries: Sequence[str],
    cancel: CancelToken | None = None,
) -> list[str]:
    """Unpack ``archive`` into ``staging``.

    Returns:
        Relative names of the regular files extracted, sorted.

    Raises:
        ExtractionError: Malformed, truncated or unsafe archive.
        FilesystemError: Staging directory could not be written.
        Cancelled: The token tripped between members.
    """
    try:
        if archive_format is ArchiveFormat.RAW:
            if len(binaries) != 1:
                raise ExtractionError(
                    f"A raw artifact provides one executable, package declares {len(binaries)}"
                )
            shutil.copyfile(archive, staging / binaries[0])
            entries = [binaries[0]]
        elif archive_format is ArchiveFormat.ZIP:
            entries = _extract_zip(archive, staging, cancel)
        else:
            entries = _extract_tar(archive, _TAR_MODES[archive_format], staging, cancel)
    except _CORRUPT_ARCHIVE_ERRORS as e:
        raise ExtractionError(f"Cannot extract {archive_format} archive: {e}") from e
    except OSError as e:
        raise FilesystemError(f"Cannot write to staging directory: {e}") from e

    logger.debug("Extracted %d file(s) from %s", len(entries), archive.name)
    return sorted(entries)


def _locate_binary(staging: Path, name: str) -> Path:
    """Find ``name`` in the extracted tree, preferring the shallowest match."""
    candidates = [
        p for p in staging.rglob("*")
        if p.name == name and p.is_file() and not p.is_symlink()
    ]
    if not candidates:
        available = sorted(
            str(p.relative_to(staging)) for p in staging.rglob("*") if p.is_file()
        )
        raise ExtractionError(
            f"Binary '{name}' not found in archive"
            + (f" (contains: {', '.join(available[:10])})" if available else " (archive is empty)")
        )
    return min(candidates, key=lambda p: (len(p.relative_to(staging).parts), str(p)))


def _place_binaries(sources: list[tuple[str, Path]], target_dir: Path) -> list[Path]:
    """Copy every binary next to its final name, then rename them all into place."""
    try:
        target_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise FilesystemError(f"Cannot create install directory {target_dir}: {e}") from e

    staged: list[tuple[Path, Path]] = []
    try:
        for name, src in sources:
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{name}.", suffix=".binstall-tmp", dir=target_dir,
            )
            os.close(fd)
            tmp = Path(tmp_name)
            staged.append((tmp, target_dir / name))
            shutil.copyfile(src, tmp)
            os.chmod(tmp, _EXEC_MODE)

        for tmp, final in staged:
            os.replace(tmp, final)
    except OSError as e:
        for tmp, _ in staged:
            tmp.unlink(missing_ok=True)
        raise FilesystemError(f"Cannot install into {target_dir}: {e}") from e

    return [final for _, final in staged]


def install_artifact(
    artifact_path: Path,
    archive_format: ArchiveFormat,
    target_dir: Path,
    *,
    binaries: Sequence[str],
    digest_verified: bool,
    cancel: CancelToken | None = None,
) -> InstallationResult:
    """Extract a verified artifact and install its executables.

    Args:
        artifact_path: Downloaded, digest-verified artifact file.
        archive_format: How the artifact is packaged.
        target_dir: Directory receiving the executables.
        binaries: Executable names to install; the first is primary.
        digest_verified: Must be True; unverified bytes are refused.
        cancel: Optional token checked during extraction.

    Raises:
        IntegrityError: Called with ``digest_verified=False``.
        ExtractionError: Bad archive or missing binary.
        FilesystemError: Staging or target directory failure.
        Cancelled: The token tripped before anything was placed.
    """
    if not digest_verified:
        raise IntegrityError("Refusing to install an artifact whose digest was not verified")
    if not binaries:
        raise ExtractionError("No binaries declared for installation")

    target_dir = Path(target_dir).expanduser()

    try:
        staging_ctx = tempfile.TemporaryDirectory(prefix="binstall-stage-")
    except OSError as e:
        raise FilesystemError(f"Cannot create staging directory: {e}") from e

    with staging_ctx as staging_name:
        staging = Path(staging_name)
        entries = extract_archive(
            artifact_path, archive_format, staging, binaries=binaries, cancel=cancel,
        )
        sources = [(name, _locate_binary(staging, name)) for name in binaries]

        if cancel is not None:
            cancel.raise_if_cancelled("install")
        installed = _place_binaries(sources, target_dir)

    for path in installed:
        logger.info("Installed %s", path)

    return InstallationResult(
        installed_path=installed[0],
        installed_files=tuple(installed),
        target_dir=target_dir,
        verified_digest_matched=True,
        extracted_entries=tuple(entries),
    )
