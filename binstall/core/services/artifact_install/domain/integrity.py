"""
L1 Domain — Artifact integrity verification.

Computes a digest over artifact bytes and compares it with the value
published in the matrix.  Fails closed: anything short of an exact match
(case-insensitive hex) is an ``IntegrityError``.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
from pathlib import Path
from typing import BinaryIO, Union

from binstall.core.models.package import ExpectedDigest
from binstall.core.services.artifact_install.data.constants import CHUNK_SIZE
from binstall.core.services.artifact_install.domain.errors import IntegrityError

logger = logging.getLogger(__name__)

DigestSource = Union[bytes, bytearray, memoryview, BinaryIO, Path]


def compute_digest(source: DigestSource, algorithm: str) -> str:
    """Hash ``source`` and return the lowercase hex digest.

    Args:
        source: Raw bytes, a binary stream (read to EOF from its current
            position), or a path to a file.
        algorithm: ``hashlib`` algorithm name (``sha256``, ...).
    """
    h = hashlib.new(algorithm)
    if isinstance(source, (bytes, bytearray, memoryview)):
        h.update(source)
    elif isinstance(source, Path):
        with open(source, "rb") as f:
            for chunk in iter(lambda: f.read(CHUNK_SIZE), b""):
                h.update(chunk)
    else:
        for chunk in iter(lambda: source.read(CHUNK_SIZE), b""):
            h.update(chunk)
    return h.hexdigest()


def _as_expected(expected: ExpectedDigest | str) -> ExpectedDigest:
    if isinstance(expected, ExpectedDigest):
        return expected
    try:
        return ExpectedDigest.parse(expected)
    except ValueError as e:
        raise IntegrityError(f"Unusable expected digest {expected!r}: {e}") from e


def verify(source: DigestSource, expected: ExpectedDigest | str) -> str:
    """Check ``source`` against ``expected``.

    Returns:
        The computed hex digest (equal to ``expected.hex``).

    Raises:
        IntegrityError: On mismatch, or when the digest cannot be computed.
    """
    digest = _as_expected(expected)
    try:
        actual = compute_digest(source, digest.algorithm)
    except (OSError, ValueError) as e:
        raise IntegrityError(
            f"Could not compute {digest.algorithm} digest: {e}",
            expected=digest.hex,
        ) from e

    if not hmac.compare_digest(actual, digest.hex.lower()):
        logger.warning(
            "%s mismatch: expected %s, got %s", digest.algorithm, digest.hex, actual,
        )
        raise IntegrityError(
            f"{digest.algorithm} mismatch\n"
            f"Expected: {digest.hex}\n"
            f"Got:      {actual}\n"
            f"The artifact may be corrupted or tampered with.",
            expected=digest.hex,
            actual=actual,
        )

    logger.debug("%s verified: %s", digest.algorithm, actual)
    return actual


def digest_matches(source: DigestSource, expected: ExpectedDigest | str) -> bool:
    """Non-raising form of :func:`verify`."""
    try:
        verify(source, expected)
    except IntegrityError:
        return False
    return True
