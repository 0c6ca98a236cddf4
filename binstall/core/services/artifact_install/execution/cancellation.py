"""
L4 Execution — Cooperative cancellation.

A CancelToken is checked by the fetcher between chunks and by the
installer between archive members.  It trips on an explicit ``cancel()``
(from any thread) or when its deadline passes.
"""

from __future__ import annotations

import threading
import time

from binstall.core.services.artifact_install.domain.errors import Cancelled


class CancelToken:
    """Thread-safe cancel flag with an optional overall deadline.

    Args:
        timeout: Seconds from now after which the token counts as
            cancelled.  None means no deadline.
    """

    def __init__(self, timeout: float | None = None):
        self._event = threading.Event()
        self._deadline = (time.monotonic() + timeout) if timeout is not None else None
        self.reason = ""

    def cancel(self, reason: str = "cancelled by caller") -> None:
        self.reason = reason
        self._event.set()

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        if self._deadline is not None and time.monotonic() >= self._deadline:
            if not self.reason:
                self.reason = "deadline exceeded"
            return True
        return False

    def remaining(self) -> float | None:
        """Seconds until the deadline, or None without one."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def raise_if_cancelled(self, stage: str) -> None:
        if self.cancelled:
            raise Cancelled(f"{stage} aborted: {self.reason}")


def _bounded_timeout(timeout: float, cancel: CancelToken | None) -> float:
    """Clamp a per-operation timeout to the token's remaining time."""
    if cancel is None:
        return timeout
    remaining = cancel.remaining()
    if remaining is None:
        return timeout
    # urllib treats 0 as non-blocking; keep a small positive floor
    return max(0.01, min(timeout, remaining))
