"""
L1 Domain — Download helpers (pure).

Byte-count formatting and progress bookkeeping for the fetcher log lines.
No I/O.
"""

from __future__ import annotations

_UNITS = ("B", "KiB", "MiB", "GiB")


def _fmt_size(n: int | float) -> str:
    """``1536`` → ``"1.5 KiB"``."""
    value = float(n)
    for unit in _UNITS[:-1]:
        if value < 1024:
            break
        value /= 1024
    else:
        unit = _UNITS[-1]
    return f"{value:.0f} B" if unit == "B" else f"{value:.1f} {unit}"


def _fmt_rate(n: int, seconds: float) -> str:
    """Average transfer rate, e.g. ``"2.4 MiB/s"``."""
    if seconds <= 0:
        return "n/a"
    return f"{_fmt_size(n / seconds)}/s"


def _progress_milestone(downloaded: int, total: int, step_pct: int) -> int | None:
    """Return the percent milestone ``downloaded`` has reached, or None.

    Milestones are multiples of ``step_pct``; unknown totals never report.
    """
    if total <= 0 or step_pct <= 0:
        return None
    pct = min(100, downloaded * 100 // total)
    return pct - pct % step_pct
