"""
Logging configuration for the ``binstall`` CLI.

main.py calls ``setup_logging`` once per process; library modules only
ever do ``logger = logging.getLogger(__name__)`` and never add handlers.

Console level precedence:
    --debug / --verbose / --quiet  >  BINSTALL_LOG_LEVEL  >  WARNING

BINSTALL_LOG_FILE adds a file handler (full detail), with its own
threshold from BINSTALL_LOG_FILE_LEVEL.
"""

from __future__ import annotations

import logging
import sys

_PACKAGE_LOGGER = "binstall"

_DETAILED = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d — %(message)s"

# Console layout by threshold: (max level, format, datefmt)
_CONSOLE_FORMATS: tuple[tuple[int, str, str | None], ...] = (
    (logging.DEBUG, _DETAILED, "%H:%M:%S"),
    (logging.INFO, "%(asctime)s [%(name)s] %(message)s", "%H:%M:%S"),
)
_PLAIN = "%(message)s"

_FILE_DATEFMT = "%Y-%m-%d %H:%M:%S"


def resolve_level(
    *,
    debug: bool = False,
    verbose: bool = False,
    quiet: bool = False,
    env_level: str | None = None,
) -> str:
    """Pick the console level name: CLI flags first, then the env var."""
    if debug:
        return "DEBUG"
    if verbose:
        return "INFO"
    if quiet:
        return "ERROR"
    return env_level or "WARNING"


def _console_handler(level: int) -> logging.Handler:
    fmt, datefmt = _PLAIN, None
    for threshold, layout, dates in _CONSOLE_FORMATS:
        if level <= threshold:
            fmt, datefmt = layout, dates
            break

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt, datefmt=datefmt))
    return handler


def _file_handler(path: str, level: int) -> logging.Handler:
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(_DETAILED, datefmt=_FILE_DATEFMT))
    return handler


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
) -> None:
    """Install the process-wide handlers.

    Args:
        level: Console threshold name (DEBUG, INFO, WARNING, ERROR).
        log_file: Optional log file path.
        log_file_level: Threshold for the file; defaults to ``level``.
    """
    console_level = _parse_level(level)
    handlers = [_console_handler(console_level)]
    lowest = console_level

    if log_file:
        file_level = _parse_level(log_file_level or level)
        handlers.append(_file_handler(log_file, file_level))
        lowest = min(lowest, file_level)

    root = logging.getLogger()
    root.handlers.clear()
    for handler in handlers:
        root.addHandler(handler)

    # Other libraries' records stay at WARNING unless the console is at DEBUG
    root.setLevel(lowest if console_level <= logging.DEBUG else logging.WARNING)
    logging.getLogger(_PACKAGE_LOGGER).setLevel(lowest)

    logging.raiseExceptions = False


def _parse_level(level: str | None) -> int:
    """Level name to its numeric value; unknown names mean WARNING."""
    numeric = getattr(logging, level.upper(), None) if level else None
    return numeric if isinstance(numeric, int) else logging.WARNING
