"""
L4 Execution — Core subprocess runner.

The single place where ``subprocess.run`` is called for installed
binaries.  Output capture, timeouts and logging are centralised here.
"""

from __future__ import annotations

import logging
import os
import subprocess
import time
from typing import Any

from binstall.core.services.artifact_install.data.constants import MAX_CAPTURED_OUTPUT

logger = logging.getLogger(__name__)


def _tail(text: str | None) -> str:
    if not text:
        return ""
    return text[-MAX_CAPTURED_OUTPUT:]


def _run_subprocess(
    cmd: list[str],
    *,
    timeout: float = 10,
    env_overrides: dict[str, str] | None = None,
    cwd: str | None = None,
) -> dict[str, Any]:
    """Run a command with stderr folded into stdout.

    Args:
        cmd: Command list for ``subprocess.run()``.
        timeout: Seconds before ``TimeoutExpired``.
        env_overrides: Extra env vars merged over ``os.environ``.
        cwd: Working directory for the command.

    Returns:
        ``{"ok": True, "output": "...", "exit_code": 0, "elapsed_ms": N}``
        on a zero exit; ``{"ok": False, "error": "...", ...}`` otherwise.
        Never raises for command failures.
    """
    env = os.environ.copy()
    if env_overrides:
        env.update(env_overrides)

    logger.debug("Running: %s", " ".join(cmd))
    start = time.monotonic()
    try:
        result = subprocess.run(
            cmd,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            stdin=subprocess.DEVNULL,
            text=True,
            errors="replace",
            timeout=timeout,
            env=env,
            cwd=cwd,
        )
    except subprocess.TimeoutExpired as e:
        output = e.output.decode("utf-8", "replace") if isinstance(e.output, bytes) else e.output
        return {
            "ok": False,
            "error": f"Command timed out ({timeout}s)",
            "output": _tail(output),
            "exit_code": None,
        }
    except OSError as e:
        # Missing file, not executable, wrong architecture (ENOEXEC)
        return {
            "ok": False,
            "error": f"Cannot execute {cmd[0]}: {e}",
            "output": "",
            "exit_code": None,
        }

    elapsed_ms = int((time.monotonic() - start) * 1000)
    output = _tail(result.stdout)

    if result.returncode == 0:
        return {"ok": True, "output": output, "exit_code": 0, "elapsed_ms": elapsed_ms}

    return {
        "ok": False,
        "error": f"Command failed (exit {result.returncode})",
        "output": output,
        "exit_code": result.returncode,
        "elapsed_ms": elapsed_ms,
    }
