"""
L3 Detection — Host platform detection.

Read-only: ``platform.system()``, ``platform.machine()`` and, on macOS,
``sysctl`` to see through Rosetta translation.
"""

from __future__ import annotations

import logging
import platform
import shutil
import subprocess

from binstall.core.models.package import PlatformKey

logger = logging.getLogger(__name__)


def _rosetta_translated() -> bool:
    """True when this process is an x86_64 binary running under Rosetta 2."""
    if not shutil.which("sysctl"):
        return False
    try:
        r = subprocess.run(
            ["sysctl", "-n", "sysctl.proc_translated"],
            capture_output=True, text=True, timeout=5,
        )
        return r.returncode == 0 and r.stdout.strip() == "1"
    except (OSError, subprocess.TimeoutExpired):
        return False


def detect_platform() -> PlatformKey:
    """Inspect the running host.

    Under Rosetta ``platform.machine()`` reports ``x86_64`` although the
    hardware is Apple silicon; the native arm64 artifact is the right one.
    """
    system = platform.system() or "unknown"
    machine = platform.machine() or "unknown"
    key = PlatformKey(os=system, arch=machine)

    if key.os == "darwin" and key.arch == "amd64" and _rosetta_translated():
        logger.info("Rosetta translation detected; treating host as darwin/arm64")
        key = PlatformKey(os="darwin", arch="arm64")

    logger.debug("Host platform: %s (system=%s, machine=%s)", key, system, machine)
    return key
