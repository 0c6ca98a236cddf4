"""
L0 Data — Module-level constants.

Pure data. No logic. No imports beyond stdlib.
"""

from __future__ import annotations

# Streaming read size for downloads and hashing.
CHUNK_SIZE = 64 * 1024

# Network timeout (seconds) for one artifact GET.
DEFAULT_FETCH_TIMEOUT = 60.0

# Log download progress every N percent.
PROGRESS_STEP_PCT = 10

# Install directory fallback chain.
SYSTEM_BIN_DIR = "/usr/local/bin"
USER_BIN_DIR = "~/.local/bin"

# Keep at most this much captured smoke-test output.
MAX_CAPTURED_OUTPUT = 4000
