"""
L0 Data layer — pure data, no logic.

Built-in package definitions and module-level constants.
"""

from binstall.core.services.artifact_install.data.constants import (  # noqa: F401
    CHUNK_SIZE,
    DEFAULT_FETCH_TIMEOUT,
    MAX_CAPTURED_OUTPUT,
    PROGRESS_STEP_PCT,
    SYSTEM_BIN_DIR,
    USER_BIN_DIR,
)
from binstall.core.services.artifact_install.data.formulas import (  # noqa: F401
    ATTIO,
    PACKAGES,
)
