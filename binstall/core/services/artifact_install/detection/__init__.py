"""
L3 Detection layer — read-only host inspection.
"""

from binstall.core.services.artifact_install.detection.host_platform import (  # noqa: F401
    detect_platform,
)
