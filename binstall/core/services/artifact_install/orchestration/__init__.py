"""
L5 Orchestration layer — the end-to-end install pipeline.
"""

from binstall.core.services.artifact_install.orchestration.pipeline import (  # noqa: F401
    PipelineRun,
    install_package,
)
