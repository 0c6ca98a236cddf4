"""
L4 Execution layer — everything that touches the network, disk or processes.
"""

from binstall.core.services.artifact_install.execution.cancellation import (  # noqa: F401
    CancelToken,
)
from binstall.core.services.artifact_install.execution.fetcher import (  # noqa: F401
    FetchedArtifact,
    fetch_artifact,
)
from binstall.core.services.artifact_install.execution.installer import (  # noqa: F401
    default_install_dir,
    extract_archive,
    install_artifact,
)
from binstall.core.services.artifact_install.execution.smoke_test import (  # noqa: F401
    run_smoke_test,
)
