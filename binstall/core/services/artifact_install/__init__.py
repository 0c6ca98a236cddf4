"""
Artifact installation service — package re-exports.

    from binstall.core.services.artifact_install import install_package

Each symbol lives in its single-responsibility module inside the
appropriate layer (data → domain → detection → execution → orchestration).
"""

# ── L0: Data ──
from binstall.core.services.artifact_install.data.formulas import PACKAGES  # noqa: F401

# ── L1: Domain ──
from binstall.core.services.artifact_install.domain.errors import (  # noqa: F401
    Cancelled,
    ExtractionError,
    FilesystemError,
    HTTPStatusError,
    InstallError,
    IntegrityError,
    NetworkError,
    SmokeTestFailed,
    UnsupportedPlatform,
)
from binstall.core.services.artifact_install.domain.integrity import (  # noqa: F401
    compute_digest,
    digest_matches,
    verify,
)
from binstall.core.services.artifact_install.domain.resolver import (  # noqa: F401
    resolve,
    supported_platforms,
)

# ── L3: Detection ──
from binstall.core.services.artifact_install.detection.host_platform import (  # noqa: F401
    detect_platform,
)

# ── L4: Execution ──
from binstall.core.services.artifact_install.execution.cancellation import (  # noqa: F401
    CancelToken,
)
from binstall.core.services.artifact_install.execution.fetcher import (  # noqa: F401
    FetchedArtifact,
    fetch_artifact,
)
from binstall.core.services.artifact_install.execution.installer import (  # noqa: F401
    default_install_dir,
    install_artifact,
)
from binstall.core.services.artifact_install.execution.smoke_test import (  # noqa: F401
    run_smoke_test,
)

# ── L5: Orchestration ──
from binstall.core.services.artifact_install.orchestration.pipeline import (  # noqa: F401
    install_package,
)
