"""
L1 Domain layer — pure logic, no I/O.

Error taxonomy, platform resolution, digest verification.
"""

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
