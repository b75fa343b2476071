"""remotefile: verified remote artifact fetch-and-publish for build pipelines.

A ``remote_file`` rule downloads content through a pluggable transport into a
private staging area, checks it against a pinned digest, and only then
atomically publishes it into the build output tree and records it as a
cacheable output.
"""

__version__ = "0.1.0"
__description__ = "Verified remote artifact fetch-and-publish step for build pipelines"

from remotefile.core.fetch_step import VerifiedFetchStep, execute_fetch
from remotefile.core.rule import RemoteFileRule
from remotefile.core.steps import run_steps
from remotefile.errors import (
    ArtifactIOError,
    FetchFailure,
    IntegrityVerificationFailure,
    InvalidFetchSpecError,
    RemoteFileError,
)
from remotefile.models import ArtifactKind, Digest, FetchSpec, HashAlgorithm, StepExecutionResult

__all__ = [
    "ArtifactIOError",
    "ArtifactKind",
    "Digest",
    "FetchFailure",
    "FetchSpec",
    "HashAlgorithm",
    "IntegrityVerificationFailure",
    "InvalidFetchSpecError",
    "RemoteFileError",
    "RemoteFileRule",
    "StepExecutionResult",
    "VerifiedFetchStep",
    "__version__",
    "execute_fetch",
    "run_steps",
]
