"""remotefile data models — all Pydantic v2, all frozen (immutable)."""

from remotefile.models.artifacts import ArtifactRef, ContentAddressedArtifact
from remotefile.models.fetch import ArtifactKind, Digest, FetchSpec, HashAlgorithm
from remotefile.models.results import SUCCESS, ErrorKind, StepExecutionResult
from remotefile.models.target import BuildTarget

__all__ = [
    # fetch
    "ArtifactKind",
    "Digest",
    "FetchSpec",
    "HashAlgorithm",
    # targets
    "BuildTarget",
    # results
    "ErrorKind",
    "StepExecutionResult",
    "SUCCESS",
    # artifacts
    "ArtifactRef",
    "ContentAddressedArtifact",
]
