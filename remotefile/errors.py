"""Typed failures raised while fetching, verifying and publishing a remote file.

Three kinds are runtime failures of a fetch step and are mapped onto a failed
``StepExecutionResult`` by the step itself:

* ``FetchFailure``                 — the transport could not retrieve content.
* ``IntegrityVerificationFailure`` — the staged bytes do not match the digest.
* ``ArtifactIOError``              — a local filesystem operation or the
                                     recorder failed.

``InvalidFetchSpecError`` is a construction-time failure: it is raised while a
rule or ``FetchSpec`` is being declared, never during step execution.
"""

from __future__ import annotations

from pathlib import PurePath
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from remotefile.models.fetch import Digest


class RemoteFileError(RuntimeError):
    """Base class for all runtime failures of a verified fetch."""


class FetchFailure(RemoteFileError):
    """Raised when a transport reports failure or faults while fetching."""

    def __init__(self, message: str, *, uri: str = "") -> None:
        super().__init__(message)
        self.uri = uri


class IntegrityVerificationFailure(RemoteFileError):
    """Raised when the computed digest differs from the expected digest.

    Both digests are kept on the exception and rendered into the message so
    the harness log is enough to diagnose the mismatch.
    """

    def __init__(self, *, uri: str, expected: Digest, actual: Digest) -> None:
        super().__init__(
            f"Digest mismatch for {uri}: expected {expected}, got {actual}"
        )
        self.uri = uri
        self.expected = expected
        self.actual = actual


class ArtifactIOError(RemoteFileError):
    """Raised when staging, publishing or chmod-ing a file fails locally."""

    def __init__(self, message: str, *, path: PurePath | None = None) -> None:
        super().__init__(message)
        self.path = path


class InvalidFetchSpecError(ValueError):
    """Raised when a fetch declaration is malformed (bad digest, path escape)."""


__all__ = [
    "ArtifactIOError",
    "FetchFailure",
    "IntegrityVerificationFailure",
    "InvalidFetchSpecError",
    "RemoteFileError",
]
