"""Step outcome models — what the build harness sees after a step runs."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict


class ErrorKind(str, Enum):
    """Failure categories reported alongside a non-zero exit code."""

    FETCH_FAILURE = "fetch_failure"
    INTEGRITY_VERIFICATION_FAILURE = "integrity_verification_failure"
    IO_ERROR = "io_error"


class StepExecutionResult(BaseModel):
    """Exit status of a single build step.

    ``exit_code == 0`` means the step completed; anything else is a failure
    and carries an ``error_kind`` and a human-readable ``message``.
    """

    model_config = ConfigDict(frozen=True)

    exit_code: int = 0
    error_kind: ErrorKind | None = None
    message: str = ""

    @property
    def is_success(self) -> bool:
        return self.exit_code == 0

    @classmethod
    def failure(cls, kind: ErrorKind, message: str, *, exit_code: int = 1) -> StepExecutionResult:
        return cls(exit_code=exit_code, error_kind=kind, message=message)


SUCCESS = StepExecutionResult()
