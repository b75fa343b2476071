"""Build step protocol and the fail-fast step runner.

A rule expands into an ordered list of steps.  ``run_steps`` executes them
strictly in order and stops at the first non-zero exit code; the remaining
steps of that rule never run.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Protocol, runtime_checkable

from remotefile.models.results import SUCCESS, StepExecutionResult

logger = logging.getLogger(__name__)


@runtime_checkable
class Step(Protocol):
    """Protocol for a single unit of build work."""

    @property
    def short_name(self) -> str:
        ...

    @property
    def description(self) -> str:
        ...

    def execute(self) -> StepExecutionResult:
        ...


def run_steps(steps: Iterable[Step]) -> StepExecutionResult:
    """Execute *steps* in order, returning the first failure or ``SUCCESS``."""
    for index, step in enumerate(steps):
        logger.debug("step %d [%s]: %s", index, step.short_name, step.description)
        result = step.execute()
        if not result.is_success:
            logger.error(
                "step %d [%s] exited with %d; aborting remaining steps",
                index,
                step.short_name,
                result.exit_code,
            )
            return result
    return SUCCESS
