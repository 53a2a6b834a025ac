from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Protocol, Sequence

from .context import ConversionContext

logger = logging.getLogger(__name__)


class Step(Protocol):
    """A single pipeline step."""

    step_id: str
    label: str

    def run(self, ctx: ConversionContext) -> None:
        ...


class StepError(RuntimeError):
    def __init__(self, step: Step, cause: BaseException) -> None:
        self.step_id = step.step_id
        self.label = step.label
        self.cause = cause
        super().__init__(f"step '{step.label}' failed: {cause}")


@dataclass(frozen=True)
class PipelineResult:
    ran_steps: List[str]


def run_pipeline(*, ctx: ConversionContext, steps: Sequence[Step]) -> PipelineResult:
    """Run steps in order, stopping at the first failure.

    The failing step's exception is wrapped in StepError. Nothing is retried
    or rolled back here; releasing resources is the caller's job.
    """

    ran: List[str] = []

    for step in steps:
        logger.info("Running step %s: %s", step.step_id, step.label)
        try:
            step.run(ctx)
        except Exception as e:
            logger.error("Step %s failed: %s", step.step_id, e)
            raise StepError(step, e) from e
        ran.append(step.step_id)
        logger.info("%s ... done", step.label)

    return PipelineResult(ran_steps=ran)
