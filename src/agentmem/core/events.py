"""Observer interface for plan execution lifecycle events."""

import logging

from ..models.checkpoint_models import Checkpoint, PlanStep, StepResult

logger = logging.getLogger(__name__)


class ExecutionListener:
    """
    Receives lifecycle events from the checkpointed executor.

    All hooks are no-ops; subclasses override the ones they need.
    Listeners observe execution, they never steer it: an exception raised
    by a hook is logged and otherwise ignored.
    """

    async def on_step_start(self, step: PlanStep, index: int) -> None:
        """Called when a step transitions to running."""

    async def on_step_complete(self, step: PlanStep, result: StepResult) -> None:
        """Called after a step completed and its result was recorded."""

    async def on_step_error(self, step: PlanStep, error: BaseException) -> None:
        """Called after a step failed."""

    async def on_checkpoint(self, checkpoint: Checkpoint) -> None:
        """Called after a checkpoint was written."""


class LoggingListener(ExecutionListener):
    """Listener that writes every event to a logger."""

    def __init__(self, log: logging.Logger = logger):
        self.log = log

    async def on_step_start(self, step: PlanStep, index: int) -> None:
        self.log.info(f"Step {index} '{step.id}' started (action: {step.action})")

    async def on_step_complete(self, step: PlanStep, result: StepResult) -> None:
        self.log.info(f"Step '{step.id}' completed in {result.duration_ms}ms")

    async def on_step_error(self, step: PlanStep, error: BaseException) -> None:
        self.log.error(f"Step '{step.id}' failed: {error}")

    async def on_checkpoint(self, checkpoint: Checkpoint) -> None:
        self.log.debug(
            f"Checkpoint {checkpoint.id} at step {checkpoint.step_number} "
            f"({checkpoint.metadata.trigger_type.value})"
        )
