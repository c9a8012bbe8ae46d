"""Checkpointed executor for resumable multi-step agent plans."""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Union

from .events import ExecutionListener
from .step_runners import StepRunner, no_step_runner
from ..exceptions import CheckpointNotFoundError
from ..models.checkpoint_models import (
    AgentState,
    Checkpoint,
    LastError,
    PlanStep,
    StepResult,
    StepStatus,
    TriggerType,
)
from ..models.execution_models import ExecutionResult
from ..services.checkpoint_service import CheckpointManager

logger = logging.getLogger(__name__)


def _elapsed_ms(start: datetime) -> int:
    return int((datetime.now() - start).total_seconds() * 1000)


class CheckpointedExecutor:
    """
    Sequential plan executor with automatic checkpointing.

    Steps run one at a time in plan order. Each completed step is
    checkpointed so the plan can be resumed after a crash or a failed
    step; a failed step stops the run and leaves an error checkpoint
    pointing at the failure.

    Dependency checks are single-pass: a step whose dependencies have no
    recorded result when its turn comes is skipped, and is not revisited
    even if those dependencies complete later in the same run.
    """

    def __init__(
        self,
        checkpoint_manager: CheckpointManager,
        step_runner: Optional[StepRunner] = None,
        listeners: Optional[Sequence[ExecutionListener]] = None,
    ):
        """
        Initialize executor.

        Args:
            checkpoint_manager: Store used for all checkpoints
            step_runner: Callable performing each step (default fails cleanly)
            listeners: Observers notified of lifecycle events
        """
        self.checkpoint_manager = checkpoint_manager
        self.step_runner: StepRunner = step_runner or no_step_runner
        self.listeners: List[ExecutionListener] = list(listeners or [])

    def add_listener(self, listener: ExecutionListener) -> None:
        self.listeners.append(listener)

    def remove_listener(self, listener: ExecutionListener) -> None:
        if listener in self.listeners:
            self.listeners.remove(listener)

    async def execute(
        self,
        session_id: str,
        plan: Sequence[Union[PlanStep, Dict[str, Any]]],
        query: str = "",
        resume_from_checkpoint: bool = False,
        auto_checkpoint: bool = True,
        listeners: Optional[Sequence[ExecutionListener]] = None,
    ) -> ExecutionResult:
        """
        Execute a plan with automatic checkpointing.

        When ``resume_from_checkpoint`` is set and the session has a
        checkpoint, its stored plan and state are used and ``plan`` is
        ignored. Without a checkpoint a fresh run of ``plan`` starts.

        Args:
            session_id: Session identifier
            plan: Ordered plan steps (models or dicts)
            query: Query that produced the plan
            resume_from_checkpoint: Continue from the latest checkpoint
            auto_checkpoint: Save a checkpoint after each step and at the end
            listeners: Extra observers for this call only

        Returns:
            ExecutionResult; step and configuration failures are captured,
            never raised
        """
        start_time = datetime.now()
        resumed = False
        state: Optional[AgentState] = None

        try:
            if resume_from_checkpoint:
                existing = await self.checkpoint_manager.load_latest(session_id)
                if existing is not None:
                    if plan:
                        logger.warning(
                            f"Ignoring supplied plan of {len(plan)} steps: "
                            f"resuming session {session_id} from checkpoint {existing.id}"
                        )
                    state = existing.state.model_copy(deep=True)
                    resumed = True
                    logger.info(
                        f"Resuming session {session_id} from checkpoint {existing.id} "
                        f"(step {existing.step_number})"
                    )

            if state is None:
                state = self._initialize_state(plan, query)
        except Exception as e:
            logger.error(f"Failed to prepare execution for session {session_id}: {e}")
            return ExecutionResult(
                success=False,
                state=state or AgentState(query=query),
                error=str(e),
                total_duration_ms=_elapsed_ms(start_time),
                resumed_from_checkpoint=resumed,
            )

        return await self._run(
            session_id,
            state,
            start_time=start_time,
            resumed=resumed,
            auto_checkpoint=auto_checkpoint,
            listeners=self._listeners_for(listeners),
        )

    async def resume(
        self,
        session_id: str,
        auto_checkpoint: bool = True,
        listeners: Optional[Sequence[ExecutionListener]] = None,
    ) -> ExecutionResult:
        """
        Resume execution from the latest checkpoint of a session.

        Args:
            session_id: Session identifier
            auto_checkpoint: Save a checkpoint after each step and at the end
            listeners: Extra observers for this call only

        Returns:
            ExecutionResult
        """
        return await self.execute(
            session_id,
            [],
            resume_from_checkpoint=True,
            auto_checkpoint=auto_checkpoint,
            listeners=listeners,
        )

    async def resume_from(
        self,
        checkpoint_id: str,
        session_id: str,
        auto_checkpoint: bool = True,
        listeners: Optional[Sequence[ExecutionListener]] = None,
    ) -> ExecutionResult:
        """
        Resume execution from a specific checkpoint.

        Args:
            checkpoint_id: Checkpoint to restore
            session_id: Session new checkpoints are written to
            auto_checkpoint: Save a checkpoint after each step and at the end
            listeners: Extra observers for this call only

        Returns:
            ExecutionResult with resumed_from_checkpoint=True

        Raises:
            CheckpointNotFoundError: If the checkpoint does not exist
        """
        start_time = datetime.now()
        checkpoint = await self.checkpoint_manager.load(checkpoint_id)
        if checkpoint is None:
            raise CheckpointNotFoundError(checkpoint_id)

        logger.info(
            f"Resuming session {session_id} from checkpoint {checkpoint_id} "
            f"(step {checkpoint.step_number})"
        )

        return await self._run(
            session_id,
            checkpoint.state.model_copy(deep=True),
            start_time=start_time,
            resumed=True,
            auto_checkpoint=auto_checkpoint,
            listeners=self._listeners_for(listeners),
        )

    async def create_manual_checkpoint(
        self,
        session_id: str,
        state: AgentState,
        description: Optional[str] = None,
    ) -> Checkpoint:
        """
        Save a manual checkpoint of a state.

        Args:
            session_id: Session identifier
            state: State to snapshot
            description: Optional description

        Returns:
            The stored checkpoint
        """
        return await self.checkpoint_manager.save(
            session_id,
            state,
            description=description,
            trigger_type=TriggerType.MANUAL,
        )

    async def _run(
        self,
        session_id: str,
        state: AgentState,
        start_time: datetime,
        resumed: bool,
        auto_checkpoint: bool,
        listeners: List[ExecutionListener],
    ) -> ExecutionResult:
        """
        Drive the step loop and package the outcome.

        Args:
            session_id: Session identifier
            state: State to advance (mutated in place)
            start_time: When the call started
            resumed: Whether state came from a checkpoint
            auto_checkpoint: Save per-step and final checkpoints
            listeners: Observers for this run

        Returns:
            ExecutionResult
        """
        results_before = len(state.results)
        error: Optional[str]
        try:
            error = await self._run_steps(
                session_id, state, start_time, auto_checkpoint, listeners
            )
        except Exception as e:
            # Checkpoint writes failing, or anything else outside a step
            logger.error(f"Execution of session {session_id} aborted: {e}")
            error = str(e)

        steps_executed = len(state.results) - results_before
        total_ms = _elapsed_ms(start_time)
        if error is None:
            logger.info(
                f"Session {session_id} completed: {steps_executed} steps in {total_ms}ms"
            )
        return ExecutionResult(
            success=error is None,
            state=state,
            error=error,
            total_duration_ms=total_ms,
            steps_executed=steps_executed,
            resumed_from_checkpoint=resumed,
        )

    async def _run_steps(
        self,
        session_id: str,
        state: AgentState,
        start_time: datetime,
        auto_checkpoint: bool,
        listeners: List[ExecutionListener],
    ) -> Optional[str]:
        """
        Execute remaining steps in plan order.

        Returns:
            Error message of the failed step, or None
        """
        while state.current_step_index < len(state.plan):
            index = state.current_step_index
            step = state.plan[index]

            if step.status == StepStatus.COMPLETED:
                state.current_step_index += 1
                continue

            if not self._are_dependencies_met(step, state):
                logger.debug(f"Skipping step '{step.id}': unmet dependencies {step.dependencies}")
                step.status = StepStatus.SKIPPED
                state.current_step_index += 1
                continue

            step.status = StepStatus.RUNNING
            step_start = datetime.now()
            await self._notify(listeners, "on_step_start", step, index)

            try:
                output = await self.step_runner(step, state)
            except Exception as step_error:
                step.status = StepStatus.FAILED
                state.last_error = LastError(
                    step_index=index,
                    message=str(step_error),
                    timestamp=datetime.now(),
                )
                logger.error(f"Step {index} '{step.id}' failed: {step_error}")
                await self._notify(listeners, "on_step_error", step, step_error)

                # Error checkpoints are written even with auto_checkpoint off
                checkpoint = await self.checkpoint_manager.save(
                    session_id,
                    state,
                    description=f"Failed at step {index}: {step.description}",
                    trigger_type=TriggerType.ERROR,
                    duration_ms=_elapsed_ms(start_time),
                )
                await self._notify(listeners, "on_checkpoint", checkpoint)
                return str(step_error)

            step.status = StepStatus.COMPLETED
            result = StepResult(
                step_id=step.id,
                output=output,
                completed_at=datetime.now(),
                duration_ms=_elapsed_ms(step_start),
            )
            state.results.append(result)
            await self._notify(listeners, "on_step_complete", step, result)

            state.current_step_index += 1

            if auto_checkpoint:
                checkpoint = await self.checkpoint_manager.save(
                    session_id,
                    state,
                    trigger_type=TriggerType.AUTO,
                    duration_ms=_elapsed_ms(start_time),
                )
                await self._notify(listeners, "on_checkpoint", checkpoint)

        if auto_checkpoint:
            checkpoint = await self.checkpoint_manager.save(
                session_id,
                state,
                description="Execution complete",
                trigger_type=TriggerType.AUTO,
                duration_ms=_elapsed_ms(start_time),
            )
            await self._notify(listeners, "on_checkpoint", checkpoint)

        return None

    def _initialize_state(
        self,
        plan: Sequence[Union[PlanStep, Dict[str, Any]]],
        query: str,
    ) -> AgentState:
        """
        Build a fresh state for a plan.

        Steps are copied; a status already set on a step is kept.
        """
        steps = [
            step.model_copy(deep=True)
            if isinstance(step, PlanStep)
            else PlanStep.model_validate(step)
            for step in plan
        ]
        return AgentState(query=query, plan=steps)

    def _are_dependencies_met(self, step: PlanStep, state: AgentState) -> bool:
        """Check whether every dependency of a step has a recorded result."""
        if not step.dependencies:
            return True

        completed_ids = state.completed_step_ids()
        return all(dep_id in completed_ids for dep_id in step.dependencies)

    def _listeners_for(
        self, extra: Optional[Sequence[ExecutionListener]]
    ) -> List[ExecutionListener]:
        return self.listeners + list(extra or [])

    async def _notify(
        self, listeners: List[ExecutionListener], hook: str, *args: Any
    ) -> None:
        """Deliver an event to every listener, isolating listener failures."""
        for listener in listeners:
            try:
                await getattr(listener, hook)(*args)
            except Exception as e:
                logger.warning(
                    f"Listener {type(listener).__name__}.{hook} raised: {e}"
                )
