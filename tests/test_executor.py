"""Unit tests for the checkpointed executor."""

from typing import List

import pytest

from agentmem.core.events import ExecutionListener
from agentmem.core.executor import CheckpointedExecutor
from agentmem.core.step_runners import create_step_runner
from agentmem.exceptions import CheckpointNotFoundError
from agentmem.models.checkpoint_models import (
    AgentState,
    PlanStep,
    StepStatus,
    TriggerType,
)


def make_plan() -> List[PlanStep]:
    return [
        PlanStep(id="s1", description="Read config", action="read"),
        PlanStep(id="s2", description="Patch config", action="patch", dependencies=["s1"]),
        PlanStep(id="s3", description="Run tests", action="test"),
    ]


class RecordingRunner:
    """Step runner that records calls and fails on chosen step ids."""

    def __init__(self, fail_on=None):
        self.calls: List[str] = []
        self.fail_on = set(fail_on or [])

    async def __call__(self, step: PlanStep, state: AgentState):
        self.calls.append(step.id)
        if step.id in self.fail_on:
            raise RuntimeError(f"{step.action} exploded")
        return f"{step.id}-done"


class RecordingListener(ExecutionListener):
    """Listener that records every event."""

    def __init__(self):
        self.events = []

    async def on_step_start(self, step, index):
        self.events.append(("start", step.id, index))

    async def on_step_complete(self, step, result):
        self.events.append(("complete", step.id, result.output))

    async def on_step_error(self, step, error):
        self.events.append(("error", step.id, str(error)))

    async def on_checkpoint(self, checkpoint):
        self.events.append(("checkpoint", checkpoint.metadata.trigger_type.value))


class ExplodingListener(ExecutionListener):
    async def on_step_start(self, step, index):
        raise ValueError("listener bug")


@pytest.mark.asyncio
class TestCheckpointedExecutor:
    """Test suite for CheckpointedExecutor."""

    async def test_execute_all_steps(self, checkpoint_manager):
        runner = RecordingRunner()
        executor = CheckpointedExecutor(checkpoint_manager, step_runner=runner)

        result = await executor.execute("session-1", make_plan(), query="fix config")

        assert result.success is True
        assert result.error is None
        assert result.steps_executed == 3
        assert result.resumed_from_checkpoint is False
        assert runner.calls == ["s1", "s2", "s3"]
        assert result.state.current_step_index == 3
        assert [r.output for r in result.state.results] == ["s1-done", "s2-done", "s3-done"]
        assert all(s.status == StepStatus.COMPLETED for s in result.state.plan)

    async def test_auto_checkpoints_per_step_and_final(self, checkpoint_manager):
        executor = CheckpointedExecutor(checkpoint_manager, step_runner=RecordingRunner())

        await executor.execute("session-1", make_plan())

        summaries = await checkpoint_manager.list("session-1")
        assert len(summaries) == 4
        assert summaries[0].description == "Execution complete"
        assert summaries[0].step_number == 3
        assert all(s.trigger_type == TriggerType.AUTO for s in summaries)

    async def test_auto_checkpoint_disabled(self, checkpoint_manager):
        executor = CheckpointedExecutor(checkpoint_manager, step_runner=RecordingRunner())

        result = await executor.execute("session-1", make_plan(), auto_checkpoint=False)

        assert result.success is True
        assert await checkpoint_manager.count("session-1") == 0

    async def test_does_not_mutate_caller_plan(self, checkpoint_manager):
        plan = make_plan()
        executor = CheckpointedExecutor(checkpoint_manager, step_runner=RecordingRunner())

        await executor.execute("session-1", plan)

        assert all(step.status == StepStatus.PENDING for step in plan)

    async def test_accepts_plan_dicts(self, checkpoint_manager):
        executor = CheckpointedExecutor(
            checkpoint_manager,
            step_runner=create_step_runner({"echo": lambda params, state: params["value"]}),
        )

        result = await executor.execute(
            "session-1",
            [{"id": "e1", "action": "echo", "parameters": {"value": 7}}],
        )

        assert result.success is True
        assert result.state.results[0].output == 7

    async def test_failure_saves_error_checkpoint(self, checkpoint_manager):
        """Test a failing step stops the run and records an error checkpoint."""
        runner = RecordingRunner(fail_on=["s2"])
        executor = CheckpointedExecutor(checkpoint_manager, step_runner=runner)

        result = await executor.execute("session-1", make_plan(), auto_checkpoint=False)

        assert result.success is False
        assert result.error == "patch exploded"
        assert result.steps_executed == 1
        assert runner.calls == ["s1", "s2"]
        assert result.state.plan[1].status == StepStatus.FAILED
        assert result.state.plan[2].status == StepStatus.PENDING
        assert result.state.last_error.step_index == 1
        assert result.state.last_error.message == "patch exploded"

        latest = await checkpoint_manager.load_latest("session-1")
        assert latest.metadata.trigger_type == TriggerType.ERROR
        assert latest.metadata.description == "Failed at step 1: Patch config"
        assert latest.step_number == 1

    async def test_fail_then_resume(self, checkpoint_manager):
        """Test resume continues after completed steps and retries the failed one."""
        failing = RecordingRunner(fail_on=["s2"])
        executor = CheckpointedExecutor(checkpoint_manager, step_runner=failing)

        first = await executor.execute("session-1", make_plan())
        assert first.success is False
        assert [r.step_id for r in first.state.results] == ["s1"]

        fixed = RecordingRunner()
        executor.step_runner = fixed
        resumed = await executor.resume("session-1")

        assert resumed.success is True
        assert resumed.resumed_from_checkpoint is True
        assert resumed.steps_executed == 2
        assert fixed.calls == ["s2", "s3"]
        assert [r.step_id for r in resumed.state.results] == ["s1", "s2", "s3"]
        assert len(resumed.state.results) == len({r.step_id for r in resumed.state.results})

    async def test_resume_ignores_supplied_plan(self, checkpoint_manager):
        executor = CheckpointedExecutor(
            checkpoint_manager, step_runner=RecordingRunner(fail_on=["s3"])
        )
        await executor.execute("session-1", make_plan())

        runner = RecordingRunner()
        executor.step_runner = runner
        other_plan = [PlanStep(id="x1", action="other")]
        result = await executor.execute(
            "session-1", other_plan, resume_from_checkpoint=True
        )

        assert result.success is True
        assert runner.calls == ["s3"]
        assert [s.id for s in result.state.plan] == ["s1", "s2", "s3"]

    async def test_resume_without_checkpoint_starts_fresh(self, checkpoint_manager):
        runner = RecordingRunner()
        executor = CheckpointedExecutor(checkpoint_manager, step_runner=runner)

        result = await executor.execute(
            "new-session", make_plan(), resume_from_checkpoint=True
        )

        assert result.success is True
        assert result.resumed_from_checkpoint is False
        assert runner.calls == ["s1", "s2", "s3"]

    async def test_resume_from_specific_checkpoint(self, checkpoint_manager):
        runner = RecordingRunner()
        executor = CheckpointedExecutor(checkpoint_manager, step_runner=runner)
        await executor.execute("session-1", make_plan())

        after_first = await checkpoint_manager.load_at_step("session-1", 1)
        runner.calls.clear()

        result = await executor.resume_from(after_first.id, "session-1")

        assert result.success is True
        assert result.resumed_from_checkpoint is True
        assert runner.calls == ["s2", "s3"]

    async def test_resume_from_missing_checkpoint(self, checkpoint_manager):
        executor = CheckpointedExecutor(checkpoint_manager, step_runner=RecordingRunner())

        with pytest.raises(CheckpointNotFoundError):
            await executor.resume_from("ckpt_missing", "session-1")

    async def test_unmet_dependency_skips_step(self, checkpoint_manager):
        """A step depending on a later step is skipped, never revisited."""
        plan = [
            PlanStep(id="a", action="read"),
            PlanStep(id="b", action="patch", dependencies=["c"]),
            PlanStep(id="c", action="test"),
        ]
        runner = RecordingRunner()
        executor = CheckpointedExecutor(checkpoint_manager, step_runner=runner)

        result = await executor.execute("session-1", plan)

        assert result.success is True
        assert runner.calls == ["a", "c"]
        assert result.state.plan[1].status == StepStatus.SKIPPED
        assert result.steps_executed == 2
        assert "b" not in result.state.completed_step_ids()

    async def test_completed_steps_are_not_rerun(self, checkpoint_manager):
        plan = make_plan()
        plan[0].status = StepStatus.COMPLETED
        runner = RecordingRunner()
        executor = CheckpointedExecutor(checkpoint_manager, step_runner=runner)

        result = await executor.execute("session-1", plan)

        assert "s1" not in runner.calls
        # s2 depends on s1, which has no recorded result
        assert result.state.plan[1].status == StepStatus.SKIPPED
        assert runner.calls == ["s3"]

    async def test_default_runner_failure_is_captured(self, checkpoint_manager):
        executor = CheckpointedExecutor(checkpoint_manager)

        result = await executor.execute("session-1", make_plan())

        assert result.success is False
        assert result.error == "No step runner configured. Cannot execute step: read"
        assert result.steps_executed == 0

    async def test_unknown_action_is_captured(self, checkpoint_manager):
        executor = CheckpointedExecutor(
            checkpoint_manager, step_runner=create_step_runner({"read": lambda p, s: "ok"})
        )

        result = await executor.execute("session-1", make_plan())

        assert result.success is False
        assert result.error == "Unknown action: patch"
        assert result.steps_executed == 1

    async def test_listener_events(self, checkpoint_manager):
        listener = RecordingListener()
        executor = CheckpointedExecutor(
            checkpoint_manager,
            step_runner=RecordingRunner(fail_on=["s2"]),
            listeners=[listener],
        )

        await executor.execute("session-1", make_plan())

        assert listener.events == [
            ("start", "s1", 0),
            ("complete", "s1", "s1-done"),
            ("checkpoint", "auto"),
            ("start", "s2", 1),
            ("error", "s2", "patch exploded"),
            ("checkpoint", "error"),
        ]

    async def test_listener_errors_are_isolated(self, checkpoint_manager):
        executor = CheckpointedExecutor(
            checkpoint_manager,
            step_runner=RecordingRunner(),
            listeners=[ExplodingListener()],
        )

        result = await executor.execute("session-1", make_plan())

        assert result.success is True

    async def test_per_call_listeners(self, checkpoint_manager):
        listener = RecordingListener()
        executor = CheckpointedExecutor(checkpoint_manager, step_runner=RecordingRunner())

        await executor.execute("session-1", make_plan()[:1], listeners=[listener])
        await executor.execute("session-2", make_plan()[:1])

        assert [e for e in listener.events if e[0] == "start"] == [("start", "s1", 0)]

    async def test_manual_checkpoint(self, checkpoint_manager):
        executor = CheckpointedExecutor(checkpoint_manager)
        state = AgentState(query="q", current_step_index=2, context={"note": "x"})

        checkpoint = await executor.create_manual_checkpoint(
            "session-1", state, description="before refactor"
        )

        assert checkpoint.metadata.trigger_type == TriggerType.MANUAL
        assert checkpoint.metadata.description == "before refactor"
        assert checkpoint.step_number == 2

    async def test_non_json_output_is_checkpointed(self, checkpoint_manager):
        """Outputs without a JSON form are stored as their repr."""

        class Handle:
            def __repr__(self):
                return "<Handle 7>"

        async def runner(step, state):
            return Handle() if step.id == "a" else {"ok": True}

        executor = CheckpointedExecutor(checkpoint_manager, step_runner=runner)
        plan = [PlanStep(id="a", action="open"), PlanStep(id="b", action="use")]

        result = await executor.execute("session-1", plan)

        assert result.success is True
        assert result.steps_executed == 2
        assert result.state.last_error is None
        assert isinstance(result.state.results[0].output, Handle)
        assert await checkpoint_manager.count("session-1") == 3

        latest = await checkpoint_manager.load_latest("session-1")
        assert latest.state.results[0].output == "<Handle 7>"
        assert latest.state.results[1].output == {"ok": True}

        resumed = await executor.resume("session-1")
        assert resumed.resumed_from_checkpoint is True
        assert resumed.steps_executed == 0
