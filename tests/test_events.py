"""Unit tests for execution listeners."""

import logging
from datetime import datetime

import pytest

from agentmem.core.events import LoggingListener
from agentmem.core.executor import CheckpointedExecutor
from agentmem.models.checkpoint_models import (
    AgentState,
    Checkpoint,
    CheckpointMetadata,
    PlanStep,
    StepResult,
    TriggerType,
)


@pytest.mark.asyncio
class TestLoggingListener:
    """Test suite for LoggingListener."""

    async def test_logs_each_event(self, caplog):
        listener = LoggingListener()
        step = PlanStep(id="s1", action="read")
        checkpoint = Checkpoint(
            id="ckpt_1",
            session_id="session-1",
            project_id="proj",
            step_number=1,
            created_at=datetime.now(),
            state=AgentState(),
            metadata=CheckpointMetadata(trigger_type=TriggerType.ERROR),
        )

        with caplog.at_level(logging.DEBUG, logger="agentmem.core.events"):
            await listener.on_step_start(step, 0)
            await listener.on_step_complete(step, StepResult(step_id="s1", duration_ms=12))
            await listener.on_step_error(step, ValueError("bad input"))
            await listener.on_checkpoint(checkpoint)

        messages = [record.getMessage() for record in caplog.records]
        assert messages == [
            "Step 0 's1' started (action: read)",
            "Step 's1' completed in 12ms",
            "Step 's1' failed: bad input",
            "Checkpoint ckpt_1 at step 1 (error)",
        ]
        assert [record.levelno for record in caplog.records] == [
            logging.INFO,
            logging.INFO,
            logging.ERROR,
            logging.DEBUG,
        ]

    async def test_custom_logger(self, caplog):
        log = logging.getLogger("agentmem.tests.listener")
        listener = LoggingListener(log=log)

        with caplog.at_level(logging.INFO, logger="agentmem.tests.listener"):
            await listener.on_step_start(PlanStep(id="x", action="noop"), 3)

        assert caplog.records[0].name == "agentmem.tests.listener"

    async def test_attached_to_executor(self, checkpoint_manager, caplog):
        async def runner(step, state):
            return "done"

        executor = CheckpointedExecutor(
            checkpoint_manager, step_runner=runner, listeners=[LoggingListener()]
        )

        with caplog.at_level(logging.INFO, logger="agentmem.core.events"):
            await executor.execute("session-1", [PlanStep(id="only", action="go")])

        messages = [
            r.getMessage() for r in caplog.records if r.name == "agentmem.core.events"
        ]
        assert "Step 0 'only' started (action: go)" in messages
        assert any(m.startswith("Step 'only' completed in") for m in messages)
