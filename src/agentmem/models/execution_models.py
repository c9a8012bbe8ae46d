"""Execution result model for the checkpointed executor."""

from pydantic import BaseModel, Field
from typing import Optional

from .checkpoint_models import AgentState


class ExecutionResult(BaseModel):
    """Outcome of executing (or resuming) a plan."""

    success: bool
    state: AgentState
    error: Optional[str] = Field(default=None, description="Failure message")
    total_duration_ms: int = 0
    steps_executed: int = 0
    resumed_from_checkpoint: bool = False
