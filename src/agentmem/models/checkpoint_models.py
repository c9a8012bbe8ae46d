"""Checkpoint and agent state models for resumable plan execution."""

from pydantic import BaseModel, Field, SerializerFunctionWrapHandler, field_serializer
from pydantic_core import PydanticSerializationError
from typing import Dict, Any, List, Optional
from datetime import datetime
from enum import Enum


class StepStatus(str, Enum):
    """Lifecycle status of a plan step."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED = "skipped"


class TriggerType(str, Enum):
    """What caused a checkpoint to be written."""

    AUTO = "auto"
    MANUAL = "manual"
    ERROR = "error"


class PlanStep(BaseModel):
    """A single step of an agent plan."""

    id: str = Field(description="Step identifier, unique within the plan")
    description: str = Field(default="", description="Human readable description")
    action: str = Field(description="Operation name dispatched to the step runner")
    parameters: Dict[str, Any] = Field(
        default_factory=dict, description="Action parameters"
    )
    status: StepStatus = Field(default=StepStatus.PENDING)
    dependencies: Optional[List[str]] = Field(
        default=None, description="Ids of steps that must complete first"
    )


class StepResult(BaseModel):
    """Result recorded for a successfully completed step."""

    step_id: str
    output: Any = None
    completed_at: datetime = Field(default_factory=datetime.now)
    duration_ms: int = 0
    token_usage: Optional[int] = None

    @field_serializer("output", mode="wrap", when_used="json")
    def _serialize_output(
        self, value: Any, handler: SerializerFunctionWrapHandler
    ) -> Any:
        """Store outputs that have no JSON form as their repr."""
        try:
            return handler(value)
        except (PydanticSerializationError, TypeError, ValueError):
            return repr(value)


class LastError(BaseModel):
    """Failure recorded on the state when a step raises."""

    step_index: int
    message: str
    timestamp: datetime = Field(default_factory=datetime.now)


class AgentState(BaseModel):
    """
    Execution state of an agent plan.

    Only completed steps have entries in ``results``; the cursor
    ``current_step_index`` only moves forward during a run.
    """

    query: str = ""
    plan: List[PlanStep] = Field(default_factory=list)
    current_step_index: int = 0
    results: List[StepResult] = Field(default_factory=list)
    context: Dict[str, Any] = Field(default_factory=dict)
    last_error: Optional[LastError] = None

    def completed_step_ids(self) -> set:
        """Ids of steps that have a recorded result."""
        return {result.step_id for result in self.results}


class CheckpointMetadata(BaseModel):
    """Checkpoint metadata model."""

    description: Optional[str] = None
    trigger_type: TriggerType = TriggerType.AUTO
    duration_ms: int = 0
    token_usage: Optional[int] = None


class Checkpoint(BaseModel):
    """Immutable snapshot of an agent state for one session."""

    id: str
    session_id: str
    project_id: str
    step_number: int
    created_at: datetime
    state: AgentState
    metadata: CheckpointMetadata

    class Config:
        """Pydantic configuration."""

        frozen = True


class CheckpointSummary(BaseModel):
    """Checkpoint listing entry without the state payload."""

    id: str
    step_number: int
    created_at: datetime
    description: Optional[str] = None
    trigger_type: TriggerType
    duration_ms: int = 0
