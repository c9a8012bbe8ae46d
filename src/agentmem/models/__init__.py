"""Data models."""

from .checkpoint_models import (
    AgentState,
    Checkpoint,
    CheckpointMetadata,
    CheckpointSummary,
    LastError,
    PlanStep,
    StepResult,
    StepStatus,
    TriggerType,
)
from .execution_models import ExecutionResult
from .service_models import (
    MemoryRecallSummary,
    MemorySpillSummary,
    MemoryStatusSummary,
    RecalledMemory,
)
from .memory_models import (
    HotTierStats,
    MemoryItem,
    MemoryItemType,
    MemoryStatus,
    MemorySuggestion,
    MemoryTier,
    RecallResult,
    SpillResult,
    TierStats,
)

__all__ = [
    "AgentState",
    "Checkpoint",
    "CheckpointMetadata",
    "CheckpointSummary",
    "LastError",
    "PlanStep",
    "StepResult",
    "StepStatus",
    "TriggerType",
    "ExecutionResult",
    "MemoryRecallSummary",
    "MemorySpillSummary",
    "MemoryStatusSummary",
    "RecalledMemory",
    "HotTierStats",
    "MemoryItem",
    "MemoryItemType",
    "MemoryStatus",
    "MemorySuggestion",
    "MemoryTier",
    "RecallResult",
    "SpillResult",
    "TierStats",
]
