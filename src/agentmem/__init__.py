"""
agentmem: persistent working memory for coding agents.

Checkpointed plan execution with crash-safe resume, plus a hot/warm/cold
memory cache that keeps an agent's working context under a token budget.
"""

from .config import MemoryConfig, StoreConfig
from .core import (
    ActionRegistry,
    CheckpointedExecutor,
    ExecutionListener,
    LoggingListener,
    create_step_runner,
)
from .embeddings import (
    BaseEmbeddingProvider,
    HashingEmbeddingProvider,
    OpenAIEmbeddingProvider,
    create_embedding_provider,
)
from .exceptions import (
    AgentMemoryError,
    CheckpointNotFoundError,
    ConfigurationError,
    DatabaseError,
    NotFoundError,
    StepRunnerNotConfiguredError,
    UnknownActionError,
)
from .memory import MemoryTierManager
from .models import (
    AgentState,
    Checkpoint,
    ExecutionResult,
    MemoryItem,
    MemoryItemType,
    MemoryTier,
    PlanStep,
    StepStatus,
    TriggerType,
)
from .services import AgentService, CheckpointManager
from .storage import Database

__version__ = "0.1.0"

__all__ = [
    "MemoryConfig",
    "StoreConfig",
    "ActionRegistry",
    "CheckpointedExecutor",
    "ExecutionListener",
    "LoggingListener",
    "create_step_runner",
    "BaseEmbeddingProvider",
    "HashingEmbeddingProvider",
    "OpenAIEmbeddingProvider",
    "create_embedding_provider",
    "AgentMemoryError",
    "CheckpointNotFoundError",
    "ConfigurationError",
    "DatabaseError",
    "NotFoundError",
    "StepRunnerNotConfiguredError",
    "UnknownActionError",
    "MemoryTierManager",
    "AgentState",
    "Checkpoint",
    "ExecutionResult",
    "MemoryItem",
    "MemoryItemType",
    "MemoryTier",
    "PlanStep",
    "StepStatus",
    "TriggerType",
    "AgentService",
    "CheckpointManager",
    "Database",
]
