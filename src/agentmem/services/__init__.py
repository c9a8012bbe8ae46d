"""Services package for agent working memory."""

from .agent_service import AgentService
from .checkpoint_service import CheckpointManager

__all__ = [
    "AgentService",
    "CheckpointManager",
]
