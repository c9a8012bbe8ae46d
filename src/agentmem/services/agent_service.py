"""Project-keyed facade over checkpoints and memory tiers."""

import logging
import math
from typing import Any, Dict, List, Optional, Union

from ..config.memory_config import MemoryConfig
from ..config.store_config import StoreConfig
from ..embeddings.base import BaseEmbeddingProvider
from ..memory.tiers import MemoryTierManager
from ..models.checkpoint_models import (
    AgentState,
    Checkpoint,
    CheckpointSummary,
    TriggerType,
)
from ..models.service_models import (
    MemoryRecallSummary,
    MemorySpillSummary,
    MemoryStatusSummary,
    RecalledMemory,
)
from ..storage.database import Database
from .checkpoint_service import CheckpointManager

logger = logging.getLogger(__name__)

DEFAULT_SPILL_COUNT = 4


class AgentService:
    """
    Agent working-memory service.

    PATTERN: Service facade keyed by project id
    GOTCHA: Managers are built lazily and cached per project; call
    clear_project_cache after dropping a project's tables
    """

    def __init__(
        self,
        db: Optional[Database] = None,
        store_config: Optional[StoreConfig] = None,
        memory_config: Optional[MemoryConfig] = None,
        embedding_provider: Optional[BaseEmbeddingProvider] = None,
    ):
        """
        Initialize agent service.

        Args:
            db: Shared persistence layer; opened at store_config's
                database path when omitted
            store_config: Store configuration (database path, checkpoint retention)
            memory_config: Tier configuration for every project
            embedding_provider: Optional provider for semantic recall
        """
        self.store_config = store_config or StoreConfig()
        self._owns_db = db is None
        self.db = db if db is not None else Database.from_config(self.store_config)
        self.memory_config = memory_config or MemoryConfig()
        self.embedding_provider = embedding_provider

        self._checkpoint_managers: Dict[str, CheckpointManager] = {}
        self._memory_managers: Dict[str, MemoryTierManager] = {}

    def get_checkpoint_manager(self, project_id: str) -> CheckpointManager:
        if project_id not in self._checkpoint_managers:
            self._checkpoint_managers[project_id] = CheckpointManager(
                self.db,
                project_id,
                max_checkpoints=self.store_config.max_checkpoints,
            )
        return self._checkpoint_managers[project_id]

    def get_memory_manager(self, project_id: str) -> MemoryTierManager:
        if project_id not in self._memory_managers:
            self._memory_managers[project_id] = MemoryTierManager(
                self.db,
                project_id,
                embedding_provider=self.embedding_provider,
                config=self.memory_config,
            )
        return self._memory_managers[project_id]

    async def save_checkpoint(
        self,
        project_id: str,
        session_id: str,
        context: Dict[str, Any],
        description: Optional[str] = None,
        trigger_type: Union[TriggerType, str] = TriggerType.MANUAL,
    ) -> Checkpoint:
        """
        Save free-form session context as a checkpoint.

        The checkpoint is numbered one past the highest existing step of
        the session (1 for the first).

        Args:
            project_id: Project identifier
            session_id: Session identifier
            context: Arbitrary context to store
            description: Optional description
            trigger_type: auto, manual or error (anything else means manual)

        Returns:
            The stored checkpoint
        """
        manager = self.get_checkpoint_manager(project_id)

        existing = await manager.list(session_id)
        next_step = max(c.step_number for c in existing) + 1 if existing else 1

        try:
            trigger = TriggerType(trigger_type)
        except ValueError:
            logger.warning(f"Unknown trigger type '{trigger_type}', saving as manual")
            trigger = TriggerType.MANUAL

        state = AgentState(current_step_index=next_step, context=dict(context))
        return await manager.save(
            session_id, state, description=description, trigger_type=trigger
        )

    async def load_checkpoint(
        self,
        project_id: str,
        session_id: str,
        checkpoint_id: Optional[str] = None,
    ) -> Optional[Checkpoint]:
        """
        Load a checkpoint by id, or the latest of the session.

        Args:
            project_id: Project identifier
            session_id: Session identifier
            checkpoint_id: Specific checkpoint to load

        Returns:
            Checkpoint if found
        """
        manager = self.get_checkpoint_manager(project_id)
        if checkpoint_id:
            return await manager.load(checkpoint_id)
        return await manager.load_latest(session_id)

    async def list_checkpoints(
        self, project_id: str, session_id: str
    ) -> List[CheckpointSummary]:
        return await self.get_checkpoint_manager(project_id).list(session_id)

    async def delete_checkpoint(self, project_id: str, checkpoint_id: str) -> bool:
        return await self.get_checkpoint_manager(project_id).delete(checkpoint_id)

    async def spill_memory(
        self,
        project_id: str,
        session_id: str,
        threshold: Optional[int] = None,
    ) -> MemorySpillSummary:
        """
        Spill hot memory of a session.

        Args:
            project_id: Project identifier
            session_id: Session identifier
            threshold: Token amount to free; one item is spilled per 100 tokens

        Returns:
            MemorySpillSummary
        """
        count = math.ceil(threshold / 100) if threshold else DEFAULT_SPILL_COUNT
        result = await self.get_memory_manager(project_id).spill_to_warm(
            session_id, count=count
        )
        return MemorySpillSummary(
            spilled_count=result.spilled_count,
            tokens_freed=result.tokens_freed,
        )

    async def recall_memory(
        self, project_id: str, session_id: str, query: str
    ) -> MemoryRecallSummary:
        """
        Recall memory of a session relevant to a query.

        Args:
            project_id: Project identifier
            session_id: Session identifier
            query: Recall query

        Returns:
            MemoryRecallSummary
        """
        result = await self.get_memory_manager(project_id).recall(session_id, query)
        return MemoryRecallSummary(
            items=[
                RecalledMemory(
                    id=item.id,
                    content=item.content,
                    type=item.type,
                    relevance=item.relevance_score,
                )
                for item in result.items
            ],
            tokens_recalled=sum(item.token_count for item in result.items),
        )

    async def get_memory_status(
        self, project_id: str, session_id: Optional[str] = None
    ) -> MemoryStatusSummary:
        """
        Get hot versus spilled totals.

        Args:
            project_id: Project identifier
            session_id: Session identifier; project-wide when omitted

        Returns:
            MemoryStatusSummary (warm counts as spilled)
        """
        manager = self.get_memory_manager(project_id)
        if session_id:
            status = await manager.get_status(session_id)
        else:
            status = await manager.get_status_all()

        return MemoryStatusSummary(
            hot_count=status.hot.items,
            cold_count=status.warm.items + status.cold.items,
            hot_tokens=status.hot.tokens,
            cold_tokens=status.warm.tokens + status.cold.tokens,
        )

    def clear_project_cache(self, project_id: str) -> None:
        """Forget the cached managers of a project."""
        self._checkpoint_managers.pop(project_id, None)
        self._memory_managers.pop(project_id, None)

    async def close(self) -> None:
        """Close the database if this service opened it."""
        if self._owns_db:
            await self.db.close()
