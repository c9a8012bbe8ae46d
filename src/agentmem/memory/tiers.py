"""Hot/warm/cold memory tiering with access-pattern tracking."""

import json
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Union

from .similarity import cosine_similarity, keyword_relevance
from .tokens import get_token_counter
from ..config.memory_config import MemoryConfig
from ..embeddings.base import (
    BaseEmbeddingProvider,
    EmbeddingFunction,
    FunctionEmbeddingProvider,
)
from ..models.memory_models import (
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
from ..storage.database import Database
from ..storage.schema import sanitize_project_id
from ..utils.ids import generate_id

logger = logging.getLogger(__name__)

DEFAULT_SPILL_COUNT = 4
PROMOTE_SPILL_COUNT = 2
DEFAULT_RECALL_LIMIT = 3
# Cold pruning score: relevance plus a bonus per recorded access
ACCESS_WEIGHT = 0.1
SPILL_SUGGESTION_RATIO = 0.9


def _timestamp(value: datetime) -> str:
    return value.isoformat(timespec="microseconds")


class MemoryTierManager:
    """
    Manager for hot/warm/cold memory tiers of agent sessions.

    The hot tier holds recent facts under a token budget. Items spilled
    out of it land in warm (frequently recalled) or cold storage, can be
    recalled by semantic or keyword relevance and promoted back. Cold
    storage is capped by item count through ``prune_cold``.

    All items are scoped by (project, session).
    """

    def __init__(
        self,
        db: Database,
        project_id: str,
        embedding_provider: Optional[
            Union[BaseEmbeddingProvider, EmbeddingFunction]
        ] = None,
        config: Optional[Union[MemoryConfig, Dict[str, Any]]] = None,
    ):
        """
        Initialize memory tier manager.

        Args:
            db: Persistence layer
            project_id: Project whose tables hold the items
            embedding_provider: Provider (or plain function) for semantic recall
            config: MemoryConfig, or overrides merged with the defaults
        """
        self.db = db
        self.project_id = project_id
        self.table = f"{sanitize_project_id(project_id)}_memory_items"

        if config is None:
            config = MemoryConfig()
        elif isinstance(config, dict):
            config = MemoryConfig(**config)
        self.config: MemoryConfig = config

        if embedding_provider is not None and not hasattr(embedding_provider, "embed"):
            embedding_provider = FunctionEmbeddingProvider(embedding_provider)
        self.embedding_provider: Optional[BaseEmbeddingProvider] = embedding_provider

        self._count_tokens = get_token_counter(self.config.token_estimator)

    async def _ensure_tables(self) -> None:
        await self.db.create_project_tables(self.project_id)

    async def add_to_hot(
        self,
        session_id: str,
        content: str,
        type: Union[MemoryItemType, str],
        relevance_score: Optional[float] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> MemoryItem:
        """
        Add an item to hot memory.

        With auto-spill enabled, the least valuable hot items are spilled
        first until the new item fits the token budget (or hot is empty).

        Args:
            session_id: Session identifier
            content: Memory content
            type: Kind of memory
            relevance_score: Initial relevance (default 1.0)
            metadata: Additional metadata

        Returns:
            The stored item
        """
        await self._ensure_tables()
        token_count = self._count_tokens(content)
        embedding: Optional[List[float]] = None
        if self.embedding_provider is not None:
            embedding = await self.embedding_provider.embed(content)

        if self.config.auto_spill_enabled:
            await self._make_room(session_id, token_count, DEFAULT_SPILL_COUNT)

        now = datetime.now()
        item = MemoryItem(
            id=generate_id("mem"),
            session_id=session_id,
            content=content,
            type=MemoryItemType(type),
            tier=MemoryTier.HOT,
            access_count=0,
            last_accessed_at=now,
            created_at=now,
            relevance_score=1.0 if relevance_score is None else relevance_score,
            token_count=token_count,
            metadata=metadata or {},
            embedding=embedding,
        )

        await self.db.execute(
            f"""
            INSERT INTO {self.table} (
                id, session_id, content, type, tier,
                access_count, last_accessed_at, created_at,
                relevance_score, token_count, metadata_json, embedding_json
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                item.id,
                item.session_id,
                item.content,
                item.type.value,
                item.tier.value,
                item.access_count,
                _timestamp(item.last_accessed_at),
                _timestamp(item.created_at),
                item.relevance_score,
                item.token_count,
                json.dumps(item.metadata),
                json.dumps(item.embedding) if item.embedding is not None else None,
            ),
        )

        logger.debug(
            f"Added {item.type.value} item {item.id} to hot memory "
            f"({token_count} tokens) for session {session_id}"
        )
        return item

    async def get_hot(self, session_id: str) -> List[MemoryItem]:
        """Get all hot items of a session, newest first."""
        return await self.get_by_tier(session_id, MemoryTier.HOT)

    async def get_by_tier(
        self, session_id: str, tier: Union[MemoryTier, str]
    ) -> List[MemoryItem]:
        """
        Get all items of a session in one tier, newest first.

        Args:
            session_id: Session identifier
            tier: Tier to list

        Returns:
            Memory items
        """
        await self._ensure_tables()
        rows = await self.db.fetch_many(
            f"""
            SELECT * FROM {self.table}
            WHERE session_id = ? AND tier = ?
            ORDER BY created_at DESC
            """,
            (session_id, MemoryTier(tier).value),
        )
        return [self._row_to_item(row) for row in rows]

    async def get_item(self, item_id: str) -> Optional[MemoryItem]:
        """
        Get a memory item by ID.

        Args:
            item_id: Memory identifier

        Returns:
            Memory item if found
        """
        await self._ensure_tables()
        row = await self.db.fetch_one(
            f"SELECT * FROM {self.table} WHERE id = ?", (item_id,)
        )
        return self._row_to_item(row) if row else None

    async def spill_to_warm(
        self,
        session_id: str,
        item_ids: Optional[Sequence[str]] = None,
        count: int = DEFAULT_SPILL_COUNT,
    ) -> SpillResult:
        """
        Spill items out of hot memory.

        Either the named hot items, or the ``count`` hot items with the
        lowest (relevance_score, created_at). Items recalled at least
        ``warm_access_threshold`` times go to warm, the rest to cold.

        Args:
            session_id: Session identifier
            item_ids: Specific hot items to spill
            count: Number of items to select when item_ids is not given

        Returns:
            SpillResult
        """
        await self._ensure_tables()
        result = SpillResult(target_tier=MemoryTier.WARM)

        async with self.db.transaction():
            if item_ids is not None:
                rows = await self._get_hot_rows_by_ids(session_id, item_ids)
            else:
                rows = await self.db.fetch_many(
                    f"""
                    SELECT * FROM {self.table}
                    WHERE session_id = ? AND tier = 'hot'
                    ORDER BY relevance_score ASC, created_at ASC, rowid ASC
                    LIMIT ?
                    """,
                    (session_id, max(count, 0)),
                )

            for row in rows:
                target = (
                    MemoryTier.WARM
                    if row["access_count"] >= self.config.warm_access_threshold
                    else MemoryTier.COLD
                )
                await self.db.execute(
                    f"UPDATE {self.table} SET tier = ? WHERE id = ?",
                    (target.value, row["id"]),
                )
                result.spilled_ids.append(row["id"])
                result.tokens_freed += row["token_count"]
                result.tier_assignments[row["id"]] = target

        result.spilled_count = len(result.spilled_ids)
        if result.spilled_count:
            logger.info(
                f"Spilled {result.spilled_count} items from hot memory "
                f"for session {session_id}"
            )
        return result

    async def recall(
        self,
        session_id: str,
        query: str,
        limit: int = DEFAULT_RECALL_LIMIT,
        auto_promote: Optional[bool] = None,
        types: Optional[Sequence[Union[MemoryItemType, str]]] = None,
        min_relevance: float = 0.0,
    ) -> RecallResult:
        """
        Recall warm/cold items relevant to a query.

        Items are scored by cosine similarity when both the query and the
        item have embeddings, otherwise by keyword overlap. Each returned
        item has its access count bumped and its relevance blended with
        the new score; items scoring at least ``promote_threshold`` are
        promoted to hot when auto-promotion is on.

        Args:
            session_id: Session identifier
            query: Recall query
            limit: Maximum items to return
            auto_promote: Override config.auto_promote_enabled
            types: Restrict to these item types
            min_relevance: Minimum score to return an item

        Returns:
            RecallResult
        """
        await self._ensure_tables()

        sql = f"""
            SELECT * FROM {self.table}
            WHERE session_id = ? AND tier IN ('warm', 'cold')
        """
        params: List[Any] = [session_id]
        if types:
            placeholders = ",".join("?" for _ in types)
            sql += f" AND type IN ({placeholders})"
            params.extend(MemoryItemType(t).value for t in types)
        sql += " ORDER BY created_at DESC"

        items = [self._row_to_item(row) for row in await self.db.fetch_many(sql, params)]

        relevance_scores: Dict[str, float] = {}
        query_embedding: Optional[List[float]] = None
        if self.embedding_provider is not None and items:
            query_embedding = await self.embedding_provider.embed(query)

        for item in items:
            if query_embedding is not None and item.embedding:
                relevance_scores[item.id] = cosine_similarity(
                    query_embedding, item.embedding
                )
            else:
                relevance_scores[item.id] = keyword_relevance(query, item.content)

        ranked = [item for item in items if relevance_scores[item.id] >= min_relevance]
        ranked.sort(key=lambda item: relevance_scores[item.id], reverse=True)
        ranked = ranked[: max(limit, 0)]

        should_promote = (
            self.config.auto_promote_enabled if auto_promote is None else auto_promote
        )
        promoted: List[str] = []
        recalled: List[MemoryItem] = []
        now = datetime.now()

        for item in ranked:
            score = relevance_scores[item.id]
            blended = min(1.0, max(0.0, (item.relevance_score + score) / 2))

            await self.db.execute(
                f"""
                UPDATE {self.table}
                SET access_count = access_count + 1,
                    last_accessed_at = ?,
                    relevance_score = ?
                WHERE id = ?
                """,
                (_timestamp(now), blended, item.id),
            )
            updated = item.model_copy(
                update={
                    "access_count": item.access_count + 1,
                    "last_accessed_at": now,
                    "relevance_score": blended,
                }
            )

            if should_promote and score >= self.config.promote_threshold:
                if await self.promote_to_hot(item.id):
                    promoted.append(item.id)
                    updated = updated.model_copy(
                        update={"tier": MemoryTier.HOT, "relevance_score": 1.0}
                    )

            recalled.append(updated)

        logger.debug(
            f"Recalled {len(recalled)} of {len(items)} candidates for session "
            f"{session_id} (promoted {len(promoted)})"
        )
        return RecallResult(
            items=recalled, promoted=promoted, relevance_scores=relevance_scores
        )

    async def promote_to_hot(self, item_id: str) -> bool:
        """
        Promote an item from warm/cold to hot memory.

        Args:
            item_id: Memory identifier

        Returns:
            False if the item is missing or already hot, True otherwise
        """
        item = await self.get_item(item_id)
        if item is None or item.tier == MemoryTier.HOT:
            return False

        if self.config.auto_spill_enabled:
            hot_tokens = await self._hot_tokens(item.session_id)
            if hot_tokens + item.token_count > self.config.hot_token_limit:
                await self.spill_to_warm(item.session_id, count=PROMOTE_SPILL_COUNT)

        await self.db.execute(
            f"""
            UPDATE {self.table}
            SET tier = 'hot', relevance_score = 1.0
            WHERE id = ?
            """,
            (item_id,),
        )
        logger.debug(f"Promoted item {item_id} to hot memory")
        return True

    async def demote(
        self,
        item_id: str,
        target_tier: Union[MemoryTier, str] = MemoryTier.WARM,
    ) -> bool:
        """
        Move an item to warm or cold without eligibility checks.

        Args:
            item_id: Memory identifier
            target_tier: warm or cold

        Returns:
            False if the item is missing

        Raises:
            ValueError: If target_tier is hot
        """
        target = MemoryTier(target_tier)
        if target == MemoryTier.HOT:
            raise ValueError("demote target must be warm or cold; use promote_to_hot")

        item = await self.get_item(item_id)
        if item is None:
            return False

        await self.db.execute(
            f"UPDATE {self.table} SET tier = ? WHERE id = ?",
            (target.value, item_id),
        )
        return True

    async def get_status(self, session_id: str) -> MemoryStatus:
        """
        Get per-tier status for a session.

        Args:
            session_id: Session identifier

        Returns:
            MemoryStatus with suggestions
        """
        await self._ensure_tables()
        rows = await self.db.fetch_many(
            f"""
            SELECT tier, COUNT(*) AS count, COALESCE(SUM(token_count), 0) AS tokens
            FROM {self.table}
            WHERE session_id = ?
            GROUP BY tier
            """,
            (session_id,),
        )
        return self._build_status(rows, session_id)

    async def get_status_all(self) -> MemoryStatus:
        """Get per-tier status aggregated over every session of the project."""
        await self._ensure_tables()
        rows = await self.db.fetch_many(
            f"""
            SELECT tier, COUNT(*) AS count, COALESCE(SUM(token_count), 0) AS tokens
            FROM {self.table}
            GROUP BY tier
            """
        )
        return self._build_status(rows, None)

    async def delete(self, item_id: str) -> bool:
        """
        Delete a memory item.

        Args:
            item_id: Memory identifier

        Returns:
            True if deleted, False if not found
        """
        await self._ensure_tables()
        deleted = await self.db.execute(
            f"DELETE FROM {self.table} WHERE id = ?", (item_id,)
        )
        return deleted > 0

    async def clear_session(self, session_id: str) -> int:
        """
        Delete all memory of a session.

        Args:
            session_id: Session identifier

        Returns:
            Number of items deleted
        """
        await self._ensure_tables()
        deleted = await self.db.execute(
            f"DELETE FROM {self.table} WHERE session_id = ?", (session_id,)
        )
        logger.info(f"Cleared {deleted} memory items for session {session_id}")
        return deleted

    async def prune_cold(self, session_id: str) -> int:
        """
        Delete the lowest-scoring cold items beyond ``max_cold_items``.

        Score is relevance_score + access_count * 0.1. Selection and
        deletion share one transaction.

        Args:
            session_id: Session identifier

        Returns:
            Number of items deleted
        """
        await self._ensure_tables()

        async with self.db.transaction():
            rows = await self.db.fetch_many(
                f"""
                SELECT id FROM {self.table}
                WHERE session_id = ? AND tier = 'cold'
                ORDER BY (relevance_score + access_count * ?) ASC, created_at ASC, rowid ASC
                """,
                (session_id, ACCESS_WEIGHT),
            )
            excess = len(rows) - self.config.max_cold_items
            if excess <= 0:
                return 0

            to_delete = [row["id"] for row in rows[:excess]]
            placeholders = ",".join("?" for _ in to_delete)
            deleted = await self.db.execute(
                f"DELETE FROM {self.table} WHERE id IN ({placeholders})",
                to_delete,
            )

        logger.info(f"Pruned {deleted} cold items for session {session_id}")
        return deleted

    async def _hot_tokens(self, session_id: str) -> int:
        row = await self.db.fetch_one(
            f"""
            SELECT COALESCE(SUM(token_count), 0) AS tokens
            FROM {self.table}
            WHERE session_id = ? AND tier = 'hot'
            """,
            (session_id,),
        )
        return int(row["tokens"]) if row else 0

    async def _make_room(self, session_id: str, token_count: int, batch: int) -> None:
        """Spill batches of hot items until ``token_count`` more tokens fit."""
        while (
            await self._hot_tokens(session_id) + token_count
            > self.config.hot_token_limit
        ):
            result = await self.spill_to_warm(session_id, count=batch)
            if result.spilled_count == 0:
                logger.warning(
                    f"Item of {token_count} tokens exceeds hot limit "
                    f"{self.config.hot_token_limit} for session {session_id}"
                )
                break

    async def _get_hot_rows_by_ids(
        self, session_id: str, item_ids: Sequence[str]
    ) -> List[Dict[str, Any]]:
        if not item_ids:
            return []
        placeholders = ",".join("?" for _ in item_ids)
        return await self.db.fetch_many(
            f"""
            SELECT * FROM {self.table}
            WHERE session_id = ? AND tier = 'hot' AND id IN ({placeholders})
            """,
            (session_id, *item_ids),
        )

    def _build_status(
        self, rows: List[Dict[str, Any]], session_id: Optional[str]
    ) -> MemoryStatus:
        stats: Dict[MemoryTier, TierStats] = {tier: TierStats() for tier in MemoryTier}
        for row in rows:
            stats[MemoryTier(row["tier"])] = TierStats(
                items=row["count"], tokens=int(row["tokens"])
            )

        limit = self.config.hot_token_limit
        hot = HotTierStats(
            items=stats[MemoryTier.HOT].items,
            tokens=stats[MemoryTier.HOT].tokens,
            limit=limit,
            utilization_percent=stats[MemoryTier.HOT].tokens / limit * 100,
        )
        return MemoryStatus(
            session_id=session_id,
            hot=hot,
            warm=stats[MemoryTier.WARM],
            cold=stats[MemoryTier.COLD],
            suggestions=self._generate_suggestions(stats),
        )

    def _generate_suggestions(
        self, stats: Dict[MemoryTier, TierStats]
    ) -> List[MemorySuggestion]:
        suggestions: List[MemorySuggestion] = []

        if stats[MemoryTier.HOT].tokens > self.config.hot_token_limit * SPILL_SUGGESTION_RATIO:
            suggestions.append(
                MemorySuggestion(type="spill", reason="Hot memory near capacity (>90%)")
            )

        if stats[MemoryTier.COLD].items > self.config.max_cold_items:
            suggestions.append(
                MemorySuggestion(
                    type="prune",
                    reason=f"Cold storage exceeds {self.config.max_cold_items} items",
                )
            )

        return suggestions

    def _row_to_item(self, row: Dict[str, Any]) -> MemoryItem:
        """Convert a database row to a MemoryItem."""
        return MemoryItem(
            id=row["id"],
            session_id=row["session_id"],
            content=row["content"],
            type=MemoryItemType(row["type"]),
            tier=MemoryTier(row["tier"]),
            access_count=row["access_count"],
            last_accessed_at=datetime.fromisoformat(row["last_accessed_at"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            relevance_score=row["relevance_score"],
            token_count=row["token_count"],
            metadata=json.loads(row["metadata_json"]) if row["metadata_json"] else {},
            embedding=json.loads(row["embedding_json"]) if row["embedding_json"] else None,
        )
