"""Checkpoint management service for resumable agent execution."""

import logging
from typing import Dict, Any, Optional, List
from datetime import datetime, timedelta

from ..models.checkpoint_models import (
    AgentState,
    Checkpoint,
    CheckpointMetadata,
    CheckpointSummary,
    TriggerType,
)
from ..storage.database import Database
from ..storage.schema import sanitize_project_id
from ..utils.ids import generate_id

logger = logging.getLogger(__name__)


def _timestamp(value: datetime) -> str:
    """Serialize a datetime so lexical order matches time order."""
    return value.isoformat(timespec="microseconds")


class CheckpointManager:
    """
    Checkpoint manager for agent state persistence.

    Saves immutable snapshots of an AgentState per session, keeps the
    newest ``max_checkpoints`` of them and restores them on resume.
    """

    def __init__(
        self,
        db: Database,
        project_id: str,
        max_checkpoints: int = 10,
    ):
        """
        Initialize checkpoint manager.

        Args:
            db: Persistence layer
            project_id: Project whose tables hold the checkpoints
            max_checkpoints: Checkpoints retained per session
        """
        if max_checkpoints < 1:
            raise ValueError("max_checkpoints must be at least 1")

        self.db = db
        self.project_id = project_id
        self.max_checkpoints = max_checkpoints
        self.table = f"{sanitize_project_id(project_id)}_checkpoints"

    async def _ensure_tables(self) -> None:
        await self.db.create_project_tables(self.project_id)

    async def save(
        self,
        session_id: str,
        state: AgentState,
        description: Optional[str] = None,
        trigger_type: TriggerType = TriggerType.AUTO,
        duration_ms: int = 0,
        token_usage: Optional[int] = None,
    ) -> Checkpoint:
        """
        Save a checkpoint of the current agent state.

        The insert and the retention prune share one transaction, so the
        checkpoint just written can never be pruned by a concurrent save.

        Args:
            session_id: Session identifier
            state: State to snapshot
            description: Optional human readable description
            trigger_type: Type of checkpoint (auto, manual, error)
            duration_ms: Elapsed run time when saved
            token_usage: Optional token usage so far

        Returns:
            The stored checkpoint
        """
        await self._ensure_tables()

        checkpoint = Checkpoint(
            id=generate_id("ckpt"),
            session_id=session_id,
            project_id=self.project_id,
            step_number=state.current_step_index,
            created_at=datetime.now(),
            state=state.model_copy(deep=True),
            metadata=CheckpointMetadata(
                description=description,
                trigger_type=TriggerType(trigger_type),
                duration_ms=duration_ms or 0,
                token_usage=token_usage,
            ),
        )

        async with self.db.transaction():
            await self.db.execute(
                f"""
                INSERT INTO {self.table} (
                    id, session_id, step_number, created_at,
                    state_json, description, trigger_type, duration_ms, token_usage
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    checkpoint.id,
                    checkpoint.session_id,
                    checkpoint.step_number,
                    _timestamp(checkpoint.created_at),
                    checkpoint.state.model_dump_json(),
                    checkpoint.metadata.description,
                    checkpoint.metadata.trigger_type.value,
                    checkpoint.metadata.duration_ms,
                    checkpoint.metadata.token_usage,
                ),
            )
            pruned = await self._prune_old_checkpoints(session_id)

        logger.info(
            f"Saved checkpoint {checkpoint.id} for session {session_id} "
            f"(step {checkpoint.step_number}, type: {checkpoint.metadata.trigger_type.value})"
        )
        if pruned:
            logger.debug(f"Pruned {pruned} old checkpoints for session {session_id}")

        return checkpoint

    async def load_latest(self, session_id: str) -> Optional[Checkpoint]:
        """
        Load the latest checkpoint for a session.

        Args:
            session_id: Session identifier

        Returns:
            Checkpoint with the highest (step_number, created_at), or None
        """
        await self._ensure_tables()
        row = await self.db.fetch_one(
            f"""
            SELECT * FROM {self.table}
            WHERE session_id = ?
            ORDER BY step_number DESC, created_at DESC, rowid DESC
            LIMIT 1
            """,
            (session_id,),
        )
        return self._row_to_checkpoint(row) if row else None

    async def load(self, checkpoint_id: str) -> Optional[Checkpoint]:
        """
        Load a specific checkpoint by ID.

        Args:
            checkpoint_id: Checkpoint identifier

        Returns:
            Checkpoint if found
        """
        await self._ensure_tables()
        row = await self.db.fetch_one(
            f"SELECT * FROM {self.table} WHERE id = ?",
            (checkpoint_id,),
        )
        return self._row_to_checkpoint(row) if row else None

    async def load_at_step(
        self, session_id: str, step_number: int
    ) -> Optional[Checkpoint]:
        """
        Load the most recent checkpoint saved at a given step.

        Args:
            session_id: Session identifier
            step_number: Step number to look up

        Returns:
            Checkpoint if found
        """
        await self._ensure_tables()
        row = await self.db.fetch_one(
            f"""
            SELECT * FROM {self.table}
            WHERE session_id = ? AND step_number = ?
            ORDER BY created_at DESC, rowid DESC
            LIMIT 1
            """,
            (session_id, step_number),
        )
        return self._row_to_checkpoint(row) if row else None

    async def list(self, session_id: str) -> List[CheckpointSummary]:
        """
        List checkpoints for a session, newest step first.

        Args:
            session_id: Session identifier

        Returns:
            Checkpoint summaries without state payloads
        """
        await self._ensure_tables()
        rows = await self.db.fetch_many(
            f"""
            SELECT id, step_number, created_at, description, trigger_type, duration_ms
            FROM {self.table}
            WHERE session_id = ?
            ORDER BY step_number DESC, created_at DESC, rowid DESC
            """,
            (session_id,),
        )
        return [
            CheckpointSummary(
                id=row["id"],
                step_number=row["step_number"],
                created_at=datetime.fromisoformat(row["created_at"]),
                description=row["description"],
                trigger_type=TriggerType(row["trigger_type"]),
                duration_ms=row["duration_ms"] or 0,
            )
            for row in rows
        ]

    async def delete(self, checkpoint_id: str) -> bool:
        """
        Delete a checkpoint.

        Args:
            checkpoint_id: Checkpoint ID to delete

        Returns:
            True if deleted, False if not found
        """
        await self._ensure_tables()
        deleted = await self.db.execute(
            f"DELETE FROM {self.table} WHERE id = ?", (checkpoint_id,)
        )
        if deleted:
            logger.info(f"Deleted checkpoint {checkpoint_id}")
        return deleted > 0

    async def clear_session(self, session_id: str) -> int:
        """
        Delete all checkpoints of a session.

        Args:
            session_id: Session identifier

        Returns:
            Number of checkpoints deleted
        """
        await self._ensure_tables()
        deleted = await self.db.execute(
            f"DELETE FROM {self.table} WHERE session_id = ?", (session_id,)
        )
        logger.info(f"Cleared {deleted} checkpoints for session {session_id}")
        return deleted

    async def count(self, session_id: str) -> int:
        """
        Count checkpoints of a session.

        Args:
            session_id: Session identifier

        Returns:
            Checkpoint count
        """
        await self._ensure_tables()
        row = await self.db.fetch_one(
            f"SELECT COUNT(*) AS count FROM {self.table} WHERE session_id = ?",
            (session_id,),
        )
        return row["count"] if row else 0

    async def prune_by_age(self, days: float) -> int:
        """
        Delete checkpoints older than a number of days, across all sessions.

        Args:
            days: Maximum age in days

        Returns:
            Number of checkpoints deleted
        """
        await self._ensure_tables()
        cutoff = datetime.now() - timedelta(days=days)
        deleted = await self.db.execute(
            f"DELETE FROM {self.table} WHERE created_at < ?",
            (_timestamp(cutoff),),
        )
        logger.info(f"Cleaned up {deleted} checkpoints older than {days} days")
        return deleted

    async def _prune_old_checkpoints(self, session_id: str) -> int:
        """
        Keep only the newest ``max_checkpoints`` checkpoints of a session.

        Must run inside the caller's transaction.

        Args:
            session_id: Session identifier

        Returns:
            Number of checkpoints deleted
        """
        keep_rows = await self.db.fetch_many(
            f"""
            SELECT id FROM {self.table}
            WHERE session_id = ?
            ORDER BY step_number DESC, created_at DESC, rowid DESC
            LIMIT ?
            """,
            (session_id, self.max_checkpoints),
        )
        keep_ids = [row["id"] for row in keep_rows]
        if not keep_ids:
            return 0

        placeholders = ",".join("?" for _ in keep_ids)
        return await self.db.execute(
            f"""
            DELETE FROM {self.table}
            WHERE session_id = ? AND id NOT IN ({placeholders})
            """,
            (session_id, *keep_ids),
        )

    def _row_to_checkpoint(self, row: Dict[str, Any]) -> Checkpoint:
        """
        Convert a database row to a Checkpoint.

        The state is re-validated so nested timestamps come back as
        datetime objects.

        Args:
            row: Checkpoint row

        Returns:
            Checkpoint
        """
        return Checkpoint(
            id=row["id"],
            session_id=row["session_id"],
            project_id=self.project_id,
            step_number=row["step_number"],
            created_at=datetime.fromisoformat(row["created_at"]),
            state=AgentState.model_validate_json(row["state_json"]),
            metadata=CheckpointMetadata(
                description=row["description"],
                trigger_type=TriggerType(row["trigger_type"]),
                duration_ms=row["duration_ms"] or 0,
                token_usage=row["token_usage"],
            ),
        )
