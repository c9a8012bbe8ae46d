"""Per-project table layout for checkpoints and memory items."""

import re
from typing import List


def sanitize_project_id(project_id: str) -> str:
    """
    Derive a table prefix from a project id.

    Non-alphanumeric characters become underscores and the result is
    prefixed with ``p_`` so it never starts with a digit.

    Args:
        project_id: Raw project identifier

    Returns:
        Safe table name prefix
    """
    return "p_" + re.sub(r"[^a-zA-Z0-9]", "_", project_id)


def project_table_names(project_id: str) -> List[str]:
    """Names of the tables owned by a project."""
    prefix = sanitize_project_id(project_id)
    return [f"{prefix}_checkpoints", f"{prefix}_memory_items"]


def project_schema(project_id: str) -> List[str]:
    """
    DDL statements creating a project's tables and indexes.

    Args:
        project_id: Raw project identifier

    Returns:
        Ordered list of CREATE statements
    """
    prefix = sanitize_project_id(project_id)
    return [
        f"""
        CREATE TABLE IF NOT EXISTS {prefix}_checkpoints (
            id TEXT PRIMARY KEY,
            session_id TEXT NOT NULL,
            step_number INTEGER NOT NULL,
            created_at TEXT NOT NULL,
            state_json TEXT NOT NULL,
            description TEXT,
            trigger_type TEXT NOT NULL DEFAULT 'auto',
            duration_ms INTEGER,
            token_usage INTEGER
        )
        """,
        f"""
        CREATE INDEX IF NOT EXISTS idx_{prefix}_checkpoints_session
        ON {prefix}_checkpoints(session_id, step_number DESC, created_at DESC)
        """,
        f"""
        CREATE TABLE IF NOT EXISTS {prefix}_memory_items (
            id TEXT PRIMARY KEY,
            session_id TEXT NOT NULL,
            content TEXT NOT NULL,
            type TEXT NOT NULL,
            tier TEXT NOT NULL DEFAULT 'hot',
            access_count INTEGER NOT NULL DEFAULT 0,
            last_accessed_at TEXT NOT NULL,
            created_at TEXT NOT NULL,
            relevance_score REAL NOT NULL DEFAULT 1.0,
            token_count INTEGER NOT NULL DEFAULT 0,
            metadata_json TEXT,
            embedding_json TEXT
        )
        """,
        f"""
        CREATE INDEX IF NOT EXISTS idx_{prefix}_memory_session_tier
        ON {prefix}_memory_items(session_id, tier)
        """,
    ]


def drop_project_schema(project_id: str) -> List[str]:
    """DDL statements dropping a project's tables."""
    return [f"DROP TABLE IF EXISTS {name}" for name in project_table_names(project_id)]
