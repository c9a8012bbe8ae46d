"""SQLite persistence layer shared by checkpoints and memory tiers."""

import asyncio
import logging
import sqlite3
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator, Dict, List, Optional, Sequence, Set, Union

from .schema import project_schema, drop_project_schema
from ..config.store_config import StoreConfig
from ..exceptions import DatabaseError

logger = logging.getLogger(__name__)


class Database:
    """
    Async facade over a single SQLite connection.

    Statements run in autocommit mode unless issued inside
    ``transaction()``, in which case they commit or roll back together.
    Tables are namespaced per project (see ``schema.sanitize_project_id``).
    """

    def __init__(self, db_path: Union[str, Path]):
        """
        Initialize database.

        Args:
            db_path: SQLite file path, or ':memory:'
        """
        self.db_path = str(db_path)
        self._conn: Optional[sqlite3.Connection] = None
        self._closed = False
        self._lock = asyncio.Lock()
        self._tx_owner: Optional[asyncio.Task] = None
        self._projects: Set[str] = set()

    @classmethod
    def from_config(cls, config: StoreConfig) -> "Database":
        """
        Open the database configured by a StoreConfig.

        Args:
            config: Store configuration

        Returns:
            Database at config.resolved_database_path
        """
        return cls(config.resolved_database_path)

    def _connect(self) -> sqlite3.Connection:
        """
        Get the connection, opening it on first use.

        Returns:
            SQLite connection

        Raises:
            DatabaseError: If the database was closed
        """
        if self._closed:
            raise DatabaseError(f"Database {self.db_path} is closed")

        if self._conn is None:
            if self.db_path != ":memory:":
                Path(self.db_path).expanduser().parent.mkdir(parents=True, exist_ok=True)
                path = str(Path(self.db_path).expanduser())
            else:
                path = self.db_path

            # isolation_level=None: autocommit, transactions are explicit
            conn = sqlite3.connect(path, isolation_level=None)
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA foreign_keys=ON;")
            if path != ":memory:":
                conn.execute("PRAGMA journal_mode=WAL;")
                conn.execute("PRAGMA synchronous=NORMAL;")
            self._conn = conn
            logger.debug(f"Opened SQLite database at {path}")

        return self._conn

    @property
    def in_transaction(self) -> bool:
        """Whether a transaction is currently open."""
        return self._tx_owner is not None

    async def execute(self, sql: str, params: Sequence[Any] = ()) -> int:
        """
        Execute a write statement.

        Args:
            sql: SQL statement
            params: Positional parameters

        Returns:
            Number of affected rows
        """
        conn = self._connect()
        try:
            cursor = conn.execute(sql, tuple(params))
            return cursor.rowcount if cursor.rowcount is not None else 0
        except sqlite3.Error as e:
            logger.error(f"Statement failed: {e}")
            raise

    async def fetch_one(
        self, sql: str, params: Sequence[Any] = ()
    ) -> Optional[Dict[str, Any]]:
        """
        Fetch the first row of a query.

        Args:
            sql: SQL query
            params: Positional parameters

        Returns:
            Row as a dict, or None
        """
        conn = self._connect()
        try:
            row = conn.execute(sql, tuple(params)).fetchone()
        except sqlite3.Error as e:
            logger.error(f"Query failed: {e}")
            raise
        return dict(row) if row is not None else None

    async def fetch_many(
        self, sql: str, params: Sequence[Any] = ()
    ) -> List[Dict[str, Any]]:
        """
        Fetch all rows of a query.

        Args:
            sql: SQL query
            params: Positional parameters

        Returns:
            List of rows as dicts
        """
        conn = self._connect()
        try:
            rows = conn.execute(sql, tuple(params)).fetchall()
        except sqlite3.Error as e:
            logger.error(f"Query failed: {e}")
            raise
        return [dict(row) for row in rows]

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator["Database"]:
        """
        Group writes so they commit or roll back together.

        Re-entering from the task that already owns the transaction joins
        it instead of opening a new one.

        Yields:
            This database
        """
        current = asyncio.current_task()
        if self._tx_owner is not None and self._tx_owner is current:
            yield self
            return

        async with self._lock:
            conn = self._connect()
            conn.execute("BEGIN IMMEDIATE")
            self._tx_owner = current
            try:
                yield self
            except BaseException:
                conn.execute("ROLLBACK")
                logger.debug("Transaction rolled back")
                raise
            else:
                conn.execute("COMMIT")
            finally:
                self._tx_owner = None

    async def create_project_tables(self, project_id: str) -> None:
        """
        Create a project's tables if they do not exist yet.

        Args:
            project_id: Raw project identifier
        """
        if project_id in self._projects:
            return

        for statement in project_schema(project_id):
            await self.execute(statement)

        self._projects.add(project_id)
        logger.debug(f"Ensured tables for project {project_id}")

    async def drop_project_tables(self, project_id: str) -> None:
        """
        Drop a project's tables.

        Args:
            project_id: Raw project identifier
        """
        for statement in drop_project_schema(project_id):
            await self.execute(statement)
        self._projects.discard(project_id)
        logger.info(f"Dropped tables for project {project_id}")

    async def close(self) -> None:
        """Close the connection."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None
        self._closed = True
        self._projects.clear()
        logger.debug(f"Closed SQLite database at {self.db_path}")
