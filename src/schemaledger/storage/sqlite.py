"""SQLite connection adapter for the migration runner."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

import aiosqlite
from loguru import logger


class SQLiteConnection:
    """
    aiosqlite connection with explicit transaction control.

    The underlying sqlite3 connection runs with ``isolation_level=None`` so
    the driver never opens or commits transactions on its own. Every
    BEGIN/COMMIT/ROLLBACK is issued by the runner, which makes DDL
    statements and ledger writes commit or roll back together.
    """

    def __init__(
        self,
        db_path: Path | str,
        busy_timeout_seconds: float = 5.0,
        read_only: bool = False,
    ) -> None:
        """
        Initialize the adapter.

        Args:
            db_path: Path to SQLite database file.
            busy_timeout_seconds: How long to wait on a locked database.
            read_only: Open an existing file in ``mode=ro``; never create one.
        """
        self.db_path = Path(db_path)
        self.busy_timeout_seconds = busy_timeout_seconds
        self.read_only = read_only
        self._conn: aiosqlite.Connection | None = None

    async def open(self) -> None:
        """Open the connection, creating the database file if needed.

        Raises:
            FileNotFoundError: If ``read_only`` is set and the file is missing.
        """
        if self._conn is not None:
            return

        if self.read_only:
            if not self.db_path.is_file():
                raise FileNotFoundError(f"Database not found: {self.db_path}")
            self._conn = await aiosqlite.connect(
                f"{self.db_path.resolve().as_uri()}?mode=ro",
                timeout=self.busy_timeout_seconds,
                isolation_level=None,
                uri=True,
            )
        else:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = await aiosqlite.connect(
                self.db_path,
                timeout=self.busy_timeout_seconds,
                isolation_level=None,
            )
        self._conn.row_factory = aiosqlite.Row
        await self._conn.execute("PRAGMA foreign_keys = ON")
        logger.debug("Opened SQLite database {}", self.db_path)

    async def close(self) -> None:
        """Close the database connection."""
        if self._conn:
            await self._conn.close()
            self._conn = None

    async def __aenter__(self) -> "SQLiteConnection":
        await self.open()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    def _get_conn(self) -> aiosqlite.Connection:
        """Get database connection, raising if not opened."""
        if not self._conn:
            raise RuntimeError("Database not opened")
        return self._conn

    @property
    def in_transaction(self) -> bool:
        """True while a transaction is open."""
        return self._get_conn().in_transaction

    async def begin(self) -> None:
        await self._get_conn().execute("BEGIN")

    async def commit(self) -> None:
        await self._get_conn().execute("COMMIT")

    async def rollback(self) -> None:
        conn = self._get_conn()
        # A failed BEGIN leaves nothing to roll back
        if conn.in_transaction:
            await conn.execute("ROLLBACK")

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        """
        Context manager for a transaction.

        Commits on success, rolls back on exception.
        """
        await self.begin()
        try:
            yield
        except BaseException:
            await self.rollback()
            raise
        await self.commit()

    async def execute(self, sql: str, params: list[Any] | None = None) -> aiosqlite.Cursor:
        """Execute a single statement."""
        return await self._get_conn().execute(sql, params or [])

    async def fetchone(self, sql: str, params: list[Any] | None = None) -> aiosqlite.Row | None:
        """Execute query and fetch one row."""
        cursor = await self.execute(sql, params)
        return await cursor.fetchone()

    async def fetchall(self, sql: str, params: list[Any] | None = None) -> list[aiosqlite.Row]:
        """Execute query and fetch all rows."""
        cursor = await self.execute(sql, params)
        result = await cursor.fetchall()
        return list(result) if result else []
