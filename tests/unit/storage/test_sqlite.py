"""Tests for SQLiteConnection."""

import sqlite3
from pathlib import Path

import pytest

from schemaledger.storage.schema import table_exists
from schemaledger.storage.sqlite import SQLiteConnection


class TestOpenClose:
    """Tests for connection lifecycle."""

    @pytest.mark.asyncio
    async def test_open_creates_database_and_parent(self, tmp_path: Path) -> None:
        db_path = tmp_path / "nested" / "app.db"
        async with SQLiteConnection(db_path):
            pass

        assert db_path.exists()

    @pytest.mark.asyncio
    async def test_read_only_missing_database_creates_nothing(self, tmp_path: Path) -> None:
        db_path = tmp_path / "typo" / "app.db"

        with pytest.raises(FileNotFoundError, match="Database not found"):
            await SQLiteConnection(db_path, read_only=True).open()

        assert not db_path.parent.exists()

    @pytest.mark.asyncio
    async def test_read_only_rejects_writes(self, db_path: Path) -> None:
        async with SQLiteConnection(db_path) as connection:
            await connection.execute("CREATE TABLE t (id INTEGER)")

        async with SQLiteConnection(db_path, read_only=True) as connection:
            assert await table_exists(connection, "t")
            with pytest.raises(sqlite3.OperationalError, match="readonly"):
                await connection.execute("INSERT INTO t VALUES (1)")

    @pytest.mark.asyncio
    async def test_operations_before_open_raise(self, db_path: Path) -> None:
        connection = SQLiteConnection(db_path)

        with pytest.raises(RuntimeError, match="not opened"):
            await connection.execute("SELECT 1")

    @pytest.mark.asyncio
    async def test_foreign_keys_enabled(self, conn: SQLiteConnection) -> None:
        row = await conn.fetchone("PRAGMA foreign_keys")
        assert row is not None
        assert row[0] == 1


class TestTransactions:
    """DDL must commit or roll back with the surrounding transaction."""

    @pytest.mark.asyncio
    async def test_commit_persists_ddl(self, conn: SQLiteConnection) -> None:
        await conn.begin()
        await conn.execute("CREATE TABLE kept (id INTEGER)")
        await conn.commit()

        assert await table_exists(conn, "kept")
        assert conn.in_transaction is False

    @pytest.mark.asyncio
    async def test_rollback_discards_ddl(self, conn: SQLiteConnection) -> None:
        await conn.begin()
        await conn.execute("CREATE TABLE discarded (id INTEGER)")
        assert conn.in_transaction is True
        await conn.rollback()

        assert not await table_exists(conn, "discarded")

    @pytest.mark.asyncio
    async def test_rollback_without_transaction_is_noop(self, conn: SQLiteConnection) -> None:
        await conn.rollback()
        assert conn.in_transaction is False

    @pytest.mark.asyncio
    async def test_transaction_context_rolls_back_on_error(self, conn: SQLiteConnection) -> None:
        with pytest.raises(sqlite3.OperationalError):
            async with conn.transaction():
                await conn.execute("CREATE TABLE partial (id INTEGER)")
                await conn.execute("CREATE TABLE broken (")

        assert not await table_exists(conn, "partial")

    @pytest.mark.asyncio
    async def test_committed_ddl_visible_from_second_connection(
        self, conn: SQLiteConnection, db_path: Path
    ) -> None:
        async with conn.transaction():
            await conn.execute("CREATE TABLE shared (id INTEGER)")

        async with SQLiteConnection(db_path) as other:
            assert await table_exists(other, "shared")
