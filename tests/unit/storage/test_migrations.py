"""Tests for the built-in schema migrations."""

import sqlite3

import pytest

from schemaledger.migrations import (
    v1767827005811_initial_schema as initial_schema,
)
from schemaledger.migrations import (
    v1768000000000_add_profile_photo_to_entities as profile_photo,
)
from schemaledger.migrations import (
    v1768100000000_add_manual_override_to_chat_categories as manual_override,
)
from schemaledger.storage.schema import column_exists, index_exists, table_exists
from schemaledger.storage.sqlite import SQLiteConnection


class TestInitialSchema:
    """Tests for the initial schema migration."""

    @pytest.mark.asyncio
    async def test_creates_tables(self, conn: SQLiteConnection) -> None:
        async with conn.transaction():
            await initial_schema.up(conn)

        assert await table_exists(conn, "entities")
        assert await table_exists(conn, "chat_categories")
        assert await index_exists(conn, "idx_entities_name")

    @pytest.mark.asyncio
    async def test_down_drops_tables(self, conn: SQLiteConnection) -> None:
        async with conn.transaction():
            await initial_schema.up(conn)
        async with conn.transaction():
            await initial_schema.down(conn)

        assert not await table_exists(conn, "entities")
        assert not await table_exists(conn, "chat_categories")

    @pytest.mark.asyncio
    async def test_chat_category_check_constraint(self, conn: SQLiteConnection) -> None:
        async with conn.transaction():
            await initial_schema.up(conn)

        with pytest.raises(sqlite3.IntegrityError):
            await conn.execute(
                "INSERT INTO chat_categories (id, telegram_chat_id, category) "
                "VALUES ('1', 'chat', 'spam')"
            )


class TestProfilePhoto:
    """Tests for the profile_photo column migration."""

    @pytest.mark.asyncio
    async def test_up_adds_nullable_column(self, base_schema: SQLiteConnection) -> None:
        await base_schema.execute("INSERT INTO entities (id, name) VALUES ('e1', 'Ada')")
        async with base_schema.transaction():
            await profile_photo.up(base_schema)

        row = await base_schema.fetchone("SELECT profile_photo FROM entities WHERE id = 'e1'")
        assert row is not None
        assert row[0] is None

    @pytest.mark.asyncio
    async def test_down_is_guarded(self, base_schema: SQLiteConnection) -> None:
        """Reverting twice doesn't fail on the already-removed column."""
        async with base_schema.transaction():
            await profile_photo.up(base_schema)
        async with base_schema.transaction():
            await profile_photo.down(base_schema)
        async with base_schema.transaction():
            await profile_photo.down(base_schema)

        assert not await column_exists(base_schema, "entities", "profile_photo")


class TestManualOverride:
    """Tests for the is_manual_override column and partial index migration."""

    @pytest.mark.asyncio
    async def test_up_adds_column_and_partial_index(self, base_schema: SQLiteConnection) -> None:
        async with base_schema.transaction():
            await manual_override.up(base_schema)

        assert await column_exists(base_schema, "chat_categories", "is_manual_override")
        row = await base_schema.fetchone(
            "SELECT sql FROM sqlite_master WHERE type = 'index' AND name = ?",
            [manual_override.INDEX_NAME],
        )
        assert row is not None
        assert "WHERE is_manual_override = 1" in row[0]

    @pytest.mark.asyncio
    async def test_existing_rows_default_to_false(self, base_schema: SQLiteConnection) -> None:
        await base_schema.execute(
            "INSERT INTO chat_categories (id, telegram_chat_id) VALUES ('c1', 'chat-1')"
        )
        async with base_schema.transaction():
            await manual_override.up(base_schema)

        row = await base_schema.fetchone(
            "SELECT is_manual_override FROM chat_categories WHERE id = 'c1'"
        )
        assert row is not None
        assert row[0] == 0

    @pytest.mark.asyncio
    async def test_down_drops_index_then_column(self, base_schema: SQLiteConnection) -> None:
        async with base_schema.transaction():
            await manual_override.up(base_schema)
        async with base_schema.transaction():
            await manual_override.down(base_schema)

        assert not await index_exists(base_schema, manual_override.INDEX_NAME)
        assert not await column_exists(base_schema, "chat_categories", "is_manual_override")

    @pytest.mark.asyncio
    async def test_dropping_column_before_index_fails(self, base_schema: SQLiteConnection) -> None:
        """The index depends on the column, so the reverse order is rejected."""
        async with base_schema.transaction():
            await manual_override.up(base_schema)

        with pytest.raises(sqlite3.OperationalError):
            async with base_schema.transaction():
                await base_schema.execute(
                    "ALTER TABLE chat_categories DROP COLUMN is_manual_override"
                )

        assert await index_exists(base_schema, manual_override.INDEX_NAME)

    @pytest.mark.asyncio
    async def test_down_tolerates_missing_index(self, base_schema: SQLiteConnection) -> None:
        async with base_schema.transaction():
            await manual_override.up(base_schema)
            await base_schema.execute(f"DROP INDEX {manual_override.INDEX_NAME}")
        async with base_schema.transaction():
            await manual_override.down(base_schema)

        assert not await column_exists(base_schema, "chat_categories", "is_manual_override")
