"""Shared pytest fixtures for schemaledger tests."""

from collections.abc import AsyncIterator
from pathlib import Path

import pytest
import pytest_asyncio

from schemaledger.migrations import (
    v1767827005811_initial_schema as initial_schema,
)
from schemaledger.migrations import (
    v1768000000000_add_profile_photo_to_entities as profile_photo,
)
from schemaledger.migrations import (
    v1768100000000_add_manual_override_to_chat_categories as manual_override,
)
from schemaledger.models.migration import MigrationDefinition
from schemaledger.storage.sqlite import SQLiteConnection


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    """Provide a temporary database path."""
    return tmp_path / "app.db"


@pytest_asyncio.fixture
async def conn(db_path: Path) -> AsyncIterator[SQLiteConnection]:
    """Open SQLite connection on a fresh database file."""
    connection = SQLiteConnection(db_path)
    await connection.open()
    yield connection
    await connection.close()


@pytest_asyncio.fixture
async def base_schema(conn: SQLiteConnection) -> SQLiteConnection:
    """Connection whose database already has the entities/chat_categories tables.

    Created directly, outside the ledger, so tests can drive the two
    column migrations on their own.
    """
    async with conn.transaction():
        await initial_schema.up(conn)
    return conn


@pytest.fixture
def profile_photo_migration() -> MigrationDefinition:
    """v1: adds the nullable profile_photo column."""
    return MigrationDefinition(
        version=profile_photo.VERSION,
        name=profile_photo.NAME,
        up=profile_photo.up,
        down=profile_photo.down,
    )


@pytest.fixture
def manual_override_migration() -> MigrationDefinition:
    """v2: adds is_manual_override plus a partial index on it."""
    return MigrationDefinition(
        version=manual_override.VERSION,
        name=manual_override.NAME,
        up=manual_override.up,
        down=manual_override.down,
    )


