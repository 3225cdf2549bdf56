"""
Add is_manual_override to chat_categories.

The partial index covers only manually overridden rows, which are the
ones the recategorization job has to skip.
"""

from schemaledger.ports.connection import ConnectionPort
from schemaledger.storage.schema import drop_column_if_exists

VERSION = "1768100000000"
NAME = "AddManualOverrideToChatCategories"

INDEX_NAME = "idx_chat_categories_manual_override"


async def up(conn: ConnectionPort) -> None:
    await conn.execute(
        "ALTER TABLE chat_categories ADD COLUMN is_manual_override INTEGER NOT NULL DEFAULT 0"
    )
    await conn.execute(
        f"""
        CREATE INDEX IF NOT EXISTS {INDEX_NAME}
        ON chat_categories (is_manual_override)
        WHERE is_manual_override = 1
        """
    )


async def down(conn: ConnectionPort) -> None:
    # Index depends on the column: drop it first
    await conn.execute(f"DROP INDEX IF EXISTS {INDEX_NAME}")
    await drop_column_if_exists(conn, "chat_categories", "is_manual_override")
