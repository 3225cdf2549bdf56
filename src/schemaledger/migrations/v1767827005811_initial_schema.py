"""Create the entities and chat_categories tables."""

from schemaledger.ports.connection import ConnectionPort

VERSION = "1767827005811"
NAME = "InitialSchema"


async def up(conn: ConnectionPort) -> None:
    await conn.execute(
        """
        CREATE TABLE IF NOT EXISTS entities (
            id TEXT PRIMARY KEY,
            type TEXT NOT NULL DEFAULT 'person'
                CHECK (type IN ('person', 'organization')),
            name TEXT NOT NULL,
            organization_id TEXT REFERENCES entities(id) ON DELETE SET NULL,
            notes TEXT,
            created_at TEXT NOT NULL DEFAULT (datetime('now')),
            updated_at TEXT NOT NULL DEFAULT (datetime('now'))
        )
        """
    )
    await conn.execute("CREATE INDEX IF NOT EXISTS idx_entities_name ON entities(name)")
    await conn.execute(
        """
        CREATE TABLE IF NOT EXISTS chat_categories (
            id TEXT PRIMARY KEY,
            telegram_chat_id TEXT NOT NULL UNIQUE,
            category TEXT NOT NULL DEFAULT 'mass'
                CHECK (category IN ('personal', 'working', 'mass')),
            participants_count INTEGER,
            created_at TEXT NOT NULL DEFAULT (datetime('now')),
            updated_at TEXT NOT NULL DEFAULT (datetime('now'))
        )
        """
    )


async def down(conn: ConnectionPort) -> None:
    await conn.execute("DROP TABLE IF EXISTS chat_categories")
    await conn.execute("DROP INDEX IF EXISTS idx_entities_name")
    await conn.execute("DROP TABLE IF EXISTS entities")
