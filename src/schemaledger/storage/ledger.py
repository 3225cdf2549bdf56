"""Persistent ledger of applied migrations."""

from datetime import UTC, datetime

from schemaledger.models.migration import LedgerEntry, MigrationDefinition
from schemaledger.ports.connection import ConnectionPort
from schemaledger.storage.schema import quote_identifier, table_exists

DEFAULT_LEDGER_TABLE = "schema_migrations"


class Ledger:
    """
    Reads and writes the ledger table.

    Every write happens on the caller's connection inside the caller's
    transaction, so a ledger row becomes visible exactly when the schema
    change it describes commits.
    """

    def __init__(self, table: str = DEFAULT_LEDGER_TABLE) -> None:
        self.table = table
        self._quoted = quote_identifier(table)

    async def ensure_table(self, conn: ConnectionPort) -> None:
        """Create the ledger table if it doesn't exist yet."""
        await conn.execute(
            f"""
            CREATE TABLE IF NOT EXISTS {self._quoted} (
                version TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                applied_at TEXT NOT NULL,
                sequence INTEGER NOT NULL UNIQUE
            )
            """
        )

    async def entries(self, conn: ConnectionPort) -> list[LedgerEntry]:
        """Return all ledger entries in applied order.

        A database that has never been migrated has no ledger table yet;
        that reads as an empty ledger.
        """
        if not await table_exists(conn, self.table):
            return []
        rows = await conn.fetchall(
            f"SELECT version, name, applied_at, sequence FROM {self._quoted} ORDER BY sequence"
        )
        return [
            LedgerEntry(
                version=row[0],
                name=row[1],
                applied_at=_parse_timestamp(row[2]),
                sequence=row[3],
            )
            for row in rows
        ]

    async def last(self, conn: ConnectionPort) -> LedgerEntry | None:
        """Return the most recently applied entry, or None for an empty ledger."""
        entries = await self.entries(conn)
        return entries[-1] if entries else None

    async def record(self, conn: ConnectionPort, definition: MigrationDefinition) -> LedgerEntry:
        """Insert the ledger row for a definition whose ``up`` just ran."""
        rows = await conn.fetchall(f"SELECT COALESCE(MAX(sequence), 0) FROM {self._quoted}")
        entry = LedgerEntry(
            version=definition.version,
            name=definition.name,
            applied_at=datetime.now(UTC),
            sequence=rows[0][0] + 1,
        )
        await conn.execute(
            f"INSERT INTO {self._quoted} (version, name, applied_at, sequence) "
            "VALUES (?, ?, ?, ?)",
            [entry.version, entry.name, entry.applied_at.isoformat(), entry.sequence],
        )
        return entry

    async def remove(self, conn: ConnectionPort, version: str) -> None:
        """Delete the ledger row for a version whose ``down`` just ran."""
        await conn.execute(f"DELETE FROM {self._quoted} WHERE version = ?", [version])


def _parse_timestamp(value: str) -> datetime:
    timestamp = datetime.fromisoformat(value)
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=UTC)
    return timestamp
