"""Schema introspection helpers for guarded ``down`` procedures.

SQLite has no ``DROP COLUMN IF EXISTS``; these helpers give migrations the
same guard by checking the catalog first.
"""

from schemaledger.ports.connection import ConnectionPort


def quote_identifier(name: str) -> str:
    """Quote an identifier for safe interpolation into a statement."""
    return '"' + name.replace('"', '""') + '"'


async def table_exists(conn: ConnectionPort, table: str) -> bool:
    rows = await conn.fetchall(
        "SELECT name FROM sqlite_master WHERE type = 'table' AND name = ?", [table]
    )
    return bool(rows)


async def column_exists(conn: ConnectionPort, table: str, column: str) -> bool:
    """Check whether ``table`` has a column named ``column``."""
    rows = await conn.fetchall(f"PRAGMA table_info({quote_identifier(table)})")
    return any(row[1] == column for row in rows)


async def index_exists(conn: ConnectionPort, index: str) -> bool:
    rows = await conn.fetchall(
        "SELECT name FROM sqlite_master WHERE type = 'index' AND name = ?", [index]
    )
    return bool(rows)


async def drop_column_if_exists(conn: ConnectionPort, table: str, column: str) -> None:
    """Drop a column unless a prior partial revert already removed it.

    Engine errors (for example an index still depending on the column)
    propagate unchanged.
    """
    if not await table_exists(conn, table):
        return
    if not await column_exists(conn, table, column):
        return
    await conn.execute(
        f"ALTER TABLE {quote_identifier(table)} DROP COLUMN {quote_identifier(column)}"
    )
