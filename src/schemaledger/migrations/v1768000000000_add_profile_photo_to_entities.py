"""Add a nullable profile_photo column to entities."""

from schemaledger.ports.connection import ConnectionPort
from schemaledger.storage.schema import drop_column_if_exists

VERSION = "1768000000000"
NAME = "AddProfilePhotoToEntities"


async def up(conn: ConnectionPort) -> None:
    await conn.execute("ALTER TABLE entities ADD COLUMN profile_photo TEXT")


async def down(conn: ConnectionPort) -> None:
    await drop_column_if_exists(conn, "entities", "profile_photo")
