"""Port interface for the connection a migration runs against."""

from typing import Any, Protocol


class ConnectionPort(Protocol):
    """Protocol for a single live transactional connection.

    The runner treats statements as opaque text and only needs explicit
    transaction control plus statement execution. Introspection helpers
    used by guarded ``down`` procedures go through ``fetchall``.
    """

    async def begin(self) -> None:
        """Open a transaction."""
        ...

    async def execute(self, sql: str, params: list[Any] | None = None) -> Any:
        """Execute a single statement.

        Args:
            sql: Statement text, passed to the engine unmodified
            params: Optional parameter list

        Returns:
            Engine-specific cursor or result object
        """
        ...

    async def fetchall(self, sql: str, params: list[Any] | None = None) -> list[Any]:
        """Execute a query and fetch all rows.

        Args:
            sql: SQL query
            params: Optional parameter list

        Returns:
            List of rows
        """
        ...

    async def commit(self) -> None:
        """Commit the open transaction."""
        ...

    async def rollback(self) -> None:
        """Roll back the open transaction."""
        ...
