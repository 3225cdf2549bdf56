"""schemaledger error types.

All custom exceptions inherit from SchemaLedgerError to allow
catching any schemaledger-specific error.
"""


class SchemaLedgerError(Exception):
    """Base exception for all schemaledger errors."""

    pass


class ConfigurationError(SchemaLedgerError):
    """Invalid configuration."""

    pass


class StatementError(SchemaLedgerError):
    """The engine rejected a statement while running a migration.

    The message carries the underlying engine error text verbatim.
    """

    def __init__(self, version: str, name: str, cause: BaseException) -> None:
        super().__init__(f"Migration {version} ({name}) failed: {cause}")
        self.version = version
        self.name = name
        self.cause = cause

    @property
    def detail(self) -> str:
        """Underlying engine error text."""
        return str(self.cause)


class OrderingError(SchemaLedgerError):
    """Duplicate or unsortable version detected while building a registry."""

    pass


class UnknownVersionError(SchemaLedgerError):
    """Ledger contains versions the current registry does not know about."""

    def __init__(self, versions: list[str]) -> None:
        joined = ", ".join(versions)
        super().__init__(f"Ledger references unknown migration versions: {joined}")
        self.versions = versions


class RevertMismatchError(SchemaLedgerError):
    """A revert was requested but there is nothing to revert."""

    pass


class LockUnavailableError(SchemaLedgerError):
    """The migration lock is held by another live process."""

    pass
