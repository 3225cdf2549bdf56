"""Data models for schemaledger."""

from schemaledger.models.migration import (
    ApplyResult,
    LedgerEntry,
    MigrationDefinition,
    MigrationFailure,
    MigrationState,
    MigrationStatus,
    Procedure,
    RevertResult,
    sql_migration,
)

__all__ = [
    "ApplyResult",
    "LedgerEntry",
    "MigrationDefinition",
    "MigrationFailure",
    "MigrationState",
    "MigrationStatus",
    "Procedure",
    "RevertResult",
    "sql_migration",
]
