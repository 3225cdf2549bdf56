"""Migration services: registry, runner, locking and scaffolding."""

from schemaledger.services.migration_lock import MigrationLock, NullLock
from schemaledger.services.registry import MigrationRegistry, version_key
from schemaledger.services.runner import MigrationRunner
from schemaledger.services.scaffold import create_migration_file

__all__ = [
    "MigrationLock",
    "MigrationRegistry",
    "MigrationRunner",
    "NullLock",
    "create_migration_file",
    "version_key",
]
