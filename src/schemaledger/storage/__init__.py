"""Storage adapters for schemaledger."""

from schemaledger.storage.ledger import DEFAULT_LEDGER_TABLE, Ledger
from schemaledger.storage.sqlite import SQLiteConnection

__all__ = ["DEFAULT_LEDGER_TABLE", "Ledger", "SQLiteConnection"]
