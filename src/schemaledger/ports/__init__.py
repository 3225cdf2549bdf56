"""Port interfaces for schemaledger.

Ports define the contracts adapters must implement. The runner depends
only on these abstractions, never on a concrete engine driver.
"""

from schemaledger.ports.connection import ConnectionPort
from schemaledger.ports.lock import AdvisoryLockPort

__all__ = ["AdvisoryLockPort", "ConnectionPort"]
