"""schemaledger utility modules."""

from schemaledger.utils.logging import configure_logging
from schemaledger.utils.retry import retry_lock

__all__ = ["configure_logging", "retry_lock"]
