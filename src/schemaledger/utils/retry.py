"""Retry helpers built on the backoff library.

Only lock acquisition is retried. A failed migration is never
retried automatically.
"""

from collections.abc import Mapping
from typing import Any

import backoff
from loguru import logger

from schemaledger.errors import LockUnavailableError


def on_backoff(details: Mapping[str, Any]) -> None:
    """Log retry attempts."""
    logger.warning(
        "Migration lock busy, retrying {}: attempt={} wait={:.2f}s",
        details["target"].__name__,
        details["tries"],
        details["wait"],
    )


def on_giveup(details: Mapping[str, Any]) -> None:
    """Log when retries are exhausted."""
    logger.error(
        "Gave up on {} after {} attempts: {}",
        details["target"].__name__,
        details["tries"],
        details["exception"],
    )


def retry_lock(max_time: float) -> Any:
    """Build a decorator retrying LockUnavailableError for up to ``max_time`` seconds."""
    return backoff.on_exception(
        backoff.expo,
        LockUnavailableError,
        max_time=max_time,
        max_value=2,
        on_backoff=on_backoff,
        on_giveup=on_giveup,
    )
