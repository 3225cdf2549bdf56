"""Port interface for advisory locking around a migration run."""

from typing import Protocol


class AdvisoryLockPort(Protocol):
    """Protocol for a lock held for the duration of a migration run.

    Acquired before the ledger is read, released on every exit path.
    """

    async def acquire(self) -> None:
        """Acquire the lock.

        Raises:
            LockUnavailableError: If another live process holds it.
        """
        ...

    async def release(self) -> None:
        """Release the lock. No-op if not held."""
        ...

    def heartbeat(self) -> None:
        """Signal liveness between definitions of a long run."""
        ...
