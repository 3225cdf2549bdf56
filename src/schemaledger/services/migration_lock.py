"""File-based advisory lock for migration runs.

Keeps two migration processes from working on the same database at
once. The lock file sits next to the database file.
"""

import os
from datetime import UTC, datetime
from pathlib import Path

from loguru import logger

from schemaledger.errors import LockUnavailableError
from schemaledger.utils.retry import retry_lock


class MigrationLock:
    """PID+timestamp file lock held for the duration of one migration run.

    The lock file contains the holder's PID and a UTC timestamp on
    separate lines. A lock is stale only when its PID is dead. A live
    holder keeps the lock however old its timestamp is, since a single
    definition may run for longer than ``stale_seconds``; past that age
    the holder is only reported. The runner refreshes the timestamp
    after each definition via ``heartbeat``.

    Acquisition uses ``O_CREAT | O_EXCL`` for atomicity. Replacement
    of a stale lock uses a temp file + ``os.replace()``.
    """

    def __init__(
        self,
        lock_path: Path,
        timeout_seconds: float = 30.0,
        stale_seconds: int = 600,
    ) -> None:
        self._lock_path = lock_path
        self._tmp_path = lock_path.with_name(lock_path.name + ".tmp")
        self.timeout_seconds = timeout_seconds
        self.stale_seconds = stale_seconds
        self._held = False

    @classmethod
    def for_database(
        cls, db_path: Path, timeout_seconds: float = 30.0, stale_seconds: int = 600
    ) -> "MigrationLock":
        """Build the lock guarding the database at ``db_path``."""
        lock_path = db_path.with_name(db_path.name + ".migrate.lock")
        return cls(lock_path, timeout_seconds=timeout_seconds, stale_seconds=stale_seconds)

    @property
    def lock_path(self) -> Path:
        return self._lock_path

    def is_held(self) -> bool:
        return self._held

    async def acquire(self) -> None:
        """Acquire the lock, retrying with backoff until ``timeout_seconds``.

        Raises:
            LockUnavailableError: If a live process still holds the lock.
        """

        @retry_lock(self.timeout_seconds)
        async def _attempt() -> None:
            if not self.try_acquire():
                raise LockUnavailableError(f"Migration lock is held: {self._lock_path}")

        await _attempt()

    async def release(self) -> None:
        """Release the lock by deleting the file. No-op if not held.

        The file is left alone when it no longer names this process.
        """
        if not self._held:
            return
        self._held = False

        lock_info = self._read_lock(self._lock_path)
        if lock_info is not None and lock_info[0] != os.getpid():
            logger.warning(
                "Migration lock {} now belongs to PID {}, leaving it in place",
                self._lock_path,
                lock_info[0],
            )
            return
        try:
            self._lock_path.unlink()
            logger.debug("Migration lock released: {}", self._lock_path)
        except FileNotFoundError:
            pass

    def heartbeat(self) -> None:
        """Refresh the lock timestamp. No-op if not held."""
        if not self._held:
            return
        self._write_lock_atomic()
        logger.trace("Migration lock heartbeat")

    def try_acquire(self) -> bool:
        """Make one attempt at taking the lock.

        Returns:
            True if this process now holds the lock.
        """
        if self._held:
            return True

        self._lock_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            fd = os.open(
                str(self._lock_path),
                os.O_CREAT | os.O_EXCL | os.O_WRONLY,
                0o644,
            )
            try:
                os.write(fd, self._lock_content())
            finally:
                os.close(fd)
            self._held = True
            logger.debug("Migration lock acquired: {}", self._lock_path)
            return True
        except FileExistsError:
            pass

        lock_info = self._read_lock(self._lock_path)
        if lock_info is None or self._is_stale(*lock_info):
            return self._replace_stale_lock()

        return False

    def _is_stale(self, pid: int, timestamp: datetime) -> bool:
        if not self._is_process_alive(pid):
            logger.debug("Lock holder PID {} is dead, lock is stale", pid)
            return True

        age = (datetime.now(UTC) - timestamp).total_seconds()
        if age > self.stale_seconds:
            logger.warning(
                "Migration lock held by live PID {} has not been refreshed for {}s",
                pid,
                int(age),
            )
        return False

    def _replace_stale_lock(self) -> bool:
        try:
            self._write_lock_atomic()
        except OSError:
            logger.opt(exception=True).warning("Failed to replace stale migration lock")
            return False
        self._held = True
        logger.warning("Replaced stale migration lock: {}", self._lock_path)
        return True

    @staticmethod
    def _lock_content() -> bytes:
        return f"{os.getpid()}\n{datetime.now(UTC).isoformat()}\n".encode()

    def _write_lock_atomic(self) -> None:
        fd = os.open(str(self._tmp_path), os.O_CREAT | os.O_WRONLY | os.O_TRUNC, 0o644)
        try:
            os.write(fd, self._lock_content())
        finally:
            os.close(fd)
        self._tmp_path.replace(self._lock_path)

    @staticmethod
    def _read_lock(path: Path) -> tuple[int, datetime] | None:
        """Read PID and timestamp from a lock file.

        Returns:
            (pid, timestamp) tuple, or None if the file is missing or malformed.
        """
        try:
            lines = path.read_text().strip().splitlines()
        except (FileNotFoundError, PermissionError):
            return None

        if len(lines) < 2:
            return None

        try:
            pid = int(lines[0])
            timestamp = datetime.fromisoformat(lines[1])
        except ValueError:
            return None
        if timestamp.tzinfo is None:
            timestamp = timestamp.replace(tzinfo=UTC)
        return pid, timestamp

    @staticmethod
    def _is_process_alive(pid: int) -> bool:
        """Check whether a process with the given PID is running."""
        try:
            os.kill(pid, 0)
            return True
        except ProcessLookupError:
            return False
        except PermissionError:
            # Exists, owned by another user
            return True
        except (OSError, OverflowError):
            return False


class NullLock:
    """Lock that does nothing, for callers that hold an external lock."""

    async def acquire(self) -> None:
        return None

    async def release(self) -> None:
        return None

    def heartbeat(self) -> None:
        return None
