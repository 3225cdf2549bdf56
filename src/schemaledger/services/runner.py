"""Migration runner: applies, reverts and reports on registered migrations.

Each definition runs in its own transaction together with its ledger
write. A failure rolls back that one definition and halts the run;
definitions after it are reported as not attempted.
"""

import time
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager

from loguru import logger

from schemaledger.errors import RevertMismatchError, StatementError, UnknownVersionError
from schemaledger.models.migration import (
    ApplyResult,
    MigrationDefinition,
    MigrationFailure,
    MigrationState,
    MigrationStatus,
    RevertResult,
)
from schemaledger.ports.connection import ConnectionPort
from schemaledger.ports.lock import AdvisoryLockPort
from schemaledger.services.migration_lock import NullLock
from schemaledger.services.registry import MigrationRegistry
from schemaledger.storage.ledger import Ledger


class MigrationRunner:
    """Drives a registry's definitions against one connection.

    The runner is single-threaded per invocation: definitions are applied
    strictly one after another, never concurrently.
    """

    def __init__(
        self,
        registry: MigrationRegistry,
        ledger: Ledger | None = None,
        lock: AdvisoryLockPort | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the runner.

        Args:
            registry: Known migration definitions
            ledger: Ledger table accessor (default table when omitted)
            lock: Advisory lock held for the whole apply/revert run
            clock: Monotonic clock used for deadlines
        """
        self.registry = registry
        self.ledger = ledger or Ledger()
        self.lock = lock or NullLock()
        self._clock = clock

    @asynccontextmanager
    async def _locked(self) -> AsyncIterator[None]:
        await self.lock.acquire()
        try:
            yield
        finally:
            await self.lock.release()

    async def _ensure_ledger(self, conn: ConnectionPort) -> None:
        await conn.begin()
        try:
            await self.ledger.ensure_table(conn)
            await conn.commit()
        except BaseException:
            await conn.rollback()
            raise

    # =========================================================================
    # Read-only operations
    # =========================================================================

    async def pending(self, conn: ConnectionPort) -> list[MigrationDefinition]:
        """Definitions not yet recorded in the ledger, ascending by version."""
        return self.registry.pending(await self.ledger.entries(conn))

    async def status(self, conn: ConnectionPort) -> list[MigrationStatus]:
        """
        Report every known definition as applied or pending.

        Ledger entries whose version the registry doesn't know are
        appended with state ``unknown`` (schema ahead of code).
        """
        entries = await self.ledger.entries(conn)
        applied = {entry.version: entry for entry in entries}

        statuses = []
        for definition in self.registry:
            entry = applied.get(definition.version)
            statuses.append(
                MigrationStatus(
                    version=definition.version,
                    name=definition.name,
                    state=MigrationState.APPLIED if entry else MigrationState.PENDING,
                    applied_at=entry.applied_at if entry else None,
                )
            )

        for entry in self.registry.unknown(entries):
            statuses.append(
                MigrationStatus(
                    version=entry.version,
                    name=entry.name,
                    state=MigrationState.UNKNOWN,
                    applied_at=entry.applied_at,
                )
            )
        return statuses

    async def current_version(self, conn: ConnectionPort) -> str | None:
        """Version of the most recently applied migration, or None."""
        last = await self.ledger.last(conn)
        return last.version if last else None

    # =========================================================================
    # Apply
    # =========================================================================

    async def apply_pending(
        self,
        conn: ConnectionPort,
        *,
        dry_run: bool = False,
        deadline_seconds: float | None = None,
    ) -> ApplyResult:
        """
        Apply every pending definition in ascending version order.

        Args:
            conn: Live connection to the target database
            dry_run: Only compute the plan; nothing is executed
            deadline_seconds: Stop before starting a definition once this
                much time has passed. A definition already running is never
                interrupted.

        Returns:
            ApplyResult with applied versions, the halting failure if any,
            and versions not attempted.
        """
        async with self._locked():
            if not dry_run:
                await self._ensure_ledger(conn)
            entries = await self.ledger.entries(conn)

            unknown = self.registry.unknown(entries)
            if unknown:
                logger.warning(
                    "Ledger has {} version(s) unknown to this build: {}",
                    len(unknown),
                    ", ".join(entry.version for entry in unknown),
                )

            pending = self.registry.pending(entries)
            result = ApplyResult(planned=[d.version for d in pending], dry_run=dry_run)

            if dry_run:
                for definition in pending:
                    logger.info("Would apply {} {}", definition.version, definition.name)
                return result

            if not pending:
                logger.info("Database is up to date")
                return result

            started = self._clock()
            for index, definition in enumerate(pending):
                if deadline_seconds is not None and self._clock() - started >= deadline_seconds:
                    result.deadline_exceeded = True
                    result.not_attempted = [d.version for d in pending[index:]]
                    logger.warning(
                        "Deadline of {}s reached, {} migration(s) not attempted",
                        deadline_seconds,
                        len(result.not_attempted),
                    )
                    break

                try:
                    await self._apply_one(conn, definition)
                except StatementError as e:
                    result.failure = MigrationFailure(e.version, e.name, e.detail)
                    result.not_attempted = [d.version for d in pending[index + 1 :]]
                    logger.error(
                        "Migration {} ({}) failed and was rolled back: {}",
                        e.version,
                        e.name,
                        e.detail,
                    )
                    break

                result.applied.append(definition.version)
                self.lock.heartbeat()

            return result

    async def _apply_one(self, conn: ConnectionPort, definition: MigrationDefinition) -> None:
        logger.info("Applying {} {}", definition.version, definition.name)
        started = time.perf_counter()

        await conn.begin()
        try:
            await definition.up(conn)
            await self.ledger.record(conn, definition)
            await conn.commit()
        except Exception as e:
            await conn.rollback()
            raise StatementError(definition.version, definition.name, e) from e
        except BaseException:
            await conn.rollback()
            raise

        logger.info(
            "Applied {} {} in {:.3f}s",
            definition.version,
            definition.name,
            time.perf_counter() - started,
        )

    # =========================================================================
    # Revert
    # =========================================================================

    async def revert_last(self, conn: ConnectionPort, *, dry_run: bool = False) -> RevertResult:
        """
        Revert the most recently applied migration.

        Only the entry applied last may be reverted. On success its
        ledger entry is deleted in the same transaction as the ``down``.
        A failed ``down`` is rolled back and reported; the ledger entry
        stays so an operator can intervene.

        Raises:
            RevertMismatchError: If the ledger is empty.
            UnknownVersionError: If the last applied version is not in
                the registry, so there is no ``down`` to run.
        """
        async with self._locked():
            last = await self.ledger.last(conn)
            if last is None:
                raise RevertMismatchError("Nothing to revert: the migration ledger is empty")

            definition = self.registry.get(last.version)
            if definition is None:
                raise UnknownVersionError([last.version])

            result = RevertResult(version=definition.version, name=definition.name, dry_run=dry_run)
            if dry_run:
                logger.info("Would revert {} {}", definition.version, definition.name)
                return result

            try:
                await self._revert_one(conn, definition)
            except StatementError as e:
                result.failure = MigrationFailure(e.version, e.name, e.detail)
                logger.error(
                    "Revert of {} ({}) failed; ledger entry kept: {}",
                    e.version,
                    e.name,
                    e.detail,
                )
            return result

    async def _revert_one(self, conn: ConnectionPort, definition: MigrationDefinition) -> None:
        logger.info("Reverting {} {}", definition.version, definition.name)

        await conn.begin()
        try:
            await definition.down(conn)
            await self.ledger.remove(conn, definition.version)
            await conn.commit()
        except Exception as e:
            await conn.rollback()
            raise StatementError(definition.version, definition.name, e) from e
        except BaseException:
            await conn.rollback()
            raise

        logger.info("Reverted {} {}", definition.version, definition.name)
