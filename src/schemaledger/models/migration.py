"""Migration definition and ledger models."""

from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, Field

from schemaledger.ports.connection import ConnectionPort

Procedure = Callable[[ConnectionPort], Awaitable[None]]


@dataclass(frozen=True)
class MigrationDefinition:
    """
    One versioned, reversible schema change.

    ``up`` and ``down`` each receive the live transactional connection and
    must let engine errors propagate; the runner owns the transaction.
    """

    version: str
    name: str
    up: Procedure = field(compare=False, repr=False)
    down: Procedure = field(compare=False, repr=False)
    description: str = field(default="", compare=False)


def sql_migration(
    version: str,
    name: str,
    up: Sequence[str],
    down: Sequence[str],
    description: str = "",
) -> MigrationDefinition:
    """Build a definition from ordered statement lists.

    Statements run one by one in the listed order and are passed to the
    engine unmodified. List ``down`` statements in reverse creation order.
    """
    up_statements = tuple(up)
    down_statements = tuple(down)

    async def _up(conn: ConnectionPort) -> None:
        for statement in up_statements:
            await conn.execute(statement)

    async def _down(conn: ConnectionPort) -> None:
        for statement in down_statements:
            await conn.execute(statement)

    return MigrationDefinition(
        version=version, name=name, up=_up, down=_down, description=description
    )


class LedgerEntry(BaseModel):
    """A persisted record that a migration's ``up`` has completed."""

    version: str
    name: str
    applied_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    # Applied order; the entry with the highest sequence is the only revertable one
    sequence: int = Field(ge=1)


class MigrationState(StrEnum):
    """State of a migration as seen by ``status``."""

    APPLIED = "applied"
    PENDING = "pending"
    UNKNOWN = "unknown"


class MigrationStatus(BaseModel):
    """Status line for one known definition or one unknown ledger entry."""

    version: str
    name: str
    state: MigrationState
    applied_at: datetime | None = None

    model_config = {"use_enum_values": True}


@dataclass
class MigrationFailure:
    """The definition that halted a run and why."""

    version: str
    name: str
    error: str


@dataclass
class ApplyResult:
    """Outcome of ``apply_pending``.

    ``planned`` is the pending set computed at the start of the run;
    ``not_attempted`` lists pending versions skipped because the run
    halted or hit its deadline; they are never reported as failed.
    """

    planned: list[str] = field(default_factory=list)
    applied: list[str] = field(default_factory=list)
    failure: MigrationFailure | None = None
    not_attempted: list[str] = field(default_factory=list)
    dry_run: bool = False
    deadline_exceeded: bool = False

    @property
    def ok(self) -> bool:
        """True only when every pending definition was applied."""
        return self.failure is None and not self.not_attempted


@dataclass
class RevertResult:
    """Outcome of ``revert_last``."""

    version: str
    name: str
    failure: MigrationFailure | None = None
    dry_run: bool = False

    @property
    def ok(self) -> bool:
        """True when the ``down`` committed and the ledger entry is gone."""
        return self.failure is None
