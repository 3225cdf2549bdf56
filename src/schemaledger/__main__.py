"""CLI entry point for schemaledger.

Provides commands for applying pending migrations, reverting the last
one, printing status, and scaffolding new migration modules.
"""

import asyncio
import sys
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import TYPE_CHECKING, TypeVar

import click

from schemaledger import __version__

if TYPE_CHECKING:
    from schemaledger.config.models import Config
    from schemaledger.models.migration import ApplyResult, MigrationStatus, RevertResult
    from schemaledger.services.runner import MigrationRunner
    from schemaledger.storage.sqlite import SQLiteConnection

T = TypeVar("T")

config_option = click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to configuration file",
)
database_option = click.option(
    "--database",
    "-d",
    type=click.Path(dir_okay=False, path_type=Path),
    help="SQLite database file (overrides configuration)",
)


@click.group()
@click.version_option(version=__version__)
def cli() -> None:
    """Schema migration runner with a persistent ledger.

    Applies ordered, reversible schema migrations to a database,
    one transaction per migration, and records each one in a ledger
    table.
    """
    pass


def _load(config_path: Path | None, database: Path | None) -> "Config":
    from schemaledger.config.loader import load_config
    from schemaledger.errors import ConfigurationError
    from schemaledger.utils.logging import configure_logging

    try:
        cfg = load_config(config_path)
    except (FileNotFoundError, ConfigurationError) as e:
        raise click.ClickException(str(e)) from e

    if database is not None:
        cfg.database.path = database.expanduser().resolve()

    configure_logging(cfg.logging)
    return cfg


def _run(
    cfg: "Config",
    action: Callable[["MigrationRunner", "SQLiteConnection"], Awaitable[T]],
    read_only: bool = False,
) -> T:
    """Open the database, build the runner, and run ``action`` on it."""
    from schemaledger.errors import SchemaLedgerError
    from schemaledger.services.migration_lock import MigrationLock
    from schemaledger.services.registry import MigrationRegistry
    from schemaledger.services.runner import MigrationRunner
    from schemaledger.storage.ledger import Ledger
    from schemaledger.storage.sqlite import SQLiteConnection

    async def main() -> T:
        registry = MigrationRegistry.from_package(cfg.migrations.package)
        lock = MigrationLock.for_database(
            cfg.database.path,
            timeout_seconds=cfg.migrations.lock_timeout_seconds,
            stale_seconds=cfg.migrations.lock_stale_seconds,
        )
        runner = MigrationRunner(registry, ledger=Ledger(cfg.migrations.ledger_table), lock=lock)
        async with SQLiteConnection(
            cfg.database.path,
            busy_timeout_seconds=cfg.database.busy_timeout_seconds,
            read_only=read_only,
        ) as conn:
            return await action(runner, conn)

    try:
        return asyncio.run(main())
    except (SchemaLedgerError, ImportError, FileNotFoundError) as e:
        raise click.ClickException(str(e)) from e


@cli.command()
@config_option
@database_option
@click.option("--dry-run", is_flag=True, help="Show pending migrations without applying them")
@click.option(
    "--deadline",
    type=click.FloatRange(min=0, min_open=True),
    help="Stop starting new migrations after this many seconds",
)
def up(config: Path | None, database: Path | None, dry_run: bool, deadline: float | None) -> None:
    """Apply all pending migrations.

    Each migration runs in its own transaction. The run halts at the
    first failure; migrations after it are not attempted.
    """
    cfg = _load(config, database)
    if deadline is None:
        deadline = cfg.migrations.deadline_seconds

    async def action(runner: "MigrationRunner", conn: "SQLiteConnection") -> "ApplyResult":
        return await runner.apply_pending(conn, dry_run=dry_run, deadline_seconds=deadline)

    result = _run(cfg, action)

    if not result.planned:
        click.echo("No pending migrations.")
        return

    if result.dry_run:
        click.echo("Pending migrations:")
        for version in result.planned:
            click.echo(f"  {version}")
        return

    for version in result.applied:
        click.echo(f"  [OK] {version}")
    if result.failure:
        failure = result.failure
        click.echo(f"  [FAIL] {failure.version} {failure.name}: {failure.error}", err=True)
    for version in result.not_attempted:
        click.echo(f"  [SKIP] {version} (not attempted)")

    if result.ok:
        click.echo(f"Applied {len(result.applied)} migration(s).")
        return

    if result.failure:
        click.echo(
            f"Migration halted at {result.failure.version} ({result.failure.name}).", err=True
        )
    else:
        click.echo("Deadline reached before all migrations were applied.", err=True)
    sys.exit(1)


@cli.command()
@config_option
@database_option
@click.option("--dry-run", is_flag=True, help="Show which migration would be reverted")
def down(config: Path | None, database: Path | None, dry_run: bool) -> None:
    """Revert the most recently applied migration."""
    cfg = _load(config, database)

    async def action(runner: "MigrationRunner", conn: "SQLiteConnection") -> "RevertResult":
        return await runner.revert_last(conn, dry_run=dry_run)

    result = _run(cfg, action)

    if result.dry_run:
        click.echo(f"Would revert {result.version} {result.name}")
        return

    if result.failure:
        click.echo(
            f"Revert of {result.version} ({result.name}) failed: {result.failure.error}", err=True
        )
        sys.exit(1)

    click.echo(f"Reverted {result.version} {result.name}")


@cli.command()
@config_option
@database_option
@click.option("--strict", is_flag=True, help="Exit non-zero if the ledger has unknown versions")
def status(config: Path | None, database: Path | None, strict: bool) -> None:
    """Show applied, pending and unknown migrations."""
    from schemaledger.models.migration import MigrationState

    cfg = _load(config, database)

    async def action(
        runner: "MigrationRunner", conn: "SQLiteConnection"
    ) -> "tuple[list[MigrationStatus], str | None]":
        return await runner.status(conn), await runner.current_version(conn)

    statuses, current = _run(cfg, action, read_only=True)

    click.echo(f"Database: {cfg.database.path}")
    click.echo(f"Current version: {current or '(none)'}")
    click.echo("-" * 60)
    for item in statuses:
        applied_at = item.applied_at.isoformat(timespec="seconds") if item.applied_at else ""
        click.echo(f"  [{item.state}] {item.version} {item.name} {applied_at}".rstrip())

    unknown = [s for s in statuses if s.state == MigrationState.UNKNOWN]
    if unknown:
        click.echo(
            f"Warning: {len(unknown)} applied version(s) unknown to this build.", err=True
        )
        if strict:
            sys.exit(1)


@cli.command()
@click.argument("name")
@config_option
@click.option(
    "--directory",
    type=click.Path(file_okay=False, path_type=Path),
    help="Migrations directory (overrides configuration)",
)
def create(name: str, config: Path | None, directory: Path | None) -> None:
    """Create an empty migration module named NAME (CamelCase)."""
    from schemaledger.services.scaffold import create_migration_file

    cfg = _load(config, None)
    target = directory or cfg.migrations.directory
    if target is None:
        raise click.UsageError("No migrations directory: pass --directory or configure one")

    try:
        path = create_migration_file(target, name)
    except (ValueError, FileExistsError) as e:
        raise click.ClickException(str(e)) from e

    click.echo(f"Created {path}")


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
