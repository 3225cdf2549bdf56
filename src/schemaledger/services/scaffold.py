"""Scaffolding for new migration modules."""

import re
import time
from pathlib import Path

from loguru import logger

_TEMPLATE = '''"""{name}."""

from schemaledger.ports.connection import ConnectionPort

VERSION = "{version}"
NAME = "{name}"


async def up(conn: ConnectionPort) -> None:
    pass


async def down(conn: ConnectionPort) -> None:
    pass
'''

_NAME = re.compile(r"^[A-Za-z][A-Za-z0-9]*$")


def new_version() -> str:
    """Epoch-millisecond version for a migration created now."""
    return str(time.time_ns() // 1_000_000)


def module_slug(name: str) -> str:
    """Turn ``AddProfilePhotoToEntities`` into ``add_profile_photo_to_entities``."""
    return re.sub(r"(?<=[a-z0-9])(?=[A-Z])", "_", name).lower()


def create_migration_file(directory: Path, name: str, version: str | None = None) -> Path:
    """
    Write a new, empty migration module into ``directory``.

    Args:
        directory: Migrations package directory (created with an
            ``__init__.py`` when missing).
        name: CamelCase migration name, e.g. ``AddTitleToChatCategories``.
        version: Explicit version; defaults to the current epoch millisecond.

    Returns:
        Path of the new module.

    Raises:
        ValueError: If the name is not CamelCase alphanumerics.
        FileExistsError: If a module with the same file name exists.
    """
    if not _NAME.match(name):
        raise ValueError(f"Migration name must be CamelCase alphanumerics, got {name!r}")

    version = version or new_version()
    directory.mkdir(parents=True, exist_ok=True)
    init_file = directory / "__init__.py"
    if not init_file.exists():
        init_file.write_text('"""Schema migrations."""\n')

    path = directory / f"v{version}_{module_slug(name)}.py"
    if path.exists():
        raise FileExistsError(f"Migration module already exists: {path}")

    path.write_text(_TEMPLATE.format(name=name, version=version))
    logger.info("Created migration {} at {}", version, path)
    return path
