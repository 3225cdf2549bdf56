"""Ordered, validated collection of migration definitions."""

import importlib
import inspect
import pkgutil
from collections.abc import Iterable, Iterator
from types import ModuleType

from loguru import logger

from schemaledger.errors import OrderingError
from schemaledger.models.migration import LedgerEntry, MigrationDefinition


def version_key(version: str) -> tuple[int, int | str]:
    """Sort key for a version token.

    All-digit versions (epoch-millisecond timestamps) compare numerically,
    so ``"999"`` sorts before ``"1000"``. Other tokens compare as strings.
    A registry never mixes the two kinds.
    """
    if _is_numeric(version):
        return (0, int(version))
    return (1, version)


def _is_numeric(version: str) -> bool:
    return version.isascii() and version.isdigit()


def _is_unicode_digits(version: str) -> bool:
    # "²" or "١٢" pass isdigit() but are not ASCII numerals
    return version.isdigit() and not version.isascii()


class MigrationRegistry:
    """
    Immutable, strictly ordered set of migration definitions.

    Construction fails fast with OrderingError on an empty, padded or
    non-ASCII-digit version, a duplicate version, a duplicate name, or a
    mix of numeric and non-numeric versions. Nothing is ever silently reordered.
    """

    def __init__(self, definitions: Iterable[MigrationDefinition]) -> None:
        items = list(definitions)
        self._validate(items)
        self._definitions = tuple(sorted(items, key=lambda d: version_key(d.version)))
        self._by_version = {d.version: d for d in self._definitions}

    @staticmethod
    def _validate(items: list[MigrationDefinition]) -> None:
        seen_versions: set[str] = set()
        seen_names: set[str] = set()
        for definition in items:
            version = definition.version
            if not version or version != version.strip() or _is_unicode_digits(version):
                raise OrderingError(f"Invalid migration version {version!r} ({definition.name})")
            if version in seen_versions:
                raise OrderingError(f"Duplicate migration version {version}")
            if definition.name in seen_names:
                raise OrderingError(f"Duplicate migration name {definition.name}")
            seen_versions.add(version)
            seen_names.add(definition.name)

        kinds = {_is_numeric(version) for version in seen_versions}
        if len(kinds) > 1:
            raise OrderingError(
                "Migration versions mix numeric and non-numeric tokens and cannot be ordered"
            )

        # Distinct digit strings like "01" and "1" would tie numerically
        numeric = [int(v) for v in seen_versions if _is_numeric(v)]
        if len(numeric) != len(set(numeric)):
            raise OrderingError("Migration versions collide when compared numerically")

    @classmethod
    def from_package(cls, package: str | ModuleType) -> "MigrationRegistry":
        """
        Discover definitions from the modules of a package.

        Each non-underscore module must define ``VERSION``, ``NAME`` and
        async ``up``/``down`` functions taking the connection. The module
        docstring becomes the definition's description.

        Args:
            package: Dotted package name or an imported package module.

        Raises:
            OrderingError: On a malformed module or invalid ordering.
        """
        if isinstance(package, str):
            package = importlib.import_module(package)

        definitions = []
        for info in pkgutil.iter_modules(package.__path__):
            if info.name.startswith("_"):
                continue
            module = importlib.import_module(f"{package.__name__}.{info.name}")
            definitions.append(_definition_from_module(module))

        logger.debug("Discovered {} migrations in {}", len(definitions), package.__name__)
        return cls(definitions)

    def __iter__(self) -> Iterator[MigrationDefinition]:
        return iter(self._definitions)

    def __len__(self) -> int:
        return len(self._definitions)

    def __contains__(self, version: object) -> bool:
        return version in self._by_version

    def get(self, version: str) -> MigrationDefinition | None:
        return self._by_version.get(version)

    @property
    def versions(self) -> list[str]:
        """All known versions in ascending order."""
        return [d.version for d in self._definitions]

    def pending(self, ledger: Iterable[LedgerEntry]) -> list[MigrationDefinition]:
        """Definitions absent from the ledger, ascending by version.

        Ledger entries with unknown versions are ignored here; ``status``
        is where they are surfaced.
        """
        applied = {entry.version for entry in ledger}
        return [d for d in self._definitions if d.version not in applied]

    def unknown(self, ledger: Iterable[LedgerEntry]) -> list[LedgerEntry]:
        """Ledger entries whose version this registry doesn't know."""
        return [entry for entry in ledger if entry.version not in self._by_version]


def _definition_from_module(module: ModuleType) -> MigrationDefinition:
    missing = [attr for attr in ("VERSION", "NAME", "up", "down") if not hasattr(module, attr)]
    if missing:
        raise OrderingError(f"Migration module {module.__name__} is missing {', '.join(missing)}")

    for attr in ("up", "down"):
        if not inspect.iscoroutinefunction(getattr(module, attr)):
            raise OrderingError(f"{module.__name__}.{attr} must be an async function")

    return MigrationDefinition(
        version=str(module.VERSION),
        name=str(module.NAME),
        up=module.up,
        down=module.down,
        description=inspect.cleandoc(module.__doc__ or ""),
    )
