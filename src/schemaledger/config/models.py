"""Pydantic configuration models for schemaledger."""

import re
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class DatabaseConfig(BaseModel):
    """Target database configuration."""

    path: Path = Field(default_factory=lambda: Path("~/.schemaledger/app.db").expanduser())
    busy_timeout_seconds: float = Field(default=5.0, ge=0.0, le=300.0)

    @field_validator("path", mode="before")
    @classmethod
    def expand_path(cls, v: Path | str) -> Path:
        """Expand user path and resolve to absolute."""
        if isinstance(v, str):
            v = Path(v)
        return v.expanduser().resolve()


class MigrationsConfig(BaseModel):
    """Migration discovery, ledger and locking configuration."""

    package: str = "schemaledger.migrations"
    directory: Path | None = None
    ledger_table: str = "schema_migrations"
    lock_timeout_seconds: float = Field(default=30.0, ge=0.0, le=3600.0)
    lock_stale_seconds: int = Field(default=600, ge=10, le=86400)
    deadline_seconds: float | None = Field(default=None, gt=0.0)

    @field_validator("ledger_table")
    @classmethod
    def validate_ledger_table(cls, v: str) -> str:
        """Ledger table name is interpolated into SQL, so it must be a bare identifier."""
        if not _IDENTIFIER.match(v):
            raise ValueError(f"ledger_table must be a plain SQL identifier, got {v!r}")
        return v

    @field_validator("directory", mode="before")
    @classmethod
    def expand_directory(cls, v: Path | str | None) -> Path | None:
        """Expand user path and resolve to absolute."""
        if v is None:
            return None
        if isinstance(v, str):
            v = Path(v)
        return v.expanduser().resolve()


class LoggingConfig(BaseModel):
    """Logging configuration for loguru."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    format: Literal["console", "json"] = "console"
    file: Path | None = None
    rotation: str = "10 MB"
    retention: str = "7 days"


class Config(BaseSettings):
    """Root configuration for schemaledger."""

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    migrations: MigrationsConfig = Field(default_factory=MigrationsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {
        "env_prefix": "SCHEMALEDGER_",
        "env_nested_delimiter": "__",
    }
