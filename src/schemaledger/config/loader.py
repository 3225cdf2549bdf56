"""Configuration loading utilities."""

import os
from pathlib import Path

import yaml
from pydantic import ValidationError

from schemaledger.config.models import Config
from schemaledger.errors import ConfigurationError

CONFIG_PATH_ENV = "SCHEMALEDGER_CONFIG"


def resolve_config_path(config_path: Path | None) -> Path | None:
    """Return the explicit path, else the one named by SCHEMALEDGER_CONFIG."""
    if config_path is not None:
        return config_path
    env_path = os.environ.get(CONFIG_PATH_ENV)
    return Path(env_path) if env_path else None


def load_config(config_path: Path | None) -> Config:
    """
    Load configuration from a YAML file, or return defaults.

    Environment variables prefixed with ``SCHEMALEDGER_`` still apply on top
    of defaults when no file is given.

    Args:
        config_path: Path to YAML config file, or None.

    Returns:
        Validated Config object.

    Raises:
        FileNotFoundError: If the config file doesn't exist.
        ConfigurationError: If the YAML is malformed or fails validation.
    """
    path = resolve_config_path(config_path)
    if path is None:
        return Config()

    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    try:
        data = yaml.safe_load(path.read_text())
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in config file {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"YAML root must be a mapping, not {type(data).__name__}")

    try:
        return Config(**data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration in {path}: {e}") from e
