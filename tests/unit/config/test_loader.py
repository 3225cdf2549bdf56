"""Tests for configuration loading."""

from pathlib import Path

import pytest

from schemaledger.config.loader import CONFIG_PATH_ENV, load_config
from schemaledger.errors import ConfigurationError


@pytest.fixture(autouse=True)
def _no_config_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(CONFIG_PATH_ENV, raising=False)


def test_none_returns_defaults() -> None:
    config = load_config(None)
    assert config.migrations.ledger_table == "schema_migrations"


def test_loads_yaml_file(tmp_path: Path) -> None:
    config_file = tmp_path / "schemaledger.yaml"
    config_file.write_text(
        f"""
database:
  path: {tmp_path / "app.db"}
migrations:
  ledger_table: app_migrations
  deadline_seconds: 120
logging:
  level: WARNING
"""
    )

    config = load_config(config_file)

    assert config.database.path == (tmp_path / "app.db").resolve()
    assert config.migrations.ledger_table == "app_migrations"
    assert config.migrations.deadline_seconds == 120
    assert config.logging.level == "WARNING"


def test_empty_file_returns_defaults(tmp_path: Path) -> None:
    config_file = tmp_path / "empty.yaml"
    config_file.write_text("")

    assert load_config(config_file).logging.level == "INFO"


def test_missing_file_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "missing.yaml")


def test_invalid_yaml_raises(tmp_path: Path) -> None:
    config_file = tmp_path / "bad.yaml"
    config_file.write_text("database: [unclosed")

    with pytest.raises(ConfigurationError, match="Invalid YAML"):
        load_config(config_file)


def test_non_mapping_root_raises(tmp_path: Path) -> None:
    config_file = tmp_path / "list.yaml"
    config_file.write_text("- one\n- two\n")

    with pytest.raises(ConfigurationError, match="must be a mapping"):
        load_config(config_file)


def test_invalid_values_raise_configuration_error(tmp_path: Path) -> None:
    config_file = tmp_path / "invalid.yaml"
    config_file.write_text("migrations:\n  ledger_table: 'bad name'\n")

    with pytest.raises(ConfigurationError, match="Invalid configuration"):
        load_config(config_file)


def test_env_variable_names_config_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    config_file = tmp_path / "from_env.yaml"
    config_file.write_text("migrations:\n  ledger_table: env_ledger\n")
    monkeypatch.setenv(CONFIG_PATH_ENV, str(config_file))

    assert load_config(None).migrations.ledger_table == "env_ledger"
