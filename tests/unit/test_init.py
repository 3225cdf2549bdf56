"""Test package initialization."""

import schemaledger


def test_version_exists() -> None:
    """Test that version is defined."""
    assert isinstance(schemaledger.__version__, str)


def test_version_format() -> None:
    """Test that version follows semver format."""
    parts = schemaledger.__version__.split(".")
    assert len(parts) == 3
    assert all(part.isdigit() for part in parts)
