"""Tests for the migration error hierarchy."""

from pristine.errors import PristineError
from pristine.migration.errors import DiscoveryError, MigrationError, MigrationFailed, ScriptValidationError


def test_migration_error_is_base():
    """Verify MigrationError is the base for all migration exceptions."""
    assert issubclass(MigrationError, PristineError)
    assert issubclass(MigrationFailed, MigrationError)
    assert issubclass(DiscoveryError, MigrationError)
    assert issubclass(ScriptValidationError, MigrationError)


def test_migration_failed():
    """Verify MigrationFailed can be raised and caught as a MigrationError."""
    try:
        raise MigrationFailed("script failed")
    except MigrationError as exc:
        assert str(exc) == "script failed"
