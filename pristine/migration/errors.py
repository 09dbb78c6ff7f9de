"""Migration-specific exception classes."""

from pristine.errors import PristineError


class MigrationError(PristineError):
    """Base exception for all migration errors."""

    pass


class MigrationFailed(MigrationError):
    """Raised when a migration script fails during execution."""

    pass


class DiscoveryError(MigrationError):
    """Raised when migration scripts cannot be discovered, e.g. two share a version."""

    pass


class ScriptValidationError(MigrationError):
    """Raised when a migration script is missing a valid upgrade function."""

    pass
