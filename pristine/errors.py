"""Defines common errors raised while provisioning a test database."""


class PristineError(Exception):
    """Base exception for all errors raised by pristine."""

    pass


class ConfigNotFound(PristineError):
    """Raised when the requested environment has no database configuration."""

    pass


class ConfigurationError(PristineError):
    """Raised when a database configuration entry is malformed."""

    pass


class UnknownSchemaFormat(PristineError):
    """Raised when the schema format is not one of the supported formats."""

    pass


class SchemaFileMissing(PristineError):
    """Raised when neither an environment specific nor a default schema file exists."""

    pass


class SchemaScriptError(PristineError):
    """Raised when a schema script does not define a callable ``define`` function."""

    pass


class TemplateError(PristineError):
    """Raised when parsing a SQL template fails."""

    pass
