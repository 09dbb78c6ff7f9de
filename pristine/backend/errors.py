"""Defines errors raised while connecting to, dropping or creating databases."""

from pristine.errors import PristineError


class UnsupportedAdapter(PristineError):
    """Raised when a configuration names an adapter no backend exists for."""

    pass


class BackendNotInstalledError(PristineError):
    """Raised when the driver module a backend needs is not installed."""

    pass


class BackendError(PristineError):
    """Raised when a driver operation (connect, drop, create ...) fails."""

    pass


class AccessDenied(BackendError):
    """Raised when the driver reports the credentials lack access or privileges for an operation."""

    pass


class CreationFailed(PristineError):
    """Raised when a database could not be created.

    The triggering driver error, if any, is chained as ``__cause__``.
    """

    def __init__(self, message: str, adapter: str = None, database: str = None, access_denied: bool = False):
        """Construct a creation failure.

        :param message: the human readable reason
        :param adapter: the adapter name of the database that failed to be created
        :param database: the name of the database that failed to be created
        :param access_denied: whether the failure was an access denied error
        """
        super().__init__(message)
        self.adapter = adapter
        self.database = database
        self.access_denied = access_denied
