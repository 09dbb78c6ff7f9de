"""Implementation of the Firebird backend using firebird-driver.

Firebird has no server side CREATE / DROP DATABASE statement reachable over a plain connection,
the driver's ``create_database`` and ``Connection.drop_database`` calls are used instead.
"""

from typing import List

from pristine.backend.base import Connection, ServerBackend, StatementSplittingConnection
from pristine.backend.credentials import Credentials
from pristine.backend.errors import BackendError, BackendNotInstalledError
from pristine.config import ConnectionDescriptor, CreationOptions
from pristine.mung import StaticMungSymbolProvider

DEFAULT_ADMIN_USER = "SYSDBA"

# isc_login, isc_no_priv
ACCESS_DENIED_CODES = (335544472, 335544352)

# isc_io_error, raised when the database file cannot be opened
MISSING_DATABASE_CODES = (335544344,)


def _gds_codes(error: Exception) -> tuple:
    while error is not None:
        codes = getattr(error, "gds_codes", None)
        if codes:
            return tuple(codes)
        error = error.__cause__
    return ()


class ConnectionFirebird(StatementSplittingConnection):
    """Implementation of Connection for firebird-driver."""

    mung_symbol = StaticMungSymbolProvider("?")


class FirebirdBackend(ServerBackend):
    """Drops and creates Firebird database files through the server."""

    connection_class = ConnectionFirebird
    default_admin_user = DEFAULT_ADMIN_USER

    @staticmethod
    def _driver():
        try:
            import firebird.driver  # pylint: disable=import-outside-toplevel
        except ModuleNotFoundError:  # pragma: no cover
            issue = "Module firebird.driver not installed, cannot connect to Firebird"
            raise BackendNotInstalledError(issue)
        return firebird.driver

    @staticmethod
    def dsn(descriptor: ConnectionDescriptor) -> str:
        """Return the ``host/port:path`` connection string, or the bare path for local databases."""
        if not descriptor.host:
            return descriptor.database
        if descriptor.port:
            return f"{descriptor.host}/{descriptor.port}:{descriptor.database}"
        return f"{descriptor.host}:{descriptor.database}"

    def _connect(self, descriptor: ConnectionDescriptor, admin: bool = False) -> Connection:
        driver = self._driver()
        kwargs = {"user": descriptor.username, "password": descriptor.password}
        if descriptor.charset:
            kwargs["charset"] = descriptor.charset.upper()
        inner_cnx = driver.connect(self.dsn(descriptor), **{k: v for k, v in kwargs.items() if v is not None})
        return self.connection_class(inner_cnx)

    def _driver_errors(self) -> tuple:
        return (self._driver().Error,)

    def _is_access_denied(self, error: Exception) -> bool:
        return any(code in ACCESS_DENIED_CODES for code in _gds_codes(error))

    def maintenance_descriptor(
        self, descriptor: ConnectionDescriptor, credentials: Credentials = None
    ) -> ConnectionDescriptor:
        """Return the descriptor itself, or a copy logging in as the administrator when escalating."""
        if credentials is None:
            return descriptor
        return descriptor.replace(**self._admin_credentials(credentials))

    def _drop_database(self, admin: ConnectionDescriptor, descriptor: ConnectionDescriptor):
        try:
            cnx = self.establish(admin, admin=True)
        except BackendError as x:
            if any(code in MISSING_DATABASE_CODES for code in _gds_codes(x)):
                self.logger.debug(f"{self.describe(descriptor)} does not exist, nothing to drop")
                return
            raise
        cnx.raw.drop_database()

    def _create_database(self, admin: ConnectionDescriptor, descriptor: ConnectionDescriptor, options: CreationOptions):
        driver = self._driver()

        def create():
            inner_cnx = driver.create_database(
                self.dsn(admin), user=admin.username, password=admin.password, charset=options.charset.upper()
            )
            return self.connection_class(inner_cnx)

        self.handler.establish(admin, create)

    def _grant_statements(self, descriptor: ConnectionDescriptor) -> List[str]:
        return [f"GRANT RDB$ADMIN TO {self.quote_identifier(descriptor.username.upper())}"]
