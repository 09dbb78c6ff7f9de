"""Implementation of the Oracle backend using python-oracledb.

Test users normally cannot create or drop an Oracle database, so the configured user's schema
plays the role of the database: dropping purges every object the user owns and creating means
being able to log in. When the user cannot log in at all it is created through escalation.
"""

from typing import List

from pristine.backend.base import Connection, CreateStatus, ServerBackend, StatementSplittingConnection
from pristine.backend.credentials import Credentials
from pristine.backend.errors import AccessDenied, BackendError, BackendNotInstalledError
from pristine.config import ConnectionDescriptor, CreationOptions, creation_options
from pristine.mung import NumberedMungSymbolProvider

DEFAULT_PORT = 1521

# ORA-01017 invalid credentials, ORA-01031 insufficient privileges, ORA-01045 lacks CREATE SESSION
ACCESS_DENIED_CODES = (1017, 1031, 1045)

# Dependants first, so nothing is dropped twice through a cascade
DROP_ORDER = (
    "MATERIALIZED VIEW",
    "VIEW",
    "TABLE",
    "SEQUENCE",
    "SYNONYM",
    "PROCEDURE",
    "FUNCTION",
    "PACKAGE",
    "TYPE",
)

SELECT_USER_OBJECTS = (
    "SELECT object_name, object_type FROM user_objects "
    "WHERE object_type IN ('MATERIALIZED VIEW', 'VIEW', 'TABLE', 'SEQUENCE', 'SYNONYM', "
    "'PROCEDURE', 'FUNCTION', 'PACKAGE', 'TYPE') "
    "AND NOT (object_type = 'TABLE' AND object_name IN (SELECT mview_name FROM user_mviews))"
)


class ConnectionOracle(StatementSplittingConnection):
    """Implementation of Connection for python-oracledb."""

    mung_symbol = NumberedMungSymbolProvider(prefix=":")


class OracleBackend(ServerBackend):
    """Purges and (re)creates the configured user's schema."""

    connection_class = ConnectionOracle
    default_admin_user = "system"

    def _connect(self, descriptor: ConnectionDescriptor, admin: bool = False) -> Connection:
        try:
            import oracledb  # pylint: disable=import-outside-toplevel
        except ModuleNotFoundError:  # pragma: no cover
            issue = "Module oracledb not installed, cannot connect to Oracle"
            raise BackendNotInstalledError(issue)
        inner_cnx = oracledb.connect(user=descriptor.username, password=descriptor.password, dsn=self.dsn(descriptor))
        inner_cnx.autocommit = admin
        return self.connection_class(inner_cnx)

    @staticmethod
    def dsn(descriptor: ConnectionDescriptor) -> str:
        """Return the Easy Connect string for a descriptor, or the bare database (TNS alias) without a host."""
        if not descriptor.host:
            return descriptor.database
        return f"{descriptor.host}:{descriptor.port or DEFAULT_PORT}/{descriptor.database}"

    def _driver_errors(self) -> tuple:
        import oracledb  # pylint: disable=import-outside-toplevel

        return (oracledb.Error,)

    def _is_access_denied(self, error: Exception) -> bool:
        detail = error.args[0] if error.args else None
        return getattr(detail, "code", None) in ACCESS_DENIED_CODES

    def describe(self, descriptor: ConnectionDescriptor) -> str:  # noqa: D102
        return f"{descriptor.adapter_name} schema '{descriptor.username}' on '{descriptor.database}'"

    def maintenance_descriptor(
        self, descriptor: ConnectionDescriptor, credentials: Credentials = None
    ) -> ConnectionDescriptor:
        """Return the descriptor itself, or a copy logging in as the administrator when escalating."""
        if credentials is None:
            return descriptor
        return descriptor.replace(**self._admin_credentials(credentials))

    def drop(self, descriptor: ConnectionDescriptor):
        """Purge every object owned by the configured user, doing nothing if the user cannot log in."""
        self.handler.disconnect()
        try:
            with self._translate(f"Dropping {self.describe(descriptor)}"):
                self._drop_database(descriptor, descriptor)
        except AccessDenied as x:
            if self.handler.connected:
                raise
            self.logger.debug(f"Cannot log in to {self.describe(descriptor)}, nothing to drop: {x}")
            return
        self.handler.disconnect()

    def _drop_database(self, admin: ConnectionDescriptor, descriptor: ConnectionDescriptor):
        cnx = self.establish(admin, admin=True)
        with cnx.query(SELECT_USER_OBJECTS) as results:
            objects = results.fetchall()
        objects.sort(key=lambda o: DROP_ORDER.index(o[1]))
        for name, object_type in objects:
            statement = f"DROP {object_type} {self.quote_identifier(name)}"
            if object_type == "TABLE":
                statement += " CASCADE CONSTRAINTS PURGE"
            elif object_type == "TYPE":
                statement += " FORCE"
            self.logger.debug(f"Executing: {statement}")
            cnx.execute(statement)
        cnx.execute("PURGE RECYCLEBIN")

    def create(self, descriptor: ConnectionDescriptor) -> CreateStatus:
        """Log in as the configured user, creating the user through escalation when it cannot."""
        options = creation_options(descriptor, self.environ)
        try:
            self.establish(descriptor)
            return CreateStatus.CREATED
        except AccessDenied as x:
            self.logger.error(f"{x}\nAdministrative credentials are required to create {self.describe(descriptor)}")
            self._escalate(descriptor, options, x)
        except BackendError as x:
            raise self._creation_failed(descriptor, options, x) from x
        try:
            self.establish(descriptor)
        except BackendError as x:
            raise self._creation_failed(descriptor, options, x) from x
        return CreateStatus.CREATED

    def schema_user(self, descriptor: ConnectionDescriptor) -> str:
        """Return the quoted user name, upper cased the way Oracle stores unquoted logins."""
        return self.quote_identifier(descriptor.username.upper())

    def _create_database(self, admin: ConnectionDescriptor, descriptor: ConnectionDescriptor, options: CreationOptions):
        user = self.schema_user(descriptor)
        password = self.quote_identifier(descriptor.password or "")
        self.establish(admin, admin=True).execute(f"CREATE USER {user} IDENTIFIED BY {password}")

    def _grant_statements(self, descriptor: ConnectionDescriptor) -> List[str]:
        return [f"GRANT ALL PRIVILEGES TO {self.schema_user(descriptor)}"]
