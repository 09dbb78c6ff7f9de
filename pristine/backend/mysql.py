"""Implementation of the MySQL backend using MySQL Connector/Python."""

from typing import List

from pristine.backend.base import ServerBackend, StatementSplittingConnection
from pristine.backend.credentials import Credentials
from pristine.backend.errors import BackendNotInstalledError
from pristine.config import ConnectionDescriptor, CreationOptions

# ER_DBACCESS_DENIED_ERROR, ER_ACCESS_DENIED_ERROR
ACCESS_DENIED_ERRNOS = (1044, 1045)


class ConnectionMySQL(StatementSplittingConnection):
    """Implementation of Connection for MySQL Connector."""

    def _execute(self, cursor, sql: str, params: tuple = None):
        cursor.execute(sql, params)


class MySQLBackend(ServerBackend):
    """Drops and creates MySQL databases through a server level connection with no default database."""

    connection_class = ConnectionMySQL
    default_admin_user = "root"

    def _connect(self, descriptor: ConnectionDescriptor, admin: bool = False):
        try:
            import mysql.connector  # pylint: disable=import-outside-toplevel
        except ModuleNotFoundError:  # pragma: no cover
            issue = "Module mysql.connector not installed, cannot connect to MySQL"
            raise BackendNotInstalledError(issue)
        inner_cnx = mysql.connector.connect(**self._make_cnx_kwargs(descriptor))
        return self.connection_class(inner_cnx)

    def _make_cnx_kwargs(self, descriptor: ConnectionDescriptor) -> dict:
        kwargs = {
            "database": descriptor.database,
            "user": descriptor.username,
            "password": descriptor.password,
            "host": descriptor.host,
            "port": descriptor.port,
        }
        if descriptor.charset:
            kwargs["charset"] = descriptor.charset
        if descriptor.collation:
            kwargs["collation"] = descriptor.collation
        return {k: v for k, v in kwargs.items() if v is not None}

    def _driver_errors(self) -> tuple:
        import mysql.connector  # pylint: disable=import-outside-toplevel

        return (mysql.connector.Error,)

    def _is_access_denied(self, error: Exception) -> bool:
        return getattr(error, "errno", None) in ACCESS_DENIED_ERRNOS

    @staticmethod
    def quote_identifier(name: str) -> str:  # noqa: D102
        return "`" + name.replace("`", "``") + "`"

    @staticmethod
    def quote_literal(value: str) -> str:  # noqa: D102
        return "'" + (value or "").replace("\\", "\\\\").replace("'", "''") + "'"

    def maintenance_descriptor(
        self, descriptor: ConnectionDescriptor, credentials: Credentials = None
    ) -> ConnectionDescriptor:
        """Return a descriptor for a server level connection without a default database."""
        admin = descriptor.replace(database=None)
        if credentials is not None:
            admin = admin.replace(**self._admin_credentials(credentials))
        return admin

    def _drop_database(self, admin: ConnectionDescriptor, descriptor: ConnectionDescriptor):
        cnx = self.establish(admin, admin=True)
        cnx.execute(f"DROP DATABASE IF EXISTS {self.quote_identifier(descriptor.database)}")

    def _create_database(self, admin: ConnectionDescriptor, descriptor: ConnectionDescriptor, options: CreationOptions):
        self.establish(admin, admin=True).execute(
            f"CREATE DATABASE {self.quote_identifier(descriptor.database)} "
            f"DEFAULT CHARACTER SET {options.charset} COLLATE {options.collation}"
        )

    def grantee(self, descriptor: ConnectionDescriptor) -> str:
        """Return the ``'user'@'host'`` account the configured user connects as."""
        host = descriptor.options.get("grant_host", "localhost")
        return f"{self.quote_literal(descriptor.username)}@{self.quote_literal(host)}"

    def _grant_statements(self, descriptor: ConnectionDescriptor) -> List[str]:
        grantee = self.grantee(descriptor)
        return [
            f"CREATE USER IF NOT EXISTS {grantee} IDENTIFIED BY {self.quote_literal(descriptor.password)}",
            f"GRANT ALL PRIVILEGES ON {self.quote_identifier(descriptor.database)}.* TO {grantee} WITH GRANT OPTION",
        ]
