"""Implementation of the SQL Server backend using pymssql."""

import re
from typing import List, Optional

from pristine.backend.base import Connection, ServerBackend
from pristine.backend.credentials import Credentials
from pristine.backend.errors import BackendNotInstalledError
from pristine.config import ConnectionDescriptor, CreationOptions

MAINTENANCE_DATABASE = "master"

# Login failed, CREATE DATABASE permission denied, generic permission denied
ACCESS_DENIED_NUMBERS = (18456, 262, 229)

_BATCH_SEPARATOR = re.compile(r"^\s*GO\s*$", re.IGNORECASE | re.MULTILINE)


class ConnectionSQLServer(Connection):
    """Implementation of Connection for pymssql.

    Scripts are sent batch by batch, split on ``GO`` separator lines as written by SQL Server tooling.
    """

    def execute_script(self, script: str, commit: bool = None):  # noqa: D102
        commit = commit if commit is not None else self._auto_commit
        for batch in _BATCH_SEPARATOR.split(script):
            if batch.strip():
                self.execute(batch, commit=False)
        if commit:
            self.commit()


class SQLServerBackend(ServerBackend):
    """Drops and creates SQL Server databases through the ``master`` database."""

    connection_class = ConnectionSQLServer
    default_admin_user = "sa"

    def _connect(self, descriptor: ConnectionDescriptor, admin: bool = False) -> Connection:
        try:
            import pymssql  # pylint: disable=import-outside-toplevel
        except ModuleNotFoundError:  # pragma: no cover
            issue = "Module pymssql not installed, cannot connect to SQL Server"
            raise BackendNotInstalledError(issue)
        kwargs = {
            "server": descriptor.host,
            "user": descriptor.username,
            "password": descriptor.password,
            "database": descriptor.database,
            "port": str(descriptor.port) if descriptor.port else None,
            "autocommit": admin,
        }
        inner_cnx = pymssql.connect(**{k: v for k, v in kwargs.items() if v is not None})
        return self.connection_class(inner_cnx)

    def _driver_errors(self) -> tuple:
        import pymssql  # pylint: disable=import-outside-toplevel

        return (pymssql.Error,)

    def _is_access_denied(self, error: Exception) -> bool:
        return self.error_number(error) in ACCESS_DENIED_NUMBERS

    @staticmethod
    def error_number(error: Exception) -> Optional[int]:
        """Return the server's message number of a pymssql error, if it carries one.

        pymssql keeps ``number`` on the underlying ``_mssql`` exception and passes the
        ``(number, message)`` tuple as the first argument of the DB API exception it raises.
        """
        for candidate in (error, error.__cause__, error.__context__):
            number = getattr(candidate, "number", None)
            if isinstance(number, int):
                return number
        if error.args:
            first = error.args[0]
            if isinstance(first, tuple) and first:
                first = first[0]
            if isinstance(first, int):
                return first
        return None


    @staticmethod
    def quote_identifier(name: str) -> str:  # noqa: D102
        return "[" + name.replace("]", "]]") + "]"

    def maintenance_descriptor(
        self, descriptor: ConnectionDescriptor, credentials: Credentials = None
    ) -> ConnectionDescriptor:
        """Return a descriptor for the ``master`` database."""
        admin = descriptor.replace(database=MAINTENANCE_DATABASE)
        if credentials is not None:
            admin = admin.replace(**self._admin_credentials(credentials))
        return admin

    def _drop_database(self, admin: ConnectionDescriptor, descriptor: ConnectionDescriptor):
        database = self.quote_identifier(descriptor.database)
        self.establish(admin, admin=True).execute(
            f"IF DB_ID({self.quote_literal(descriptor.database)}) IS NOT NULL "
            f"BEGIN "
            f"ALTER DATABASE {database} SET SINGLE_USER WITH ROLLBACK IMMEDIATE; "
            f"DROP DATABASE {database} "
            f"END"
        )

    def _create_database(self, admin: ConnectionDescriptor, descriptor: ConnectionDescriptor, options: CreationOptions):
        sql = f"CREATE DATABASE {self.quote_identifier(descriptor.database)}"
        # SQL Server collations are named differently, only an explicitly configured one is used
        if descriptor.collation:
            sql += f" COLLATE {descriptor.collation}"
        self.establish(admin, admin=True).execute(sql)

    def _grant_statements(self, descriptor: ConnectionDescriptor) -> List[str]:
        user = self.quote_identifier(descriptor.username)
        return [
            f"USE {self.quote_identifier(descriptor.database)}",
            f"IF USER_ID({self.quote_literal(descriptor.username)}) IS NULL CREATE USER {user} FOR LOGIN {user}",
            f"ALTER ROLE db_owner ADD MEMBER {user}",
        ]
