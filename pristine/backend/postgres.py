"""Implementation of the PostgreSQL backend using psycopg2."""

from typing import List

from pristine.backend.base import Connection, ServerBackend
from pristine.backend.credentials import Credentials
from pristine.backend.errors import BackendNotInstalledError
from pristine.config import ConnectionDescriptor, CreationOptions

MAINTENANCE_DATABASE = "postgres"

# insufficient_privilege, invalid_password, invalid_authorization_specification
ACCESS_DENIED_CODES = ("42501", "28P01", "28000")


class ConnectionPSQLPsycopg2(Connection):
    """Implementation of Connection for psycopg2."""

    def _execute(self, cursor, sql: str, params: tuple = None):
        cursor.execute(sql, params)


class PostgresBackend(ServerBackend):
    """Drops and creates PostgreSQL databases through the ``postgres`` maintenance database."""

    connection_class = ConnectionPSQLPsycopg2
    default_admin_user = "postgres"

    def _connect(self, descriptor: ConnectionDescriptor, admin: bool = False) -> Connection:
        try:
            import psycopg2  # pylint: disable=import-outside-toplevel
        except ModuleNotFoundError:  # pragma: no cover
            issue = "Module psycopg2 not installed, cannot connect to PostgreSQL"
            raise BackendNotInstalledError(issue)
        kwargs = {
            "dbname": descriptor.database,
            "user": descriptor.username,
            "password": descriptor.password,
            "host": descriptor.host,
            "port": descriptor.port,
        }
        schema_search_path = descriptor.options.get("schema_search_path")
        if schema_search_path:
            kwargs["options"] = f"-c search_path={schema_search_path}"
        inner_cnx = psycopg2.connect(**{k: v for k, v in kwargs.items() if v is not None})
        # CREATE / DROP DATABASE cannot run inside a transaction block
        inner_cnx.autocommit = admin
        return self.connection_class(inner_cnx)

    def _driver_errors(self) -> tuple:
        import psycopg2  # pylint: disable=import-outside-toplevel

        return (psycopg2.Error,)

    def _is_access_denied(self, error: Exception) -> bool:
        if getattr(error, "pgcode", None) in ACCESS_DENIED_CODES:
            return True
        message = str(error).lower()
        return "authentication failed" in message or "permission denied" in message

    def maintenance_descriptor(
        self, descriptor: ConnectionDescriptor, credentials: Credentials = None
    ) -> ConnectionDescriptor:
        """Return a descriptor for the ``postgres`` database with the public search path."""
        options = dict(descriptor.options)
        options["schema_search_path"] = "public"
        admin = descriptor.replace(database=MAINTENANCE_DATABASE, options=options)
        if credentials is not None:
            admin = admin.replace(**self._admin_credentials(credentials))
        return admin

    def _drop_database(self, admin: ConnectionDescriptor, descriptor: ConnectionDescriptor):
        cnx = self.establish(admin, admin=True)
        cnx.execute(f"DROP DATABASE IF EXISTS {self.quote_identifier(descriptor.database)}")

    def _create_database(self, admin: ConnectionDescriptor, descriptor: ConnectionDescriptor, options: CreationOptions):
        cnx = self.establish(admin, admin=True)
        database = self.quote_identifier(descriptor.database)
        sql = f"CREATE DATABASE {database} ENCODING {self.quote_literal(options.encoding)}"
        template = descriptor.options.get("template")
        if template:
            sql += f" TEMPLATE {self.quote_identifier(template)}"
        cnx.execute(sql)

    def _grant_statements(self, descriptor: ConnectionDescriptor) -> List[str]:
        database = self.quote_identifier(descriptor.database)
        user = self.quote_identifier(descriptor.username)
        return [
            f"GRANT ALL PRIVILEGES ON DATABASE {database} TO {user}",
            f"ALTER DATABASE {database} OWNER TO {user}",
        ]
