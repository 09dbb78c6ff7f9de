"""Implementation of the MariaDB backend using MariaDB Connector/Python."""

from pristine.backend.errors import BackendNotInstalledError
from pristine.backend.mysql import ConnectionMySQL, MySQLBackend
from pristine.config import ConnectionDescriptor
from pristine.mung import StaticMungSymbolProvider


class ConnectionMariaDB(ConnectionMySQL):
    """Implementation of Connection for MariaDB Connector."""

    mung_symbol = StaticMungSymbolProvider("?")


class MariaDBBackend(MySQLBackend):
    """MySQL family backend driven by the ``mariadb`` module.

    The SQL used to drop, create and grant is shared with :class:`MySQLBackend`.
    """

    connection_class = ConnectionMariaDB

    def _connect(self, descriptor: ConnectionDescriptor, admin: bool = False):
        try:
            import mariadb  # pylint: disable=import-outside-toplevel
        except ModuleNotFoundError:  # pragma: no cover
            issue = "Module mariadb not installed, cannot connect to MariaDB"
            raise BackendNotInstalledError(issue)
        kwargs = self._make_cnx_kwargs(descriptor)
        # MariaDB Connector always talks utf8mb4 and takes no charset or collation arguments
        kwargs.pop("charset", None)
        kwargs.pop("collation", None)
        return self.connection_class(mariadb.connect(**kwargs))

    def _driver_errors(self) -> tuple:
        import mariadb  # pylint: disable=import-outside-toplevel

        return (mariadb.Error,)
