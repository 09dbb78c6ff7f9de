"""Drop / create strategies for every supported database family."""

from pristine.backend.base import (
    Backend,
    Connection,
    ConnectionHandler,
    CreateStatus,
    ResultSet,
    ServerBackend,
)
from pristine.backend.credentials import CredentialProvider, Credentials
from pristine.backend.errors import UnsupportedAdapter
from pristine.backend.firebird import FirebirdBackend
from pristine.backend.mariadb import MariaDBBackend
from pristine.backend.mysql import MySQLBackend
from pristine.backend.oracle import OracleBackend
from pristine.backend.postgres import PostgresBackend
from pristine.backend.sqlite import SQLiteBackend
from pristine.backend.sqlserver import SQLServerBackend
from pristine.config import AdapterKind, ConnectionDescriptor

_BACKEND_MAP = {
    AdapterKind.SQLITE: SQLiteBackend,
    AdapterKind.POSTGRESQL: PostgresBackend,
    AdapterKind.MYSQL: MySQLBackend,
    AdapterKind.MARIADB: MariaDBBackend,
    AdapterKind.SQLSERVER: SQLServerBackend,
    AdapterKind.ORACLE: OracleBackend,
    AdapterKind.FIREBIRD: FirebirdBackend,
}


def get_backend(
    descriptor: ConnectionDescriptor, handler: ConnectionHandler = None, credentials: CredentialProvider = None
) -> Backend:
    """Return the backend strategy for a descriptor's adapter family.

    :param descriptor: the descriptor of the database to provision
    :param handler: the shared connection handler, a new one is made if not given
    :param credentials: provider consulted when creating the database is denied
    :returns: a backend for the descriptor
    :raises: UnsupportedAdapter
    """
    backend_class = _BACKEND_MAP.get(descriptor.adapter)
    if backend_class is None:
        raise UnsupportedAdapter(f"Unknown database adapter '{descriptor.adapter_name}'")
    return backend_class(handler=handler, credentials=credentials)


__all__ = [
    "Backend",
    "Connection",
    "ConnectionHandler",
    "CreateStatus",
    "CredentialProvider",
    "Credentials",
    "ResultSet",
    "ServerBackend",
    "errors",
    "get_backend",
]
