"""Per-dialect DDL and DML providers for the migration records table."""

from pristine.config import AdapterKind
from pristine.migration.errors import MigrationError
from pristine.migration.records.base import RECORDS_TABLE, RecordsProviderBase
from pristine.migration.records.firebird import FirebirdRecordsProvider
from pristine.migration.records.mysql import MySQLRecordsProvider
from pristine.migration.records.oracle import OracleRecordsProvider
from pristine.migration.records.postgres import PostgresRecordsProvider
from pristine.migration.records.sqlite import SQLiteRecordsProvider
from pristine.migration.records.sqlserver import SQLServerRecordsProvider

_PROVIDER_MAP = {
    AdapterKind.SQLITE: SQLiteRecordsProvider,
    AdapterKind.POSTGRESQL: PostgresRecordsProvider,
    AdapterKind.MYSQL: MySQLRecordsProvider,
    AdapterKind.MARIADB: MySQLRecordsProvider,
    AdapterKind.SQLSERVER: SQLServerRecordsProvider,
    AdapterKind.ORACLE: OracleRecordsProvider,
    AdapterKind.FIREBIRD: FirebirdRecordsProvider,
}


def get_records_provider(adapter: AdapterKind) -> RecordsProviderBase:
    """Return the records provider for the given adapter kind.

    :param adapter: the adapter kind of the target database
    :returns: a ``RecordsProviderBase`` instance for the dialect
    :raises MigrationError: if the adapter is not supported
    """
    provider_class = _PROVIDER_MAP.get(adapter)
    if provider_class is None:
        raise MigrationError(f"Unsupported adapter for migrations: '{adapter.value}'")
    return provider_class()


__all__ = [
    "FirebirdRecordsProvider",
    "MySQLRecordsProvider",
    "OracleRecordsProvider",
    "PostgresRecordsProvider",
    "RECORDS_TABLE",
    "RecordsProviderBase",
    "SQLServerRecordsProvider",
    "SQLiteRecordsProvider",
    "get_records_provider",
]
