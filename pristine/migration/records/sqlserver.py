"""SQL Server-specific migration records provider."""

from pristine.migration.records.base import RECORDS_TABLE, RecordsProviderBase


class SQLServerRecordsProvider(RecordsProviderBase):
    """Provides T-SQL for the migration records table."""

    def create_records_table(self) -> str:  # noqa: D102
        return (
            f"CREATE TABLE {RECORDS_TABLE} ("
            "version NVARCHAR(255) NOT NULL PRIMARY KEY, "
            "applied_at DATETIME2 NOT NULL DEFAULT SYSUTCDATETIME())"
        )

    def count_records_table(self) -> str:  # noqa: D102
        return f"SELECT COUNT(*) FROM sys.tables WHERE name = '{RECORDS_TABLE}'"
