"""MySQL and MariaDB migration records provider."""

from pristine.migration.records.base import RECORDS_TABLE, RecordsProviderBase


class MySQLRecordsProvider(RecordsProviderBase):
    """Provides MySQL-dialect SQL for the migration records table, MariaDB shares it."""

    def create_records_table(self) -> str:  # noqa: D102
        return (
            f"CREATE TABLE IF NOT EXISTS {RECORDS_TABLE} ("
            "version VARCHAR(255) NOT NULL PRIMARY KEY, "
            "applied_at TIMESTAMP(3) NOT NULL DEFAULT CURRENT_TIMESTAMP(3))"
        )

    def count_records_table(self) -> str:  # noqa: D102
        return (
            "SELECT COUNT(*) FROM information_schema.tables "
            f"WHERE table_schema = DATABASE() AND table_name = '{RECORDS_TABLE}'"
        )
