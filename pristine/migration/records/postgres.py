"""PostgreSQL-specific migration records provider."""

from pristine.migration.records.base import RECORDS_TABLE, RecordsProviderBase


class PostgresRecordsProvider(RecordsProviderBase):
    """Provides PostgreSQL-dialect SQL for the migration records table."""

    def create_records_table(self) -> str:  # noqa: D102
        return (
            f"CREATE TABLE IF NOT EXISTS {RECORDS_TABLE} ("
            "version VARCHAR(255) NOT NULL PRIMARY KEY, "
            "applied_at TIMESTAMPTZ NOT NULL DEFAULT NOW())"
        )

    def count_records_table(self) -> str:  # noqa: D102
        return (
            "SELECT COUNT(*) FROM information_schema.tables "
            f"WHERE table_schema = current_schema() AND table_name = '{RECORDS_TABLE}'"
        )
