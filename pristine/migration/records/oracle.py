"""Oracle-specific migration records provider."""

from pristine.migration.records.base import RECORDS_TABLE, RecordsProviderBase


class OracleRecordsProvider(RecordsProviderBase):
    """Provides Oracle-dialect SQL for the migration records table."""

    def create_records_table(self) -> str:  # noqa: D102
        return (
            f"CREATE TABLE {RECORDS_TABLE} ("
            "version VARCHAR2(255) NOT NULL PRIMARY KEY, "
            "applied_at TIMESTAMP DEFAULT SYSTIMESTAMP NOT NULL)"
        )

    def count_records_table(self) -> str:  # noqa: D102
        return f"SELECT COUNT(*) FROM user_tables WHERE table_name = '{RECORDS_TABLE.upper()}'"
