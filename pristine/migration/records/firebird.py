"""Firebird-specific migration records provider."""

from pristine.migration.records.base import RECORDS_TABLE, RecordsProviderBase


class FirebirdRecordsProvider(RecordsProviderBase):
    """Provides Firebird-dialect SQL for the migration records table."""

    def create_records_table(self) -> str:  # noqa: D102
        return (
            f"CREATE TABLE {RECORDS_TABLE} ("
            "version VARCHAR(255) NOT NULL PRIMARY KEY, "
            "applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP NOT NULL)"
        )

    def count_records_table(self) -> str:  # noqa: D102
        return f"SELECT COUNT(*) FROM RDB$RELATIONS WHERE RDB$RELATION_NAME = '{RECORDS_TABLE.upper()}'"
