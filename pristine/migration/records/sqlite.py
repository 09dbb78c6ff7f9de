"""SQLite-specific migration records provider."""

from pristine.migration.records.base import RECORDS_TABLE, RecordsProviderBase


class SQLiteRecordsProvider(RecordsProviderBase):
    """Provides SQLite-dialect SQL for the migration records table."""

    def create_records_table(self) -> str:  # noqa: D102
        return (
            f"CREATE TABLE IF NOT EXISTS {RECORDS_TABLE} ("
            "version TEXT NOT NULL PRIMARY KEY, "
            "applied_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%f', 'now')))"
        )

    def count_records_table(self) -> str:  # noqa: D102
        return f"SELECT COUNT(*) FROM sqlite_master WHERE type = 'table' AND name = '{RECORDS_TABLE}'"
