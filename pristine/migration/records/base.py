"""Abstract base class for per-dialect migration record providers."""

from abc import ABC, abstractmethod

RECORDS_TABLE = "pristine_schema_migrations"


class RecordsProviderBase(ABC):
    """Abstract base providing DDL and DML for the migration records table.

    Subclasses implement the dialect-specific DDL and the table existence check, while shared DML
    methods are provided here.
    """

    @abstractmethod
    def create_records_table(self) -> str:
        """Return DDL to create the pristine_schema_migrations table.

        :returns: a DDL statement string
        """
        pass  # pragma: no cover

    @abstractmethod
    def count_records_table(self) -> str:
        """Return a query counting how many pristine_schema_migrations tables exist, 0 or 1.

        :returns: a SELECT statement string
        """
        pass  # pragma: no cover

    def select_applied_versions(self) -> str:
        """Return DML to select all applied versions.

        :returns: a SELECT statement string
        """
        return f"SELECT version FROM {RECORDS_TABLE}"

    def insert_version(self) -> str:
        """Return DML to insert a migration record.

        The template must accept the ``#{version}`` parameter.

        :returns: an INSERT statement string
        """
        return f"INSERT INTO {RECORDS_TABLE} (version) VALUES (#{{version}})"
