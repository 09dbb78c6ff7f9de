"""Implementation of the SQLite backend, where a database is a single file."""

import os
import sqlite3

from pristine.backend.base import Backend, Connection, CreateStatus
from pristine.backend.errors import BackendError, CreationFailed
from pristine.config import MEMORY_DATABASE, ConnectionDescriptor
from pristine.mung import StaticMungSymbolProvider


class ConnectionSQLite3(Connection):
    """Implementation of Connection for sqlite3."""

    mung_symbol = StaticMungSymbolProvider("?")

    def execute_script(self, script: str, commit: bool = None):  # noqa: D102
        commit = commit if commit is not None else self._auto_commit
        self._cnx.executescript(script)
        if commit:
            self.commit()


class SQLiteBackend(Backend):
    """Drops and creates SQLite database files."""

    connection_class = ConnectionSQLite3

    def _connect(self, descriptor: ConnectionDescriptor, admin: bool = False) -> Connection:
        return self.connection_class(sqlite3.connect(descriptor.database or MEMORY_DATABASE))

    def _driver_errors(self) -> tuple:
        return (sqlite3.Error,)

    def drop(self, descriptor: ConnectionDescriptor):
        """Delete the database file, doing nothing if it does not exist."""
        self.handler.disconnect()
        path = descriptor.database
        if not path or path == MEMORY_DATABASE:
            return
        try:
            os.remove(path)
            self.logger.debug(f"Removed {path}")
        except FileNotFoundError:
            self.logger.debug(f"{path} does not exist, nothing to drop")

    def create(self, descriptor: ConnectionDescriptor) -> CreateStatus:
        """Create the database file by connecting to it.

        An existing file is left untouched and reported, the normal reset flow drops it first so
        this only matters for files created outside of provisioning.
        """
        path = descriptor.database
        # TODO: revisit whether an existing file should be replaced instead of reused
        if path and path != MEMORY_DATABASE and os.path.exists(path):
            self.logger.warning(f"{path} already exists")
            return CreateStatus.ALREADY_EXISTS
        try:
            self.establish(descriptor)
        except BackendError as x:
            self.logger.error(f"Couldn't create database for {self.describe(descriptor)}: {x}")
            raise CreationFailed(
                f"Couldn't create {self.describe(descriptor)}: {x}",
                adapter=descriptor.adapter_name,
                database=path,
            ) from x
        return CreateStatus.CREATED
