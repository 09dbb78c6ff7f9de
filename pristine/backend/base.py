"""Defines the connection layer and the drop / create strategy shared by all backends."""

import logging
import os
import re
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Mapping, Optional, Tuple

from pristine.backend.credentials import CredentialProvider, Credentials, deny_escalation
from pristine.backend.errors import AccessDenied, BackendError, CreationFailed
from pristine.config import ConnectionDescriptor, CreationOptions, creation_options
from pristine.errors import PristineError
from pristine.mung import MungSymbolProvider, StaticMungSymbolProvider


@dataclass
class ColumnDescriptor:
    """Describes a column in a result set."""

    name: str
    type_code: int
    display_size: int = None
    internal_size: int = None
    precision: int = None
    scale: int = None
    null_ok: bool = None


class ResultSet:
    """Thin wrapper over a DB API 2.0 cursor holding query results."""

    def __init__(self, cursor):
        """Construct a result set.

        :param cursor: the underlying DB API 2.0 cursor being wrapped by this object.
        """
        self._cursor = cursor
        self._description = None

    def fetchone(self) -> Optional[Tuple]:
        """Fetch one result tuple, or None when no results are left."""
        return self._cursor.fetchone()

    def fetchall(self) -> List[Tuple]:
        """Fetch the *remaining* result tuples, an empty list when no results are left."""
        return self._cursor.fetchall()

    @property
    def description(self) -> Tuple[ColumnDescriptor, ...]:
        """Return the column descriptions of the result set."""
        if not self._description:
            self._description = tuple([ColumnDescriptor(*(d[0:7])) for d in self._cursor.description])
        return self._description


_STATEMENT_END = re.compile(r";[ \t]*(?:\r?\n|$)")


def split_sql(script: str) -> List[str]:
    """Split a SQL script into statements on semicolons that end a line.

    Drivers that cannot run several statements in one call execute the pieces one at a time.
    Chunks holding only whitespace or ``--`` comments are dropped.

    :param script: the SQL script text
    :returns: the individual statements without their terminating semicolons
    """
    statements = []
    for chunk in _STATEMENT_END.split(script):
        code = [line for line in chunk.splitlines() if line.strip() and not line.strip().startswith("--")]
        if code:
            statements.append(chunk.strip())
    return statements


class Connection:
    """Wraps a DB API 2.0 connection with the handful of operations provisioning needs."""

    mung_symbol: MungSymbolProvider = StaticMungSymbolProvider("%s")

    def __init__(self, cnx, auto_commit: bool = True):
        """Construct a Connection object.

        :param cnx: the inner DB API 2.0 connection this object wraps
        :param auto_commit: should calls to execute() be automatically committed, defaults to True
        """
        self.logger = logging.getLogger(__name__)
        self._cnx = cnx
        self._auto_commit = auto_commit

    @property
    def raw(self):
        """Return the wrapped driver connection."""
        return self._cnx

    @property
    def autocommit(self) -> bool:
        """Whether commit is called after every call to execute(...)."""
        return self._auto_commit

    @autocommit.setter
    def autocommit(self, value: bool):
        self._auto_commit = value

    def commit(self):
        """Commit changes for this connection / transaction to the database."""
        self._cnx.commit()

    def rollback(self):
        """Rollback changes for this connection / transaction to the database."""
        self._cnx.rollback()

    def close(self):
        """Close the wrapped driver connection."""
        self._cnx.close()

    def _execute(self, cursor, sql: str, params: tuple = None):
        if params:
            cursor.execute(sql, params)
            return
        cursor.execute(sql)

    @contextmanager
    def query(self, sql: str, params: tuple = None) -> ResultSet:
        """Execute the given SQL with the given parameters and provide the results as context.

        :param sql: the SQL statement to execute
        :param params: the values to bind to the execution of the given SQL
        :returns: a result set representing the query's results
        """
        cursor = self._cnx.cursor()
        self._execute(cursor, sql, params)
        try:
            yield ResultSet(cursor)
        finally:
            cursor.close()

    def execute(self, sql: str, params: tuple = None, commit: bool = None) -> int:
        """Execute the given SQL with the given parameters and return the affected row count.

        :param sql: the SQL statement to execute
        :param params: the values to bind to the execution of the given SQL
        :param commit: commit the changes to the database after execution, defaults to value given in constructor
        """
        commit = commit if commit is not None else self._auto_commit
        cursor = self._cnx.cursor()
        try:
            self._execute(cursor, sql, params)
            affected = cursor.rowcount
        finally:
            cursor.close()
        if commit:
            self.commit()
        return affected

    def execute_script(self, script: str, commit: bool = None):
        """Execute a whole SQL script (e.g. a structure dump) as one operation.

        The default sends the script in a single call, which suits drivers that accept multiple
        statements. Other backends override this.

        :param script: the SQL script text
        :param commit: commit after execution, defaults to value given in constructor
        """
        commit = commit if commit is not None else self._auto_commit
        cursor = self._cnx.cursor()
        try:
            cursor.execute(script)
        finally:
            cursor.close()
        if commit:
            self.commit()


class StatementSplittingConnection(Connection):
    """A Connection for drivers that only accept one statement per call."""

    def execute_script(self, script: str, commit: bool = None):  # noqa: D102
        commit = commit if commit is not None else self._auto_commit
        for statement in split_sql(script):
            self.execute(statement, commit=False)
        if commit:
            self.commit()


class ConnectionHandler:
    """Holds the single connection used during a provisioning run.

    Establishing a new connection always closes the previous one first, so there is never more
    than one open handle.
    """

    def __init__(self):
        """Construct a handler with no connection."""
        self.logger = logging.getLogger(__name__)
        self._cnx = None
        self._descriptor = None

    def establish(self, descriptor: ConnectionDescriptor, factory: Callable[[], Connection]) -> Connection:
        """Replace the current connection with a new one.

        :param descriptor: the descriptor the new connection is for
        :param factory: callable opening the new connection
        :returns: the new connection
        """
        self.disconnect()
        self._cnx = factory()
        self._descriptor = descriptor
        self.logger.debug(f"Established connection to {descriptor.database} as {descriptor.username}")
        return self._cnx

    @property
    def connection(self) -> Connection:
        """Return the current connection.

        :raises: BackendError if no connection is established
        """
        if self._cnx is None:
            raise BackendError("No database connection has been established")
        return self._cnx

    @property
    def descriptor(self) -> Optional[ConnectionDescriptor]:
        """Return the descriptor of the current connection, if any."""
        return self._descriptor

    @property
    def connected(self) -> bool:
        """Whether a connection is currently established."""
        return self._cnx is not None

    def disconnect(self):
        """Close the current connection, if there is one."""
        cnx, self._cnx, self._descriptor = self._cnx, None, None
        if cnx is not None:
            cnx.close()


class CreateStatus(Enum):
    """The non-fatal outcomes of creating a database."""

    CREATED = "created"
    ALREADY_EXISTS = "already_exists"


class Backend(ABC):
    """Strategy for dropping and (re)creating one family of databases."""

    connection_class = Connection

    def __init__(self, handler: ConnectionHandler = None, credentials: CredentialProvider = None, environ=None):
        """Construct a backend.

        :param handler: the shared connection handler, a new one is made if not given
        :param credentials: provider asked for administrative credentials when creation is denied
        :param environ: environment variables consulted for creation defaults, defaults to ``os.environ``
        """
        self.logger = logging.getLogger(__name__)
        self.handler = handler or ConnectionHandler()
        self.credentials = credentials or deny_escalation
        self.environ: Mapping[str, str] = os.environ if environ is None else environ

    @abstractmethod
    def _connect(self, descriptor: ConnectionDescriptor, admin: bool = False) -> Connection:
        """Open a driver connection for the descriptor.

        :param descriptor: what to connect to
        :param admin: True for administrative connections that run database level DDL
        :returns: the wrapped connection
        :raises: BackendNotInstalledError
        """
        pass  # pragma: no cover

    @abstractmethod
    def _driver_errors(self) -> tuple:
        """Return the driver exception classes that should be translated into BackendError."""
        pass  # pragma: no cover

    def _is_access_denied(self, error: Exception) -> bool:
        """Whether a driver error means the credentials lack access or privileges."""
        return False

    @abstractmethod
    def drop(self, descriptor: ConnectionDescriptor):
        """Drop the database, doing nothing if it does not exist.

        :param descriptor: the database to drop
        """
        pass  # pragma: no cover

    @abstractmethod
    def create(self, descriptor: ConnectionDescriptor) -> CreateStatus:
        """Create the database.

        :param descriptor: the database to create
        :returns: CREATED, or ALREADY_EXISTS when the database was already there
        :raises: CreationFailed
        """
        pass  # pragma: no cover

    def reset(self, descriptor: ConnectionDescriptor) -> Connection:
        """Drop and recreate the database and leave the handler connected to it.

        :param descriptor: the database to reset
        :returns: the connection to the fresh database
        """
        self.logger.debug(f"Resetting {self.describe(descriptor)}")
        self.drop(descriptor)
        self.create(descriptor)
        return self.establish(descriptor)

    def describe(self, descriptor: ConnectionDescriptor) -> str:
        """Return a short label for a descriptor suitable for log lines."""
        return f"{descriptor.adapter_name} database '{descriptor.database}'"

    @contextmanager
    def _translate(self, action: str):
        """Re-raise driver errors raised inside the block as AccessDenied or BackendError.

        :param action: a description of what was being attempted, used in the error message
        """
        try:
            yield
        except PristineError:
            raise
        except Exception as x:
            if not isinstance(x, self._driver_errors()):
                raise
            if self._is_access_denied(x):
                raise AccessDenied(f"{action} failed: {x}") from x
            raise BackendError(f"{action} failed: {x}") from x

    def connect(self, descriptor: ConnectionDescriptor, admin: bool = False) -> Connection:
        """Open a new connection for the descriptor, outside of the handler.

        :param descriptor: what to connect to
        :param admin: True for administrative connections
        :returns: the new connection
        :raises: AccessDenied, BackendError, BackendNotInstalledError
        """
        with self._translate(f"Connecting to {self.describe(descriptor)}"):
            return self._connect(descriptor, admin)

    def establish(self, descriptor: ConnectionDescriptor, admin: bool = False) -> Connection:
        """Make a connection for the descriptor the handler's current connection.

        :param descriptor: what to connect to
        :param admin: True for administrative connections
        :returns: the new current connection
        """
        return self.handler.establish(descriptor, lambda: self.connect(descriptor, admin))

    def run(self, cnx: Connection, sql: str, action: str = None):
        """Execute a single administrative statement, translating driver errors.

        :param cnx: the connection to run the statement on
        :param sql: the statement
        :param action: description used in error messages, defaults to the statement itself
        """
        self.logger.debug(f"Executing: {sql}")
        with self._translate(action or sql):
            cnx.execute(sql)

    @staticmethod
    def quote_identifier(name: str) -> str:
        """Quote an identifier (database, user ...) for inclusion in DDL."""
        return '"' + name.replace('"', '""') + '"'

    @staticmethod
    def quote_literal(value: str) -> str:
        """Quote a string literal for inclusion in DDL that cannot take bound parameters."""
        return "'" + (value or "").replace("'", "''") + "'"


class ServerBackend(Backend):
    """Shared drop / create flow for databases living inside a server.

    Creation first connects to the target; if it cannot be reached the database is created through an
    administrative connection. When that is denied, administrative credentials are requested
    and used to create the database and grant the configured user full privileges. A denied drop
    escalates the same way if the database exists. The provider is asked at most once per backend,
    so a reset that escalates its drop creates the database with the same credentials.
    """

    default_admin_user: str = None

    def __init__(self, *args, **kwargs):
        """Construct a server backend, taking the same arguments as Backend."""
        super().__init__(*args, **kwargs)
        self._escalated: Optional[Credentials] = None

    @abstractmethod
    def maintenance_descriptor(
        self, descriptor: ConnectionDescriptor, credentials: Credentials = None
    ) -> ConnectionDescriptor:
        """Return the descriptor of the administrative connection used to drop / create a database.

        :param descriptor: the database being dropped or created
        :param credentials: administrative credentials replacing the configured ones, if escalating
        """
        pass  # pragma: no cover

    @abstractmethod
    def _drop_database(self, admin: ConnectionDescriptor, descriptor: ConnectionDescriptor):
        """Drop the database if it exists, connecting through the handler with the administrative descriptor."""
        pass  # pragma: no cover

    @abstractmethod
    def _create_database(self, admin: ConnectionDescriptor, descriptor: ConnectionDescriptor, options: CreationOptions):
        """Create the database, leaving the handler connected with the administrative descriptor."""
        pass  # pragma: no cover

    @abstractmethod
    def _grant_statements(self, descriptor: ConnectionDescriptor) -> List[str]:
        """Return the statements granting the configured user full privileges on its database."""
        pass  # pragma: no cover

    def _admin_credentials(self, credentials: Credentials) -> dict:
        username = credentials.username or self.default_admin_user
        return {"username": username, "password": credentials.password}

    def drop(self, descriptor: ConnectionDescriptor):  # noqa: D102
        self.handler.disconnect()
        self.logger.debug(f"Dropping {self.describe(descriptor)}")
        try:
            self._drop_as(descriptor, self.maintenance_descriptor(descriptor))
        except AccessDenied as x:
            if not self.exists(descriptor):
                self.logger.debug(f"Cannot reach {self.describe(descriptor)}, nothing to drop: {x}")
                return
            self.logger.error(f"{x}\nAdministrative credentials are required to drop {descriptor.database}")
            admin = self.maintenance_descriptor(descriptor, self._escalation_credentials(descriptor, x))
            try:
                self._drop_as(descriptor, admin)
            except BackendError as y:
                raise self._creation_failed(descriptor, creation_options(descriptor, self.environ), y) from y
        finally:
            self.handler.disconnect()

    def exists(self, descriptor: ConnectionDescriptor) -> bool:
        """Whether the configured user can connect to the database, leaving the handler disconnected.

        :param descriptor: the database to look for
        :returns: False when connecting fails for any reason
        """
        try:
            self.establish(descriptor)
        except BackendError:
            return False
        finally:
            self.handler.disconnect()
        return True

    def _drop_as(self, descriptor: ConnectionDescriptor, admin: ConnectionDescriptor):
        with self._translate(f"Dropping {self.describe(descriptor)}"):
            self._drop_database(admin, descriptor)

    def create(self, descriptor: ConnectionDescriptor) -> CreateStatus:  # noqa: D102
        try:
            self.establish(descriptor)
        except BackendError as x:
            self.logger.debug(f"Cannot reach {self.describe(descriptor)}, creating it: {x}")
        else:
            self.logger.warning(f"{descriptor.database} already exists")
            return CreateStatus.ALREADY_EXISTS
        options = creation_options(descriptor, self.environ)
        try:
            self._create_as(descriptor, self.maintenance_descriptor(descriptor), options)
        except AccessDenied as x:
            self.logger.error(f"{x}\nAdministrative credentials are required to create {descriptor.database}")
            self._escalate(descriptor, options, x)
        except BackendError as x:
            raise self._creation_failed(descriptor, options, x) from x
        try:
            self.establish(descriptor)
        except BackendError as x:
            raise self._creation_failed(descriptor, options, x) from x
        return CreateStatus.CREATED

    def _create_as(self, descriptor: ConnectionDescriptor, admin: ConnectionDescriptor, options: CreationOptions):
        self.logger.debug(f"Creating {self.describe(descriptor)} as {admin.username}")
        with self._translate(f"Creating {self.describe(descriptor)}"):
            self._create_database(admin, descriptor, options)

    def _grant(self, descriptor: ConnectionDescriptor):
        cnx = self.handler.connection
        for statement in self._grant_statements(descriptor):
            self.run(cnx, statement)

    def _escalation_credentials(self, descriptor: ConnectionDescriptor, error: AccessDenied) -> Credentials:
        if self._escalated is None:
            self._escalated = self.credentials(descriptor, error, self.default_admin_user)
        return self._escalated

    def _escalate(self, descriptor: ConnectionDescriptor, options: CreationOptions, error: AccessDenied):
        self.handler.disconnect()
        admin = self.maintenance_descriptor(descriptor, self._escalation_credentials(descriptor, error))
        try:
            self._create_as(descriptor, admin, options)
            self._grant(descriptor)
        except BackendError as x:
            raise self._creation_failed(descriptor, options, x) from x

    def _creation_failed(
        self, descriptor: ConnectionDescriptor, options: CreationOptions, error: BackendError
    ) -> CreationFailed:
        self.logger.error(str(error))
        self.logger.error(
            f"Couldn't create {self.describe(descriptor)}, charset: {options.charset}, collation: {options.collation}"
        )
        if descriptor.charset:
            self.logger.error("(if you set the charset manually, make sure you have a matching collation)")
        return CreationFailed(
            f"Couldn't create {self.describe(descriptor)}: {error}",
            adapter=descriptor.adapter_name,
            database=descriptor.database,
            access_denied=isinstance(error, AccessDenied),
        )
