"""Resolves named environments into concrete database connection descriptors."""

import configparser
import dataclasses
import logging
import os
import re
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional, Union
from urllib.parse import parse_qs, unquote, urlparse

from pristine.errors import ConfigNotFound, ConfigurationError

DEFAULT_CHARSET = "utf8"
DEFAULT_COLLATION = "utf8_unicode_ci"
MEMORY_DATABASE = ":memory:"

_KNOWN_KEYS = (
    "adapter",
    "database",
    "host",
    "port",
    "username",
    "user",
    "password",
    "charset",
    "collation",
    "encoding",
)


class AdapterKind(Enum):
    """The database engine families a descriptor can target."""

    SQLITE = "sqlite"
    POSTGRESQL = "postgresql"
    MYSQL = "mysql"
    MARIADB = "mariadb"
    SQLSERVER = "sqlserver"
    ORACLE = "oracle"
    FIREBIRD = "firebird"
    UNSUPPORTED = "unsupported"

    @classmethod
    def from_name(cls, name: str) -> "AdapterKind":
        """Match an adapter name, as spelled in a database configuration, to an adapter kind.

        Names may carry a driver suffix (``postgresql+psycopg2``) which is ignored. Names that match
        no family yield ``UNSUPPORTED`` rather than raising, dispatch decides what to do with those.

        :param name: the adapter name from the configuration
        :returns: the matching adapter kind
        """
        base = (name or "").split("+")[0].strip().lower()
        for kind, pattern in _ADAPTER_PATTERNS:
            if pattern.search(base):
                return kind
        return cls.UNSUPPORTED

    @property
    def file_based(self) -> bool:
        """Whether databases of this kind are plain files rather than server side objects."""
        return self is AdapterKind.SQLITE


# Order matters, mariadb must be tried before the generic mysql pattern
_ADAPTER_PATTERNS = (
    (AdapterKind.MARIADB, re.compile(r"^mariadb$")),
    (AdapterKind.MYSQL, re.compile(r"mysql")),
    (AdapterKind.POSTGRESQL, re.compile(r"^(jdbc)?postgres(ql)?$")),
    (AdapterKind.SQLITE, re.compile(r"sqlite")),
    (AdapterKind.SQLSERVER, re.compile(r"^(sqlserver|mssql)$")),
    (AdapterKind.ORACLE, re.compile(r"^(oci|oracle)$")),
    (AdapterKind.FIREBIRD, re.compile(r"^firebird$")),
)


@dataclass(frozen=True)
class ConnectionDescriptor:
    """Everything needed to connect to (or create) one environment's database.

    Descriptors are immutable, use :meth:`replace` to derive administrative or maintenance variants.
    """

    environment: str
    adapter: AdapterKind
    adapter_name: str
    database: Optional[str] = None
    host: Optional[str] = None
    port: Optional[int] = None
    username: Optional[str] = None
    password: Optional[str] = field(default=None, repr=False)
    charset: Optional[str] = None
    collation: Optional[str] = None
    encoding: Optional[str] = None
    options: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))

    def replace(self, **changes) -> "ConnectionDescriptor":
        """Return a copy of this descriptor with the given fields changed.

        :param changes: field names and their new values
        :returns: a new descriptor
        """
        return dataclasses.replace(self, **changes)


@dataclass(frozen=True)
class CreationOptions:
    """Character set options applied when a server side database is created."""

    charset: str
    collation: str
    encoding: str


def creation_options(descriptor: ConnectionDescriptor, environ: Mapping[str, str] = None) -> CreationOptions:
    """Resolve creation options for a descriptor.

    Each value is taken from the descriptor first, then the ``CHARSET`` / ``COLLATION`` environment
    variables, then the hard defaults.

    :param descriptor: the descriptor of the database about to be created
    :param environ: the environment variables to consult, defaults to ``os.environ``
    :returns: the resolved creation options
    """
    environ = os.environ if environ is None else environ
    charset = descriptor.charset or environ.get("CHARSET") or DEFAULT_CHARSET
    collation = descriptor.collation or environ.get("COLLATION") or DEFAULT_COLLATION
    encoding = descriptor.encoding or environ.get("CHARSET") or DEFAULT_CHARSET
    return CreationOptions(charset=charset, collation=collation, encoding=encoding)


ConfigEntry = Union[str, Mapping[str, object]]


class ConfigResolver:
    """Looks up environment names in a configuration source and builds connection descriptors.

    The source maps environment names to either a database URL::

        "{adapter}+{driver}://{username}:{password}@{hostname}:{port}/{database}?{options}"

    or a mapping with ``adapter``, ``database``, ``host``, ``port``, ``username``, ``password``,
    ``charset``, ``collation`` and ``encoding`` keys. Unknown keys (or URL query arguments) are
    kept as free form options on the descriptor.
    """

    def __init__(self, source: Mapping[str, ConfigEntry], root: str = None):
        """Construct a resolver over the given configuration source.

        :param source: environment name to configuration entry mapping
        :param root: the project root relative SQLite paths are resolved against, defaults to the cwd
        """
        self.logger = logging.getLogger(__name__)
        self._source = source
        self._root = os.path.abspath(root or os.getcwd())

    @classmethod
    def from_file(cls, path: str, root: str = None) -> "ConfigResolver":
        """Construct a resolver from an INI file with one section per environment.

        A section either holds a single ``url`` key or the individual connection keys.

        :param path: path to the INI file
        :param root: the project root, defaults to the directory holding the INI file
        :returns: a resolver over the file's sections
        :raises: ConfigurationError
        """
        parser = configparser.ConfigParser(interpolation=None)
        try:
            with open(path, "r") as fh:
                parser.read_file(fh)
        except (OSError, configparser.Error) as x:
            raise ConfigurationError(f"Unable to read database configuration '{path}': {x}") from x
        source = {}
        for section in parser.sections():
            values = dict(parser.items(section))
            source[section] = values["url"] if set(values) == {"url"} else values
        return cls(source, root=root or os.path.dirname(os.path.abspath(path)))

    def environments(self):
        """Return the environment names known to the configuration source."""
        return tuple(self._source.keys())

    def resolve(self, environment: str) -> ConnectionDescriptor:
        """Resolve an environment name to a connection descriptor.

        :param environment: the environment name, e.g. ``"test"``
        :returns: the descriptor for the environment's database
        :raises: ConfigNotFound, ConfigurationError
        """
        if environment not in self._source:
            raise ConfigNotFound(f"No database configuration for environment '{environment}'")
        entry = self._source[environment]
        if isinstance(entry, str):
            values = self._url_to_values(entry)
        elif isinstance(entry, Mapping):
            values = {k: v for k, v in entry.items() if v is not None}
        else:
            raise ConfigurationError(f"Configuration for environment '{environment}' must be a URL or a mapping")
        descriptor = self._make_descriptor(environment, values)
        self.logger.debug(f"Resolved environment '{environment}' to {descriptor}")
        return descriptor

    @staticmethod
    def _url_to_values(db_url: str) -> dict:
        parsed = urlparse(db_url)
        if not parsed.scheme:
            raise ConfigurationError("No database adapter specified")
        values = {"adapter": parsed.scheme}
        for name, raw in parse_qs(parsed.query, keep_blank_values=True).items():
            if len(raw) != 1:
                raise ConfigurationError(f"Invalid argument '{name}': only a single value must be specified")
            values[name] = raw[0]
        if AdapterKind.from_name(parsed.scheme).file_based:
            values["database"] = unquote(parsed.netloc + parsed.path)
            return values
        values["database"] = unquote(parsed.path.strip("/")) or None
        values["host"] = parsed.hostname
        values["username"] = unquote(parsed.username) if parsed.username else None
        values["password"] = unquote(parsed.password) if parsed.password else None
        try:
            values["port"] = parsed.port
        except ValueError as x:
            raise ConfigurationError(f"Invalid port in database URL: {x}") from x
        return {k: v for k, v in values.items() if v is not None}

    def _make_descriptor(self, environment: str, values: dict) -> ConnectionDescriptor:
        adapter_name = str(values.get("adapter") or "")
        if not adapter_name:
            raise ConfigurationError(f"No database adapter specified for environment '{environment}'")
        adapter = AdapterKind.from_name(adapter_name)
        port = values.get("port")
        if port is not None:
            try:
                port = int(port)
            except (TypeError, ValueError) as x:
                raise ConfigurationError(f"Invalid argument 'port': must be int, got '{port}'") from x
        database = values.get("database")
        if database is not None:
            database = str(database)
        if adapter.file_based and database and database != MEMORY_DATABASE:
            database = os.path.join(self._root, os.path.expanduser(database))
        options = {k: str(v) for k, v in values.items() if k not in _KNOWN_KEYS}
        return ConnectionDescriptor(
            environment=environment,
            adapter=adapter,
            adapter_name=adapter_name,
            database=database,
            host=values.get("host"),
            port=port,
            username=values.get("username", values.get("user")),
            password=values.get("password"),
            charset=values.get("charset"),
            collation=values.get("collation"),
            encoding=values.get("encoding"),
            options=MappingProxyType(options),
        )
