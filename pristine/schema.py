"""Locates and loads the schema of a freshly created database."""

import logging
import os
from enum import Enum
from typing import List, Optional

from pristine.backend.base import ConnectionHandler
from pristine.config import ConnectionDescriptor
from pristine.errors import SchemaFileMissing, SchemaScriptError, UnknownSchemaFormat
from pristine.script import ScriptConnection, load_module

SCHEMA_FORMAT_VARIABLE = "PRISTINE_SCHEMA_FORMAT"


class SchemaFormat(Enum):
    """How a project's schema is written down."""

    PYTHON = "python"
    SQL = "sql"

    @classmethod
    def parse(cls, value) -> "SchemaFormat":
        """Return the schema format for a configuration value.

        :param value: a SchemaFormat or its name / value, case insensitive
        :returns: the matching schema format
        :raises: UnknownSchemaFormat
        """
        if isinstance(value, cls):
            return value
        text = str(value or "").strip().lower()
        for schema_format in cls:
            if text in (schema_format.value, schema_format.name.lower()):
                return schema_format
        raise UnknownSchemaFormat(f"Unknown schema format: {value}")

    @classmethod
    def from_environ(cls, environ=None) -> "SchemaFormat":
        """Return the schema format named by ``PRISTINE_SCHEMA_FORMAT``, defaulting to PYTHON.

        :raises: UnknownSchemaFormat
        """
        environ = os.environ if environ is None else environ
        return cls.parse(environ.get(SCHEMA_FORMAT_VARIABLE) or cls.PYTHON)


class SchemaLoader:
    """Loads a schema script or SQL dump from ``<root>/db`` into the handler's current connection.

    For the PYTHON format the module ``schema_<hint>.py`` is preferred over ``schema.py``. It must
    define ``define(cnx)``, which is called with a :class:`ScriptConnection`, and may set an integer
    ``VERSION`` naming the migration the schema already includes. For the SQL format
    ``structure_<hint>.sql`` is preferred over ``structure.sql`` and run as a single script.
    """

    def __init__(self, root: str, handler: ConnectionHandler):
        """Construct a schema loader.

        :param root: the project root holding the ``db`` directory
        :param handler: the connection handler, connected to the target database when loading
        """
        self.logger = logging.getLogger(__name__)
        self._root = root
        self._handler = handler

    @property
    def schema_dir(self) -> str:
        """Return the directory schema files are looked up in."""
        return os.path.join(self._root, "db")

    def candidates(self, schema_format: SchemaFormat, name_hint: str = None) -> List[str]:
        """Return the schema file paths to try, most specific first.

        :param schema_format: the schema format
        :param name_hint: the database / environment name selecting a specific file, if any
        :returns: the candidate paths
        """
        stem, extension = ("schema", "py") if schema_format is SchemaFormat.PYTHON else ("structure", "sql")
        names = [f"{stem}_{name_hint}.{extension}"] if name_hint else []
        names.append(f"{stem}.{extension}")
        return [os.path.join(self.schema_dir, name) for name in names]

    def locate(self, schema_format: SchemaFormat, name_hint: str = None) -> str:
        """Return the first existing candidate schema file.

        :raises: SchemaFileMissing
        """
        candidates = self.candidates(schema_format, name_hint)
        for path in candidates:
            if os.path.isfile(path):
                return path
        raise SchemaFileMissing(f"No schema file found, looked for: {', '.join(candidates)}")

    def load(self, descriptor: ConnectionDescriptor, schema_format, name_hint: str = None) -> Optional[int]:
        """Load the schema into the database.

        :param descriptor: the descriptor of the database being loaded
        :param schema_format: the schema format, a SchemaFormat or its name
        :param name_hint: the database / environment name selecting a specific schema file
        :returns: the ``VERSION`` declared by a schema script, None otherwise
        :raises: UnknownSchemaFormat, SchemaFileMissing, SchemaScriptError
        """
        schema_format = SchemaFormat.parse(schema_format)
        path = self.locate(schema_format, name_hint)
        self.logger.debug(f"Loading schema for {descriptor.database} from {path}")
        cnx = self._handler.connection
        cnx.autocommit = False
        try:
            if schema_format is SchemaFormat.SQL:
                version = self._load_sql(cnx, path)
            else:
                version = self._load_script(cnx, path)
            cnx.commit()
        except Exception:
            cnx.rollback()
            raise
        finally:
            cnx.autocommit = True
        return version

    @staticmethod
    def _load_sql(cnx, path: str) -> None:
        with open(path, "r") as fh:
            script = fh.read()
        cnx.execute_script(script, commit=False)
        return None

    @staticmethod
    def _load_script(cnx, path: str) -> Optional[int]:
        module = load_module(os.path.splitext(os.path.basename(path))[0], path)
        define = getattr(module, "define", None)
        if define is None or not callable(define):
            raise SchemaScriptError(f"Schema script '{path}' must define a callable 'define' function")
        version = getattr(module, "VERSION", None)
        if version is not None and not isinstance(version, int):
            raise SchemaScriptError(f"Schema script '{path}' declares a non integer VERSION: {version!r}")
        define(ScriptConnection(cnx))
        return version
