"""Tests locating and loading schema files into a SQLite database."""

from pristine.config import ConfigResolver
from pristine.errors import SchemaFileMissing, SchemaScriptError, UnknownSchemaFormat
from pristine.schema import SCHEMA_FORMAT_VARIABLE, SchemaFormat, SchemaLoader
from pristine.script import ScriptConnection

import pytest

SCHEMA_SCRIPT = """
VERSION = 3


def define(cnx):
    cnx.execute("CREATE TABLE users (id INTEGER PRIMARY KEY, name TEXT NOT NULL)")
    cnx.execute("CREATE TABLE roles (id INTEGER PRIMARY KEY, name TEXT NOT NULL)")
    cnx.execute("INSERT INTO roles (name) VALUES (#{name})", name="admin")
"""

STRUCTURE_SQL = """
-- dumped structure
CREATE TABLE users (id INTEGER PRIMARY KEY, name TEXT NOT NULL);
CREATE TABLE roles (id INTEGER PRIMARY KEY, name TEXT NOT NULL);
"""


def table_names(handler):
    """Return the user tables of the handler's SQLite database."""
    rows = ScriptConnection(handler.connection).query(
        "SELECT name FROM sqlite_master WHERE type = 'table' ORDER BY name"
    )
    return [row["name"] for row in rows]


@pytest.fixture()
def project(tmp_path):
    """Provide a project root with an empty db directory."""
    (tmp_path / "db").mkdir()
    return tmp_path


@pytest.fixture()
def descriptor(project):
    """Provide the descriptor of the project's test database."""
    return ConfigResolver({"test": "sqlite3://test.db"}, root=str(project)).resolve("test")


@pytest.mark.parametrize(
    "value, expected",
    [
        ("python", SchemaFormat.PYTHON),
        ("PYTHON", SchemaFormat.PYTHON),
        (" sql ", SchemaFormat.SQL),
        (SchemaFormat.SQL, SchemaFormat.SQL),
    ],
)
def test_parse_schema_format(value, expected: SchemaFormat):
    """Tests schema formats are parsed case insensitively."""
    assert SchemaFormat.parse(value) is expected


@pytest.mark.parametrize("value", ["ruby", "", None])
def test_parse_unknown_schema_format(value):
    """Tests unknown schema formats are rejected."""
    with pytest.raises(UnknownSchemaFormat, match="Unknown schema format"):
        SchemaFormat.parse(value)


def test_schema_format_from_environ():
    """Tests the format environment variable, defaulting to python when unset or empty."""
    assert SchemaFormat.from_environ({}) is SchemaFormat.PYTHON
    assert SchemaFormat.from_environ({SCHEMA_FORMAT_VARIABLE: ""}) is SchemaFormat.PYTHON
    assert SchemaFormat.from_environ({SCHEMA_FORMAT_VARIABLE: "sql"}) is SchemaFormat.SQL
    with pytest.raises(UnknownSchemaFormat):
        SchemaFormat.from_environ({SCHEMA_FORMAT_VARIABLE: "yaml"})


class TestLocate:
    """Tests which schema file is chosen."""

    @pytest.mark.parametrize(
        "schema_format, hint, names",
        [
            (SchemaFormat.PYTHON, "test", ["schema_test.py", "schema.py"]),
            (SchemaFormat.PYTHON, None, ["schema.py"]),
            (SchemaFormat.SQL, "test", ["structure_test.sql", "structure.sql"]),
        ],
    )
    def test_candidates(self, project, sqlite_handler, schema_format, hint, names):
        """Tests the specific file is tried before the generic one."""
        loader = SchemaLoader(str(project), sqlite_handler)
        assert loader.candidates(schema_format, hint) == [str(project / "db" / name) for name in names]

    def test_specific_file_preferred(self, project, sqlite_handler):
        """Tests an environment specific schema wins over the generic schema."""
        (project / "db" / "schema.py").write_text(SCHEMA_SCRIPT)
        (project / "db" / "schema_test.py").write_text(SCHEMA_SCRIPT)
        loader = SchemaLoader(str(project), sqlite_handler)
        assert loader.locate(SchemaFormat.PYTHON, "test") == str(project / "db" / "schema_test.py")
        assert loader.locate(SchemaFormat.PYTHON, "ci") == str(project / "db" / "schema.py")

    def test_missing_file(self, project, sqlite_handler):
        """Tests every candidate is named when no schema file exists."""
        loader = SchemaLoader(str(project), sqlite_handler)
        with pytest.raises(SchemaFileMissing, match="structure_test.sql, .*structure.sql"):
            loader.locate(SchemaFormat.SQL, "test")


class TestLoad:
    """Tests loading schemas into the connected database."""

    def test_load_script(self, project, descriptor, sqlite_handler):
        """Tests a schema script defines the tables and its VERSION is returned."""
        (project / "db" / "schema.py").write_text(SCHEMA_SCRIPT)
        version = SchemaLoader(str(project), sqlite_handler).load(descriptor, SchemaFormat.PYTHON, "test")
        assert version == 3
        assert table_names(sqlite_handler) == ["roles", "users"]
        assert ScriptConnection(sqlite_handler.connection).query("SELECT name FROM roles") == [{"name": "admin"}]
        assert sqlite_handler.connection.autocommit

    def test_load_structure(self, project, descriptor, sqlite_handler):
        """Tests a SQL structure dump is run as a whole and has no version."""
        (project / "db" / "structure.sql").write_text(STRUCTURE_SQL)
        version = SchemaLoader(str(project), sqlite_handler).load(descriptor, "sql", "test")
        assert version is None
        assert table_names(sqlite_handler) == ["roles", "users"]

    def test_script_without_define(self, project, descriptor, sqlite_handler):
        """Tests a schema script must provide a define function."""
        (project / "db" / "schema.py").write_text("VERSION = 1\n")
        with pytest.raises(SchemaScriptError, match="callable 'define'"):
            SchemaLoader(str(project), sqlite_handler).load(descriptor, SchemaFormat.PYTHON)
        assert sqlite_handler.connection.autocommit

    def test_script_with_bad_version(self, project, descriptor, sqlite_handler):
        """Tests a schema script's VERSION must be an integer."""
        (project / "db" / "schema.py").write_text("VERSION = '3'\n\n\ndef define(cnx):\n    pass\n")
        with pytest.raises(SchemaScriptError, match="non integer VERSION"):
            SchemaLoader(str(project), sqlite_handler).load(descriptor, SchemaFormat.PYTHON)

    def test_script_error_propagates(self, project, descriptor, sqlite_handler):
        """Tests errors raised by define propagate unchanged."""
        (project / "db" / "schema.py").write_text("def define(cnx):\n    raise RuntimeError('boom')\n")
        with pytest.raises(RuntimeError, match="boom"):
            SchemaLoader(str(project), sqlite_handler).load(descriptor, SchemaFormat.PYTHON)
        assert sqlite_handler.connection.autocommit
