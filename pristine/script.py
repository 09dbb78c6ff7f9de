"""Connection wrapper and module loading shared by schema and migration scripts."""

import importlib.util
from typing import List

from pristine.backend.base import Connection
from pristine.templating import Template


class ScriptConnection:
    """Wraps a ``Connection`` with template rendering for schema and migration scripts.

    Provides ``execute`` and ``query`` methods that accept SQL templates with ``#{var}`` and
    ``!{var}`` syntax, rendering them with the connection's placeholder style before delegating
    to the underlying connection. Nothing is committed here, the caller owns the transaction.
    """

    def __init__(self, cnx: Connection):
        """Construct a script connection.

        :param cnx: the underlying database connection
        """
        self._cnx = cnx

    @property
    def connection(self) -> Connection:
        """Return the underlying database connection.

        :returns: the wrapped ``Connection``
        """
        return self._cnx

    def execute(self, sql_template: str, **kwargs) -> int:
        """Render and execute a SQL template, returning the affected row count.

        :param sql_template: a SQL template string
        :param kwargs: template parameter values
        :returns: number of rows affected
        """
        sql, params = Template(sql_template).render(self._cnx.mung_symbol, kwargs)
        return self._cnx.execute(sql, params, commit=False)

    def query(self, sql_template: str, **kwargs) -> List[dict]:
        """Render and execute a SQL template, returning results as a list of dicts.

        :param sql_template: a SQL template string
        :param kwargs: template parameter values
        :returns: list of dictionaries mapping column names to values
        """
        sql, params = Template(sql_template).render(self._cnx.mung_symbol, kwargs)
        with self._cnx.query(sql, params) as results:
            names = [d.name for d in results.description]
            return [dict(zip(names, row)) for row in results.fetchall()]

    def execute_script(self, script: str):
        """Execute a raw multi statement SQL script without templating.

        :param script: the SQL script text
        """
        self._cnx.execute_script(script, commit=False)


def load_module(name: str, path: str):
    """Load a Python module from a script path without registering it in ``sys.modules``.

    :param name: the module name to give the loaded module
    :param path: the path to the ``.py`` file
    :returns: the loaded module object
    """
    spec = importlib.util.spec_from_file_location(name, path)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module
