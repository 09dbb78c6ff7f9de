"""Provision a fresh, schema consistent database before a test run."""

import os
from typing import Mapping, Union

from pristine.__version__ import __version__
from pristine.backend import get_backend
from pristine.backend.base import CreateStatus
from pristine.backend.credentials import Credentials, deny_escalation, prompt_for_credentials, static_credentials
from pristine.config import AdapterKind, ConfigResolver, ConnectionDescriptor
from pristine.provisioner import Provisioner
from pristine.schema import SchemaFormat

DEFAULT_CONFIG = os.path.join("config", "database.ini")


def setup(environment: str = "test", config: Union[str, Mapping] = DEFAULT_CONFIG, **kwargs) -> ConnectionDescriptor:
    """Reset, load the schema of and migrate the database of an environment.

    Typically called once from a ``conftest.py`` session hook::

        pristine.setup("test", config={"test": "sqlite3://db/test.db"}, root=PROJECT_ROOT)

    :param environment: the environment name, defaults to ``"test"``
    :param config: path to an INI file (relative paths are taken from the root), or a mapping of
                   environment names to URLs / key mappings
    :param kwargs: passed on to :class:`Provisioner`
    :returns: the descriptor of the provisioned database
    """
    root = kwargs.setdefault("root", os.getcwd())
    if isinstance(config, Mapping):
        resolver = ConfigResolver(config, root=root)
    else:
        resolver = ConfigResolver.from_file(os.path.join(root, config), root=root)
    provisioner = Provisioner(resolver, **kwargs)
    try:
        return provisioner.setup(environment)
    finally:
        provisioner.handler.disconnect()


__all__ = [
    "AdapterKind",
    "ConfigResolver",
    "ConnectionDescriptor",
    "CreateStatus",
    "Credentials",
    "Provisioner",
    "SchemaFormat",
    "__version__",
    "deny_escalation",
    "get_backend",
    "prompt_for_credentials",
    "setup",
    "static_credentials",
]
