"""Runs the whole reset, load schema and migrate sequence for one environment."""

import contextlib
import logging
import os
from typing import Iterable, List

from pristine.backend import get_backend
from pristine.backend.base import ConnectionHandler, CredentialProvider
from pristine.config import ConfigResolver, ConnectionDescriptor
from pristine.migration import MigrationRunner
from pristine.schema import SchemaFormat, SchemaLoader


@contextlib.contextmanager
def silenced_stdout(enabled: bool = True):
    """Redirect stdout to the null device for the duration of the block, restoring it on every exit.

    :param enabled: when False stdout is left alone
    """
    if not enabled:
        yield
        return
    with open(os.devnull, "w") as devnull, contextlib.redirect_stdout(devnull):
        yield


class Provisioner:
    """Provisions a pristine database for a named environment.

    ``setup`` resolves the environment once, drops and recreates its database, loads the schema and
    applies outstanding migrations. Each step finishes before the next starts, and any error
    propagates unchanged, in which case the database must be considered unusable.
    """

    def __init__(
        self,
        resolver: ConfigResolver,
        root: str = None,
        schema_format=None,
        migration_paths: Iterable[str] = None,
        credentials: CredentialProvider = None,
        quiet: bool = True,
    ):
        """Construct a provisioner.

        :param resolver: resolves environment names to connection descriptors
        :param root: the project root holding ``db/``, defaults to the cwd
        :param schema_format: a SchemaFormat or its name, defaults to ``PRISTINE_SCHEMA_FORMAT`` or python
        :param migration_paths: migration directories applied in addition to ``<root>/db/migrate``
        :param credentials: provider asked for administrative credentials when creation is denied
        :param quiet: silence stdout while provisioning
        """
        self.logger = logging.getLogger(__name__)
        self.resolver = resolver
        self.root = os.path.abspath(root or os.getcwd())
        self.schema_format = schema_format
        self.migration_paths = list(migration_paths or [])
        self.credentials = credentials
        self.quiet = quiet
        self.handler = ConnectionHandler()

    def migration_directories(self) -> List[str]:
        """Return the migration directories, the configured ones followed by ``<root>/db/migrate``."""
        return self.migration_paths + [os.path.join(self.root, "db", "migrate")]

    def setup(self, environment: str) -> ConnectionDescriptor:
        """Reset the environment's database, load its schema and migrate it.

        The handler stays connected to the provisioned database afterwards.

        :param environment: the environment name, e.g. ``"test"``
        :returns: the descriptor of the provisioned database
        :raises: ConfigNotFound, ConfigurationError, UnsupportedAdapter, UnknownSchemaFormat,
                 CreationFailed, SchemaFileMissing, MigrationFailed
        """
        with silenced_stdout(self.quiet):
            descriptor = self.resolver.resolve(environment)
            if self.schema_format is None:
                schema_format = SchemaFormat.from_environ()
            else:
                schema_format = SchemaFormat.parse(self.schema_format)
            backend = get_backend(descriptor, handler=self.handler, credentials=self.credentials)
            self.logger.debug(f"Provisioning {backend.describe(descriptor)} for '{environment}'")
            backend.reset(descriptor)
            version = SchemaLoader(self.root, self.handler).load(descriptor, schema_format, environment)
            runner = MigrationRunner(self.handler, self.migration_directories())
            self.logger.debug(f"Migrating from {', '.join(runner.discovery.directories)}")
            if version is not None:
                runner.assume_migrated_upto(version)
            applied = runner.migrate()
            self.logger.debug(f"Applied {len(applied)} migration(s) to {backend.describe(descriptor)}")
        return descriptor
