"""Applies pending migration scripts to the handler's current database."""

import logging
from typing import Iterable, List, Optional, Set

from pristine.backend.base import Connection, ConnectionHandler
from pristine.migration.discovery import MigrationScript, ScriptDiscovery
from pristine.migration.errors import MigrationFailed, ScriptValidationError
from pristine.migration.records import RecordsProviderBase, get_records_provider
from pristine.script import ScriptConnection, load_module
from pristine.templating import Template


class MigrationRunner:
    """Runs migration scripts against the database the handler is connected to.

    Applied versions are kept in the ``pristine_schema_migrations`` table of the target database.
    Each pending script runs within its own transaction together with the insert of its record,
    so a failure rolls back that script alone and leaves every earlier record in place.
    """

    def __init__(self, handler: ConnectionHandler, directories: Iterable[str], pattern: Optional[str] = None):
        """Construct a migration runner.

        :param handler: the connection handler, connected to the target database when migrating
        :param directories: paths of the directories containing migration scripts
        :param pattern: optional regex pattern for migration filenames, the first group is the version
        """
        self.logger = logging.getLogger(__name__)
        self._handler = handler
        self._discovery = ScriptDiscovery(directories, pattern)

    @property
    def discovery(self) -> ScriptDiscovery:
        """Return the script discovery used by this runner."""
        return self._discovery

    def _records_provider(self) -> RecordsProviderBase:
        return get_records_provider(self._handler.descriptor.adapter)

    def migrate(self) -> List[MigrationScript]:
        """Discover and apply all pending migration scripts in version order.

        :returns: the scripts applied by this call, empty when everything was already applied
        :raises MigrationFailed: if a migration script fails
        :raises ScriptValidationError: if a script is missing a valid upgrade function
        :raises DiscoveryError: if two scripts share a version
        """
        cnx = self._handler.connection
        rp = self._records_provider()
        self._create_table(cnx, rp)
        scripts = self._discovery.discover()
        applied = self._get_applied_versions(cnx, rp)
        pending = self._compute_pending(scripts, applied)
        if not pending:
            self.logger.debug("No pending migrations")
            return []
        for script in pending:
            self._apply_single_script(cnx, rp, script)
        return pending

    def assume_migrated_upto(self, version: int) -> List[MigrationScript]:
        """Record every discovered script up to and including a version as applied, without running it.

        Used when a schema already reflects those migrations.

        :param version: the highest version the schema includes
        :returns: the scripts newly recorded as applied
        """
        cnx = self._handler.connection
        rp = self._records_provider()
        self._create_table(cnx, rp)
        applied = self._get_applied_versions(cnx, rp)
        assumed = [s for s in self._compute_pending(self._discovery.discover(), applied) if s.version <= version]
        cnx.autocommit = False
        try:
            for script in assumed:
                self._insert_version(cnx, rp, script)
            cnx.commit()
        except Exception:
            cnx.rollback()
            raise
        finally:
            cnx.autocommit = True
        self.logger.debug(f"Assumed {len(assumed)} migration(s) up to version {version} as applied")
        return assumed

    def _create_table(self, cnx: Connection, rp: RecordsProviderBase):
        """Create the migration records table if it does not exist.

        :param cnx: database connection
        :param rp: records provider
        """
        with cnx.query(rp.count_records_table()) as results:
            exists = results.fetchone()[0]
        if not exists:
            cnx.execute(rp.create_records_table(), commit=True)

    def _get_applied_versions(self, cnx: Connection, rp: RecordsProviderBase) -> Set[str]:
        """Query the set of already applied versions.

        :param cnx: database connection
        :param rp: records provider
        :returns: set of applied version strings
        """
        with cnx.query(rp.select_applied_versions()) as results:
            return {str(row[0]) for row in results.fetchall()}

    @staticmethod
    def _compute_pending(scripts: List[MigrationScript], applied: Set[str]) -> List[MigrationScript]:
        """Return scripts that have not yet been applied.

        :param scripts: all discovered scripts in order
        :param applied: set of versions already applied
        :returns: list of pending migration scripts
        """
        return [s for s in scripts if str(s.version) not in applied]

    @staticmethod
    def _load_upgrade(script: MigrationScript):
        """Load a script and return its upgrade function.

        :param script: the migration script to load
        :raises ScriptValidationError: if the upgrade function is missing or not callable
        """
        module = load_module(script.name, script.path)
        upgrade = getattr(module, "upgrade", None)
        if upgrade is None or not callable(upgrade):
            raise ScriptValidationError(f"Migration script '{script.name}' must define a callable 'upgrade' function")
        return upgrade

    def _apply_single_script(self, cnx: Connection, rp: RecordsProviderBase, script: MigrationScript):
        """Load, validate and execute a single migration script in its own transaction.

        :param cnx: database connection
        :param rp: records provider
        :param script: the migration script to apply
        :raises MigrationFailed: if the script raises
        """
        upgrade = self._load_upgrade(script)
        self.logger.debug(f"Applying migration {script.name}")
        cnx.autocommit = False
        try:
            upgrade(ScriptConnection(cnx))
            self._insert_version(cnx, rp, script)
            cnx.commit()
        except Exception as exc:
            cnx.rollback()
            self.logger.error(f"Migration '{script.name}' failed: {exc}")
            raise MigrationFailed(f"Migration '{script.name}' failed: {exc}") from exc
        finally:
            cnx.autocommit = True

    @staticmethod
    def _insert_version(cnx: Connection, rp: RecordsProviderBase, script: MigrationScript):
        """Insert a migration record.

        :param cnx: database connection
        :param rp: records provider
        :param script: the script being recorded
        """
        sql, params = Template(rp.insert_version()).render(cnx.mung_symbol, {"version": str(script.version)})
        cnx.execute(sql, params, commit=False)
