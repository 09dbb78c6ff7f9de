"""Migration script discovery across one or more directories."""

import logging
import os
import re
from dataclasses import dataclass
from typing import Iterable, List, Optional

from pristine.migration.errors import DiscoveryError

DEFAULT_PATTERN = r"^(\d+)_(\w+)\.py$"


@dataclass
class MigrationScript:
    """Represents a discovered migration script file.

    :param version: the numeric version taken from the file name's leading digits
    :param name: the script filename without the ``.py`` extension
    :param path: the absolute path to the script file
    """

    version: int
    name: str
    path: str


class ScriptDiscovery:
    """Scans directories for migration scripts named ``<version>_<description>.py``.

    Directories that do not exist are skipped. Scripts are ordered by version, and two scripts
    sharing a version (in the same or different directories) are an error.
    """

    def __init__(self, directories: Iterable[str], pattern: Optional[str] = None):
        """Construct a script discovery instance.

        :param directories: paths of the directories containing migration scripts
        :param pattern: regex pattern filenames must match, the first group must capture the version
        """
        self.logger = logging.getLogger(__name__)
        self._directories = []
        for directory in directories:
            directory = os.path.abspath(directory)
            if directory not in self._directories:
                self._directories.append(directory)
        self._pattern = re.compile(pattern or DEFAULT_PATTERN)

    @property
    def directories(self) -> List[str]:
        """Return the de-duplicated absolute directories scanned."""
        return list(self._directories)

    def discover(self) -> List[MigrationScript]:
        """Scan the directories and return matching scripts in version order.

        :returns: a list of ``MigrationScript`` sorted by version
        :raises DiscoveryError: if two scripts share a version
        """
        scripts = []
        for directory in self._directories:
            if not os.path.isdir(directory):
                self.logger.debug(f"Migration directory {directory} does not exist, skipping")
                continue
            for filename in sorted(os.listdir(directory)):
                match = self._pattern.match(filename)
                if not match:
                    continue
                path = os.path.join(directory, filename)
                scripts.append(MigrationScript(version=int(match.group(1)), name=filename[:-3], path=path))
        scripts.sort(key=lambda s: s.version)
        self._check_duplicates(scripts)
        return scripts

    @staticmethod
    def _check_duplicates(scripts: List[MigrationScript]):
        """Raise if any two scripts share the same version.

        :param scripts: the list of discovered scripts
        :raises DiscoveryError: if duplicate versions are found
        """
        seen = {}
        for script in scripts:
            if script.version in seen:
                raise DiscoveryError(
                    f"Duplicate migration version {script.version}: {seen[script.version].path} and {script.path}"
                )
            seen[script.version] = script
