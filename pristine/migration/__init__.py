"""Simple versioned migrations applied after the schema is loaded."""

from pristine.migration.discovery import MigrationScript, ScriptDiscovery
from pristine.migration.runner import MigrationRunner

__all__ = [
    "MigrationRunner",
    "MigrationScript",
    "ScriptDiscovery",
]
