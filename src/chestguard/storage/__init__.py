"""Persistence: backend protocol, YAML and SQLite backends, migration.

Usage:
    from chestguard.storage import BackendKind, StorageManager, file_backend_factory

    manager = StorageManager(file_backend_factory("data"), BackendKind.YAML, protection, trust)
    manager.open() and manager.load()
"""

from chestguard.storage.manager import StorageManager, file_backend_factory
from chestguard.storage.migrator import BackendFactory, BackendMigrator, MigrationOutcome
from chestguard.storage.protocol import BackendKind, StorageBackend
from chestguard.storage.sqlite_backend import SqliteBackend
from chestguard.storage.yaml_backend import YamlBackend

__all__ = [
    # Protocol
    "BackendKind",
    "StorageBackend",
    # Backends
    "SqliteBackend",
    "YamlBackend",
    # Management
    "BackendFactory",
    "BackendMigrator",
    "MigrationOutcome",
    "StorageManager",
    "file_backend_factory",
]
