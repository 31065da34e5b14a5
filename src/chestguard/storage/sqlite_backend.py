"""Embedded relational backend: one SQLite table keyed by (world, x, y, z).

Only owner and secret columns exist. Display names and trust relations are
not stored here; load() leaves them as they are in the registries.
"""

from __future__ import annotations

import sqlite3
import threading
from pathlib import Path

from chestguard.core.identity import ContainerKey
from chestguard.registry import ContainerRecord, ProtectionRegistry, TrustRegistry
from chestguard.storage.protocol import BackendKind
from chestguard.structured_logging import get_logger

logger = get_logger(__name__)

TABLE_NAME = "chestguard_data"

CREATE_TABLE_SQL = f"""
    CREATE TABLE IF NOT EXISTS {TABLE_NAME} (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        world TEXT NOT NULL,
        x INTEGER NOT NULL,
        y INTEGER NOT NULL,
        z INTEGER NOT NULL,
        owner TEXT NOT NULL,
        password TEXT NOT NULL,
        UNIQUE(world, x, y, z)
    )
"""
SELECT_SQL = f"SELECT world, x, y, z, owner, password FROM {TABLE_NAME}"
INSERT_SQL = (
    f"INSERT INTO {TABLE_NAME} (world, x, y, z, owner, password) VALUES (?, ?, ?, ?, ?, ?)"
)
DELETE_ALL_SQL = f"DELETE FROM {TABLE_NAME}"


class SqliteBackend:
    """StorageBackend over a single SQLite database file.

    One connection is shared between threads and serialized with a lock.
    """

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path)
        self._log = logger.bind(backend=BackendKind.SQLITE.value, path=str(self._path))
        self._conn: sqlite3.Connection | None = None
        self._lock = threading.Lock()

    @property
    def kind(self) -> BackendKind:
        return BackendKind.SQLITE

    @property
    def persists_names(self) -> bool:
        return False

    @property
    def persists_trust(self) -> bool:
        return False

    @property
    def path(self) -> Path:
        return self._path

    def initialize(self) -> bool:
        with self._lock:
            if self._conn is not None:
                return True
            try:
                self._path.parent.mkdir(parents=True, exist_ok=True)
                conn = sqlite3.connect(self._path, check_same_thread=False)
            except (OSError, sqlite3.Error) as e:
                self._log.error("Failed to open database", error=str(e))
                return False
            try:
                with conn:
                    conn.execute(CREATE_TABLE_SQL)
            except sqlite3.Error as e:
                self._log.error("Failed to create table", error=str(e))
                conn.close()
                return False
            self._conn = conn
        self._log.debug("Storage initialized")
        return True

    def is_ready(self) -> bool:
        return self._conn is not None

    def close(self) -> None:
        with self._lock:
            if self._conn is None:
                return
            try:
                self._conn.close()
            except sqlite3.Error as e:
                self._log.warning("Error closing database", error=str(e))
            self._conn = None

    def load(self, protection: ProtectionRegistry, trust: TrustRegistry) -> bool:
        with self._lock:
            if self._conn is None:
                self._log.error("Load on uninitialized storage")
                return False
            try:
                rows = self._conn.execute(SELECT_SQL).fetchall()
            except sqlite3.Error as e:
                self._log.error("Failed to load rows", error=str(e))
                return False

        current = protection.snapshot()
        records: dict[ContainerKey, ContainerRecord] = {}
        for world, x, y, z, owner, stored in rows:
            if not world or not owner or not stored:
                self._log.warning("Skipping incomplete row", world=world, x=x, y=y, z=z)
                continue
            key = ContainerKey(str(world), int(x), int(y), int(z))
            previous = current.get(key)
            records[key] = ContainerRecord(
                owner_id=str(owner),
                secret_record=str(stored),
                display_name=previous.display_name if previous is not None else None,
            )

        protection.restore(records)
        self._log.info("Loaded protection data", containers=len(records))
        return True

    def save(self, protection: ProtectionRegistry, trust: TrustRegistry) -> bool:
        rows = [
            (key.world, key.x, key.y, key.z, record.owner_id, record.secret_record)
            for key, record in sorted(protection.snapshot().items())
        ]
        with self._lock:
            if self._conn is None:
                self._log.error("Save on uninitialized storage")
                return False
            try:
                # The connection context manager commits, or rolls back on error.
                with self._conn:
                    self._conn.execute(DELETE_ALL_SQL)
                    self._conn.executemany(INSERT_SQL, rows)
            except sqlite3.Error as e:
                self._log.error("Failed to save rows, transaction rolled back", error=str(e))
                return False
        self._log.debug("Saved protection data", containers=len(rows))
        return True
