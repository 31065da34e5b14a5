"""Protection registry: the in-process source of truth for locked containers.

Thread Safety:
    Reads are plain dict lookups on an immutable-record map. Every mutation,
    including multi-key lock and removal, runs inside one RLock critical
    section, so no reader observes a partially applied lock.

Usage:
    registry = ProtectionRegistry()
    registry.lock({left, right}, owner_id="uuid-1", secret="abc")
    registry.unlock(left, requester_id="uuid-1", secret="abc")  # True
    registry.remove_all({left, right})
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterable, Mapping
from dataclasses import replace

from chestguard.core.identity import ContainerKey
from chestguard.core.secrets import hash_secret, verify_secret
from chestguard.registry.models import ContainerRecord
from chestguard.structured_logging import get_logger

logger = get_logger(__name__)


class ProtectionRegistry:
    """Thread-safe map of ContainerKey -> ContainerRecord.

    Owner, secret and display name live in one immutable record per key, so
    an owner entry can never exist without its secret entry.
    """

    def __init__(self) -> None:
        self._records: dict[ContainerKey, ContainerRecord] = {}
        self._lock = threading.RLock()

    # --- Queries ---

    def is_locked(self, key: ContainerKey) -> bool:
        return key in self._records

    def owner_of(self, key: ContainerKey) -> str | None:
        record = self._records.get(key)
        return record.owner_id if record is not None else None

    def is_owner(self, key: ContainerKey, identity: str) -> bool:
        owner = self.owner_of(key)
        return owner is not None and owner == identity

    def record_of(self, key: ContainerKey) -> ContainerRecord | None:
        return self._records.get(key)

    def name_of(self, key: ContainerKey) -> str | None:
        record = self._records.get(key)
        return record.display_name if record is not None else None

    def first_locked(self, keys: Iterable[ContainerKey]) -> ContainerKey | None:
        """First key (in key order) that is locked, or None."""
        for key in sorted(keys):
            if key in self._records:
                return key
        return None

    def owners(self) -> frozenset[str]:
        """Every identity owning at least one container."""
        return frozenset(record.owner_id for record in self.snapshot().values())

    def count_owned_by(self, identity: str) -> int:
        return sum(1 for record in self.snapshot().values() if record.owner_id == identity)

    def keys(self) -> list[ContainerKey]:
        """Sorted list of locked keys."""
        with self._lock:
            return sorted(self._records)

    def snapshot(self) -> dict[ContainerKey, ContainerRecord]:
        """Point-in-time copy of every record."""
        with self._lock:
            return dict(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, key: object) -> bool:
        return key in self._records

    # --- Mutations ---

    def lock(self, keys: Iterable[ContainerKey], owner_id: str, secret: str) -> bool:
        """Protect every key with one owner and secret.

        Fails without mutating if any key is already locked or hashing fails.
        The secret is hashed separately per key so halves never share a salt.

        Returns:
            True if all keys were inserted.
        """
        key_set = frozenset(keys)
        if not key_set or not owner_id or not secret:
            return False

        hashed: dict[ContainerKey, str] = {}
        for key in key_set:
            record = hash_secret(secret)
            if record is None:
                logger.error("Secret hashing unavailable, lock aborted", key=str(key))
                return False
            hashed[key] = record

        with self._lock:
            if any(key in self._records for key in key_set):
                return False
            for key, record in hashed.items():
                self._records[key] = ContainerRecord(owner_id=owner_id, secret_record=record)
        return True

    def unlock(self, key: ContainerKey, requester_id: str, secret: str) -> bool:
        """Verify a secret against the record at ``key``.

        A matching legacy plaintext record is re-hashed in place. Removing the
        record (for every half) is left to the caller.

        Returns:
            True if the key is locked and the secret verifies.
        """
        record = self._records.get(key)
        if record is None:
            return False
        if not verify_secret(secret, record.secret_record):
            return False

        if record.is_legacy:
            self._upgrade_legacy(key, record, secret, requester_id)
        return True

    def _upgrade_legacy(
        self, key: ContainerKey, record: ContainerRecord, secret: str, requester_id: str
    ) -> None:
        upgraded = hash_secret(secret)
        if upgraded is None:
            logger.warning("Failed to migrate plaintext secret", key=str(key))
            return
        with self._lock:
            # Only replace the record we verified; a concurrent change wins.
            if self._records.get(key) is record:
                self._records[key] = replace(record, secret_record=upgraded)
                logger.info("Migrated plaintext secret", key=str(key), requester=requester_id)

    def remove_protection(self, key: ContainerKey) -> None:
        """Unconditionally remove one key. Never fails."""
        with self._lock:
            self._records.pop(key, None)

    def remove_all(self, keys: Iterable[ContainerKey]) -> int:
        """Remove several keys in one critical section.

        Returns:
            Number of keys that were locked and are now removed.
        """
        removed = 0
        with self._lock:
            for key in keys:
                if self._records.pop(key, None) is not None:
                    removed += 1
        return removed

    def remove_if(self, key: ContainerKey, predicate: Callable[[ContainerRecord], bool]) -> bool:
        """Remove ``key`` if its current record satisfies ``predicate``."""
        with self._lock:
            record = self._records.get(key)
            if record is None or not predicate(record):
                return False
            del self._records[key]
            return True

    def set_name(self, key: ContainerKey, name: str | None) -> bool:
        """Set or clear the display name. False if the key is not locked."""
        with self._lock:
            record = self._records.get(key)
            if record is None:
                return False
            self._records[key] = replace(record, display_name=name)
            return True

    def migrate_plaintext_secrets(self) -> int:
        """Re-hash every legacy plaintext record in place.

        Returns:
            Number of records migrated.
        """
        migrated = 0
        with self._lock:
            for key, record in list(self._records.items()):
                if not record.is_legacy:
                    continue
                upgraded = hash_secret(record.secret_record)
                if upgraded is None:
                    logger.warning("Failed to migrate plaintext secret", key=str(key))
                    continue
                self._records[key] = replace(record, secret_record=upgraded)
                migrated += 1
        if migrated:
            logger.info("Migrated plaintext secrets to hashed format", count=migrated)
        return migrated

    def restore(self, records: Mapping[ContainerKey, ContainerRecord]) -> None:
        """Replace the entire registry content (used by persistence loads)."""
        with self._lock:
            self._records = dict(records)

    def clear(self) -> None:
        with self._lock:
            self._records.clear()
