"""Trust registry: owner -> identities allowed to access without the secret.

Thread Safety:
    All access goes through one lock; callers always receive frozen copies,
    never the live sets.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable, Mapping


class TrustRegistry:
    """Thread-safe map of owner identity -> set of trusted identities.

    Owners with an empty trust set are dropped immediately.
    """

    def __init__(self) -> None:
        self._relations: dict[str, set[str]] = {}
        self._lock = threading.Lock()

    def trust(self, owner_id: str, target_id: str) -> bool:
        """Grant trust. False for self-trust or an existing grant."""
        if not owner_id or not target_id or owner_id == target_id:
            return False
        with self._lock:
            trusted = self._relations.setdefault(owner_id, set())
            if target_id in trusted:
                return False
            trusted.add(target_id)
            return True

    def untrust(self, owner_id: str, target_id: str) -> bool:
        """Revoke trust. False if the grant did not exist."""
        with self._lock:
            trusted = self._relations.get(owner_id)
            if trusted is None or target_id not in trusted:
                return False
            trusted.discard(target_id)
            if not trusted:
                del self._relations[owner_id]
            return True

    def is_trusted(self, owner_id: str | None, accessor_id: str | None) -> bool:
        """Owners always trust themselves."""
        if not owner_id or not accessor_id:
            return False
        if owner_id == accessor_id:
            return True
        with self._lock:
            return accessor_id in self._relations.get(owner_id, ())

    def trusted_by(self, owner_id: str) -> frozenset[str]:
        with self._lock:
            return frozenset(self._relations.get(owner_id, ()))

    def owners_trusting(self, identity: str) -> frozenset[str]:
        with self._lock:
            return frozenset(
                owner for owner, trusted in self._relations.items() if identity in trusted
            )

    def remove_identity(self, identity: str) -> int:
        """Drop an identity both as owner and as trusted party.

        Returns:
            Number of relations removed.
        """
        removed = 0
        with self._lock:
            removed += len(self._relations.pop(identity, ()))
            for owner in list(self._relations):
                trusted = self._relations[owner]
                if identity in trusted:
                    trusted.discard(identity)
                    removed += 1
                if not trusted:
                    del self._relations[owner]
        return removed

    def prune_owners(self, keep: Iterable[str]) -> int:
        """Remove every owner entry not in ``keep``.

        Returns:
            Sum of the removed trusted-identity set sizes (relations, not owners).
        """
        keep_set = frozenset(keep)
        removed = 0
        with self._lock:
            for owner in list(self._relations):
                if owner not in keep_set:
                    removed += len(self._relations.pop(owner))
        return removed

    def total_relations(self) -> int:
        with self._lock:
            return sum(len(trusted) for trusted in self._relations.values())

    def snapshot(self) -> dict[str, frozenset[str]]:
        with self._lock:
            return {owner: frozenset(trusted) for owner, trusted in self._relations.items()}

    def restore(self, relations: Mapping[str, Iterable[str]]) -> None:
        """Replace all relations. Empty sets and self-trust are dropped."""
        with self._lock:
            self._relations = {}
            for owner, trusted in relations.items():
                cleaned = {identity for identity in trusted if identity and identity != owner}
                if owner and cleaned:
                    self._relations[owner] = cleaned

    def __len__(self) -> int:
        return len(self._relations)
