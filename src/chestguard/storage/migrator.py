"""Staged migration between persistence backends.

The live registries and the active backend are never touched here. Data is
loaded from a fresh source instance into staging registries, written to a
fresh target instance, and verified by reading the target back. The caller
swaps state only when the outcome is successful.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from chestguard.registry import ProtectionRegistry, TrustRegistry
from chestguard.storage.protocol import BackendKind, StorageBackend
from chestguard.structured_logging import get_logger

logger = get_logger(__name__)

BackendFactory = Callable[[BackendKind], StorageBackend]
"""Creates a fresh, uninitialized backend instance for a kind."""


@dataclass(slots=True)
class MigrationOutcome:
    """Result of one migration attempt.

    On success ``target`` is an initialized backend ready to become active
    (None for a same-kind no-op), and the staged registries hold the
    migrated state.
    """

    success: bool
    reason: str = ""
    target: StorageBackend | None = None
    protection: ProtectionRegistry | None = None
    trust: TrustRegistry | None = None
    migrated: int = 0


class BackendMigrator:
    """Copies protection state from one backend kind to another."""

    def __init__(self, factory: BackendFactory) -> None:
        self._factory = factory

    def migrate(
        self,
        from_kind: BackendKind,
        to_kind: BackendKind,
        protection: ProtectionRegistry,
        trust: TrustRegistry,
    ) -> MigrationOutcome:
        """Run a staged migration.

        Args:
            from_kind: Backend to read from.
            to_kind: Backend to write to.
            protection: Live registry. Only read, to seed fields the source cannot provide.
            trust: Live trust registry. Only read, for the same reason.

        Returns:
            MigrationOutcome describing success and the staged state.
        """
        if from_kind == to_kind:
            return MigrationOutcome(success=True, reason="same backend")

        source = self._factory(from_kind)
        if not source.initialize():
            return self._fail(f"could not initialize {from_kind.value}")

        target = self._factory(to_kind)
        if not target.initialize():
            source.close()
            return self._fail(f"could not initialize {to_kind.value}")

        staged_protection = ProtectionRegistry()
        staged_trust = TrustRegistry()
        staged_protection.restore(protection.snapshot())
        staged_trust.restore(trust.snapshot())

        try:
            if not source.load(staged_protection, staged_trust):
                return self._abort(target, f"could not load from {from_kind.value}")
            if not target.save(staged_protection, staged_trust):
                return self._abort(target, f"could not save to {to_kind.value}")
            if not _verify(target, staged_protection):
                return self._abort(target, f"verification of {to_kind.value} failed")
        finally:
            source.close()

        logger.info(
            "Migrated storage backend",
            source=from_kind.value,
            target=to_kind.value,
            containers=len(staged_protection),
        )
        return MigrationOutcome(
            success=True,
            target=target,
            protection=staged_protection,
            trust=staged_trust,
            migrated=len(staged_protection),
        )

    @staticmethod
    def _fail(reason: str) -> MigrationOutcome:
        logger.error("Storage migration failed", reason=reason)
        return MigrationOutcome(success=False, reason=reason)

    def _abort(self, target: StorageBackend, reason: str) -> MigrationOutcome:
        target.close()
        return self._fail(reason)


def _verify(target: StorageBackend, expected: ProtectionRegistry) -> bool:
    """Reload the target and compare entry count plus per-key owner and secret."""
    check_protection = ProtectionRegistry()
    check_trust = TrustRegistry()
    if not target.load(check_protection, check_trust):
        return False

    wanted = expected.snapshot()
    found = check_protection.snapshot()
    if len(found) != len(wanted):
        logger.error("Migrated entry count mismatch", expected=len(wanted), found=len(found))
        return False
    for key, record in wanted.items():
        other = found.get(key)
        if other is None or (other.owner_id, other.secret_record) != (
            record.owner_id,
            record.secret_record,
        ):
            logger.error("Migrated entry mismatch", key=str(key))
            return False
    return True
