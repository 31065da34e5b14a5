"""Command boundary: lock, unlock, trust, naming and admin operations.

Every public method returns a CommandResult. Unexpected exceptions are
logged and reported as INTERNAL_ERROR.

Usage:
    service = ProtectionService(worlds, protection, trust, storage, sweeper, limits)
    result = service.lock(Requester("uuid-1"), key, "abc")
    if not result.success:
        print(result.code, result.details)
"""

from __future__ import annotations

from chestguard.cleanup import CleanupSweeper
from chestguard.core.addressing import ContainerType, container_type_of, resolve_container_keys
from chestguard.core.identity import ContainerKey
from chestguard.core.naming import NameProblem, validate_name
from chestguard.core.secrets import is_valid_secret
from chestguard.registry import ProtectionRegistry, TrustRegistry
from chestguard.service._boundary import guarded
from chestguard.service.limits import LimitPolicy
from chestguard.service.models import CommandResult, Requester, ResultCode
from chestguard.storage import BackendKind, StorageManager
from chestguard.structured_logging import get_logger
from chestguard.world import WorldProvider

logger = get_logger(__name__)

FALLBACK_DISPLAY_NAME = "Container"

_NAME_CODES = {
    NameProblem.EMPTY: ResultCode.NAME_EMPTY,
    NameProblem.TOO_LONG: ResultCode.NAME_TOO_LONG,
    NameProblem.INVALID_CHARACTERS: ResultCode.NAME_INVALID_CHARACTERS,
    NameProblem.FORBIDDEN: ResultCode.NAME_FORBIDDEN,
}


def _internal_error() -> CommandResult:
    return CommandResult.fail(ResultCode.INTERNAL_ERROR)


class ProtectionService:
    """Command handlers over the registries, storage and sweeper."""

    def __init__(
        self,
        worlds: WorldProvider,
        protection: ProtectionRegistry,
        trust: TrustRegistry,
        storage: StorageManager,
        sweeper: CleanupSweeper,
        limits: LimitPolicy,
    ) -> None:
        self._worlds = worlds
        self._protection = protection
        self._trust = trust
        self._storage = storage
        self._sweeper = sweeper
        self._limits = limits

    @property
    def limits(self) -> LimitPolicy:
        return self._limits

    def _save(self) -> None:
        if not self._storage.save():
            logger.error("Changes kept in memory only, save failed")

    def _container_type(self, key: ContainerKey) -> ContainerType | None:
        world = self._worlds.get_world(key.world)
        if world is None:
            return None
        return container_type_of(world.block_at(key.x, key.y, key.z).type_name)

    def _locked_container(
        self, key: ContainerKey
    ) -> tuple[frozenset[ContainerKey], ContainerKey | None] | CommandResult:
        keys = resolve_container_keys(self._worlds, key)
        if not keys:
            return CommandResult.fail(ResultCode.NOT_LOCKABLE)
        return keys, self._protection.first_locked(keys)

    # --- Lock / unlock ---

    @guarded(_internal_error)
    def lock(self, requester: Requester, key: ContainerKey, secret: str) -> CommandResult:
        """Protect the container at ``key`` (every half) with ``secret``."""
        if not is_valid_secret(secret):
            logger.debug("Rejected invalid secret", requester=requester.identity)
            return CommandResult.fail(ResultCode.INVALID_SECRET)

        state = self._locked_container(key)
        if isinstance(state, CommandResult):
            return state
        keys, locked = state
        if locked is not None:
            owner = self._protection.owner_of(locked)
            return CommandResult.fail(ResultCode.ALREADY_LOCKED, owner=owner)

        container_type = self._container_type(key)
        exceeded = self._limits.check(requester, len(keys), container_type)
        if exceeded is not None:
            return exceeded

        if not self._protection.lock(keys, requester.identity, secret):
            if self._protection.first_locked(keys) is not None:
                return CommandResult.fail(ResultCode.ALREADY_LOCKED)
            logger.error("Lock failed without conflict", key=str(key))
            return CommandResult.fail(ResultCode.INTERNAL_ERROR)

        self._save()
        logger.info("Container locked", key=str(key), owner=requester.identity, halves=len(keys))
        status = self._limits.status(requester, container_type)
        return CommandResult.ok(keys=len(keys), status=status)

    @guarded(_internal_error)
    def unlock(self, requester: Requester, key: ContainerKey, secret: str) -> CommandResult:
        """Remove protection from every half after verifying owner and secret."""
        state = self._locked_container(key)
        if isinstance(state, CommandResult):
            return state
        keys, locked = state
        if locked is None:
            return CommandResult.fail(ResultCode.NOT_PROTECTED)
        if not self._protection.is_owner(locked, requester.identity):
            return CommandResult.fail(ResultCode.NOT_OWNER)
        if not self._protection.unlock(locked, requester.identity, secret):
            return CommandResult.fail(ResultCode.WRONG_SECRET)

        self._protection.remove_all(keys)
        self._save()
        logger.info("Container unlocked", key=str(key), owner=requester.identity)
        return CommandResult.ok(keys=len(keys))

    # --- Trust ---

    @guarded(_internal_error)
    def trust(self, requester: Requester, target_id: str) -> CommandResult:
        if target_id == requester.identity:
            return CommandResult.fail(ResultCode.SELF_TRUST)
        if not self._trust.trust(requester.identity, target_id):
            return CommandResult.fail(ResultCode.ALREADY_TRUSTED, target=target_id)
        self._save()
        return CommandResult.ok(target=target_id)

    @guarded(_internal_error)
    def untrust(self, requester: Requester, target_id: str) -> CommandResult:
        if not self._trust.untrust(requester.identity, target_id):
            return CommandResult.fail(ResultCode.NOT_TRUSTED, target=target_id)
        self._save()
        return CommandResult.ok(target=target_id)

    @guarded(_internal_error)
    def trusted_list(self, requester: Requester) -> CommandResult:
        return CommandResult.ok(trusted=sorted(self._trust.trusted_by(requester.identity)))

    # --- Names ---

    def _owned_container(
        self, requester: Requester, key: ContainerKey
    ) -> tuple[frozenset[ContainerKey], ContainerKey] | CommandResult:
        state = self._locked_container(key)
        if isinstance(state, CommandResult):
            return state
        keys, locked = state
        if locked is None:
            return CommandResult.fail(ResultCode.NOT_PROTECTED)
        if not requester.is_admin and not self._protection.is_owner(locked, requester.identity):
            return CommandResult.fail(ResultCode.NOT_OWNER)
        return keys, locked

    @guarded(_internal_error)
    def rename(self, requester: Requester, key: ContainerKey, name: str) -> CommandResult:
        """Set a validated display name on every locked half."""
        state = self._owned_container(requester, key)
        if isinstance(state, CommandResult):
            return state
        keys, _ = state

        validation = validate_name(name)
        if validation.problem is not None:
            return CommandResult.fail(_NAME_CODES[validation.problem])

        for part in keys:
            self._protection.set_name(part, validation.name)
        self._save()
        return CommandResult.ok(name=validation.name)

    @guarded(_internal_error)
    def remove_name(self, requester: Requester, key: ContainerKey) -> CommandResult:
        state = self._owned_container(requester, key)
        if isinstance(state, CommandResult):
            return state
        keys, _ = state

        if all(self._protection.name_of(part) is None for part in keys):
            return CommandResult.fail(ResultCode.NO_CUSTOM_NAME)
        for part in keys:
            self._protection.set_name(part, None)
        self._save()
        return CommandResult.ok()

    @guarded(lambda: FALLBACK_DISPLAY_NAME)
    def display_name(self, key: ContainerKey) -> str:
        """Custom name of any half, else the container type name, else "Container"."""
        keys = resolve_container_keys(self._worlds, key) or frozenset({key})
        for part in sorted(keys):
            name = self._protection.name_of(part)
            if name:
                return name

        container_type = self._container_type(key)
        if container_type is None:
            return FALLBACK_DISPLAY_NAME
        return container_type.display_name

    # --- Admin ---

    @guarded(_internal_error)
    def admin_remove(self, requester: Requester, key: ContainerKey) -> CommandResult:
        """Remove protection regardless of owner."""
        if not requester.is_admin:
            return CommandResult.fail(ResultCode.NOT_PERMITTED)
        keys = resolve_container_keys(self._worlds, key) or frozenset({key})
        owner = self._protection.owner_of(self._protection.first_locked(keys) or key)
        removed = self._protection.remove_all(keys)
        if not removed:
            return CommandResult.fail(ResultCode.NOT_PROTECTED)
        self._save()
        logger.info(
            "Protection removed by admin", key=str(key), admin=requester.identity, owner=owner
        )
        return CommandResult.ok(removed=removed, owner=owner)

    @guarded(_internal_error)
    def force_cleanup(self, requester: Requester) -> CommandResult:
        if not requester.is_admin:
            return CommandResult.fail(ResultCode.NOT_PERMITTED)
        report = self._sweeper.run_manual()
        return CommandResult.ok(
            containers=report.cleaned_containers,
            trust_relations=report.cleaned_trust_relations,
            duration_ms=report.duration_ms,
        )

    @guarded(_internal_error)
    def migrate_backend(self, requester: Requester, from_kind: str, to_kind: str) -> CommandResult:
        """Copy stored data to another backend and make it active."""
        if not requester.is_admin:
            return CommandResult.fail(ResultCode.NOT_PERMITTED)
        source = BackendKind.parse(from_kind)
        target = BackendKind.parse(to_kind)
        if source is None or target is None:
            return CommandResult.fail(ResultCode.UNKNOWN_BACKEND, source=from_kind, target=to_kind)

        outcome = self._storage.migrate(source, target)
        if not outcome.success:
            return CommandResult.fail(ResultCode.MIGRATION_FAILED, reason=outcome.reason)
        return CommandResult.ok(source=source.value, target=target.value, migrated=outcome.migrated)
