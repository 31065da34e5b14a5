"""World-event boundary: allow/deny decisions for interactions, breaks,
explosions, automated transfers and automation-block placement.

Any locked half protects the whole container. Denials never raise; an
unexpected error denies with INTERNAL_ERROR.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from itertools import product

from chestguard.core.addressing import is_automation_block, is_lockable, resolve_container_keys
from chestguard.core.identity import ContainerKey
from chestguard.registry import ProtectionRegistry, TrustRegistry
from chestguard.service._boundary import guarded
from chestguard.service.models import AccessDecision, AccessRole, Requester, ResultCode
from chestguard.structured_logging import get_logger
from chestguard.world import WorldProvider

logger = get_logger(__name__)

PLACEMENT_RANGE = 1


def _deny_internal() -> AccessDecision:
    return AccessDecision.deny(ResultCode.INTERNAL_ERROR)


class AccessGuard:
    """Answers world-event questions against the protection state."""

    def __init__(
        self,
        worlds: WorldProvider,
        protection: ProtectionRegistry,
        trust: TrustRegistry,
        save: Callable[[], bool],
        allow_automation_access: bool = False,
    ) -> None:
        self._worlds = worlds
        self._protection = protection
        self._trust = trust
        self._save = save
        self.allow_automation_access = allow_automation_access

    def _container_keys(self, key: ContainerKey) -> frozenset[ContainerKey]:
        # A locked key whose block changed type still protects itself until cleanup.
        return resolve_container_keys(self._worlds, key) or frozenset({key})

    def _protecting_owner(self, keys: Iterable[ContainerKey]) -> str | None:
        locked = self._protection.first_locked(keys)
        return self._protection.owner_of(locked) if locked is not None else None

    def is_protected(self, key: ContainerKey) -> bool:
        return self._protection.first_locked(self._container_keys(key)) is not None

    def _authorize(self, requester: Requester, owner: str, allow_trusted: bool) -> AccessDecision:
        if owner == requester.identity:
            return AccessDecision.allow(AccessRole.OWNER, owner)
        if requester.is_admin:
            return AccessDecision.allow(AccessRole.ADMIN, owner)
        if allow_trusted and self._trust.is_trusted(owner, requester.identity):
            return AccessDecision.allow(AccessRole.TRUSTED, owner)
        return AccessDecision.deny(ResultCode.NOT_OWNER, owner)

    @guarded(_deny_internal)
    def check_access(self, requester: Requester, key: ContainerKey) -> AccessDecision:
        """Interactive use (opening the container)."""
        owner = self._protecting_owner(self._container_keys(key))
        if owner is None:
            return AccessDecision.allow()
        decision = self._authorize(requester, owner, allow_trusted=True)
        if not decision.allowed:
            logger.debug("Access denied", key=str(key), requester=requester.identity)
        return decision

    @guarded(_deny_internal)
    def check_break(self, requester: Requester, key: ContainerKey) -> AccessDecision:
        """Block break. On allow, protection is dropped from every half."""
        keys = self._container_keys(key)
        owner = self._protecting_owner(keys)
        if owner is None:
            return AccessDecision.allow()

        decision = self._authorize(requester, owner, allow_trusted=False)
        if decision.allowed:
            removed = self._protection.remove_all(keys)
            if removed and not self._save():
                logger.error("Changes kept in memory only, save failed")
            logger.info(
                "Protected container broken",
                key=str(key),
                by=requester.identity,
                role=decision.role.value,
            )
        return decision

    @guarded(list)
    def filter_explosion(self, keys: Iterable[ContainerKey]) -> list[ContainerKey]:
        """Keys an explosion may destroy, in input order."""
        return [key for key in keys if not self.is_protected(key)]

    @guarded(_deny_internal)
    def check_transfer(
        self, source: ContainerKey | None, destination: ContainerKey | None
    ) -> AccessDecision:
        """Automated item movement between two inventories."""
        if self.allow_automation_access:
            return AccessDecision.allow()
        for endpoint in (source, destination):
            if endpoint is None:
                continue
            owner = self._protecting_owner(self._container_keys(endpoint))
            if owner is not None:
                return AccessDecision.deny(ResultCode.PROTECTED_CONTAINER, owner)
        return AccessDecision.allow()

    @guarded(_deny_internal)
    def check_placement(
        self, requester: Requester, key: ContainerKey, type_name: str
    ) -> AccessDecision:
        """Placement of a hopper, dropper or dispenser next to a protected container."""
        if not is_automation_block(type_name) or self.allow_automation_access:
            return AccessDecision.allow()
        if requester.is_admin:
            return AccessDecision.allow(AccessRole.ADMIN)

        world = self._worlds.get_world(key.world)
        if world is None:
            return AccessDecision.allow()

        span = range(-PLACEMENT_RANGE, PLACEMENT_RANGE + 1)
        for dx, dy, dz in product(span, span, span):
            if dx == dy == dz == 0:
                continue
            near = key.offset(dx, dy, dz)
            if not world.is_region_loaded(*near.region):
                continue
            if not self._protection.is_locked(near):
                continue
            if is_lockable(world.block_at(near.x, near.y, near.z).type_name):
                logger.debug("Automation placement denied", key=str(key), near=str(near))
                return AccessDecision.deny(
                    ResultCode.AUTOMATION_NEAR_PROTECTED, self._protection.owner_of(near)
                )
        return AccessDecision.allow()
