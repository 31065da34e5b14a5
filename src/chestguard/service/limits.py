"""Per-owner lock limits, global or per container type.

Counts ContainerKeys, so a paired chest uses two slots.

Usage:
    policy = LimitPolicy(protection, enabled=True, default_limit=10)
    policy.check(requester, additional=2)             # global limit

    policy = LimitPolicy(
        protection,
        worlds=worlds,
        type_limits_enabled=True,
        type_default_limit=5,
        type_limits={"barrel": 2, "shulker_box": 3},  # a type or a whole category
    )
    policy.check(requester, 1, ContainerType.BARREL)  # at most 2 barrels
"""

from __future__ import annotations

from collections.abc import Mapping

from chestguard.core.addressing import ContainerCategory, ContainerType, container_type_of
from chestguard.registry import ProtectionRegistry
from chestguard.service.models import CommandResult, Requester, ResultCode
from chestguard.world import WorldProvider

UNLIMITED = "Unlimited"


class LimitPolicy:
    """Decides whether a requester may lock more containers.

    With type limits enabled, each container type has its own limit. A
    configured entry may name the exact type (``red_shulker_box``), counting
    only that type, or its category (``shulker_box`` for any shulker box),
    counting the whole category. Types with no entry fall back to
    ``type_default_limit`` and count only themselves. With type limits
    disabled, one global limit covers every type.

    Type counting reads block types from the world and skips keys whose
    world is gone or whose region is not loaded.
    """

    def __init__(
        self,
        protection: ProtectionRegistry,
        enabled: bool = False,
        default_limit: int = 5,
        *,
        worlds: WorldProvider | None = None,
        type_limits_enabled: bool = False,
        type_default_limit: int = 5,
        type_limits: Mapping[str, int] | None = None,
    ) -> None:
        self._protection = protection
        self._worlds = worlds
        self.enabled = enabled
        self.default_limit = default_limit
        self.type_limits_enabled = type_limits_enabled
        self.type_default_limit = type_default_limit
        self.type_limits = parse_type_limits(type_limits or {})
        if type_limits_enabled and worlds is None:
            raise ValueError("type limits need a world provider to count container types")

    # --- Global ---

    def limit_for(self, requester: Requester) -> int | None:
        """Effective limit, or None when the requester is not limited."""
        if not self.enabled or requester.is_admin or requester.unlimited:
            return None
        return max(self.default_limit, requester.lock_limit or 0)

    def current(self, requester: Requester) -> int:
        return self._protection.count_owned_by(requester.identity)

    def can_lock(self, requester: Requester, additional: int = 1) -> bool:
        return self.check(requester, additional) is None

    def check(
        self,
        requester: Requester,
        additional: int,
        container_type: ContainerType | None = None,
    ) -> CommandResult | None:
        """LIMIT_EXCEEDED result if ``additional`` keys would pass the limit, else None.

        Args:
            requester: Who is locking.
            additional: Number of keys the lock would add.
            container_type: Type being locked. Selects the per-type limit when
                type limits are enabled; ignored otherwise.
        """
        if self.type_limits_enabled and container_type is not None:
            return self._check_type(requester, additional, container_type)

        limit = self.limit_for(requester)
        if limit is None:
            return None
        current = self.current(requester)
        if current + additional <= limit:
            return None
        return CommandResult.fail(
            ResultCode.LIMIT_EXCEEDED, current=current, limit=limit, trying=additional
        )

    def remaining(self, requester: Requester) -> int | None:
        limit = self.limit_for(requester)
        if limit is None:
            return None
        return max(0, limit - self.current(requester))

    def status(self, requester: Requester, container_type: ContainerType | None = None) -> str:
        """Render usage as ``"3/5"`` or ``"3/Unlimited"``, per type when type limits apply."""
        if self.type_limits_enabled and container_type is not None:
            return self.status_for_type(requester, container_type)
        limit = self.limit_for(requester)
        shown = UNLIMITED if limit is None else str(limit)
        return f"{self.current(requester)}/{shown}"

    # --- Per type ---

    def _scope(self, container_type: ContainerType) -> tuple[int, frozenset[ContainerType]]:
        """Configured limit for a type and the set of types counted against it."""
        if container_type.config_name in self.type_limits:
            return self.type_limits[container_type.config_name], frozenset({container_type})
        category = container_type.category
        if category.value in self.type_limits:
            return self.type_limits[category.value], category.types
        return self.type_default_limit, frozenset({container_type})

    def limit_for_type(self, requester: Requester, container_type: ContainerType) -> int | None:
        """Per-type limit, or None when unlimited.

        Falls back to the global limit while type limits are disabled.
        """
        if not self.type_limits_enabled:
            return self.limit_for(requester)
        if requester.is_admin or requester.unlimited:
            return None
        if requester.unlimited_types & {container_type, container_type.category}:
            return None
        limit, _ = self._scope(container_type)
        granted = requester.type_lock_limits.get(container_type) or 0
        return max(limit, granted)

    def current_of_type(self, requester: Requester, container_type: ContainerType) -> int:
        """Owned keys counted against ``container_type``'s limit."""
        if not self.type_limits_enabled:
            return self.current(requester)
        _, counted = self._scope(container_type)
        return self._count_types(requester.identity, counted)

    def counts_by_type(self, requester: Requester) -> dict[ContainerType, int]:
        """Owned keys per enumerated type, every type present."""
        counts = dict.fromkeys(ContainerType, 0)
        for found in self._owned_types(requester.identity):
            counts[found] += 1
        return counts

    def status_for_type(self, requester: Requester, container_type: ContainerType) -> str:
        limit = self.limit_for_type(requester, container_type)
        shown = UNLIMITED if limit is None else str(limit)
        return f"{self.current_of_type(requester, container_type)}/{shown}"

    def _check_type(
        self, requester: Requester, additional: int, container_type: ContainerType
    ) -> CommandResult | None:
        limit = self.limit_for_type(requester, container_type)
        if limit is None:
            return None
        current = self.current_of_type(requester, container_type)
        if current + additional <= limit:
            return None
        return CommandResult.fail(
            ResultCode.LIMIT_EXCEEDED,
            current=current,
            limit=limit,
            trying=additional,
            type=container_type.config_name,
        )

    def _count_types(self, identity: str, counted: frozenset[ContainerType]) -> int:
        return sum(1 for found in self._owned_types(identity) if found in counted)

    def _owned_types(self, identity: str) -> list[ContainerType]:
        if self._worlds is None:
            return []
        found: list[ContainerType] = []
        for key, record in self._protection.snapshot().items():
            if record.owner_id != identity:
                continue
            world = self._worlds.get_world(key.world)
            if world is None or not world.is_region_loaded(*key.region):
                continue
            container_type = container_type_of(world.block_at(key.x, key.y, key.z).type_name)
            if container_type is not None:
                found.append(container_type)
        return found


def parse_type_limits(raw: Mapping[str, int]) -> dict[str, int]:
    """Normalize configured type-limit names, rejecting unknown ones.

    Raises:
        ValueError: If a name is neither a container type nor a category.
    """
    limits: dict[str, int] = {}
    for name, limit in raw.items():
        normalized = name.strip().lower()
        if (
            ContainerType.from_type_name(normalized) is None
            and ContainerCategory.from_config_name(normalized) is None
        ):
            raise ValueError(f"unknown container type: {name}")
        if limit < 0:
            raise ValueError(f"negative limit for {name}: {limit}")
        limits[normalized] = limit
    return limits
