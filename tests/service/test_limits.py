"""Tests for LimitPolicy.

Critical Invariants:
- Limits count ContainerKeys, never containers
- Per-type limits count only the type, or the whole category when configured by category
- Admins, unlimited requesters and unlimited types bypass per-type limits
- Disabled type limits fall back to the global limit
"""

import pytest

from chestguard.core.addressing import ContainerCategory, ContainerType
from chestguard.core.identity import ContainerKey
from chestguard.service import LimitPolicy, Requester, ResultCode
from conftest import place_block, place_double_chest

OWNER = Requester("o1")


def _lock(protection, count):
    for i in range(count):
        protection.lock({ContainerKey("overworld", i, 0, 0)}, "o1", "abc")


def test_disabled_limits_are_unlimited(protection):
    policy = LimitPolicy(protection, enabled=False)
    _lock(protection, 3)
    assert policy.limit_for(OWNER) is None
    assert policy.status(OWNER) == "3/Unlimited"
    assert policy.remaining(OWNER) is None
    assert policy.check(OWNER, 100) is None


def test_status_and_remaining(protection):
    policy = LimitPolicy(protection, enabled=True, default_limit=5)
    _lock(protection, 3)
    assert policy.status(OWNER) == "3/5"
    assert policy.remaining(OWNER) == 2
    assert policy.can_lock(OWNER, 2)
    assert not policy.can_lock(OWNER, 3)


def test_remaining_never_negative(protection):
    policy = LimitPolicy(protection, enabled=True, default_limit=1)
    _lock(protection, 3)
    assert policy.remaining(OWNER) == 0


def test_admin_is_unlimited(protection):
    policy = LimitPolicy(protection, enabled=True, default_limit=1)
    assert policy.status(Requester("a", is_admin=True)) == "0/Unlimited"


# Per type


def _typed_policy(protection, worlds, **limits):
    return LimitPolicy(
        protection,
        worlds=worlds,
        type_limits_enabled=True,
        type_default_limit=2,
        type_limits=limits,
    )


def _lock_blocks(protection, world, type_name, count, start=0):
    for i in range(start, start + count):
        protection.lock({place_block(world, i * 2, 64, 0, type_name)}, "o1", "abc")


def test_type_limit_counts_only_that_type(protection, worlds, overworld):
    """CRITICAL: Barrels do not use up chest slots under per-type limits.

    Why: Each container type has its own budget of locks.
    """
    policy = _typed_policy(protection, worlds, barrel=1)
    _lock_blocks(protection, overworld, "BARREL", 1)
    _lock_blocks(protection, overworld, "CHEST", 1, start=10)

    exceeded = policy.check(OWNER, 1, ContainerType.BARREL)
    assert exceeded is not None
    assert exceeded.code is ResultCode.LIMIT_EXCEEDED
    assert exceeded.details == {"current": 1, "limit": 1, "trying": 1, "type": "barrel"}

    assert policy.check(OWNER, 1, ContainerType.CHEST) is None
    assert policy.status(OWNER, ContainerType.CHEST) == "1/2"


def test_paired_chest_uses_two_type_slots(protection, worlds, overworld):
    policy = _typed_policy(protection, worlds)
    left, right = place_double_chest(overworld, 0, 64, 0)
    protection.lock({left, right}, "o1", "abc")

    assert policy.current_of_type(OWNER, ContainerType.CHEST) == 2
    assert policy.check(OWNER, 1, ContainerType.CHEST) is not None


def test_category_limit_counts_every_variant(protection, worlds, overworld):
    """CRITICAL: A category entry limits all of its types together.

    Why: "shulker_box: 2" must not allow two boxes of every color.
    """
    policy = _typed_policy(protection, worlds, shulker_box=2)
    _lock_blocks(protection, overworld, "RED_SHULKER_BOX", 1)
    _lock_blocks(protection, overworld, "BLUE_SHULKER_BOX", 1, start=5)

    assert policy.current_of_type(OWNER, ContainerType.GREEN_SHULKER_BOX) == 2
    assert policy.check(OWNER, 1, ContainerType.GREEN_SHULKER_BOX) is not None


def test_exact_type_entry_wins_over_category(protection, worlds, overworld):
    policy = _typed_policy(protection, worlds, shulker_box=1, red_shulker_box=3)
    _lock_blocks(protection, overworld, "RED_SHULKER_BOX", 2)

    assert policy.limit_for_type(OWNER, ContainerType.RED_SHULKER_BOX) == 3
    assert policy.check(OWNER, 1, ContainerType.RED_SHULKER_BOX) is None


def test_unloaded_regions_are_not_counted(protection, worlds, overworld):
    policy = _typed_policy(protection, worlds, barrel=1)
    _lock_blocks(protection, overworld, "BARREL", 1, start=100)
    overworld.unload_region_at(200, 0)

    assert policy.current_of_type(OWNER, ContainerType.BARREL) == 0


@pytest.mark.parametrize(
    "requester",
    [
        Requester("o1", is_admin=True),
        Requester("o1", unlimited=True),
        Requester("o1", unlimited_types=frozenset({ContainerType.BARREL})),
        Requester("o1", unlimited_types=frozenset({ContainerCategory.BARREL})),
    ],
)
def test_unlimited_type_bypasses(protection, worlds, overworld, requester):
    policy = _typed_policy(protection, worlds, barrel=0)
    assert policy.limit_for_type(requester, ContainerType.BARREL) is None
    assert policy.check(requester, 5, ContainerType.BARREL) is None


def test_individual_type_limit_raises_configured(protection, worlds, overworld):
    policy = _typed_policy(protection, worlds, barrel=1)
    builder = Requester("o1", type_lock_limits={ContainerType.BARREL: 4})
    _lock_blocks(protection, overworld, "BARREL", 3)

    assert policy.limit_for_type(builder, ContainerType.BARREL) == 4
    assert policy.check(builder, 1, ContainerType.BARREL) is None


def test_disabled_type_limits_use_global_limit(protection, worlds, overworld):
    policy = LimitPolicy(protection, enabled=True, default_limit=1, worlds=worlds)
    _lock_blocks(protection, overworld, "CHEST", 1)

    assert policy.limit_for_type(OWNER, ContainerType.BARREL) == 1
    exceeded = policy.check(OWNER, 1, ContainerType.BARREL)
    assert exceeded is not None
    assert "type" not in exceeded.details


def test_counts_by_type(protection, worlds, overworld):
    policy = _typed_policy(protection, worlds)
    _lock_blocks(protection, overworld, "BARREL", 2)
    _lock_blocks(protection, overworld, "TRAPPED_CHEST", 1, start=10)

    counts = policy.counts_by_type(OWNER)
    assert counts[ContainerType.BARREL] == 2
    assert counts[ContainerType.TRAPPED_CHEST] == 1
    assert counts[ContainerType.CHEST] == 0
    assert len(counts) == len(ContainerType)


def test_type_limits_require_world_provider(protection):
    with pytest.raises(ValueError, match="world provider"):
        LimitPolicy(protection, type_limits_enabled=True)


def test_unknown_type_limit_name_rejected(protection, worlds):
    with pytest.raises(ValueError, match="unknown container type"):
        LimitPolicy(protection, worlds=worlds, type_limits={"cupboard": 1})
