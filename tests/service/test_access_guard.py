"""Tests for AccessGuard world-event decisions.

Critical Invariants:
- Any locked half protects the whole container
- Owner, admin and trusted identities are told apart in the decision
- Only owner or admin may break; breaking removes every half
- Automation is kept away from protected containers unless allowed
"""

import pytest

from chestguard.core.identity import ContainerKey
from chestguard.service import AccessGuard, AccessRole, Requester, ResultCode
from conftest import WORLD, place_block, place_double_chest

OWNER = Requester("o1")
FRIEND = Requester("p1")
STRANGER = Requester("x1")
ADMIN = Requester("admin-1", is_admin=True)


class SaveCounter:
    def __init__(self):
        self.calls = 0

    def __call__(self):
        self.calls += 1
        return True


@pytest.fixture
def saves():
    return SaveCounter()


@pytest.fixture
def guard(worlds, protection, trust, saves):
    return AccessGuard(worlds, protection, trust, saves)


@pytest.fixture
def locked_pair(overworld, protection, trust):
    left, right = place_double_chest(overworld, 0, 64, 0)
    protection.lock({left}, "o1", "abc")
    trust.trust("o1", "p1")
    return left, right


def test_unprotected_container_is_open(guard, overworld):
    key = place_block(overworld, 5, 64, 5)
    decision = guard.check_access(STRANGER, key)
    assert decision.allowed
    assert decision.role is AccessRole.NONE


def test_access_roles(guard, locked_pair):
    """CRITICAL: Decisions report which identity authorized access.

    Why: The host renders different messages for owner, trusted and admin access.
    """
    _, right = locked_pair
    assert guard.check_access(OWNER, right).role is AccessRole.OWNER
    assert guard.check_access(ADMIN, right).role is AccessRole.ADMIN
    assert guard.check_access(FRIEND, right).role is AccessRole.TRUSTED

    denied = guard.check_access(STRANGER, right)
    assert not denied.allowed
    assert denied.code is ResultCode.NOT_OWNER
    assert denied.owner_id == "o1"


def test_trusted_cannot_break(guard, protection, locked_pair):
    left, _ = locked_pair
    assert not guard.check_break(FRIEND, left).allowed
    assert not guard.check_break(STRANGER, left).allowed
    assert protection.is_locked(left)


def test_owner_break_removes_all_halves(guard, protection, saves, overworld):
    left, right = place_double_chest(overworld, 0, 64, 0)
    protection.lock({left, right}, "o1", "abc")

    decision = guard.check_break(OWNER, right)

    assert decision.allowed
    assert decision.role is AccessRole.OWNER
    assert len(protection) == 0
    assert saves.calls == 1


def test_admin_break(guard, protection, locked_pair):
    left, _ = locked_pair
    assert guard.check_break(ADMIN, left).role is AccessRole.ADMIN
    assert not protection.is_locked(left)


def test_breaking_unprotected_block_does_not_save(guard, overworld, saves):
    key = place_block(overworld, 9, 64, 9)
    assert guard.check_break(STRANGER, key).allowed
    assert saves.calls == 0


def test_explosion_spares_protected_containers(guard, locked_pair, overworld):
    left, right = locked_pair
    loose = place_block(overworld, 20, 64, 20)
    stone = place_block(overworld, 21, 64, 20, "STONE")

    assert guard.filter_explosion([left, loose, right, stone]) == [loose, stone]


def test_transfer_blocked_for_protected_endpoints(guard, locked_pair, overworld):
    _, right = locked_pair
    loose = place_block(overworld, 20, 64, 20)

    assert guard.check_transfer(right, loose).code is ResultCode.PROTECTED_CONTAINER
    assert not guard.check_transfer(loose, right).allowed
    assert guard.check_transfer(loose, None).allowed


def test_transfer_allowed_when_configured(guard, locked_pair):
    guard.allow_automation_access = True
    assert guard.check_transfer(locked_pair[0], None).allowed


@pytest.mark.parametrize("offset", [(0, -1, 0), (1, 1, 1), (-1, 0, -1)])
def test_hopper_placement_next_to_protected_denied(guard, locked_pair, offset):
    left, _ = locked_pair
    target = left.offset(*offset)
    decision = guard.check_placement(OWNER, target, "HOPPER")
    assert decision.code is ResultCode.AUTOMATION_NEAR_PROTECTED


def test_placement_out_of_range_allowed(guard, locked_pair):
    left, _ = locked_pair
    assert guard.check_placement(OWNER, left.offset(-2, 0, 0), "HOPPER").allowed


def test_non_automation_placement_allowed(guard, locked_pair):
    left, _ = locked_pair
    assert guard.check_placement(STRANGER, left.offset(0, 1, 0), "STONE").allowed


def test_admin_and_config_bypass_placement(guard, locked_pair):
    left, _ = locked_pair
    assert guard.check_placement(ADMIN, left.offset(0, -1, 0), "DROPPER").allowed
    guard.allow_automation_access = True
    assert guard.check_placement(STRANGER, left.offset(0, -1, 0), "DISPENSER").allowed


def test_placement_ignores_unloaded_regions(guard, overworld, protection):
    key = place_block(overworld, 16, 64, 0)
    protection.lock({key}, "o1", "abc")
    overworld.unload_region_at(16, 0)

    assert guard.check_placement(STRANGER, ContainerKey(WORLD, 15, 64, 0), "HOPPER").allowed


def test_guard_errors_deny(guard, protection, locked_pair, monkeypatch):
    def explode(*args, **kwargs):
        raise RuntimeError("boom")

    monkeypatch.setattr(protection, "first_locked", explode)
    decision = guard.check_access(OWNER, locked_pair[0])
    assert not decision.allowed
    assert decision.code is ResultCode.INTERNAL_ERROR
