"""Shared test fixtures."""

import sys

import pytest

# Ensure src is in path
sys.path.insert(0, "src")

from chestguard.config import ChestGuardSettings
from chestguard.core.addressing import BlockState, Facing, PairSide, other_half_direction
from chestguard.core.identity import ContainerKey
from chestguard.registry import ProtectionRegistry, TrustRegistry
from chestguard.scheduling import ManualScheduler
from chestguard.world import LocalWorld, LocalWorldProvider

WORLD = "overworld"


def place_double_chest(
    world: LocalWorld,
    x: int,
    y: int,
    z: int,
    facing: Facing = Facing.NORTH,
    type_name: str = "CHEST",
) -> tuple[ContainerKey, ContainerKey]:
    """Place a left half at (x, y, z) and its matching right half; return both keys."""
    direction = other_half_direction(PairSide.LEFT, facing)
    world.set_block(x, y, z, BlockState(type_name, PairSide.LEFT, facing))
    world.set_block(x + direction.dx, y, z + direction.dz, BlockState(type_name, PairSide.RIGHT, facing))
    left = ContainerKey(world.name, x, y, z)
    return left, left.offset(direction.dx, 0, direction.dz)


def place_block(world: LocalWorld, x: int, y: int, z: int, type_name: str = "CHEST") -> ContainerKey:
    world.set_block(x, y, z, BlockState(type_name))
    return ContainerKey(world.name, x, y, z)


@pytest.fixture
def worlds():
    """World provider holding one empty world named "overworld"."""
    provider = LocalWorldProvider()
    provider.create_world(WORLD)
    return provider


@pytest.fixture
def overworld(worlds):
    return worlds.get_world(WORLD)


@pytest.fixture
def protection():
    """Fresh ProtectionRegistry."""
    return ProtectionRegistry()


@pytest.fixture
def trust():
    """Fresh TrustRegistry."""
    return TrustRegistry()


@pytest.fixture
def scheduler():
    """Deterministic scheduler; advance() runs due callbacks."""
    return ManualScheduler()


@pytest.fixture
def settings(tmp_path):
    """Settings writing into a temp folder, no retry delay."""
    return ChestGuardSettings(
        data_folder=tmp_path / "data",
        save_retry_attempts=2,
        save_retry_backoff="none",
        save_retry_base_delay=0.0,
        _env_file=None,
    )
