"""Container addressing: lockability checks and multi-block resolution.

Pure functions over a read-only world view. Nothing here mutates state.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from chestguard.core.addressing.models import ContainerType, Facing, PairSide
from chestguard.core.identity import ContainerKey

if TYPE_CHECKING:
    from chestguard.world.protocol import WorldProvider

BASIC_LOCKABLE_TYPES = frozenset({"CHEST", "TRAPPED_CHEST", "BARREL"})
VARIANT_MARKER = "SHULKER_BOX"
"""Any type name containing this marker is lockable, including variants added later."""

AUTOMATION_TYPES = frozenset({"HOPPER", "DROPPER", "DISPENSER"})

_OTHER_HALF: dict[tuple[PairSide, Facing], Facing] = {
    (PairSide.LEFT, Facing.NORTH): Facing.EAST,
    (PairSide.LEFT, Facing.EAST): Facing.SOUTH,
    (PairSide.LEFT, Facing.SOUTH): Facing.WEST,
    (PairSide.LEFT, Facing.WEST): Facing.NORTH,
    (PairSide.RIGHT, Facing.NORTH): Facing.WEST,
    (PairSide.RIGHT, Facing.EAST): Facing.NORTH,
    (PairSide.RIGHT, Facing.SOUTH): Facing.EAST,
    (PairSide.RIGHT, Facing.WEST): Facing.SOUTH,
}


def is_lockable(type_name: str | None) -> bool:
    """Check whether a block type can be protected.

    Args:
        type_name: Symbolic block type name (case-insensitive).

    Returns:
        True for basic container types and for every variant containing the marker.
    """
    if not type_name:
        return False
    name = type_name.upper()
    return name in BASIC_LOCKABLE_TYPES or VARIANT_MARKER in name


def container_type_of(type_name: str | None) -> ContainerType | None:
    """Enumerated container type for a block type name, or None."""
    return ContainerType.from_type_name(type_name)


def is_automation_block(type_name: str | None) -> bool:
    """Check whether a block type can move items in or out of containers on its own."""
    if not type_name:
        return False
    return type_name.upper() in AUTOMATION_TYPES


def other_half_direction(side: PairSide, facing: Facing) -> Facing:
    """Direction from one half of a paired container to the other."""
    return _OTHER_HALF[(side, facing)]


def resolve_container_keys(worlds: WorldProvider, key: ContainerKey) -> frozenset[ContainerKey]:
    """Compute every key making up the logical container at ``key``.

    The neighbor half is included only when it is independently confirmed:
    same pairable type, opposite pair side, same facing. Any inconsistency
    degrades to a single-block container rather than inventing a second key.

    Args:
        worlds: World lookup used to read block states.
        key: Any block of the container.

    Returns:
        One or two keys; empty if the world is unresolved or the block is not lockable.
    """
    world = worlds.get_world(key.world)
    if world is None:
        return frozenset()

    state = world.block_at(key.x, key.y, key.z)
    if not is_lockable(state.type_name):
        return frozenset()

    container_type = ContainerType.from_type_name(state.type_name)
    if container_type is None or not container_type.pairable:
        return frozenset({key})

    side, facing = state.pair_side, state.facing
    if side is None or facing is None:
        return frozenset({key})

    direction = other_half_direction(side, facing)
    neighbor = key.offset(direction.dx, 0, direction.dz)
    other = world.block_at(neighbor.x, neighbor.y, neighbor.z)
    confirmed = (
        ContainerType.from_type_name(other.type_name) is container_type
        and other.pair_side is side.opposite
        and other.facing is facing
    )
    return frozenset({key, neighbor}) if confirmed else frozenset({key})
