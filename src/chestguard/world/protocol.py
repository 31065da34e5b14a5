"""World boundary: read-only view of the host's worlds.

The host game adapts its own world objects to these protocols. The core only
ever reads block states and asks whether a region is loaded; it never forces
a region to load.

Usage:
    provider: WorldProvider = host_adapter
    world = provider.get_world("overworld")
    if world is not None and world.is_region_loaded(*key.region):
        state = world.block_at(key.x, key.y, key.z)
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from chestguard.core.addressing import BlockState


@runtime_checkable
class WorldView(Protocol):
    """One resolved world."""

    @property
    def name(self) -> str:
        """World identifier used in ContainerKeys."""
        ...

    def is_region_loaded(self, region_x: int, region_z: int) -> bool:
        """Check whether a region is resident without loading it."""
        ...

    def block_at(self, x: int, y: int, z: int) -> BlockState:
        """Current block state at a position."""
        ...


@runtime_checkable
class WorldProvider(Protocol):
    """Resolves world identifiers to world views."""

    def get_world(self, name: str) -> WorldView | None:
        """Look up a world. None means the world no longer exists or is not loaded."""
        ...
