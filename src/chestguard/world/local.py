"""Local in-memory world implementation.

Simple dict-based world suitable for embedding hosts without a block engine
and for testing. Every region is loaded unless explicitly unloaded.

Usage:
    worlds = LocalWorldProvider()
    world = worlds.create_world("overworld")
    world.set_block(0, 64, 0, BlockState("CHEST"))
"""

from __future__ import annotations

import threading

from chestguard.core.addressing import AIR, BlockState
from chestguard.core.identity import REGION_SHIFT


class LocalWorld:
    """In-memory block map.

    Structure:
        _blocks[(x, y, z)] = BlockState
    """

    def __init__(self, name: str):
        self._name = name
        self._blocks: dict[tuple[int, int, int], BlockState] = {}
        self._unloaded: set[tuple[int, int]] = set()
        self._lock = threading.Lock()

    @property
    def name(self) -> str:
        return self._name

    def set_block(self, x: int, y: int, z: int, state: BlockState) -> None:
        """Place a block, replacing whatever was there."""
        with self._lock:
            if state.type_name.upper() == AIR.type_name:
                self._blocks.pop((x, y, z), None)
            else:
                self._blocks[(x, y, z)] = state

    def remove_block(self, x: int, y: int, z: int) -> None:
        self.set_block(x, y, z, AIR)

    def block_at(self, x: int, y: int, z: int) -> BlockState:
        return self._blocks.get((x, y, z), AIR)

    def is_region_loaded(self, region_x: int, region_z: int) -> bool:
        return (region_x, region_z) not in self._unloaded

    def unload_region_at(self, x: int, z: int) -> None:
        """Mark the region containing block column (x, z) as not resident."""
        with self._lock:
            self._unloaded.add((x >> REGION_SHIFT, z >> REGION_SHIFT))

    def load_region_at(self, x: int, z: int) -> None:
        with self._lock:
            self._unloaded.discard((x >> REGION_SHIFT, z >> REGION_SHIFT))


class LocalWorldProvider:
    """Registry of LocalWorld instances by name."""

    def __init__(self) -> None:
        self._worlds: dict[str, LocalWorld] = {}

    def create_world(self, name: str) -> LocalWorld:
        """Create (or return the existing) world with this name."""
        world = self._worlds.get(name)
        if world is None:
            world = LocalWorld(name)
            self._worlds[name] = world
        return world

    def remove_world(self, name: str) -> None:
        """Forget a world; keys in it no longer resolve."""
        self._worlds.pop(name, None)

    def get_world(self, name: str) -> LocalWorld | None:
        return self._worlds.get(name)
