"""World boundary protocols and an in-memory implementation."""

from chestguard.world.local import LocalWorld, LocalWorldProvider
from chestguard.world.protocol import WorldProvider, WorldView

__all__ = [
    "WorldProvider",
    "WorldView",
    "LocalWorld",
    "LocalWorldProvider",
]
