"""Container identity models.

Usage:
    key = ContainerKey(world="overworld", x=10, y=64, z=-3)
    key.serialize()  # "overworld,10,64,-3"
    ContainerKey.parse("overworld,10,64,-3") == key
"""

from __future__ import annotations

from dataclasses import dataclass

REGION_SHIFT = 4
"""Block coordinates shifted right by this many bits give the region (chunk) coordinates."""


@dataclass(frozen=True, slots=True, order=True)
class ContainerKey:
    """Canonical identity of one physical container block.

    Two keys are equal iff world name and all three coordinates match.
    Ordering is (world, x, y, z), used for deterministic sweep cursors.
    """

    world: str
    x: int
    y: int
    z: int

    @property
    def region(self) -> tuple[int, int]:
        """Region (chunk) coordinates containing this block."""
        return (self.x >> REGION_SHIFT, self.z >> REGION_SHIFT)

    def offset(self, dx: int, dy: int, dz: int) -> ContainerKey:
        """Key of the block at a relative offset in the same world."""
        return ContainerKey(self.world, self.x + dx, self.y + dy, self.z + dz)

    def serialize(self) -> str:
        """Delimited form used as a durable map key: ``world,x,y,z``."""
        return f"{self.world},{self.x},{self.y},{self.z}"

    @classmethod
    def parse(cls, text: str) -> ContainerKey:
        """Parse the ``world,x,y,z`` form.

        World names may contain commas; the coordinates are always the last three fields.

        Raises:
            ValueError: If the text is malformed or a coordinate is not an integer.
        """
        parts = text.rsplit(",", 3)
        if len(parts) != 4 or not parts[0]:
            raise ValueError(f"Malformed container key: {text!r}")
        try:
            return cls(parts[0], int(parts[1]), int(parts[2]), int(parts[3]))
        except ValueError as e:
            raise ValueError(f"Invalid coordinate in container key: {text!r}") from e

    def __str__(self) -> str:
        return self.serialize()
