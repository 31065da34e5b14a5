"""Container type and block structure models.

Usage:
    ContainerType.from_type_name("barrel")  # ContainerType.BARREL
    BlockState("CHEST", pair_side=PairSide.LEFT, facing=Facing.NORTH)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ContainerCategory(Enum):
    """Broad container grouping used for configuration and messages."""

    CHEST = "chest"
    BARREL = "barrel"
    SHULKER_BOX = "shulker_box"

    @property
    def types(self) -> frozenset[ContainerType]:
        """Every enumerated type in this category."""
        return frozenset(t for t in ContainerType if t.category is self)

    @classmethod
    def from_config_name(cls, name: str) -> ContainerCategory | None:
        try:
            return cls(name.strip().lower())
        except ValueError:
            return None


class ContainerType(Enum):
    """Enumerated lockable container types.

    Value is the symbolic block type name reported by the world.
    """

    CHEST = "CHEST"
    TRAPPED_CHEST = "TRAPPED_CHEST"
    BARREL = "BARREL"
    SHULKER_BOX = "SHULKER_BOX"
    WHITE_SHULKER_BOX = "WHITE_SHULKER_BOX"
    ORANGE_SHULKER_BOX = "ORANGE_SHULKER_BOX"
    MAGENTA_SHULKER_BOX = "MAGENTA_SHULKER_BOX"
    LIGHT_BLUE_SHULKER_BOX = "LIGHT_BLUE_SHULKER_BOX"
    YELLOW_SHULKER_BOX = "YELLOW_SHULKER_BOX"
    LIME_SHULKER_BOX = "LIME_SHULKER_BOX"
    PINK_SHULKER_BOX = "PINK_SHULKER_BOX"
    GRAY_SHULKER_BOX = "GRAY_SHULKER_BOX"
    LIGHT_GRAY_SHULKER_BOX = "LIGHT_GRAY_SHULKER_BOX"
    CYAN_SHULKER_BOX = "CYAN_SHULKER_BOX"
    PURPLE_SHULKER_BOX = "PURPLE_SHULKER_BOX"
    BLUE_SHULKER_BOX = "BLUE_SHULKER_BOX"
    BROWN_SHULKER_BOX = "BROWN_SHULKER_BOX"
    GREEN_SHULKER_BOX = "GREEN_SHULKER_BOX"
    RED_SHULKER_BOX = "RED_SHULKER_BOX"
    BLACK_SHULKER_BOX = "BLACK_SHULKER_BOX"

    @property
    def config_name(self) -> str:
        """Lowercase name used in configuration files."""
        return self.value.lower()

    @property
    def display_name(self) -> str:
        """User-facing name, e.g. ``Light Blue Shulker Box``."""
        return " ".join(word.capitalize() for word in self.value.split("_"))

    @property
    def category(self) -> ContainerCategory:
        if self in (ContainerType.CHEST, ContainerType.TRAPPED_CHEST):
            return ContainerCategory.CHEST
        if self is ContainerType.BARREL:
            return ContainerCategory.BARREL
        return ContainerCategory.SHULKER_BOX

    @property
    def pairable(self) -> bool:
        """Whether two blocks of this type can join into one container."""
        return self in (ContainerType.CHEST, ContainerType.TRAPPED_CHEST)

    @classmethod
    def from_type_name(cls, type_name: str | None) -> ContainerType | None:
        """Look up by block type name (case-insensitive). None if not enumerated."""
        if not type_name:
            return None
        try:
            return cls(type_name.upper())
        except ValueError:
            return None


class PairSide(Enum):
    """Which half of a paired container a block is."""

    LEFT = "left"
    RIGHT = "right"

    @property
    def opposite(self) -> PairSide:
        return PairSide.RIGHT if self is PairSide.LEFT else PairSide.LEFT


class Facing(Enum):
    """Horizontal facing with its unit offset as value (dx, dz)."""

    NORTH = (0, -1)
    EAST = (1, 0)
    SOUTH = (0, 1)
    WEST = (-1, 0)

    @property
    def dx(self) -> int:
        return self.value[0]

    @property
    def dz(self) -> int:
        return self.value[1]


@dataclass(frozen=True, slots=True)
class BlockState:
    """Snapshot of a block as reported by the world.

    ``pair_side`` and ``facing`` are structural metadata; they are only
    meaningful for pairable container types and may be absent.
    """

    type_name: str
    pair_side: PairSide | None = None
    facing: Facing | None = None


AIR = BlockState("AIR")
"""State reported for positions holding no block."""
