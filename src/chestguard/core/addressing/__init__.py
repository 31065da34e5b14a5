"""Container addressing: which blocks are lockable and which keys form one container."""

from chestguard.core.addressing.models import (
    AIR,
    BlockState,
    ContainerCategory,
    ContainerType,
    Facing,
    PairSide,
)
from chestguard.core.addressing.operations import (
    AUTOMATION_TYPES,
    BASIC_LOCKABLE_TYPES,
    VARIANT_MARKER,
    container_type_of,
    is_automation_block,
    is_lockable,
    other_half_direction,
    resolve_container_keys,
)

__all__ = [
    # Models
    "AIR",
    "BlockState",
    "ContainerCategory",
    "ContainerType",
    "Facing",
    "PairSide",
    # Operations
    "AUTOMATION_TYPES",
    "BASIC_LOCKABLE_TYPES",
    "VARIANT_MARKER",
    "container_type_of",
    "is_automation_block",
    "is_lockable",
    "other_half_direction",
    "resolve_container_keys",
]
