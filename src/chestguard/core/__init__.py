"""Core functionalities: stateless primitives.

Architecture Note:
    core/ contains pure functions and immutable models with no runtime state.
    For stateful services, see registry/, storage/, cleanup/ and scheduling/.
"""

from chestguard.core.addressing import (
    AIR,
    BlockState,
    ContainerCategory,
    ContainerType,
    Facing,
    PairSide,
    container_type_of,
    is_automation_block,
    is_lockable,
    other_half_direction,
    resolve_container_keys,
)
from chestguard.core.identity import ContainerKey
from chestguard.core.naming import NameProblem, NameValidation, validate_name
from chestguard.core.secrets import (
    hash_secret,
    is_legacy_plaintext,
    is_valid_secret,
    verify_secret,
)

__all__ = [
    # Identity
    "ContainerKey",
    # Addressing
    "AIR",
    "BlockState",
    "ContainerCategory",
    "ContainerType",
    "Facing",
    "PairSide",
    "container_type_of",
    "is_automation_block",
    "is_lockable",
    "other_half_direction",
    "resolve_container_keys",
    # Secrets
    "hash_secret",
    "is_legacy_plaintext",
    "is_valid_secret",
    "verify_secret",
    # Naming
    "NameProblem",
    "NameValidation",
    "validate_name",
]
