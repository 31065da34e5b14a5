"""Container display names."""

from chestguard.core.naming.operations import (
    FORBIDDEN_NAMES,
    MAX_NAME_LENGTH,
    MIN_NAME_LENGTH,
    NameProblem,
    NameValidation,
    validate_name,
)

__all__ = [
    "FORBIDDEN_NAMES",
    "MAX_NAME_LENGTH",
    "MIN_NAME_LENGTH",
    "NameProblem",
    "NameValidation",
    "validate_name",
]
