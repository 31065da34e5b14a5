"""Display name validation for protected containers."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

MIN_NAME_LENGTH = 1
MAX_NAME_LENGTH = 16
_VALID_NAME = re.compile(r"^[a-zA-Z0-9_\-\s]+$")

FORBIDDEN_NAMES = frozenset(
    {
        "null",
        "undefined",
        "admin",
        "console",
        "system",
        "server",
        "chestguard",
        "chest",
        "container",
        "locked",
        "protected",
    }
)


class NameProblem(Enum):
    """Why a proposed name was rejected."""

    EMPTY = "name_empty"
    TOO_LONG = "name_too_long"
    INVALID_CHARACTERS = "name_invalid_characters"
    FORBIDDEN = "name_forbidden"


@dataclass(frozen=True, slots=True)
class NameValidation:
    """Outcome of validating a proposed display name.

    Attributes:
        name: Trimmed name when valid, None otherwise.
        problem: Rejection reason when invalid.
    """

    name: str | None = None
    problem: NameProblem | None = None

    @property
    def valid(self) -> bool:
        return self.problem is None


def validate_name(name: str | None) -> NameValidation:
    """Validate and normalize a display name.

    Returns:
        NameValidation with the trimmed name, or the first problem found.
    """
    if name is None or not name.strip():
        return NameValidation(problem=NameProblem.EMPTY)

    trimmed = name.strip()
    if len(trimmed) < MIN_NAME_LENGTH:
        return NameValidation(problem=NameProblem.EMPTY)
    if len(trimmed) > MAX_NAME_LENGTH:
        return NameValidation(problem=NameProblem.TOO_LONG)
    if not _VALID_NAME.match(trimmed):
        return NameValidation(problem=NameProblem.INVALID_CHARACTERS)
    if trimmed.lower() in FORBIDDEN_NAMES:
        return NameValidation(problem=NameProblem.FORBIDDEN)
    return NameValidation(name=trimmed)
