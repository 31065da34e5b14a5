"""Service result types and requester identity."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from chestguard.core.addressing import ContainerCategory, ContainerType


class ResultCode(Enum):
    """Reason codes returned across the command and access boundaries."""

    SUCCESS = "success"

    # Validation
    INVALID_SECRET = "invalid_secret"
    NAME_EMPTY = "name_empty"
    NAME_TOO_LONG = "name_too_long"
    NAME_INVALID_CHARACTERS = "name_invalid_characters"
    NAME_FORBIDDEN = "name_forbidden"
    UNKNOWN_BACKEND = "unknown_backend"

    # Not found / permission
    NOT_LOCKABLE = "not_lockable"
    NOT_PROTECTED = "not_protected"
    NOT_OWNER = "not_owner"
    NOT_PERMITTED = "not_permitted"
    NO_CUSTOM_NAME = "no_custom_name"
    NOT_TRUSTED = "not_trusted"

    # Conflicts
    ALREADY_LOCKED = "already_locked"
    ALREADY_TRUSTED = "already_trusted"
    SELF_TRUST = "self_trust"
    WRONG_SECRET = "wrong_secret"
    LIMIT_EXCEEDED = "limit_exceeded"

    # World events
    PROTECTED_CONTAINER = "protected_container"
    AUTOMATION_NEAR_PROTECTED = "automation_near_protected"

    # Failures
    MIGRATION_FAILED = "migration_failed"
    INTERNAL_ERROR = "internal_error"


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Structured outcome of a command. Never an exception.

    Attributes:
        code: Reason code; SUCCESS on success.
        details: Extra values for message rendering (limits, names, counts).
    """

    code: ResultCode
    details: Mapping[str, Any] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return self.code is ResultCode.SUCCESS

    @classmethod
    def ok(cls, **details: Any) -> CommandResult:
        return cls(ResultCode.SUCCESS, details)

    @classmethod
    def fail(cls, code: ResultCode, **details: Any) -> CommandResult:
        return cls(code, details)


class AccessRole(Enum):
    """Which identity authorized an allowed decision."""

    NONE = "none"
    """Container is not protected."""

    OWNER = "owner"
    TRUSTED = "trusted"
    ADMIN = "admin"


@dataclass(frozen=True, slots=True)
class AccessDecision:
    """Allow/deny answer for a world event."""

    allowed: bool
    role: AccessRole = AccessRole.NONE
    code: ResultCode = ResultCode.SUCCESS
    owner_id: str | None = None

    @classmethod
    def allow(
        cls, role: AccessRole = AccessRole.NONE, owner_id: str | None = None
    ) -> AccessDecision:
        return cls(True, role, ResultCode.SUCCESS, owner_id)

    @classmethod
    def deny(cls, code: ResultCode, owner_id: str | None = None) -> AccessDecision:
        return cls(False, AccessRole.NONE, code, owner_id)


@dataclass(frozen=True, slots=True)
class Requester:
    """Identity and capabilities of whoever issues a command or triggers an event.

    Attributes:
        identity: Durable identity string.
        is_admin: Administrative override (bypasses ownership and limits).
        lock_limit: Individual lock limit granted by the host, if any.
        unlimited: Exempt from lock limits.
        unlimited_types: Types or categories exempt from per-type limits.
        type_lock_limits: Individual per-type limits granted by the host.
    """

    identity: str
    is_admin: bool = False
    lock_limit: int | None = None
    unlimited: bool = False
    unlimited_types: frozenset[ContainerType | ContainerCategory] = frozenset()
    type_lock_limits: Mapping[ContainerType, int] = field(default_factory=dict)
