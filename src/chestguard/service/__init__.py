"""Service layer: command handlers, access decisions and lock limits.

Architecture Note:
    Services are the boundary to the host. They translate registry, storage
    and cleanup operations into CommandResult / AccessDecision values and
    never let an exception cross that boundary.
"""

from chestguard.service.access import AccessGuard
from chestguard.service.commands import ProtectionService
from chestguard.service.limits import LimitPolicy
from chestguard.service.models import (
    AccessDecision,
    AccessRole,
    CommandResult,
    Requester,
    ResultCode,
)

__all__ = [
    # Models
    "AccessDecision",
    "AccessRole",
    "CommandResult",
    "Requester",
    "ResultCode",
    # Services
    "AccessGuard",
    "LimitPolicy",
    "ProtectionService",
]
