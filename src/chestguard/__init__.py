"""ChestGuard: owner/secret protection for storage containers in a shared world.

Usage:
    from chestguard import ChestGuard, ChestGuardSettings, ContainerKey, Requester
    from chestguard.world import LocalWorldProvider

    worlds = LocalWorldProvider()
    guard = ChestGuard(worlds, ChestGuardSettings(data_folder="data"))
    guard.start()

    key = ContainerKey("overworld", 10, 64, -3)
    guard.service.lock(Requester("uuid-1"), key, "abc")
    guard.access.check_access(Requester("uuid-2"), key)   # denied: NOT_OWNER
    guard.shutdown()
"""

__version__ = "0.1.0"

# Application root
from chestguard.app import ChestGuard

# Cleanup
from chestguard.cleanup import CleanupReport, CleanupSweeper, CleanupType

# Configuration
from chestguard.config import ChestGuardSettings

# Core primitives
from chestguard.core import (
    BlockState,
    ContainerKey,
    ContainerType,
    Facing,
    PairSide,
    hash_secret,
    is_lockable,
    resolve_container_keys,
    validate_name,
    verify_secret,
)

# Registries
from chestguard.registry import ContainerRecord, ProtectionRegistry, TrustRegistry

# Scheduling
from chestguard.scheduling import LoopScheduler, ManualScheduler, Scheduler, TaskHandle

# Services
from chestguard.service import (
    AccessDecision,
    AccessGuard,
    AccessRole,
    CommandResult,
    LimitPolicy,
    ProtectionService,
    Requester,
    ResultCode,
)

# Storage
from chestguard.storage import (
    BackendKind,
    SqliteBackend,
    StorageBackend,
    StorageManager,
    YamlBackend,
)

__all__ = [
    # Version
    "__version__",
    # Application
    "ChestGuard",
    "ChestGuardSettings",
    # Core
    "BlockState",
    "ContainerKey",
    "ContainerType",
    "Facing",
    "PairSide",
    "hash_secret",
    "is_lockable",
    "resolve_container_keys",
    "validate_name",
    "verify_secret",
    # Registries
    "ContainerRecord",
    "ProtectionRegistry",
    "TrustRegistry",
    # Storage
    "BackendKind",
    "SqliteBackend",
    "StorageBackend",
    "StorageManager",
    "YamlBackend",
    # Scheduling
    "LoopScheduler",
    "ManualScheduler",
    "Scheduler",
    "TaskHandle",
    # Cleanup
    "CleanupReport",
    "CleanupSweeper",
    "CleanupType",
    # Services
    "AccessDecision",
    "AccessGuard",
    "AccessRole",
    "CommandResult",
    "LimitPolicy",
    "ProtectionService",
    "Requester",
    "ResultCode",
]
