"""Protection and trust registries.

Architecture Note:
    registry/ holds the runtime state of the system. Persistence backends
    read from and write into these registries; nothing else owns the data
    while the process runs.
"""

from chestguard.registry.models import ContainerRecord
from chestguard.registry.protection import ProtectionRegistry
from chestguard.registry.trust import TrustRegistry

__all__ = [
    "ContainerRecord",
    "ProtectionRegistry",
    "TrustRegistry",
]
