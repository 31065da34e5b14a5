"""Orphan cleanup: startup, periodic and manual sweeps."""

from chestguard.cleanup.models import CleanupReport, CleanupType
from chestguard.cleanup.sweeper import DEFAULT_MAX_PER_CYCLE, CleanupSweeper

__all__ = [
    "CleanupReport",
    "CleanupSweeper",
    "CleanupType",
    "DEFAULT_MAX_PER_CYCLE",
]
