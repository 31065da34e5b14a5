"""Configuration module using Pydantic Settings.

Usage:
    from chestguard.config import ChestGuardSettings

    settings = ChestGuardSettings(storage_type="sqlite")
"""

from chestguard.config.settings import ChestGuardSettings

__all__ = [
    "ChestGuardSettings",
]
