"""Container identity: canonical (world, x, y, z) keys."""

from chestguard.core.identity.models import REGION_SHIFT, ContainerKey

__all__ = [
    "ContainerKey",
    "REGION_SHIFT",
]
