"""Persistence backend protocol.

One required interface covers containers, names and trust. A backend that
cannot store names or trust declares so through ``persists_names`` /
``persists_trust`` and silently skips those fields.
"""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from chestguard.registry import ProtectionRegistry, TrustRegistry


class BackendKind(StrEnum):
    """Available persistence backends."""

    YAML = "yaml"
    SQLITE = "sqlite"

    @classmethod
    def parse(cls, value: str | BackendKind) -> BackendKind | None:
        """Case-insensitive lookup. Returns None for unknown names."""
        if isinstance(value, BackendKind):
            return value
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


@runtime_checkable
class StorageBackend(Protocol):
    """Protocol for durable storage of protection and trust state.

    Every method reports failure through its return value; implementations
    catch their own I/O errors.
    """

    @property
    def kind(self) -> BackendKind:
        """Which backend this is."""
        ...

    @property
    def persists_names(self) -> bool:
        """Whether display names survive a save/load cycle."""
        ...

    @property
    def persists_trust(self) -> bool:
        """Whether trust relations survive a save/load cycle."""
        ...

    def initialize(self) -> bool:
        """Open files or connections and create the schema if needed."""
        ...

    def load(self, protection: ProtectionRegistry, trust: TrustRegistry) -> bool:
        """Replace registry contents with durable state.

        Fields the backend does not persist are left untouched in the registries.
        """
        ...

    def save(self, protection: ProtectionRegistry, trust: TrustRegistry) -> bool:
        """Write a point-in-time view of both registries."""
        ...

    def close(self) -> None:
        """Release resources. Safe to call more than once."""
        ...

    def is_ready(self) -> bool:
        """True between a successful initialize() and close()."""
        ...
