"""Cleanup sweep models."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class CleanupType(Enum):
    """What triggered a sweep. Only PERIODIC sweeps are bounded per cycle."""

    STARTUP = "startup"
    PERIODIC = "periodic"
    MANUAL = "manual"

    @property
    def bounded(self) -> bool:
        return self is CleanupType.PERIODIC


@dataclass(frozen=True, slots=True)
class CleanupReport:
    """Outcome of one sweep. Informational only.

    Attributes:
        cleanup_type: Trigger of the sweep.
        cleaned_containers: ContainerKeys removed as orphans.
        cleaned_trust_relations: Trusted identities removed with their owner entries.
        duration_ms: Wall time of the sweep.
        inspected: ContainerKeys evaluated.
        saved: Whether a durable save succeeded after the sweep.
    """

    cleanup_type: CleanupType
    cleaned_containers: int = 0
    cleaned_trust_relations: int = 0
    duration_ms: float = 0.0
    inspected: int = 0
    saved: bool = False

    @property
    def total(self) -> int:
        return self.cleaned_containers + self.cleaned_trust_relations

    @property
    def changed(self) -> bool:
        return self.total > 0

    def __str__(self) -> str:
        return (
            f"CleanupReport(type={self.cleanup_type.value}, containers={self.cleaned_containers}, "
            f"trust_relations={self.cleaned_trust_relations}, duration={self.duration_ms:.0f}ms)"
        )
