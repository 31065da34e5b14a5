"""Scheduling models: task handles and retry configuration."""

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import Literal

Callback = Callable[[], object]
"""A zero-argument unit of work handed to a scheduler."""


class TaskHandle:
    """Cancellable handle for a scheduled callback.

    Cancelling prevents future runs; a run already in progress completes.
    """

    def __init__(self, name: str = "task") -> None:
        self.name = name
        self._cancelled = threading.Event()

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def __repr__(self) -> str:
        state = "cancelled" if self.cancelled else "active"
        return f"TaskHandle({self.name!r}, {state})"


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """Configuration for retrying failed durable saves.

    Transient failures (a locked database file, a briefly unwritable
    directory) usually clear within milliseconds.
    """

    max_attempts: int = 1
    """Maximum attempts (1 = no retry)."""

    backoff: Literal["none", "linear", "exponential"] = "none"
    """Backoff strategy between retries."""

    base_delay: float = 0.1
    """Base delay in seconds for backoff calculation."""
