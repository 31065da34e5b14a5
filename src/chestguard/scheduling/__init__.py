"""Scheduling: host-agnostic timers and the durable-save retry policy.

Usage:
    from chestguard.scheduling import ManualScheduler, resolve_scheduler

    scheduler = resolve_scheduler(host)
    handle = scheduler.run_repeating(sweeper.run_periodic, delay=10.0, period=1800.0)
"""

from chestguard.scheduling.models import Callback, RetryPolicy, TaskHandle
from chestguard.scheduling.scheduler import (
    LoopScheduler,
    ManualScheduler,
    Scheduler,
    resolve_scheduler,
)

__all__ = [
    # Models
    "Callback",
    "RetryPolicy",
    "TaskHandle",
    # Schedulers
    "LoopScheduler",
    "ManualScheduler",
    "Scheduler",
    "resolve_scheduler",
]
