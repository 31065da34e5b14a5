"""Scheduler boundary: "run now / after a delay / repeatedly" with cancellable handles.

The core never decides which threading model the host uses. It asks a
Scheduler for work to be run and keeps the returned TaskHandle.

Usage:
    scheduler = resolve_scheduler(host)          # host's own scheduler, or a LoopScheduler
    handle = scheduler.run_repeating(sweep, delay=10.0, period=1800.0)
    handle.cancel()

    # Deterministic tests
    manual = ManualScheduler()
    manual.run_later(callback, delay=5.0)
    manual.advance(5.0)                          # callback runs here
"""

from __future__ import annotations

import asyncio
import threading
from collections.abc import Callable, Coroutine
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from chestguard.scheduling.models import Callback, TaskHandle
from chestguard.structured_logging import get_logger

logger = get_logger(__name__)


@runtime_checkable
class Scheduler(Protocol):
    """Protocol for the host scheduling collaborator."""

    def run_now(self, callback: Callback) -> TaskHandle:
        """Run ``callback`` as soon as possible."""
        ...

    def run_later(self, callback: Callback, delay: float) -> TaskHandle:
        """Run ``callback`` once after ``delay`` seconds."""
        ...

    def run_repeating(self, callback: Callback, delay: float, period: float) -> TaskHandle:
        """Run ``callback`` after ``delay`` seconds, then every ``period`` seconds."""
        ...


def _invoke(callback: Callback, handle: TaskHandle) -> None:
    """Run one callback; failures are logged and never escape into the scheduler."""
    if handle.cancelled:
        return
    try:
        callback()
    except Exception:
        logger.exception("Scheduled task failed", task=handle.name)


class LoopScheduler:
    """Scheduler backed by an asyncio loop on a daemon thread.

    Timers run on the loop; callbacks run in worker threads via
    asyncio.to_thread so a long sweep never stalls other timers.
    """

    def __init__(self, name: str = "chestguard-scheduler") -> None:
        self._name = name
        self._loop: asyncio.AbstractEventLoop | None = None
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()
        self._tasks: set[asyncio.Task[None]] = set()

    def _ensure_started(self) -> asyncio.AbstractEventLoop:
        with self._lock:
            if self._loop is None:
                self._loop = asyncio.new_event_loop()
                self._thread = threading.Thread(
                    target=self._loop.run_forever,
                    daemon=True,
                    name=self._name,
                )
                self._thread.start()
            return self._loop

    @property
    def running(self) -> bool:
        return self._loop is not None and self._loop.is_running()

    def _submit(
        self, coro_factory: Callable[[], Coroutine[Any, Any, None]], handle: TaskHandle
    ) -> TaskHandle:
        loop = self._ensure_started()

        def spawn() -> None:
            task = loop.create_task(coro_factory())
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

        loop.call_soon_threadsafe(spawn)
        return handle

    def run_now(self, callback: Callback) -> TaskHandle:
        return self.run_later(callback, 0.0)

    def run_later(self, callback: Callback, delay: float) -> TaskHandle:
        handle = TaskHandle(getattr(callback, "__name__", "task"))

        async def once() -> None:
            if delay > 0:
                await asyncio.sleep(delay)
            if not handle.cancelled:
                await asyncio.to_thread(_invoke, callback, handle)

        return self._submit(once, handle)

    def run_repeating(self, callback: Callback, delay: float, period: float) -> TaskHandle:
        if period <= 0:
            raise ValueError("period must be positive")
        handle = TaskHandle(getattr(callback, "__name__", "task"))

        async def repeat() -> None:
            await asyncio.sleep(max(delay, 0.0))
            while not handle.cancelled:
                await asyncio.to_thread(_invoke, callback, handle)
                await asyncio.sleep(period)

        return self._submit(repeat, handle)

    def shutdown(self, timeout: float = 5.0) -> None:
        """Cancel pending timers and stop the loop thread."""
        with self._lock:
            loop, thread = self._loop, self._thread
            self._loop = None
            self._thread = None
        if loop is None:
            return

        def stop() -> None:
            for task in list(self._tasks):
                task.cancel()
            # Let cancelled tasks unwind before the loop stops.
            loop.call_soon(loop.stop)

        loop.call_soon_threadsafe(stop)
        if thread is not None:
            thread.join(timeout)
        if not loop.is_running():
            loop.close()


@dataclass(order=True)
class _Pending:
    due: float
    sequence: int
    callback: Callback = field(compare=False)
    handle: TaskHandle = field(compare=False)
    period: float | None = field(default=None, compare=False)


class ManualScheduler:
    """Deterministic scheduler driven by explicit clock advances.

    ``run_now`` executes inline. Delayed and repeating callbacks run in due
    order during ``advance``.
    """

    def __init__(self) -> None:
        self.now = 0.0
        self._pending: list[_Pending] = []
        self._sequence = 0

    def _schedule(
        self, callback: Callback, delay: float, period: float | None = None
    ) -> TaskHandle:
        handle = TaskHandle(getattr(callback, "__name__", "task"))
        self._sequence += 1
        due = self.now + max(delay, 0.0)
        self._pending.append(_Pending(due, self._sequence, callback, handle, period))
        return handle

    def run_now(self, callback: Callback) -> TaskHandle:
        handle = TaskHandle(getattr(callback, "__name__", "task"))
        _invoke(callback, handle)
        return handle

    def run_later(self, callback: Callback, delay: float) -> TaskHandle:
        return self._schedule(callback, delay)

    def run_repeating(self, callback: Callback, delay: float, period: float) -> TaskHandle:
        if period <= 0:
            raise ValueError("period must be positive")
        return self._schedule(callback, delay, period)

    @property
    def pending(self) -> int:
        """Number of scheduled, non-cancelled tasks."""
        return sum(1 for entry in self._pending if not entry.handle.cancelled)

    def advance(self, seconds: float) -> int:
        """Move the clock forward, running every callback that becomes due.

        Returns:
            Number of callback invocations.
        """
        target = self.now + seconds
        runs = 0
        while True:
            self._pending = [entry for entry in self._pending if not entry.handle.cancelled]
            due = [entry for entry in self._pending if entry.due <= target]
            if not due:
                break
            entry = min(due)
            self._pending.remove(entry)
            self.now = entry.due
            _invoke(entry.callback, entry.handle)
            runs += 1
            if entry.period is not None and not entry.handle.cancelled:
                self._sequence += 1
                entry.due += entry.period
                entry.sequence = self._sequence
                self._pending.append(entry)
        self.now = target
        return runs


def resolve_scheduler(host: object | None = None) -> Scheduler:
    """Pick the scheduler the core will use, once, at startup.

    Args:
        host: Host integration object. Used directly when it implements Scheduler.

    Returns:
        The host scheduler, or a fresh LoopScheduler.
    """
    if host is not None and isinstance(host, Scheduler):
        logger.debug("Using host scheduler", scheduler=type(host).__name__)
        return host
    return LoopScheduler()
