"""Orphan detection and removal over the protection and trust registries.

A ContainerKey is an orphan when its world no longer resolves, or when its
region is loaded and the block there is no longer a lockable type. Keys in
unloaded regions are never orphans: the sweep must not force regions to load.

Usage:
    sweeper = CleanupSweeper(worlds, protection, trust, save=manager.save, scheduler=scheduler)
    sweeper.start()                    # startup sweep + periodic sweeps
    report = sweeper.run_manual()      # unbounded, immediate
    sweeper.shutdown()
"""

from __future__ import annotations

import bisect
import operator
import threading
import time
from collections.abc import Callable
from functools import partial

from chestguard.cleanup.models import CleanupReport, CleanupType
from chestguard.core.addressing import is_lockable
from chestguard.core.identity import ContainerKey
from chestguard.registry import ProtectionRegistry, TrustRegistry
from chestguard.scheduling import Scheduler, TaskHandle
from chestguard.structured_logging import get_logger
from chestguard.world import WorldProvider

logger = get_logger(__name__)

DEFAULT_MAX_PER_CYCLE = 50


class CleanupSweeper:
    """Runs startup, periodic and manual orphan sweeps.

    Sweeps are serialized. Periodic sweeps inspect at most ``max_per_cycle``
    keys, resuming after the last key of the previous periodic sweep.
    """

    def __init__(
        self,
        worlds: WorldProvider,
        protection: ProtectionRegistry,
        trust: TrustRegistry,
        save: Callable[[], bool],
        scheduler: Scheduler,
        *,
        max_per_cycle: int = DEFAULT_MAX_PER_CYCLE,
        startup_delay: float = 10.0,
        interval: float = 1800.0,
        periodic_enabled: bool = True,
    ) -> None:
        if max_per_cycle <= 0:
            raise ValueError("max_per_cycle must be positive")
        self._worlds = worlds
        self._protection = protection
        self._trust = trust
        self._save = save
        self._scheduler = scheduler
        self._max_per_cycle = max_per_cycle
        self._startup_delay = startup_delay
        self._interval = interval
        self._periodic_enabled = periodic_enabled

        self._sweep_lock = threading.Lock()
        self._cursor: ContainerKey | None = None
        self._handles: list[TaskHandle] = []
        self._last_report: CleanupReport | None = None

    @property
    def last_report(self) -> CleanupReport | None:
        return self._last_report

    @property
    def running(self) -> bool:
        return any(not handle.cancelled for handle in self._handles)

    def start(self) -> None:
        """Schedule the startup sweep and, if enabled, the periodic sweep."""
        if self.running:
            return
        self._handles = [self._scheduler.run_later(self.run_startup, self._startup_delay)]
        if self._periodic_enabled:
            self._handles.append(
                self._scheduler.run_repeating(self.run_periodic, self._interval, self._interval)
            )
        logger.info(
            "Cleanup scheduled",
            startup_delay=self._startup_delay,
            interval=self._interval if self._periodic_enabled else None,
        )

    def shutdown(self) -> None:
        """Cancel scheduled sweeps and wait for a sweep already running to finish."""
        for handle in self._handles:
            handle.cancel()
        self._handles = []
        with self._sweep_lock:
            pass

    def run_startup(self) -> CleanupReport:
        return self.run(CleanupType.STARTUP)

    def run_periodic(self) -> CleanupReport:
        return self.run(CleanupType.PERIODIC)

    def run_manual(self) -> CleanupReport:
        return self.run(CleanupType.MANUAL)

    def is_orphan(self, key: ContainerKey) -> bool:
        world = self._worlds.get_world(key.world)
        if world is None:
            return True
        region_x, region_z = key.region
        if not world.is_region_loaded(region_x, region_z):
            return False
        return not is_lockable(world.block_at(key.x, key.y, key.z).type_name)

    def run(self, cleanup_type: CleanupType) -> CleanupReport:
        """Execute one sweep.

        Args:
            cleanup_type: Trigger; PERIODIC sweeps are capped per cycle.

        Returns:
            CleanupReport with removal counts and timing.
        """
        with self._sweep_lock:
            started = time.perf_counter()
            batch = self._select(cleanup_type)

            cleaned = 0
            for key in batch:
                record = self._protection.record_of(key)
                if record is None or not self.is_orphan(key):
                    continue
                if self._protection.remove_if(key, partial(operator.is_, record)):
                    cleaned += 1
                    logger.debug("Removed orphaned protection", key=str(key), owner=record.owner_id)

            relations = self._trust.prune_owners(self._protection.owners())

            saved = False
            if cleaned or relations:
                saved = self._save()
                if not saved:
                    logger.error("Failed to save after cleanup", cleanup_type=cleanup_type.value)

            report = CleanupReport(
                cleanup_type=cleanup_type,
                cleaned_containers=cleaned,
                cleaned_trust_relations=relations,
                duration_ms=(time.perf_counter() - started) * 1000,
                inspected=len(batch),
                saved=saved,
            )
            self._last_report = report

        log = logger.info if report.changed else logger.debug
        log(
            "Cleanup completed",
            cleanup_type=cleanup_type.value,
            containers=report.cleaned_containers,
            trust_relations=report.cleaned_trust_relations,
            inspected=report.inspected,
            duration_ms=round(report.duration_ms, 2),
        )
        return report

    def _select(self, cleanup_type: CleanupType) -> list[ContainerKey]:
        keys = self._protection.keys()
        if not cleanup_type.bounded or len(keys) <= self._max_per_cycle:
            if cleanup_type.bounded:
                self._cursor = None
            return keys

        start = 0 if self._cursor is None else bisect.bisect_right(keys, self._cursor)
        ordered = keys[start:] + keys[:start]
        batch = ordered[: self._max_per_cycle]
        self._cursor = batch[-1]
        return batch
