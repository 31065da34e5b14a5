"""Application root: builds and owns every service.

Usage:
    worlds = LocalWorldProvider()
    guard = ChestGuard(worlds, ChestGuardSettings(data_folder=Path("data")))
    guard.start()
    guard.service.lock(Requester("uuid-1"), key, "abc")
    guard.shutdown()
"""

from __future__ import annotations

from types import TracebackType

from chestguard.cleanup import CleanupSweeper
from chestguard.config import ChestGuardSettings
from chestguard.registry import ProtectionRegistry, TrustRegistry
from chestguard.scheduling import LoopScheduler, Scheduler, resolve_scheduler
from chestguard.service import AccessGuard, LimitPolicy, ProtectionService
from chestguard.storage import StorageManager, file_backend_factory
from chestguard.structured_logging import configure_logging, get_logger
from chestguard.world import WorldProvider

logger = get_logger(__name__)


class ChestGuard:
    """Container protection for one host process.

    No state is global: two instances never share registries or storage.
    """

    def __init__(
        self,
        world_provider: WorldProvider,
        settings: ChestGuardSettings | None = None,
        scheduler: object | None = None,
    ) -> None:
        self.settings = settings if settings is not None else ChestGuardSettings()
        self.worlds = world_provider

        self.scheduler: Scheduler = resolve_scheduler(scheduler)
        self._owns_scheduler = self.scheduler is not scheduler

        self.protection = ProtectionRegistry()
        self.trust = TrustRegistry()
        self.storage = StorageManager(
            file_backend_factory(
                self.settings.data_folder,
                self.settings.yaml_file_name,
                self.settings.sqlite_file_name,
            ),
            preferred=self.settings.storage_type,
            protection=self.protection,
            trust=self.trust,
            retry_policy=self.settings.retry_policy,
        )
        self.sweeper = CleanupSweeper(
            self.worlds,
            self.protection,
            self.trust,
            save=self.storage.save,
            scheduler=self.scheduler,
            max_per_cycle=self.settings.cleanup_max_per_cycle,
            startup_delay=self.settings.cleanup_startup_delay,
            interval=self.settings.cleanup_interval,
            periodic_enabled=self.settings.cleanup_periodic_enabled,
        )
        self.limits = LimitPolicy(
            self.protection,
            enabled=self.settings.limits_enabled,
            default_limit=self.settings.default_limit,
            worlds=self.worlds,
            type_limits_enabled=self.settings.type_limits_enabled,
            type_default_limit=self.settings.type_default_limit,
            type_limits=self.settings.type_limits,
        )
        self.service = ProtectionService(
            self.worlds, self.protection, self.trust, self.storage, self.sweeper, self.limits
        )
        self.access = AccessGuard(
            self.worlds,
            self.protection,
            self.trust,
            save=self.storage.save,
            allow_automation_access=self.settings.allow_automation_access,
        )
        self._started = False

    @property
    def started(self) -> bool:
        return self._started

    def start(self) -> bool:
        """Open storage, load data, upgrade plaintext secrets and schedule cleanup.

        Returns:
            True if a storage backend is active, False in degraded mode.
        """
        if self._started:
            return self.storage.is_ready()
        configure_logging(self.settings.log_level, self.settings.log_json)

        persistent = self.storage.open()
        if persistent and not self.storage.load():
            # Saving the empty registries would overwrite the unreadable file.
            logger.error(
                "Failed to load protection data, running without persistence",
                backend=str(self.storage.kind),
            )
            self.storage.close()
            persistent = False

        if self.protection.migrate_plaintext_secrets() and persistent:
            self.storage.save()

        self.sweeper.start()
        self._started = True
        logger.info(
            "ChestGuard started",
            backend=self.storage.kind.value if self.storage.kind else None,
            containers=len(self.protection),
            trust_owners=len(self.trust),
        )
        return persistent

    def shutdown(self) -> None:
        """Stop cleanup, flush and close storage, stop an internally created scheduler."""
        if not self._started:
            return
        self.sweeper.shutdown()
        if self.storage.is_ready() and not self.storage.save():
            logger.error("Final save failed")
        self.storage.close()
        if self._owns_scheduler and isinstance(self.scheduler, LoopScheduler):
            self.scheduler.shutdown()
        self._started = False
        logger.info("ChestGuard stopped")

    def __enter__(self) -> ChestGuard:
        self.start()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.shutdown()
