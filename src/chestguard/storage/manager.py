"""Storage manager: owns the active backend, retries saves, swaps on migration.

Usage:
    manager = StorageManager(
        file_backend_factory(Path("data")),
        preferred=BackendKind.SQLITE,
        protection=protection,
        trust=trust,
        retry_policy=RetryPolicy(max_attempts=3, backoff="exponential"),
    )
    manager.open()       # sqlite, falling back to yaml, or degraded
    manager.load()
    manager.save()
    manager.migrate(BackendKind.SQLITE, BackendKind.YAML)
"""

from __future__ import annotations

import threading
from pathlib import Path

import tenacity

from chestguard.registry import ProtectionRegistry, TrustRegistry
from chestguard.scheduling.models import RetryPolicy
from chestguard.storage.migrator import BackendFactory, BackendMigrator, MigrationOutcome
from chestguard.storage.protocol import BackendKind, StorageBackend
from chestguard.storage.sqlite_backend import SqliteBackend
from chestguard.storage.yaml_backend import YamlBackend
from chestguard.structured_logging import get_logger

logger = get_logger(__name__)


def file_backend_factory(
    data_folder: Path | str,
    yaml_file_name: str = "data.yml",
    sqlite_file_name: str = "chestguard.db",
) -> BackendFactory:
    """Build a factory creating file-based backends inside ``data_folder``."""
    folder = Path(data_folder)

    def create(kind: BackendKind) -> StorageBackend:
        if kind is BackendKind.SQLITE:
            return SqliteBackend(folder / sqlite_file_name)
        return YamlBackend(folder / yaml_file_name)

    return create


class StorageManager:
    """Holds the active backend pointer for the process.

    Every public method reports failure through its return value. With no
    ready backend the manager is in degraded mode: protection keeps working
    in memory and saves are refused with an error log.
    """

    def __init__(
        self,
        factory: BackendFactory,
        preferred: BackendKind,
        protection: ProtectionRegistry,
        trust: TrustRegistry,
        retry_policy: RetryPolicy | None = None,
    ) -> None:
        self._factory = factory
        self._preferred = preferred
        self._protection = protection
        self._trust = trust
        self._retry_policy = retry_policy or RetryPolicy()
        self._active: StorageBackend | None = None
        self._lock = threading.RLock()

    @property
    def active(self) -> StorageBackend | None:
        return self._active

    @property
    def kind(self) -> BackendKind | None:
        active = self._active
        return active.kind if active is not None else None

    def is_ready(self) -> bool:
        active = self._active
        return active is not None and active.is_ready()

    @property
    def degraded(self) -> bool:
        return not self.is_ready()

    def open(self) -> bool:
        """Initialize the preferred backend, falling back to YAML."""
        with self._lock:
            if self._active is not None:
                return True
            candidates = [self._preferred]
            if self._preferred is not BackendKind.YAML:
                candidates.append(BackendKind.YAML)

            for kind in candidates:
                backend = self._factory(kind)
                if backend.initialize():
                    if kind is not self._preferred:
                        logger.warning(
                            "Preferred storage unavailable, using fallback",
                            preferred=self._preferred.value,
                            fallback=kind.value,
                        )
                    self._active = backend
                    logger.info("Storage opened", backend=kind.value)
                    return True

            logger.error("No storage backend available, running without persistence")
            return False

    def load(self) -> bool:
        with self._lock:
            if self._active is None:
                logger.error("Load skipped, no storage backend")
                return False
            return self._active.load(self._protection, self._trust)

    def save(self) -> bool:
        """Persist both registries, retrying per the retry policy."""
        with self._lock:
            backend = self._active
            if backend is None:
                logger.error("Save skipped, no storage backend")
                return False

            retryer = self._build_retryer(self._retry_policy)
            try:
                return bool(retryer(backend.save, self._protection, self._trust))
            except tenacity.RetryError:
                logger.error(
                    "Save failed after retries",
                    backend=backend.kind.value,
                    attempts=self._retry_policy.max_attempts,
                )
                return False

    @staticmethod
    def _build_retryer(policy: RetryPolicy) -> tenacity.Retrying:
        """Build a tenacity retryer from RetryPolicy configuration."""
        stop = tenacity.stop_after_attempt(max(policy.max_attempts, 1))

        wait: tenacity.wait.wait_base
        if policy.backoff == "exponential":
            wait = tenacity.wait_exponential(multiplier=policy.base_delay, min=policy.base_delay)
        elif policy.backoff == "linear":
            wait = tenacity.wait_incrementing(start=policy.base_delay, increment=policy.base_delay)
        else:
            wait = tenacity.wait_none()

        return tenacity.Retrying(
            stop=stop,
            wait=wait,
            retry=tenacity.retry_if_result(lambda saved: not saved),
            reraise=False,
        )

    def close(self) -> None:
        with self._lock:
            if self._active is not None:
                self._active.close()
                self._active = None

    def migrate(self, from_kind: BackendKind, to_kind: BackendKind) -> MigrationOutcome:
        """Migrate stored data and make ``to_kind`` the active backend.

        Live registries and the active backend change only after the target
        has been written and verified. When the source is the active backend
        the live registries are already authoritative and are kept as they
        are, including changes made while the migration ran; the target is
        then rewritten from them.
        """
        with self._lock:
            if from_kind == to_kind:
                return MigrationOutcome(success=True, reason="same backend")

            active = self._active
            flushed = active is not None and active.kind == from_kind
            if flushed and not self.save():
                return MigrationOutcome(success=False, reason="could not flush active backend")

            outcome = BackendMigrator(self._factory).migrate(
                from_kind, to_kind, self._protection, self._trust
            )
            if not outcome.success or outcome.target is None:
                return outcome

            if not flushed:
                if outcome.protection is not None:
                    self._protection.restore(outcome.protection.snapshot())
                if outcome.trust is not None:
                    self._trust.restore(outcome.trust.snapshot())

            previous, self._active = self._active, outcome.target
            self._preferred = to_kind
            if previous is not None and previous is not outcome.target:
                previous.close()

            if not self.save():
                logger.error(
                    "Saving live state to migrated backend failed", backend=to_kind.value
                )
            return outcome
