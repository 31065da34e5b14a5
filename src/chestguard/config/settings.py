"""Configuration settings using Pydantic Settings.

Usage:
    from chestguard.config import ChestGuardSettings

    # Load from environment variables (CHESTGUARD_*) and .env
    settings = ChestGuardSettings()

    # Or override with explicit values
    settings = ChestGuardSettings(storage_type="sqlite", cleanup_interval=600)
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator

from chestguard.scheduling.models import RetryPolicy
from chestguard.service.limits import parse_type_limits
from chestguard.storage.protocol import BackendKind

try:
    from pydantic_settings import BaseSettings, SettingsConfigDict
except ImportError as e:
    raise ImportError(
        "pydantic-settings is required for the config module. "
        "Install with: pip install chestguard"
    ) from e


class ChestGuardSettings(BaseSettings):  # type: ignore[misc]
    """Configuration for the protection service.

    Attributes:
        data_folder: Directory holding the durable files.
        storage_type: Active backend (yaml or sqlite).
        yaml_file_name: File name of the YAML document inside data_folder.
        sqlite_file_name: File name of the SQLite database inside data_folder.
        cleanup_periodic_enabled: Run the periodic orphan sweep.
        cleanup_startup_delay: Seconds before the startup sweep runs.
        cleanup_interval: Seconds between periodic sweeps.
        cleanup_max_per_cycle: Containers inspected per periodic sweep.
        limits_enabled: Enforce per-owner lock limits.
        default_limit: Containers a non-admin may lock when limits are on.
        type_limits_enabled: Enforce per-container-type limits instead of the global one.
        type_default_limit: Per-type limit for types with no entry in type_limits.
        type_limits: Limit per container type or category name (e.g. barrel, shulker_box).
        allow_automation_access: Let hoppers and similar blocks touch protected containers.
        save_retry_attempts: Attempts per durable save (1 = no retry).
        save_retry_backoff: Backoff between save attempts.
        save_retry_base_delay: Base delay in seconds for save backoff.
        log_level: Minimum log level.
        log_json: Emit JSON log lines.

    Environment Variables:
        CHESTGUARD_DATA_FOLDER
        CHESTGUARD_STORAGE_TYPE
        CHESTGUARD_CLEANUP_INTERVAL
        CHESTGUARD_LIMITS_ENABLED
        ... (one per field)
    """

    model_config = SettingsConfigDict(
        env_prefix="CHESTGUARD_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    data_folder: Path = Path("chestguard-data")
    storage_type: BackendKind = BackendKind.YAML
    yaml_file_name: str = "data.yml"
    sqlite_file_name: str = "chestguard.db"

    cleanup_periodic_enabled: bool = True
    cleanup_startup_delay: float = Field(default=10.0, ge=0)
    cleanup_interval: float = Field(default=1800.0, gt=0)
    cleanup_max_per_cycle: int = Field(default=50, gt=0)

    limits_enabled: bool = False
    default_limit: int = Field(default=5, ge=0)
    type_limits_enabled: bool = False
    type_default_limit: int = Field(default=5, ge=0)
    type_limits: dict[str, int] = Field(default_factory=dict)
    allow_automation_access: bool = False

    save_retry_attempts: int = Field(default=3, ge=1)
    save_retry_backoff: Literal["none", "linear", "exponential"] = "exponential"
    save_retry_base_delay: float = Field(default=0.05, ge=0)

    log_level: str = "INFO"
    log_json: bool = False

    @field_validator("storage_type", mode="before")
    @classmethod
    def _parse_storage_type(cls, value: object) -> object:
        if isinstance(value, str):
            parsed = BackendKind.parse(value)
            return parsed if parsed is not None else value
        return value

    @field_validator("type_limits")
    @classmethod
    def _normalize_type_limits(cls, value: dict[str, int]) -> dict[str, int]:
        return parse_type_limits(value)

    @field_validator("log_level")
    @classmethod
    def _normalize_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level: {value}")
        return level

    @property
    def yaml_path(self) -> Path:
        return self.data_folder / self.yaml_file_name

    @property
    def sqlite_path(self) -> Path:
        return self.data_folder / self.sqlite_file_name

    @property
    def retry_policy(self) -> RetryPolicy:
        """Durable-save retry policy built from the save_retry_* fields."""
        return RetryPolicy(
            max_attempts=self.save_retry_attempts,
            backoff=self.save_retry_backoff,
            base_delay=self.save_retry_base_delay,
        )
