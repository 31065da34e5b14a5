"""Structured-text backend: one human-editable YAML document.

Document layout:

    chests:
      "world,10,64,-3":
        owner: 5f0c...
        password: 9a1b...:77e0...
        name: Loot
    trust:
      5f0c...: [a1d2..., b3c4...]

Malformed entries are skipped with a warning; the rest of the document
still loads. Writes go to a temporary file in the same directory and are
moved into place with os.replace, so a crash mid-save leaves the previous
document intact.
"""

from __future__ import annotations

import os
import tempfile
import threading
from pathlib import Path
from typing import Any

import yaml

from chestguard.core.identity import ContainerKey
from chestguard.registry import ContainerRecord, ProtectionRegistry, TrustRegistry
from chestguard.storage.protocol import BackendKind
from chestguard.structured_logging import get_logger

logger = get_logger(__name__)

CHESTS_SECTION = "chests"
TRUST_SECTION = "trust"


class YamlBackend:
    """StorageBackend writing a single YAML file."""

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path)
        self._log = logger.bind(backend=BackendKind.YAML.value, path=str(self._path))
        self._ready = False
        self._write_lock = threading.Lock()

    @property
    def kind(self) -> BackendKind:
        return BackendKind.YAML

    @property
    def persists_names(self) -> bool:
        return True

    @property
    def persists_trust(self) -> bool:
        return True

    @property
    def path(self) -> Path:
        return self._path

    def initialize(self) -> bool:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            if not self._path.exists():
                self._path.touch()
        except OSError as e:
            self._log.error("Failed to initialize storage", error=str(e))
            return False
        self._ready = True
        self._log.debug("Storage initialized")
        return True

    def is_ready(self) -> bool:
        return self._ready

    def close(self) -> None:
        self._ready = False

    def _read_document(self) -> dict[str, Any] | None:
        try:
            text = self._path.read_text(encoding="utf-8")
            document = yaml.safe_load(text) if text.strip() else {}
        except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
            self._log.error("Failed to read storage file", error=str(e))
            return None
        if document is None:
            return {}
        if not isinstance(document, dict):
            self._log.error("Storage file root is not a mapping")
            return None
        return document

    def load(self, protection: ProtectionRegistry, trust: TrustRegistry) -> bool:
        if not self._ready:
            self._log.error("Load on uninitialized storage")
            return False

        document = self._read_document()
        if document is None:
            return False

        records = _parse_chests(document.get(CHESTS_SECTION))
        relations = _parse_trust(document.get(TRUST_SECTION))
        protection.restore(records)
        trust.restore(relations)
        self._log.info(
            "Loaded protection data",
            containers=len(records),
            trust_owners=len(relations),
        )
        return True

    def save(self, protection: ProtectionRegistry, trust: TrustRegistry) -> bool:
        if not self._ready:
            self._log.error("Save on uninitialized storage")
            return False

        records = protection.snapshot()
        chests: dict[str, dict[str, str]] = {}
        for key in sorted(records):
            record = records[key]
            entry = {"owner": record.owner_id, "password": record.secret_record}
            if record.display_name and record.display_name.strip():
                entry["name"] = record.display_name.strip()
            chests[key.serialize()] = entry

        relations = {owner: sorted(trusted) for owner, trusted in sorted(trust.snapshot().items())}
        document = {CHESTS_SECTION: chests, TRUST_SECTION: relations}

        with self._write_lock:
            try:
                self._write_atomic(document)
            except (OSError, yaml.YAMLError) as e:
                self._log.error("Failed to save storage file", error=str(e))
                return False
        self._log.debug("Saved protection data", containers=len(chests))
        return True

    def _write_atomic(self, document: dict[str, Any]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self._path.name}.", suffix=".tmp", dir=self._path.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                yaml.safe_dump(document, handle, sort_keys=False, allow_unicode=True)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, self._path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise


def _parse_chests(section: object) -> dict[ContainerKey, ContainerRecord]:
    records: dict[ContainerKey, ContainerRecord] = {}
    if section is None:
        return records
    if not isinstance(section, dict):
        logger.warning("Ignoring malformed chests section", section_type=type(section).__name__)
        return records

    for raw_key, entry in section.items():
        try:
            key = ContainerKey.parse(str(raw_key))
        except ValueError:
            logger.warning("Skipping entry with malformed key", entry=str(raw_key))
            continue
        if not isinstance(entry, dict):
            logger.warning("Skipping malformed entry", key=str(key))
            continue

        owner = _scalar_text(entry.get("owner"))
        stored = _scalar_text(entry.get("password"))
        if not owner or not stored:
            logger.warning("Skipping entry without owner or secret", key=str(key))
            continue

        name = _scalar_text(entry.get("name"))
        display_name = name.strip() if name and name.strip() else None
        records[key] = ContainerRecord(
            owner_id=owner, secret_record=stored, display_name=display_name
        )
    return records


def _scalar_text(value: object) -> str | None:
    """Text of a scalar value; hand-edited numbers and booleans become strings."""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int | float):
        return str(value)
    return None


def _parse_trust(section: object) -> dict[str, set[str]]:
    relations: dict[str, set[str]] = {}
    if section is None:
        return relations
    if not isinstance(section, dict):
        logger.warning("Ignoring malformed trust section", section_type=type(section).__name__)
        return relations

    for owner, trusted in section.items():
        if not isinstance(trusted, list):
            logger.warning("Skipping malformed trust entry", owner=str(owner))
            continue
        identities = {str(identity) for identity in trusted if identity is not None}
        if identities:
            relations[str(owner)] = identities
    return relations
