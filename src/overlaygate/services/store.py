"""Persistence of the overlay config record."""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Protocol

import portalocker
from pydantic import ValidationError

from overlaygate.core.errors import ConfigDecodeError, PersistenceWriteError
from overlaygate.core.modes import OverlayConfig, default_config
from overlaygate.logging import get_logger

CONFIG_KEY = "overlayConfig"


class ConfigStore(Protocol):
    def load(self) -> OverlayConfig: ...

    def save(self, config: OverlayConfig) -> None: ...


def decode_config(raw: str) -> OverlayConfig:
    try:
        return OverlayConfig.model_validate_json(raw)
    except ValidationError as exc:
        raise ConfigDecodeError(f"stored overlay config is invalid: {exc.error_count()} error(s)") from exc


class MemoryConfigStore:
    """Keeps the serialized blob in memory so decoding behaves like the file store."""

    def __init__(self, initial: str | None = None) -> None:
        self.raw: str | None = initial
        self.fail_writes = False
        self.writes = 0
        self.logger = get_logger("store")

    def load(self) -> OverlayConfig:
        if self.raw is None:
            return default_config()
        try:
            return decode_config(self.raw)
        except ConfigDecodeError as exc:
            self.logger.warning("{}; falling back to defaults", exc)
            return default_config()

    def save(self, config: OverlayConfig) -> None:
        if self.fail_writes:
            raise PersistenceWriteError("memory store is read-only")
        self.raw = config.to_json()
        self.writes += 1


class JsonFileConfigStore:
    """One slot of a JSON document on disk, guarded by a lock file."""

    def __init__(self, path: Path, key: str = CONFIG_KEY) -> None:
        self.path = path
        self.key = key
        self.lockfile = path.with_name(path.name + ".lock")
        self.logger = get_logger("store")

    def _read_document(self) -> dict | None:
        if not self.path.exists():
            return None
        try:
            document = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise ConfigDecodeError(f"cannot read {self.path}: {exc}") from exc
        if not isinstance(document, dict):
            raise ConfigDecodeError(f"{self.path} does not hold a JSON object")
        return document

    def load(self) -> OverlayConfig:
        try:
            document = self._read_document()
            if document is None or self.key not in document:
                self.logger.info("No stored overlay config at {}, using defaults", self.path)
                return default_config()
            slot = document[self.key]
            # older writers stored the slot as an already-encoded string
            raw = slot if isinstance(slot, str) else json.dumps(slot)
            return decode_config(raw)
        except ConfigDecodeError as exc:
            self.logger.warning("{}; falling back to defaults", exc)
            return default_config()

    def save(self, config: OverlayConfig) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with portalocker.Lock(str(self.lockfile), timeout=5):
                try:
                    document = self._read_document() or {}
                except ConfigDecodeError:
                    document = {}
                document[self.key] = config.model_dump(mode="json", by_alias=True)
                fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, suffix=".tmp")
                try:
                    with os.fdopen(fd, "w", encoding="utf-8") as handle:
                        json.dump(document, handle, ensure_ascii=False, indent=2)
                    os.replace(tmp_name, self.path)
                except BaseException:
                    Path(tmp_name).unlink(missing_ok=True)
                    raise
        except (OSError, portalocker.exceptions.LockException) as exc:
            raise PersistenceWriteError(f"cannot write {self.path}: {exc}") from exc
