"""Mode-based overlay visibility decisions and the config mutation API."""

from __future__ import annotations

import threading
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from overlaygate.core.errors import ConfigValidationError, PersistenceWriteError, SecurityViolation
from overlaygate.core.events import ConfigUpdated, VisibilityChanged, WindowChanged
from overlaygate.core.modes import OverlayConfig, OverlayMode, Position, is_security_critical, matches_any
from overlaygate.logging import get_logger
from overlaygate.services.capabilities import GameDetector, NativeSink
from overlaygate.services.store import ConfigStore

UPDATABLE_FIELDS: dict[str, str] = {
    "enabled": "enabled",
    "opacity": "opacity",
    "position": "position",
    "click_through": "click_through",
    "clickThrough": "click_through",
    "hotkey": "hotkey",
}


class DecisionEngine:
    """Owns the overlay config and decides visibility for the focused process.

    Every accepted mutation is written to the store and announced to the sink
    before the call returns. Rejected mutations raise and leave state untouched.
    """

    def __init__(
        self,
        store: ConfigStore,
        detector: GameDetector,
        sink: NativeSink,
        desktop_shell: str = "explorer.exe",
    ) -> None:
        self.store = store
        self.detector = detector
        self.sink = sink
        self.desktop_shell = desktop_shell
        self.logger = get_logger("engine")
        self._lock = threading.RLock()
        self._config: OverlayConfig = store.load()
        self.logger.info(
            "Overlay engine ready: mode={} enabled={}", self._config.mode.value, self._config.enabled
        )

    def get_config(self) -> OverlayConfig:
        with self._lock:
            return self._config.model_copy(deep=True)

    def should_show_overlay(self, process_name: str, window_title: str = "") -> bool:
        config = self._config
        if not config.enabled:
            return False

        if matches_any(process_name, config.blacklist):
            self.logger.debug("Blacklisted process {} ({})", process_name, window_title)
            return False

        mode = config.mode
        if mode is OverlayMode.GAMES_ONLY:
            return self._is_game(process_name)
        if mode is OverlayMode.ALL_APPLICATIONS:
            return True
        if mode is OverlayMode.DESKTOP_MODE:
            return process_name == self.desktop_shell
        if mode is OverlayMode.CUSTOM_WHITELIST:
            return matches_any(process_name, config.whitelist)
        return False

    def handle_window_changed(self, event: WindowChanged) -> bool:
        visible = self.should_show_overlay(event.process_name, event.window_title)
        self.sink.visibility_changed(VisibilityChanged(visible=visible))
        return visible

    def set_mode(self, mode: OverlayMode | str) -> None:
        try:
            new_mode = OverlayMode(mode)
        except ValueError:
            self.logger.warning("Rejected unknown overlay mode {!r}", mode)
            raise ConfigValidationError(f"unknown overlay mode: {mode!r}") from None
        with self._lock:
            self._commit(self._config.model_copy(update={"mode": new_mode}))
        self.logger.info("Overlay mode set to {}", new_mode.value)

    def update_config(self, updates: Mapping[str, Any] | None = None, **fields: Any) -> None:
        requested = {**(updates or {}), **fields}
        normalized: dict[str, Any] = {}
        for key, value in requested.items():
            target = UPDATABLE_FIELDS.get(key)
            if target is None:
                self.logger.warning("Rejected update of field {!r}", key)
                raise ConfigValidationError(f"field {key!r} cannot be updated here")
            normalized[target] = _coerce_position(value) if target == "position" else value

        with self._lock:
            try:
                candidate = OverlayConfig.model_validate({**self._config.model_dump(), **normalized})
            except ValidationError as exc:
                self.logger.warning("Rejected config update {}: {} error(s)", normalized, exc.error_count())
                raise ConfigValidationError(str(exc)) from exc
            self._commit(candidate)
        self.logger.info("Overlay config updated: {}", sorted(normalized))

    def add_to_whitelist(self, name: str) -> None:
        self._add_pattern("whitelist", name)

    def remove_from_whitelist(self, name: str) -> None:
        self._remove_pattern("whitelist", name)

    def add_to_blacklist(self, name: str) -> None:
        self._add_pattern("blacklist", name)

    def remove_from_blacklist(self, name: str) -> None:
        if is_security_critical(name):
            self.logger.warning("Cannot remove {} from blacklist (security)", name)
            raise SecurityViolation(name)
        self._remove_pattern("blacklist", name)

    def _add_pattern(self, field: str, name: str) -> None:
        name = name.strip()
        if not name:
            raise ConfigValidationError(f"{field} entry cannot be blank")
        with self._lock:
            current: list[str] = getattr(self._config, field)
            if name in current:
                return
            self._commit(self._config.model_copy(update={field: [*current, name]}))
        self.logger.info("Added {} to {}", name, field)

    def _remove_pattern(self, field: str, name: str) -> None:
        with self._lock:
            current: list[str] = getattr(self._config, field)
            if name not in current:
                return
            remaining = [entry for entry in current if entry != name]
            self._commit(self._config.model_copy(update={field: remaining}))
        self.logger.info("Removed {} from {}", name, field)

    def _commit(self, config: OverlayConfig) -> None:
        """Persist, adopt and announce `config`. Callers hold `self._lock`.

        Only `PersistenceWriteError` is absorbed; any other store failure
        propagates before the in-memory config changes.
        """
        try:
            self.store.save(config)
        except PersistenceWriteError as exc:
            self.logger.error("Overlay config kept in memory only: {}", exc)
        self._config = config
        # sink sees snapshots in commit order
        self.sink.config_updated(ConfigUpdated(config=config.model_copy(deep=True)))

    def _is_game(self, process_name: str) -> bool:
        try:
            return bool(self.detector.is_game(process_name))
        except Exception as exc:
            self.logger.error("Game detector failed for {}: {}", process_name, exc)
            return False


def _coerce_position(value: Any) -> Any:
    if isinstance(value, Position):
        return value.model_dump()
    if isinstance(value, (tuple, list)) and len(value) == 2:
        return {"x": value[0], "y": value[1]}
    return value
