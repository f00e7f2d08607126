"""Narrow contracts for the collaborators the engine talks to."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol

from overlaygate.core.events import (
    OVERLAY_CONFIG,
    OVERLAY_VISIBILITY,
    ConfigUpdated,
    EventBus,
    VisibilityChanged,
)


class GameDetector(Protocol):
    def is_game(self, process_name: str) -> bool: ...


class NativeSink(Protocol):
    def visibility_changed(self, event: VisibilityChanged) -> None: ...

    def config_updated(self, event: ConfigUpdated) -> None: ...


class StaticGameDetector:
    """Treats a fixed list of executable names as games."""

    def __init__(self, process_names: Iterable[str] = ()) -> None:
        self._names = frozenset(name.lower() for name in process_names)

    def is_game(self, process_name: str) -> bool:
        return process_name.lower() in self._names


class EventBusSink:
    """Republishes engine output on the bus for the native overlay bridge."""

    def __init__(self, events: EventBus) -> None:
        self.events = events

    def visibility_changed(self, event: VisibilityChanged) -> None:
        self.events.emit(OVERLAY_VISIBILITY, event)

    def config_updated(self, event: ConfigUpdated) -> None:
        self.events.emit(OVERLAY_CONFIG, event)
