"""Event payloads and a thread-safe pub/sub bus for overlay decisions."""

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from overlaygate.core.modes import OverlayConfig

WINDOW_CHANGED = "window.changed"
OVERLAY_VISIBILITY = "overlay.visibility"
OVERLAY_CONFIG = "overlay.config"

EventHandler = Callable[[Any], None]


@dataclass(slots=True, frozen=True)
class WindowChanged:
    process_name: str
    window_title: str = ""


@dataclass(slots=True, frozen=True)
class VisibilityChanged:
    visible: bool


@dataclass(slots=True, frozen=True)
class ConfigUpdated:
    config: OverlayConfig


class EventBus:
    """Topic-keyed fan-out; focus trackers may publish from background threads.

    Handler tuples are replaced, never mutated, so `emit` reads them without
    taking the lock and handlers may subscribe or unsubscribe while running.
    """

    def __init__(self) -> None:
        self._handlers: dict[str, tuple[EventHandler, ...]] = {}
        self._lock = threading.Lock()

    def subscribe(self, topic: str, handler: EventHandler) -> Callable[[], None]:
        with self._lock:
            current = self._handlers.get(topic, ())
            if handler not in current:
                self._handlers[topic] = (*current, handler)
        return lambda: self.unsubscribe(topic, handler)

    def unsubscribe(self, topic: str, handler: EventHandler) -> None:
        with self._lock:
            remaining = tuple(h for h in self._handlers.get(topic, ()) if h != handler)
            if remaining:
                self._handlers[topic] = remaining
            else:
                self._handlers.pop(topic, None)

    def emit(self, topic: str, payload: Any) -> int:
        """Deliver `payload` to every handler of `topic` and return how many ran."""

        handlers = self._handlers.get(topic, ())
        for handler in handlers:
            handler(payload)
        return len(handlers)
