"""overlaygate composition root."""

from __future__ import annotations

from dataclasses import dataclass

from overlaygate.config import GateSettings
from overlaygate.core.engine import DecisionEngine
from overlaygate.core.events import WINDOW_CHANGED, EventBus
from overlaygate.logging import get_logger
from overlaygate.services.capabilities import EventBusSink, GameDetector, StaticGameDetector
from overlaygate.services.settings_surface import SettingsPresenter
from overlaygate.services.store import ConfigStore, JsonFileConfigStore


@dataclass(slots=True)
class GateContext:
    settings: GateSettings
    events: EventBus
    engine: DecisionEngine
    presenter: SettingsPresenter

    def start(self) -> None:
        self.events.subscribe(WINDOW_CHANGED, self.engine.handle_window_changed)

    def stop(self) -> None:
        self.events.unsubscribe(WINDOW_CHANGED, self.engine.handle_window_changed)


def build_context(
    settings: GateSettings,
    store: ConfigStore | None = None,
    detector: GameDetector | None = None,
) -> GateContext:
    events = EventBus()
    engine = DecisionEngine(
        store=store or JsonFileConfigStore(settings.paths.config_file),
        detector=detector or StaticGameDetector(settings.game_processes),
        sink=EventBusSink(events),
        desktop_shell=settings.desktop_shell,
    )
    presenter = SettingsPresenter(engine)

    logger = get_logger("bootstrap")
    logger.info("overlaygate context ready")

    return GateContext(settings=settings, events=events, engine=engine, presenter=presenter)
