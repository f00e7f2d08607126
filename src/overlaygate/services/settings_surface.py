"""View-model helpers for the overlay settings form."""

from __future__ import annotations

from overlaygate.core.engine import DecisionEngine
from overlaygate.core.modes import OverlayMode, is_security_critical

MODE_LABELS: dict[OverlayMode, str] = {
    OverlayMode.GAMES_ONLY: "Games Only (Default)",
    OverlayMode.ALL_APPLICATIONS: "All Applications (System-Wide)",
    OverlayMode.DESKTOP_MODE: "Desktop Mode Only",
    OverlayMode.CUSTOM_WHITELIST: "Custom Whitelist",
}

MODE_DESCRIPTIONS: dict[OverlayMode, str] = {
    OverlayMode.GAMES_ONLY: "Overlay appears only in detected games",
    OverlayMode.ALL_APPLICATIONS: "Overlay works in all applications except blacklisted ones",
    OverlayMode.DESKTOP_MODE: "Overlay available on the Windows desktop with hotkey activation",
    OverlayMode.CUSTOM_WHITELIST: "Choose specific applications where overlay should appear",
}


def mode_description(mode: OverlayMode | str) -> str:
    try:
        return MODE_DESCRIPTIONS[OverlayMode(mode)]
    except ValueError:
        return ""


class SettingsPresenter:
    """Everything the settings form needs, routed through the engine API."""

    def __init__(self, engine: DecisionEngine) -> None:
        self.engine = engine

    def mode_choices(self) -> list[tuple[OverlayMode, str]]:
        return list(MODE_LABELS.items())

    def whitelist_visible(self) -> bool:
        return self.engine.get_config().mode is OverlayMode.CUSTOM_WHITELIST

    def blacklist_rows(self) -> list[tuple[str, bool]]:
        return [(name, not is_security_critical(name)) for name in self.engine.get_config().blacklist]

    def add_app(self, name: str, whitelist: bool) -> bool:
        name = name.strip()
        if not name:
            return False
        if whitelist:
            self.engine.add_to_whitelist(name)
        else:
            self.engine.add_to_blacklist(name)
        return True

    def opacity_percent(self) -> str:
        return f"{round(self.engine.get_config().opacity * 100)}%"
