import threading

import pytest

from overlaygate.core.engine import DecisionEngine
from overlaygate.core.errors import ConfigValidationError, SecurityViolation
from overlaygate.core.events import WindowChanged
from overlaygate.core.modes import DEFAULT_BLACKLIST, OverlayConfig, OverlayMode, Position
from overlaygate.services.store import MemoryConfigStore


def test_defaults_when_store_is_empty(engine):
    config = engine.get_config()
    assert config.mode is OverlayMode.GAMES_ONLY
    assert config.enabled is True
    assert config.opacity == 0.95
    assert config.click_through is True
    assert config.position == Position(x=10, y=10)
    assert list(DEFAULT_BLACKLIST) == config.blacklist


def test_blacklist_wins_in_all_applications_mode(engine):
    engine.set_mode(OverlayMode.ALL_APPLICATIONS)
    assert engine.should_show_overlay("banking.exe", "") is False


def test_all_applications_shows_everything_else(engine):
    engine.set_mode(OverlayMode.ALL_APPLICATIONS)
    assert engine.should_show_overlay("chrome.exe", "") is True
    assert engine.should_show_overlay("vscode.exe", "") is True


def test_custom_whitelist_only_shows_listed_apps(engine):
    engine.set_mode(OverlayMode.CUSTOM_WHITELIST)
    engine.add_to_whitelist("chrome.exe")
    assert engine.should_show_overlay("chrome.exe", "") is True
    assert engine.should_show_overlay("firefox.exe", "") is False


def test_games_only_defers_to_detector(engine, detector):
    engine.set_mode(OverlayMode.GAMES_ONLY)
    assert engine.should_show_overlay("chrome.exe", "") is False
    assert engine.should_show_overlay("eldenring.exe", "Elden Ring") is True
    assert detector.queries == ["chrome.exe", "eldenring.exe"]


def test_games_only_hides_when_detector_fails(store, sink):
    class BrokenDetector:
        def is_game(self, process_name):
            raise RuntimeError("ipc closed")

    engine = DecisionEngine(store, BrokenDetector(), sink)
    assert engine.should_show_overlay("eldenring.exe", "") is False


def test_desktop_mode_is_exact_match(engine):
    engine.set_mode(OverlayMode.DESKTOP_MODE)
    assert engine.should_show_overlay("explorer.exe", "") is True
    assert engine.should_show_overlay("Explorer.exe", "") is False
    assert engine.should_show_overlay("iexplorer.exe", "") is False


def test_desktop_shell_is_configurable(store, detector, sink):
    engine = DecisionEngine(store, detector, sink, desktop_shell="plasmashell")
    engine.set_mode("desktop_mode")
    assert engine.should_show_overlay("plasmashell", "") is True
    assert engine.should_show_overlay("explorer.exe", "") is False


@pytest.mark.parametrize("mode", list(OverlayMode))
def test_disabled_never_shows(engine, mode):
    engine.add_to_whitelist("chrome.exe")
    engine.set_mode(mode)
    engine.update_config(enabled=False)
    for process in ("chrome.exe", "explorer.exe", "eldenring.exe", ""):
        assert engine.should_show_overlay(process, "anything") is False


@pytest.mark.parametrize("mode", list(OverlayMode))
def test_blacklist_overrides_whitelist_in_every_mode(engine, mode):
    engine.add_to_whitelist("secure")
    engine.add_to_blacklist("Secure")
    engine.set_mode(mode)
    assert engine.should_show_overlay("MySecureApp.exe", "") is False
    assert engine.should_show_overlay("C:/Apps/KeePass.EXE", "") is False


def test_matching_is_case_insensitive_substring(engine):
    engine.set_mode(OverlayMode.CUSTOM_WHITELIST)
    engine.add_to_whitelist("Chrome")
    assert engine.should_show_overlay("GOOGLECHROME.EXE", "") is True
    assert engine.should_show_overlay("chromium.exe", "") is False


def test_unknown_mode_fails_closed(engine):
    engine._config = engine._config.model_copy(update={"mode": "retro"})
    assert engine.should_show_overlay("chrome.exe", "") is False


def test_set_mode_rejects_unknown_value(engine, store, sink):
    with pytest.raises(ConfigValidationError):
        engine.set_mode("everywhere")
    assert engine.get_config().mode is OverlayMode.GAMES_ONLY
    assert store.writes == 0
    assert sink.configs == []


def test_set_mode_persists_and_notifies(engine, store, sink):
    engine.set_mode("all_applications")
    assert OverlayConfig.model_validate_json(store.raw).mode is OverlayMode.ALL_APPLICATIONS
    assert [config.mode for config in sink.configs] == [OverlayMode.ALL_APPLICATIONS]


def test_update_opacity_accepted_and_rejected(engine, store):
    engine.update_config({"opacity": 0.7})
    assert engine.get_config().opacity == 0.7
    writes = store.writes

    with pytest.raises(ConfigValidationError):
        engine.update_config({"opacity": 1.5})
    with pytest.raises(ConfigValidationError):
        engine.update_config(opacity=0.29)
    assert engine.get_config().opacity == 0.7
    assert store.writes == writes


def test_update_is_all_or_nothing(engine):
    with pytest.raises(ConfigValidationError):
        engine.update_config(enabled=False, opacity=3.0)
    assert engine.get_config().enabled is True


def test_update_rejects_fields_outside_the_settings_surface(engine):
    with pytest.raises(ConfigValidationError):
        engine.update_config(blacklist=[])
    with pytest.raises(ConfigValidationError):
        engine.update_config(mode="all_applications")
    assert engine.get_config().blacklist == list(DEFAULT_BLACKLIST)


def test_update_accepts_camel_case_and_positions(engine, sink):
    engine.update_config({"clickThrough": False, "hotkey": "Ctrl+O"})
    engine.update_config(position=(200, -40))
    engine.update_config(position=Position(x=5, y=6))
    engine.update_config(position={"x": 7, "y": 8})
    config = engine.get_config()
    assert config.click_through is False
    assert config.hotkey == "Ctrl+O"
    assert config.position == Position(x=7, y=8)
    assert len(sink.configs) == 4


def test_get_config_returns_a_copy(engine):
    snapshot = engine.get_config()
    snapshot.whitelist.append("chrome.exe")
    snapshot.blacklist.clear()
    snapshot.position.x = 999
    config = engine.get_config()
    assert config.whitelist == []
    assert config.blacklist == list(DEFAULT_BLACKLIST)
    assert config.position.x == 10


def test_add_to_whitelist_is_idempotent(engine, store):
    engine.add_to_whitelist("x")
    writes = store.writes
    engine.add_to_whitelist("x")
    assert engine.get_config().whitelist == ["x"]
    assert store.writes == writes


def test_whitelist_identity_is_case_sensitive(engine):
    engine.add_to_whitelist("Chrome.exe")
    engine.add_to_whitelist("chrome.exe")
    assert engine.get_config().whitelist == ["Chrome.exe", "chrome.exe"]


def test_blank_entries_are_rejected(engine):
    with pytest.raises(ConfigValidationError):
        engine.add_to_whitelist("   ")
    with pytest.raises(ConfigValidationError):
        engine.add_to_blacklist("")
    assert engine.get_config().whitelist == []


def test_remove_from_whitelist(engine):
    engine.add_to_whitelist("chrome.exe")
    engine.remove_from_whitelist("chrome.exe")
    engine.remove_from_whitelist("never-added.exe")
    assert engine.get_config().whitelist == []


@pytest.mark.parametrize("name", DEFAULT_BLACKLIST)
def test_critical_blacklist_entries_cannot_be_removed(engine, store, sink, name):
    with pytest.raises(SecurityViolation):
        engine.remove_from_blacklist(name)
    assert engine.get_config().blacklist == list(DEFAULT_BLACKLIST)
    assert store.writes == 0
    assert sink.configs == []


def test_user_blacklist_entries_can_be_removed(engine):
    engine.add_to_blacklist("notepad.exe")
    assert "notepad.exe" in engine.get_config().blacklist
    engine.remove_from_blacklist("notepad.exe")
    assert engine.get_config().blacklist == list(DEFAULT_BLACKLIST)


def test_every_mutation_notifies_with_full_snapshot(engine, sink):
    engine.set_mode(OverlayMode.CUSTOM_WHITELIST)
    engine.add_to_whitelist("chrome.exe")
    engine.remove_from_whitelist("chrome.exe")
    engine.add_to_blacklist("zoom.exe")
    engine.remove_from_blacklist("zoom.exe")
    engine.update_config(opacity=0.5)
    assert len(sink.configs) == 6
    assert sink.configs[1].whitelist == ["chrome.exe"]
    assert sink.configs[-1].mode is OverlayMode.CUSTOM_WHITELIST
    assert sink.configs[-1].opacity == 0.5


def test_write_failure_keeps_memory_state(engine, store, sink):
    store.fail_writes = True
    engine.set_mode(OverlayMode.ALL_APPLICATIONS)
    engine.add_to_whitelist("chrome.exe")
    assert engine.get_config().mode is OverlayMode.ALL_APPLICATIONS
    assert engine.get_config().whitelist == ["chrome.exe"]
    assert store.raw is None
    assert len(sink.configs) == 2


def test_state_survives_restart(store, detector, sink):
    first = DecisionEngine(store, detector, sink)
    first.set_mode(OverlayMode.ALL_APPLICATIONS)
    first.update_config(opacity=0.7)

    restarted = DecisionEngine(store, detector, sink)
    config = restarted.get_config()
    assert config.mode is OverlayMode.ALL_APPLICATIONS
    assert config.opacity == 0.7


def test_window_changed_yields_exactly_one_decision(engine, sink):
    engine.set_mode(OverlayMode.ALL_APPLICATIONS)
    assert engine.handle_window_changed(WindowChanged("chrome.exe", "Docs")) is True
    assert engine.handle_window_changed(WindowChanged("chrome.exe", "Docs")) is True
    assert engine.handle_window_changed(WindowChanged("bitwarden.exe", "Vault")) is False
    assert sink.visibility == [True, True, False]


def test_loaded_config_missing_critical_entries_is_repaired(detector, sink):
    store = MemoryConfigStore('{"mode": "all_applications", "blacklist": ["notepad.exe"]}')
    engine = DecisionEngine(store, detector, sink)
    blacklist = engine.get_config().blacklist
    assert set(DEFAULT_BLACKLIST) <= set(blacklist)
    assert "notepad.exe" in blacklist
    assert engine.should_show_overlay("banking.exe", "") is False


def test_concurrent_mutations_reach_sink_in_commit_order(store, detector):
    entered = threading.Event()
    release = threading.Event()

    class BlockingSink:
        def __init__(self):
            self.configs = []

        def visibility_changed(self, event):
            pass

        def config_updated(self, event):
            if not self.configs and not entered.is_set():
                entered.set()
                release.wait(timeout=5)
            self.configs.append(event.config)

    sink = BlockingSink()
    engine = DecisionEngine(store, detector, sink)
    first = threading.Thread(target=engine.set_mode, args=(OverlayMode.ALL_APPLICATIONS,))
    second = threading.Thread(target=engine.set_mode, args=(OverlayMode.DESKTOP_MODE,))

    first.start()
    assert entered.wait(timeout=5)
    second.start()
    second.join(timeout=0.2)
    assert second.is_alive()

    release.set()
    first.join(timeout=5)
    second.join(timeout=5)
    assert [config.mode for config in sink.configs] == [OverlayMode.ALL_APPLICATIONS, OverlayMode.DESKTOP_MODE]
    assert sink.configs[-1].mode is engine.get_config().mode


@pytest.mark.parametrize(
    "fields",
    [{"opacity": True}, {"opacity": "0.7"}, {"enabled": "no"}, {"enabled": 0}, {"click_through": 1}],
)
def test_update_rejects_values_of_the_wrong_type(engine, store, fields):
    with pytest.raises(ConfigValidationError):
        engine.update_config(fields)
    config = engine.get_config()
    assert config.opacity == 0.95
    assert config.enabled is True
    assert config.click_through is True
    assert store.writes == 0


def test_unexpected_store_failure_leaves_state_untouched(detector, sink):
    class ExplodingStore(MemoryConfigStore):
        def save(self, config):
            raise RuntimeError("disk quota")

    engine = DecisionEngine(ExplodingStore(), detector, sink)
    with pytest.raises(RuntimeError):
        engine.set_mode(OverlayMode.ALL_APPLICATIONS)
    with pytest.raises(RuntimeError):
        engine.add_to_whitelist("chrome.exe")
    config = engine.get_config()
    assert config.mode is OverlayMode.GAMES_ONLY
    assert config.whitelist == []
    assert sink.configs == []
