import pytest

from overlaygate.core.engine import DecisionEngine
from overlaygate.services.store import MemoryConfigStore


class FakeDetector:
    def __init__(self, games=()):
        self.games = set(games)
        self.queries = []

    def is_game(self, process_name):
        self.queries.append(process_name)
        return process_name in self.games


class RecordingSink:
    def __init__(self):
        self.visibility = []
        self.configs = []

    def visibility_changed(self, event):
        self.visibility.append(event.visible)

    def config_updated(self, event):
        self.configs.append(event.config)


@pytest.fixture
def store():
    return MemoryConfigStore()


@pytest.fixture
def detector():
    return FakeDetector(games={"eldenring.exe"})


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def engine(store, detector, sink):
    return DecisionEngine(store, detector, sink)
