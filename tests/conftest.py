"""Shared fixtures for tests."""
import pytest

from waylaunch.catalog.desktop import AppEntry
from waylaunch.core.search.params import RankingParams

NOW = 1_700_000_000
HOUR = 3600


class FakeClock:
    """Stands in for the time module: only time() is used."""

    def __init__(self, now=NOW):
        self.now = now

    def time(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class FakeRunner:
    def __init__(self, succeed=True):
        self.succeed = succeed
        self.commands = []

    def run(self, argv):
        self.commands.append(list(argv))
        return self.succeed


def make_app(name, **kwargs):
    kwargs.setdefault("exec", (name.lower().replace(" ", "-"),))
    return AppEntry(name=name, **kwargs)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def runner():
    return FakeRunner()


@pytest.fixture
def app():
    """Factory for application records with a derived exec vector."""
    return make_app


@pytest.fixture
def catalog():
    return [
        make_app("Alacritty", description="A fast terminal emulator"),
        make_app("Files", description="Access and organize files"),
        make_app("Firefox", description="Browse the web"),
        make_app("GIMP", description="Create images and edit photographs"),
        make_app("Thunderbird", description="Send and receive mail"),
        make_app("Visual Studio Code", description="Code editing. Redefined."),
    ]


@pytest.fixture
def params():
    return RankingParams()


@pytest.fixture
def history_path(tmp_path):
    return tmp_path / "data" / "waylaunch" / "history.txt"
