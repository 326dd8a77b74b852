"""Shared test fixtures for the chanlog test suite."""

import io

import pytest

from chanlog import manager as _manager_mod
from chanlog.handlers import Handler
from chanlog.manager import Manager
from chanlog.settings import MemorySettings


# ---------------------------------------------------------------------------
# Environment isolation
# ---------------------------------------------------------------------------
@pytest.fixture(autouse=True)
def _isolate_environment(tmp_path, monkeypatch):
    """Point settings at a temp file and drop any per-run overrides.

    Also discards the default manager so each test starts fresh.
    """
    monkeypatch.setenv("CHANLOG_SETTINGS", str(tmp_path / "settings.json"))
    monkeypatch.delenv("CHANLOG_LOGS", raising=False)
    monkeypatch.delenv("CHANLOG_DEBUG", raising=False)
    monkeypatch.delenv("CHANLOG_APP", raising=False)
    _manager_mod._manager = None
    yield
    if _manager_mod._manager is not None:
        _manager_mod._manager.close()
    _manager_mod._manager = None


@pytest.fixture
def settings_path(tmp_path):
    """The settings file the environment points at."""
    return tmp_path / "settings.json"


# ---------------------------------------------------------------------------
# Managers
# ---------------------------------------------------------------------------
@pytest.fixture
def make_manager():
    """Factory for Managers on in-memory settings. All are closed afterwards.

    make_manager(enabled="net,ui", override="-ui")
    """
    managers = []

    def _make(enabled="", override="", settings=None):
        if settings is None:
            settings = MemorySettings(enabled=enabled, override=override)
        mgr = Manager(settings=settings, file=io.StringIO())
        managers.append(mgr)
        return mgr

    yield _make
    for mgr in managers:
        mgr.close()


@pytest.fixture
def manager(make_manager):
    """A Manager with nothing enabled in settings."""
    return make_manager()


# ---------------------------------------------------------------------------
# Handlers and observers
# ---------------------------------------------------------------------------
class RecordingHandler(Handler):
    """Handler that keeps (channel, context, value) tuples."""

    def __init__(self, name="recorder"):
        super().__init__(name)
        self.records = []

    def log(self, channel, context, logged):
        self.records.append((channel, context, logged))

    @property
    def values(self):
        return [r[2] for r in self.records]


class RecordingObserver:
    """Observer that keeps every notification it receives."""

    def __init__(self):
        self.calls = []

    def channels_updated(self, updated, all, all_enabled):
        self.calls.append((set(updated), set(all), set(all_enabled)))


@pytest.fixture
def recorder():
    return RecordingHandler()


@pytest.fixture
def observer():
    return RecordingObserver()
