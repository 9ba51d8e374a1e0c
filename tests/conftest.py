"""Global test fixtures for rollcall."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

import pytest
import structlog
from rich.console import Console

from rollcall.app import Application
from rollcall.core.events.bus import EventBus
from rollcall.core.models.config import Settings
from rollcall.core.registry.manager import ModuleRegistry
from rollcall.core.state.store import StateStore
from rollcall.core.storage.backends import MemoryStorage
from rollcall.domain.students import StudentManager
from rollcall.domain.tasks import TaskManager

# ============================================================================
# FAKES
# ============================================================================


class FailingStorage(MemoryStorage):
    """Memory storage whose writes can be switched off."""

    def __init__(self) -> None:
        super().__init__()
        self.fail_writes = False

    def _write(self, key: str, raw: str) -> None:
        if self.fail_writes:
            raise OSError("disk unavailable")
        super()._write(key, raw)


class FakeClock:
    """Deterministic replacement for time.time."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# ============================================================================
# FIXTURES
# ============================================================================


@pytest.fixture(autouse=True)
def reset_structlog() -> Iterator[None]:
    """Undo any logging configuration a test (or the CLI) applied."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def failing_storage() -> FailingStorage:
    return FailingStorage()


@pytest.fixture
def event_bus() -> EventBus:
    return EventBus()


@pytest.fixture
def registry() -> ModuleRegistry:
    return ModuleRegistry()


@pytest.fixture
def state(storage: MemoryStorage) -> StateStore:
    store = StateStore(storage)
    store.init()
    return store


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def students(storage: MemoryStorage) -> StudentManager:
    manager = StudentManager(storage, ["Alice Zhang", "Bob Li", "Carol Wu"])
    manager.init()
    return manager


@pytest.fixture
def tasks(storage: MemoryStorage, clock: FakeClock) -> TaskManager:
    manager = TaskManager(storage, default_title="Task 1", clock=clock)
    manager.init()
    return manager


@pytest.fixture
def console() -> Console:
    return Console(record=True, width=120, color_system=None)


@pytest.fixture
def settings() -> Settings:
    return Settings.from_dict(
        {
            "storage": {"backend": "memory"},
            "roster": {"default_size": 5},
            "ui": {"auto_render": False},
        }
    )


@pytest.fixture
def app(settings: Settings, storage: MemoryStorage, console: Console) -> Iterator[Application]:
    application = Application(settings, storage=storage, console=console)
    application.init()
    yield application
    application.shutdown()


@pytest.fixture
def recorder() -> list[Any]:
    """Shared list that test callbacks append to."""
    return []
