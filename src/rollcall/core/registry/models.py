"""Registry data models."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from rollcall.core.result import ErrorKind

# Factories receive their resolved dependencies as keyword arguments.
ModuleFactory = Callable[..., Any]


class ModuleState(str, Enum):
    """Lifecycle of a registered module."""

    REGISTERED = "registered"
    INITIALIZING = "initializing"
    INITIALIZED = "initialized"
    FAILED = "failed"


def parameter_name(dependency: str) -> str:
    """Keyword under which a dependency instance is injected (``event-bus`` -> ``event_bus``)."""
    return dependency.replace("-", "_").replace(".", "_")


@dataclass
class ModuleEntry:
    """A registered module and its singleton instance."""

    name: str
    factory: ModuleFactory
    dependencies: tuple[str, ...] = ()
    allow_missing: bool = True

    instance: Any = None
    state: ModuleState = ModuleState.REGISTERED
    error: ErrorKind | None = None
    error_message: str = ""

    def mark_failed(self, kind: ErrorKind, message: str) -> None:
        self.instance = None
        self.state = ModuleState.FAILED
        self.error = kind
        self.error_message = message

    def clear(self) -> None:
        """Return to the freshly registered state."""
        self.instance = None
        self.state = ModuleState.REGISTERED
        self.error = None
        self.error_message = ""


@dataclass
class InitReport:
    """Outcome of ``ModuleRegistry.init_all``."""

    succeeded: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed

    def __contains__(self, name: object) -> bool:
        return name in self.succeeded or name in self.failed

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {"succeeded": list(self.succeeded), "failed": list(self.failed)}
