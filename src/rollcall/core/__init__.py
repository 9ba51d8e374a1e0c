"""Core module - composition runtime: registry, event bus, state store and storage."""

from rollcall.core.events.bus import EmitResult, EventBus
from rollcall.core.events.types import EventType
from rollcall.core.registry.manager import ModuleRegistry
from rollcall.core.result import ErrorKind, Result, RollcallError
from rollcall.core.state.store import StateStore

__all__ = [
    "EmitResult",
    "ErrorKind",
    "EventBus",
    "EventType",
    "ModuleRegistry",
    "Result",
    "RollcallError",
    "StateStore",
]
