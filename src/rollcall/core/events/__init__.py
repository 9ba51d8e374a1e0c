"""Event system for decoupled communication."""

from rollcall.core.events.bus import EmitResult, EventBus, EventCallback, Listener
from rollcall.core.events.types import WILDCARD, EventType

__all__ = [
    "WILDCARD",
    "EmitResult",
    "EventBus",
    "EventCallback",
    "EventType",
    "Listener",
]
