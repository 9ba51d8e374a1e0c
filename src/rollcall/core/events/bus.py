"""Synchronous, priority-ordered event bus for decoupled communication."""

from __future__ import annotations

import itertools
from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

import structlog

from rollcall.core.events.types import WILDCARD, EventType

logger = structlog.get_logger(__name__)

# Type alias for event callbacks. Wildcard callbacks receive (event, payload).
EventCallback = Callable[..., Any]


@dataclass(frozen=True)
class Listener:
    """One subscription on the bus."""

    id: str
    event: str
    callback: EventCallback
    priority: int = 0
    once: bool = False
    order: int = 0

    @property
    def is_wildcard(self) -> bool:
        return self.event == WILDCARD


@dataclass
class EmitResult:
    """Outcome of a single emit pass."""

    event: str
    values: list[Any] = field(default_factory=list)
    errors: list[tuple[str, Exception]] = field(default_factory=list)
    delivered: int = 0

    @property
    def ok(self) -> bool:
        return not self.errors


def _event_name(event: EventType | str) -> str:
    return event.value if isinstance(event, Enum) else str(event)


class EventBus:
    """Publish/subscribe bus with priorities, once listeners and wildcards.

    Delivery for one ``emit`` happens in a single pass over a snapshot of the
    matching listeners, ordered by priority (highest first) and then by
    registration order. A failing callback is logged and recorded in the
    returned ``EmitResult``; it never stops delivery to the others and the
    bus itself never raises.
    """

    def __init__(self) -> None:
        self._listeners: dict[str, list[Listener]] = defaultdict(list)
        self._counter = itertools.count(1)
        self._stats = {
            "events_emitted": 0,
            "handlers_invoked": 0,
            "handler_errors": 0,
        }

    def on(
        self,
        event: EventType | str,
        callback: EventCallback,
        priority: int = 0,
    ) -> str | None:
        """
        Subscribe a standing listener.

        Args:
            event: Event name, or ``*`` for every event
            callback: Called with the payload (wildcards: event name and payload)
            priority: Higher priorities are delivered first

        Returns:
            Listener id, or None if the callback is not callable
        """
        return self._subscribe(event, callback, priority, once=False)

    def once(
        self,
        event: EventType | str,
        callback: EventCallback,
        priority: int = 0,
    ) -> str | None:
        """Subscribe a listener that is removed after its first delivery."""
        return self._subscribe(event, callback, priority, once=True)

    def _subscribe(
        self,
        event: EventType | str,
        callback: EventCallback,
        priority: int,
        *,
        once: bool,
    ) -> str | None:
        if not callable(callback):
            logger.warning("Callback must be callable", event_name=_event_name(event))
            return None

        name = _event_name(event)
        order = next(self._counter)
        listener = Listener(
            id=f"{'once' if once else 'listener'}_{order}",
            event=name,
            callback=callback,
            priority=int(priority),
            once=once,
            order=order,
        )
        bucket = self._listeners[name]
        bucket.append(listener)
        bucket.sort(key=lambda item: (-item.priority, item.order))
        return listener.id

    def off(
        self,
        event: EventType | str | None = None,
        callback_or_id: EventCallback | str | None = None,
    ) -> bool:
        """
        Unsubscribe listeners.

        Args:
            event: Event to unsubscribe from; None together with no target
                clears the whole bus
            callback_or_id: Listener id or callback to remove; None removes
                every listener of ``event``

        Returns:
            True if at least one listener was removed
        """
        if callback_or_id is None:
            if event is None:
                removed = any(self._listeners.values())
                self._listeners.clear()
                return removed
            return bool(self._listeners.pop(_event_name(event), None))

        if event is None:
            return False

        name = _event_name(event)
        bucket = self._listeners.get(name)
        if not bucket:
            return False

        kept = [
            listener
            for listener in bucket
            if listener.id != callback_or_id and listener.callback != callback_or_id
        ]
        removed = len(kept) != len(bucket)
        if kept:
            self._listeners[name] = kept
        else:
            del self._listeners[name]
        return removed

    def emit(self, event: EventType | str, payload: Any = None) -> EmitResult:
        """
        Deliver an event synchronously.

        Args:
            event: Event name
            payload: Arbitrary payload handed to every listener

        Returns:
            Values returned by the listeners in delivery order, plus errors
        """
        name = _event_name(event)
        self._stats["events_emitted"] += 1
        result = EmitResult(event=name)

        snapshot = list(self._listeners.get(name, ()))
        if name != WILDCARD:
            snapshot.extend(self._listeners.get(WILDCARD, ()))
        snapshot.sort(key=lambda item: (-item.priority, item.order))

        for listener in snapshot:
            if listener.once and not self._consume(listener):
                # Already delivered by a nested emit or removed by a handler.
                continue

            self._stats["handlers_invoked"] += 1
            result.delivered += 1
            try:
                if listener.is_wildcard:
                    value = listener.callback(name, payload)
                else:
                    value = listener.callback(payload)
            except Exception as e:
                self._stats["handler_errors"] += 1
                result.errors.append((listener.id, e))
                logger.exception(
                    "Listener error",
                    event_name=name,
                    listener_id=listener.id,
                    error=str(e),
                )
                continue
            result.values.append(value)

        return result

    def _consume(self, listener: Listener) -> bool:
        """Remove a once listener ahead of delivery; False if it is gone."""
        bucket = self._listeners.get(listener.event)
        if not bucket:
            return False
        for index, candidate in enumerate(bucket):
            if candidate.id == listener.id:
                del bucket[index]
                if not bucket:
                    del self._listeners[listener.event]
                return True
        return False

    def get_listeners(self, event: EventType | str) -> list[Listener]:
        """Listeners registered for exactly this event, in delivery order."""
        return [replace(listener) for listener in self._listeners.get(_event_name(event), ())]

    def has_listeners(self, event: EventType | str) -> bool:
        return bool(self._listeners.get(_event_name(event)))

    def listener_count(self, event: EventType | str) -> int:
        return len(self._listeners.get(_event_name(event), ()))

    @property
    def stats(self) -> dict[str, int]:
        """Get event bus statistics."""
        return self._stats.copy()


__all__ = ["EmitResult", "EventBus", "EventCallback", "Listener"]
