"""Reactive keyed state with automatic persistence."""

from __future__ import annotations

import copy
import json
from collections.abc import Callable, Mapping
from typing import Any
from uuid import uuid4

import structlog

from rollcall.core.events.types import WILDCARD
from rollcall.core.result import ErrorKind, Result
from rollcall.core.storage.base import PersistencePort

logger = structlog.get_logger(__name__)

STATE_KEY = "rollcall_app_state"

DEFAULT_STATE: dict[str, Any] = {
    "name_visibility": False,
    "immersive_mode": False,
    "grading_mode": False,
    "footer_hidden": False,
    "stats_immersive": False,
    "stats_selected_tasks": [],
    "modal_stack": [],
}

# Key listeners get (new_value, old_value); wildcard listeners get (new_state, old_state).
StateListener = Callable[[Any, Any], Any]


class StateStore:
    """Application-wide UI state merged over defaults and persisted on change.

    Every mutation writes the whole mapping through the persistence port and
    then notifies listeners synchronously: listeners of each updated key in
    registration order, then wildcard (``*``) listeners with the full new and
    old mappings.
    """

    def __init__(
        self,
        storage: PersistencePort,
        defaults: Mapping[str, Any] | None = None,
        key: str = STATE_KEY,
    ) -> None:
        self._storage = storage
        self._defaults = dict(DEFAULT_STATE if defaults is None else defaults)
        self._key = key
        self._state: dict[str, Any] | None = None
        self._listeners: dict[str, dict[str, StateListener]] = {}

    # Loading -----------------------------------------------------------------

    def init(self) -> bool:
        if self._state is None:
            self._load()
        return True

    def _fresh_defaults(self) -> dict[str, Any]:
        return copy.deepcopy(self._defaults)

    def _load(self) -> None:
        state = self._fresh_defaults()
        try:
            stored = self._storage.get(self._key)
        except Exception as e:
            logger.exception("Failed to load state", error=str(e))
            stored = None
        if isinstance(stored, dict):
            state.update(stored)
        self._state = state

    def _current(self) -> dict[str, Any]:
        if self._state is None:
            self._load()
        return self._state  # type: ignore[return-value]

    def _persist(self) -> Result[None]:
        if self._storage.set(self._key, self._current()):
            return Result.success()
        logger.warning("State kept in memory only, persistence failed", key=self._key)
        return Result.failure(ErrorKind.PERSISTENCE, "state could not be persisted")

    # Reading -----------------------------------------------------------------

    def get_state(self) -> dict[str, Any]:
        """Shallow copy of the whole state."""
        return dict(self._current())

    def get(self, key: str | None = None) -> Any:
        """Value of one key, or a copy of the whole state if key is omitted."""
        state = self._current()
        if key is None:
            return dict(state)
        return state.get(key)

    # Writing -----------------------------------------------------------------

    def set_state(self, updates: Mapping[str, Any]) -> Result[None]:
        """
        Merge updates into the state, persist, then notify listeners.

        Args:
            updates: Keys and values to merge

        Returns:
            Success, or PERSISTENCE if the write failed (memory is still updated)
        """
        if not isinstance(updates, Mapping):
            logger.warning("State updates must be a mapping", type=type(updates).__name__)
            return Result.failure(ErrorKind.INVALID_ARGUMENT, "updates must be a mapping")

        old_state = dict(self._current())
        self._state = {**old_state, **updates}
        result = self._persist()
        self._notify(updates.keys(), old_state)
        return result

    def set(self, key: str, value: Any) -> Result[None]:
        return self.set_state({key: value})

    def reset(self) -> Result[None]:
        """Restore defaults and notify every listener."""
        self._state = self._fresh_defaults()
        result = self._persist()
        self._notify(list(self._state), {})
        return result

    # Listeners ---------------------------------------------------------------

    def add_listener(self, key: str, callback: StateListener) -> str | None:
        """
        Listen for changes of one key, or of any key with ``*``.

        Returns:
            Listener id, or None if the callback is not callable
        """
        if not callable(callback):
            logger.warning("State listener must be callable", key=key)
            return None
        listener_id = uuid4().hex
        self._listeners.setdefault(key, {})[listener_id] = callback
        return listener_id

    def remove_listener(self, listener_id: str) -> bool:
        for key, group in self._listeners.items():
            if listener_id in group:
                del group[listener_id]
                if not group:
                    del self._listeners[key]
                return True
        return False

    def _notify(self, keys: Any, old_state: Mapping[str, Any]) -> None:
        state = self._current()
        for key in keys:
            for callback in list(self._listeners.get(key, {}).values()):
                try:
                    callback(state.get(key), old_state.get(key))
                except Exception as e:
                    logger.exception("State listener error", key=key, error=str(e))

        for callback in list(self._listeners.get(WILDCARD, {}).values()):
            try:
                callback(dict(state), dict(old_state))
            except Exception as e:
                logger.exception("State wildcard listener error", error=str(e))

    # Serialization -----------------------------------------------------------

    def export_state(self) -> str:
        return json.dumps(self._current(), indent=2, ensure_ascii=False)

    def import_state(self, text: str) -> Result[None]:
        """
        Replace the state with serialized data merged over the defaults.

        Invalid input leaves the current state untouched.
        """
        try:
            parsed = json.loads(text)
        except (TypeError, ValueError) as e:
            logger.error("State import failed to parse", error=str(e))
            return Result.failure(ErrorKind.PARSE, str(e))

        if not isinstance(parsed, dict):
            logger.error("State import payload is not an object", type=type(parsed).__name__)
            return Result.failure(ErrorKind.INVALID_ARGUMENT, "imported state must be an object")

        self._state = {**self._fresh_defaults(), **parsed}
        result = self._persist()
        self._notify(list(self._state), {})
        return result
