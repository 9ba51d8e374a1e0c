"""Reactive application state."""

from rollcall.core.state.store import DEFAULT_STATE, STATE_KEY, StateListener, StateStore

__all__ = ["DEFAULT_STATE", "STATE_KEY", "StateListener", "StateStore"]
