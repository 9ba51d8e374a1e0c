"""Explicit success/failure values returned by the core primitives."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class ErrorKind(str, Enum):
    """Failure categories shared by the registry, event bus and state store."""

    INVALID_ARGUMENT = "invalid_argument"
    DUPLICATE = "duplicate"
    NOT_FOUND = "not_found"
    CYCLE = "cycle"
    DEPENDENCY_FAILED = "dependency_failed"
    FACTORY_ERROR = "factory_error"
    FACTORY_EMPTY = "factory_empty"
    PERSISTENCE = "persistence"
    PARSE = "parse"


class RollcallError(Exception):
    """Raised when a caller escalates a failed Result."""

    def __init__(self, kind: ErrorKind, message: str = "") -> None:
        super().__init__(f"{kind.value}: {message}" if message else kind.value)
        self.kind = kind
        self.message = message


@dataclass(frozen=True)
class Result(Generic[T]):
    """Outcome of a core operation.

    A Result is truthy when the operation succeeded, so callers can write
    ``if registry.init("storage"): ...`` and still inspect ``error`` and
    ``message`` on failure.
    """

    value: T | None = None
    error: ErrorKind | None = None
    message: str = ""

    @classmethod
    def success(cls, value: T | None = None) -> Result[T]:
        return cls(value=value)

    @classmethod
    def failure(cls, kind: ErrorKind, message: str = "") -> Result[T]:
        return cls(error=kind, message=message)

    @property
    def ok(self) -> bool:
        return self.error is None

    def __bool__(self) -> bool:
        return self.ok

    def unwrap(self) -> T | None:
        """Return the value, raising RollcallError if the operation failed."""
        if self.error is not None:
            raise RollcallError(self.error, self.message)
        return self.value

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "ok": self.ok,
            "error": self.error.value if self.error else None,
            "message": self.message,
        }


__all__ = ["ErrorKind", "Result", "RollcallError"]
