"""Key-value persistence port and the shared storage service behaviour."""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

import structlog

logger = structlog.get_logger(__name__)

DATA_VERSION_KEY = "rollcall_data_version"
CURRENT_DATA_VERSION = "2.0"
LEGACY_DATA_VERSION = "1.0"


@runtime_checkable
class PersistencePort(Protocol):
    """What the state store and domain managers need from storage."""

    def get(self, key: str, default: Any = None) -> Any: ...

    def set(self, key: str, value: Any) -> bool: ...


def encoded_size(key: str, raw: str) -> int:
    """UTF-8 size of one stored entry, key included."""
    return len(key.encode("utf-8")) + len(raw.encode("utf-8"))


class QuotaExceededError(Exception):
    """Raised by a backend when a write would exceed its byte quota."""


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of ``StorageService.validate_data``."""

    valid: bool
    error: str | None = None


class StorageService(ABC):
    """JSON-encoded key-value storage over a raw string backend.

    Each value is stored as its JSON text, so a backend only has to keep
    ``key -> str`` pairs. Reads fall back to the caller's default and writes
    report failure as ``False``; neither raises.
    """

    def __init__(self, quota_bytes: int = 0) -> None:
        """
        Initialize storage.

        Args:
            quota_bytes: Maximum UTF-8 size of keys plus raw values, 0 for no limit
        """
        self.quota_bytes = quota_bytes
        self.on_error: Callable[[str], None] | None = None

    # Backend hooks ---------------------------------------------------------

    @abstractmethod
    def _read(self, key: str) -> str | None: ...

    @abstractmethod
    def _write(self, key: str, raw: str) -> None: ...

    @abstractmethod
    def _delete(self, key: str) -> bool: ...

    @abstractmethod
    def _wipe(self) -> None: ...

    @abstractmethod
    def keys(self) -> list[str]:
        """All stored keys."""

    @abstractmethod
    def size_bytes(self) -> int:
        """Current UTF-8 size of keys plus raw values."""

    # Public API ------------------------------------------------------------

    def init(self) -> bool:
        self.migrate_if_needed()
        return True

    def get(self, key: str, default: Any = None) -> Any:
        try:
            raw = self._read(key)
            return json.loads(raw) if raw else default
        except (OSError, ValueError) as e:
            logger.error("Storage read failed", key=key, error=str(e))
            return default

    def set(self, key: str, value: Any) -> bool:
        try:
            raw = json.dumps(value, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            logger.error("Value is not serializable", key=key, error=str(e))
            return False

        try:
            self._check_quota(key, raw)
            self._write(key, raw)
        except QuotaExceededError as e:
            logger.error("Storage quota exceeded", key=key, error=str(e))
            self._notify("Storage is full, changes were not saved")
            return False
        except OSError as e:
            logger.error("Storage write failed", key=key, error=str(e))
            return False
        return True

    def remove(self, key: str) -> bool:
        try:
            self._delete(key)
        except OSError as e:
            logger.error("Storage remove failed", key=key, error=str(e))
            return False
        return True

    def clear(self) -> bool:
        try:
            self._wipe()
        except OSError as e:
            logger.error("Storage clear failed", error=str(e))
            return False
        return True

    def _check_quota(self, key: str, raw: str) -> None:
        if not self.quota_bytes:
            return
        current = self._read(key)
        previous = encoded_size(key, current) if current is not None else 0
        projected = self.size_bytes() - previous + encoded_size(key, raw)
        if projected > self.quota_bytes:
            raise QuotaExceededError(f"{projected} bytes exceeds quota of {self.quota_bytes}")

    def _notify(self, message: str) -> None:
        if self.on_error is None:
            return
        try:
            self.on_error(message)
        except Exception as e:
            logger.exception("Storage notice hook failed", error=str(e))

    # Versioning ------------------------------------------------------------

    def get_data_version(self) -> str:
        return self.get(DATA_VERSION_KEY, LEGACY_DATA_VERSION)

    def set_data_version(self, version: str) -> bool:
        return self.set(DATA_VERSION_KEY, version)

    def migrate_if_needed(self) -> bool:
        """Stamp the current data version; True if stored data was older."""
        current = self.get_data_version()
        if current == CURRENT_DATA_VERSION:
            return False
        logger.info("Data migration needed", from_version=current, to_version=CURRENT_DATA_VERSION)
        self.set_data_version(CURRENT_DATA_VERSION)
        return True

    # Validation ------------------------------------------------------------

    @staticmethod
    def validate_data(
        data: Any,
        schema: Mapping[str, type | tuple[type, ...]] | None = None,
    ) -> ValidationResult:
        """
        Check that data is a dict whose known keys have the expected types.

        Args:
            data: Parsed data to check
            schema: Expected type per key; keys absent from data are ignored

        Returns:
            Validation outcome with a message on failure
        """
        if not isinstance(data, dict):
            return ValidationResult(valid=False, error="Data is not an object")

        for key, expected in (schema or {}).items():
            if key in data and not isinstance(data[key], expected):
                names = expected if isinstance(expected, tuple) else (expected,)
                wanted = " or ".join(t.__name__ for t in names)
                return ValidationResult(
                    valid=False,
                    error=f'Key "{key}" expected {wanted}, got {type(data[key]).__name__}',
                )
        return ValidationResult(valid=True)

    @staticmethod
    def calculate_checksum(data: Any) -> int:
        """32-bit signed rolling hash over the compact JSON encoding of data."""
        text = json.dumps(data, ensure_ascii=False, separators=(",", ":"))
        encoded = text.encode("utf-16-le")
        checksum = 0
        for i in range(0, len(encoded), 2):
            unit = encoded[i] | (encoded[i + 1] << 8)
            checksum = ((checksum << 5) - checksum + unit) & 0xFFFFFFFF
        return checksum - 0x100000000 if checksum & 0x80000000 else checksum
