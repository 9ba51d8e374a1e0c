"""Storage layer for rollcall persistence."""

from rollcall.core.storage.backends import JsonFileStorage, MemoryStorage
from rollcall.core.storage.base import (
    CURRENT_DATA_VERSION,
    DATA_VERSION_KEY,
    PersistencePort,
    QuotaExceededError,
    StorageService,
    ValidationResult,
)

__all__ = [
    "CURRENT_DATA_VERSION",
    "DATA_VERSION_KEY",
    # Port
    "PersistencePort",
    "StorageService",
    "ValidationResult",
    "QuotaExceededError",
    # Backends
    "JsonFileStorage",
    "MemoryStorage",
]
