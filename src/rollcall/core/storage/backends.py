"""Storage backends: in-memory and a single JSON file."""

from __future__ import annotations

import json
from pathlib import Path

import structlog

from rollcall.core.storage.base import StorageService, encoded_size

logger = structlog.get_logger(__name__)


class MemoryStorage(StorageService):
    """Ephemeral storage kept in a dict."""

    def __init__(self, quota_bytes: int = 0) -> None:
        super().__init__(quota_bytes=quota_bytes)
        self._items: dict[str, str] = {}

    def _read(self, key: str) -> str | None:
        return self._items.get(key)

    def _write(self, key: str, raw: str) -> None:
        self._items[key] = raw

    def _delete(self, key: str) -> bool:
        return self._items.pop(key, None) is not None

    def _wipe(self) -> None:
        self._items.clear()

    def keys(self) -> list[str]:
        return list(self._items)

    def size_bytes(self) -> int:
        return sum(encoded_size(k, v) for k, v in self._items.items())


class JsonFileStorage(MemoryStorage):
    """Storage persisted to one JSON file mapping keys to raw values.

    The file is read once on construction and rewritten after every change.
    A failed rewrite rolls the in-memory copy back so memory and disk agree.
    """

    def __init__(self, path: str | Path, quota_bytes: int = 0) -> None:
        """
        Initialize file storage.

        Args:
            path: JSON file to load from and save to
            quota_bytes: Maximum total size, 0 for no limit
        """
        super().__init__(quota_bytes=quota_bytes)
        self.path = Path(path)
        self._load()

    def _load(self) -> None:
        """Load stored items from file."""
        if not self.path.exists():
            return
        try:
            content = self.path.read_text(encoding="utf-8")
            data = json.loads(content) if content.strip() else {}
        except (OSError, ValueError) as e:
            logger.error("Failed to load storage file", path=str(self.path), error=str(e))
            return
        if not isinstance(data, dict):
            logger.error("Storage file does not contain an object", path=str(self.path))
            return
        self._items = {str(k): v for k, v in data.items() if isinstance(v, str)}
        logger.debug("Loaded storage file", path=str(self.path), keys=len(self._items))

    def _save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(
            json.dumps(self._items, indent=2, ensure_ascii=False),
            encoding="utf-8",
        )

    def _write(self, key: str, raw: str) -> None:
        previous = self._items.get(key)
        super()._write(key, raw)
        try:
            self._save()
        except OSError:
            if previous is None:
                self._items.pop(key, None)
            else:
                self._items[key] = previous
            raise

    def _delete(self, key: str) -> bool:
        previous = self._items.get(key)
        removed = super()._delete(key)
        if removed:
            try:
                self._save()
            except OSError:
                self._items[key] = previous
                raise
        return removed

    def _wipe(self) -> None:
        previous = dict(self._items)
        super()._wipe()
        try:
            self._save()
        except OSError:
            self._items = previous
            raise
