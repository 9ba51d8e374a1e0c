"""Student roster management."""

from __future__ import annotations

import json
from collections.abc import Sequence

import structlog

from rollcall.core.models.roster import Student
from rollcall.core.storage.base import PersistencePort

logger = structlog.get_logger(__name__)

STUDENTS_KEY = "rollcall_students"


def _clean(name: object) -> str | None:
    if not isinstance(name, str) or not name.strip():
        return None
    return name.strip()


class StudentManager:
    """Ordered list of student names; a student's id is its 1-based position."""

    def __init__(self, storage: PersistencePort, default_students: Sequence[str] = ()) -> None:
        self._storage = storage
        self._defaults = list(default_students)
        self._students: list[str] | None = None

    def init(self) -> bool:
        stored = self._storage.get(STUDENTS_KEY)
        if isinstance(stored, list) and stored and all(isinstance(s, str) for s in stored):
            self._students = stored
            return True

        logger.info("Seeding default roster", size=len(self._defaults))
        self._students = list(self._defaults)
        self.save()
        return True

    def save(self) -> bool:
        return self._storage.set(STUDENTS_KEY, self._loaded())

    def _loaded(self) -> list[str]:
        if self._students is None:
            self.init()
        return self._students  # type: ignore[return-value]

    def get_all(self) -> list[str]:
        return list(self._loaded())

    def roster(self) -> list[Student]:
        return [Student(id=i, name=name) for i, name in enumerate(self._loaded(), start=1)]

    def count(self) -> int:
        return len(self._loaded())

    def exists(self, student_id: int) -> bool:
        return 1 <= student_id <= self.count()

    def get_name(self, student_id: int) -> str:
        if self.exists(student_id):
            return self._loaded()[student_id - 1]
        return f"Student {student_id}"

    def add(self, name: str) -> bool:
        cleaned = _clean(name)
        if cleaned is None:
            return False
        self._loaded().append(cleaned)
        return self.save()

    def edit(self, student_id: int, name: str) -> bool:
        cleaned = _clean(name)
        if cleaned is None or not self.exists(student_id):
            return False
        self._loaded()[student_id - 1] = cleaned
        return self.save()

    def delete(self, student_id: int) -> bool:
        if not self.exists(student_id):
            return False
        del self._loaded()[student_id - 1]
        return self.save()

    def insert(self, student_id: int, name: str) -> bool:
        """Insert a student so that it ends up with the given id."""
        cleaned = _clean(name)
        if cleaned is None or not 1 <= student_id <= self.count() + 1:
            return False
        self._loaded().insert(student_id - 1, cleaned)
        return self.save()

    def reset_to_default(self) -> bool:
        self._students = list(self._defaults)
        return self.save()

    @property
    def default_students(self) -> list[str]:
        return list(self._defaults)

    def export_data(self) -> str:
        return json.dumps(self._loaded(), indent=2, ensure_ascii=False)

    def import_data(self, text: str) -> bool:
        """Replace the roster with a JSON list of names."""
        try:
            parsed = json.loads(text)
        except (TypeError, ValueError) as e:
            logger.error("Student import failed to parse", error=str(e))
            return False
        if not isinstance(parsed, list) or not parsed or not all(isinstance(s, str) for s in parsed):
            logger.error("Student import must be a non-empty list of names")
            return False
        self._students = parsed
        return self.save()
