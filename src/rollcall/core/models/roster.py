"""Roster data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

Score = str | int | float


def is_blank_score(score: Any) -> bool:
    """True for the values that mean "no score"."""
    return score is None or (isinstance(score, str) and not score.strip())


@dataclass(frozen=True)
class Student:
    """A student and their 1-based position in the roster."""

    id: int
    name: str

    @property
    def short_name(self) -> str:
        """Last two characters of the name, as shown on a grid cell."""
        return self.name[-2:]


@dataclass
class StudentRecord:
    """Submission state of one student for one task."""

    submitted: bool = False
    score: Score | None = None

    @property
    def has_score(self) -> bool:
        return not is_blank_score(self.score)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {"submitted": self.submitted, "score": self.score}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> StudentRecord:
        """Create from dictionary."""
        return cls(submitted=bool(data.get("submitted", False)), score=data.get("score"))


@dataclass
class Task:
    """An assignment and the per-student records collected for it."""

    id: int
    title: str
    records: dict[str, StudentRecord] = field(default_factory=dict)

    @property
    def submitted_count(self) -> int:
        return sum(1 for record in self.records.values() if record.submitted)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "title": self.title,
            "records": {sid: record.to_dict() for sid, record in self.records.items()},
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Task:
        """Create from dictionary."""
        records = data.get("records")
        if not isinstance(records, dict):
            records = {}
        return cls(
            id=data["id"],
            title=data["title"],
            records={
                str(sid): StudentRecord.from_dict(record)
                for sid, record in records.items()
                if isinstance(record, dict)
            },
        )


@dataclass(frozen=True)
class TaskSummary:
    """Compact task listing entry."""

    id: int
    title: str
    submitted_count: int
