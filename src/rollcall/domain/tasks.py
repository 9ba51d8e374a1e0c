"""Task (assignment) management and per-student submission records."""

from __future__ import annotations

import json
import time
from collections.abc import Callable
from typing import Any

import structlog

from rollcall.core.models.roster import Score, StudentRecord, Task, TaskSummary, is_blank_score
from rollcall.core.storage.base import PersistencePort

logger = structlog.get_logger(__name__)

TASKS_KEY = "rollcall_tasks"
CURRENT_TASK_KEY = "rollcall_current_task"


def _is_valid_task(data: Any) -> bool:
    return (
        isinstance(data, dict)
        and isinstance(data.get("id"), int)
        and not isinstance(data.get("id"), bool)
        and isinstance(data.get("title"), str)
    )


class TaskManager:
    """Owns the task list, the current task and each task's student records."""

    def __init__(
        self,
        storage: PersistencePort,
        default_title: str = "Task 1",
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._storage = storage
        self._default_title = default_title
        self._clock = clock
        self._tasks: list[Task] = []
        self._current_id: int | None = None
        self._last_id = 0

    # Persistence -------------------------------------------------------------

    def init(self) -> bool:
        stored = self._storage.get(TASKS_KEY)
        current = self._storage.get(CURRENT_TASK_KEY)

        tasks = [Task.from_dict(t) for t in stored if _is_valid_task(t)] if isinstance(stored, list) else []
        self._tasks = tasks
        self._current_id = current if isinstance(current, int) and not isinstance(current, bool) else None

        if not self._tasks:
            task = Task(id=self._next_id(), title=self._default_title)
            self._tasks = [task]
            self._current_id = task.id
            self._save()
        elif self.get_task(self._current_id) is None:
            self._current_id = self._tasks[0].id
            self._save()
        return True

    def _save(self) -> bool:
        saved_tasks = self._storage.set(TASKS_KEY, [task.to_dict() for task in self._tasks])
        saved_current = self._storage.set(CURRENT_TASK_KEY, self._current_id)
        return saved_tasks and saved_current

    def save(self) -> bool:
        return self._save()

    def _next_id(self) -> int:
        """Millisecond timestamp, bumped when it would repeat an existing id."""
        candidate = int(self._clock() * 1000)
        highest = max([self._last_id, *(task.id for task in self._tasks)])
        self._last_id = candidate if candidate > highest else highest + 1
        return self._last_id

    # Queries -----------------------------------------------------------------

    def get_all(self) -> list[Task]:
        return list(self._tasks)

    def count(self) -> int:
        return len(self._tasks)

    @property
    def current_id(self) -> int | None:
        return self._current_id

    def get_current(self) -> Task | None:
        return self.get_task(self._current_id) or (self._tasks[0] if self._tasks else None)

    def get_task(self, task_id: int | None) -> Task | None:
        for task in self._tasks:
            if task.id == task_id:
                return task
        return None

    def get_record(self, task_id: int, student_id: int) -> StudentRecord | None:
        task = self.get_task(task_id)
        if task is None:
            return None
        return task.records.get(str(student_id))

    def submitted_count(self, task_id: int, roster_size: int | None = None) -> int:
        """Submitted records of a task, optionally only ids 1..roster_size."""
        task = self.get_task(task_id)
        if task is None:
            return 0
        if roster_size is None:
            return task.submitted_count
        return sum(
            1
            for key, record in task.records.items()
            if record.submitted and key.isdigit() and 1 <= int(key) <= roster_size
        )

    def summaries(self) -> list[TaskSummary]:
        return [
            TaskSummary(id=task.id, title=task.title, submitted_count=task.submitted_count)
            for task in self._tasks
        ]

    # Mutations ---------------------------------------------------------------

    def create(self, title: str) -> Task | None:
        if not isinstance(title, str) or not title.strip():
            return None
        task = Task(id=self._next_id(), title=title.strip())
        self._tasks.append(task)
        self._save()
        return task

    def delete(self, task_id: int) -> bool:
        task = self.get_task(task_id)
        if task is None:
            return False
        self._tasks.remove(task)
        if self._current_id == task_id:
            self._current_id = self._tasks[0].id if self._tasks else None
        self._save()
        return True

    def rename(self, task_id: int, title: str) -> bool:
        if not isinstance(title, str) or not title.strip():
            return False
        task = self.get_task(task_id)
        if task is None:
            return False
        task.title = title.strip()
        self._save()
        return True

    def switch(self, task_id: int) -> bool:
        """Make a task current; False if it already is or does not exist."""
        if self._current_id == task_id or self.get_task(task_id) is None:
            return False
        self._current_id = task_id
        self._save()
        return True

    def submit(self, task_id: int, student_id: int, submitted: bool = True) -> bool:
        task = self.get_task(task_id)
        if task is None:
            return False

        key = str(student_id)
        record = task.records.setdefault(key, StudentRecord())
        record.submitted = submitted
        if not submitted and not record.has_score:
            del task.records[key]

        self._save()
        return True

    def score(self, task_id: int, student_id: int, score: Score | None) -> bool:
        """Record a score; a blank score clears it, a real one marks the work submitted."""
        task = self.get_task(task_id)
        if task is None:
            return False

        key = str(student_id)
        record = task.records.setdefault(key, StudentRecord())
        if is_blank_score(score):
            record.score = None
            if not record.submitted:
                del task.records[key]
        else:
            record.score = score
            record.submitted = True

        self._save()
        return True

    def remove_student(self, student_id: int) -> None:
        """Drop a removed student's records; later students move down one id."""
        self._rekey(lambda sid: None if sid == student_id else sid - 1 if sid > student_id else sid)

    def shift_students(self, student_id: int) -> None:
        """Make room for a student inserted at ``student_id``."""
        self._rekey(lambda sid: sid + 1 if sid >= student_id else sid)

    def _rekey(self, move: Callable[[int], int | None]) -> None:
        for task in self._tasks:
            records: dict[str, StudentRecord] = {}
            for key, record in task.records.items():
                if not key.isdigit():
                    records[key] = record
                    continue
                target = move(int(key))
                if target is not None:
                    records[str(target)] = record
            task.records = records
        self._save()

    # Serialization -----------------------------------------------------------

    def export_data(self) -> str:
        return json.dumps(
            {
                "tasks": [task.to_dict() for task in self._tasks],
                "current_task_id": self._current_id,
            },
            indent=2,
            ensure_ascii=False,
        )

    def import_data(self, text: str) -> bool:
        try:
            parsed = json.loads(text)
        except (TypeError, ValueError) as e:
            logger.error("Task import failed to parse", error=str(e))
            return False

        raw_tasks = parsed.get("tasks") if isinstance(parsed, dict) else None
        if not isinstance(raw_tasks, list):
            logger.error("Task import must contain a task list")
            return False
        tasks = [Task.from_dict(t) for t in raw_tasks if _is_valid_task(t)]
        if not tasks:
            logger.error("Task import contains no valid tasks")
            return False

        self._tasks = tasks
        current = parsed.get("current_task_id")
        self._current_id = current if self.get_task(current) is not None else tasks[0].id
        self._save()
        return True
