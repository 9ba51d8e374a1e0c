"""Roster domain managers."""

from rollcall.domain.students import STUDENTS_KEY, StudentManager
from rollcall.domain.tasks import CURRENT_TASK_KEY, TASKS_KEY, TaskManager

__all__ = [
    "CURRENT_TASK_KEY",
    "STUDENTS_KEY",
    "TASKS_KEY",
    "StudentManager",
    "TaskManager",
]
