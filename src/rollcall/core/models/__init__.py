"""Configuration and roster data models."""

from rollcall.core.models.config import (
    LogConfig,
    RosterConfig,
    Settings,
    StorageConfig,
    UIConfig,
)
from rollcall.core.models.roster import (
    Score,
    Student,
    StudentRecord,
    Task,
    TaskSummary,
    is_blank_score,
)

__all__ = [
    # Config
    "LogConfig",
    "RosterConfig",
    "Settings",
    "StorageConfig",
    "UIConfig",
    # Roster
    "Score",
    "Student",
    "StudentRecord",
    "Task",
    "TaskSummary",
    "is_blank_score",
]
