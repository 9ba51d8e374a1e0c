"""Terminal rendering of the roster grid, stats and notices."""

from __future__ import annotations

from typing import Any

import structlog
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.text import Text

from rollcall.core.events.bus import EventBus
from rollcall.core.events.types import EventType
from rollcall.core.models.roster import Student, StudentRecord
from rollcall.core.state.store import StateStore
from rollcall.domain.students import StudentManager
from rollcall.domain.tasks import TaskManager

logger = structlog.get_logger(__name__)

# Below the domain handlers so redraws see the updated records.
RENDER_PRIORITY = -10


class RosterView:
    """Draws the current task's student grid and reacts to bus events."""

    def __init__(
        self,
        state: StateStore,
        event_bus: EventBus,
        students: StudentManager,
        tasks: TaskManager,
        console: Console | None = None,
        *,
        auto_render: bool = True,
        columns: int = 8,
    ) -> None:
        self._state = state
        self._bus = event_bus
        self._students = students
        self._tasks = tasks
        self.console = console or Console()
        self.auto_render = auto_render
        self.columns = columns
        self._subscriptions: list[tuple[EventType, str]] = []

    # Lifecycle -----------------------------------------------------------

    def init(self) -> bool:
        handlers = {
            EventType.STUDENT_TOGGLE: self._on_roster_change,
            EventType.TASK_SWITCH: self._on_roster_change,
            EventType.STUDENT_ADD: self._on_roster_change,
            EventType.STUDENT_EDIT: self._on_roster_change,
            EventType.STUDENT_DELETE: self._on_roster_change,
            EventType.TASK_DELETE: self._on_roster_change,
            EventType.STATE_CHANGE: self._on_state_change,
            EventType.UI_RENDER: lambda _payload: self.render(),
            EventType.UI_TOAST: self._on_toast,
        }
        for event, handler in handlers.items():
            listener_id = self._bus.on(event, handler, priority=RENDER_PRIORITY)
            if listener_id:
                self._subscriptions.append((event, listener_id))
        return True

    def close(self) -> None:
        for event, listener_id in self._subscriptions:
            self._bus.off(event, listener_id)
        self._subscriptions.clear()

    # Event handlers ------------------------------------------------------

    def _on_roster_change(self, _payload: Any) -> None:
        if self.auto_render:
            self.render()

    def _on_state_change(self, payload: Any) -> None:
        changes = payload.get("changes", {}) if isinstance(payload, dict) else {}
        if "name_visibility" in changes and self.auto_render:
            self.render()

    def _on_toast(self, payload: Any) -> None:
        message = payload.get("message") if isinstance(payload, dict) else payload
        if message:
            self.show_toast(str(message))

    # Rendering -----------------------------------------------------------

    @property
    def names_visible(self) -> bool:
        return bool(self._state.get("name_visibility"))

    def cell(self, student: Student, record: StudentRecord | None) -> Text:
        """One grid cell: id (plus short name when visible), marker and score."""
        submitted = bool(record and record.submitted)
        label = f"{student.id} {student.short_name}" if self.names_visible else str(student.id)
        text = Text(("✓ " if submitted else "· ") + label, style="bold green" if submitted else "dim")
        if record is not None and record.has_score:
            text.append(f" [{record.score}]", style="cyan")
        return text

    def build_grid(self) -> Table:
        task = self._tasks.get_current()
        title = task.title if task else "No task"
        grid = Table(title=escape(title), show_header=False, show_lines=True, expand=False)
        for _ in range(self.columns):
            grid.add_column(justify="center")

        row: list[Text] = []
        for student in self._students.roster():
            record = self._tasks.get_record(task.id, student.id) if task else None
            row.append(self.cell(student, record))
            if len(row) == self.columns:
                grid.add_row(*row)
                row = []
        if row:
            grid.add_row(*row, *([""] * (self.columns - len(row))))
        return grid

    def stats_line(self) -> str:
        task = self._tasks.get_current()
        total = self._students.count()
        submitted = self._tasks.submitted_count(task.id, total) if task else 0
        percent = round(submitted / total * 100) if total else 0
        return f"{submitted}/{total} ({percent}%)"

    def build_task_list(self) -> Table:
        table = Table(title="Tasks")
        table.add_column("ID", style="dim")
        table.add_column("Title")
        table.add_column("Submitted", justify="right")
        for summary in self._tasks.summaries():
            current = summary.id == self._tasks.current_id
            table.add_row(
                str(summary.id),
                f"[bold]{escape(summary.title)}[/bold]" if current else escape(summary.title),
                str(summary.submitted_count),
            )
        return table

    def render(self) -> None:
        self.console.print(self.build_grid())
        self.console.print(f"Submitted: {self.stats_line()}")

    def render_tasks(self) -> None:
        self.console.print(self.build_task_list())

    def show_toast(self, message: str) -> None:
        logger.debug("Toast shown", message=message)
        self.console.print(f"[yellow]»[/yellow] {escape(message)}")
