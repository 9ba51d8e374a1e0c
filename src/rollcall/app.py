"""Composition root: builds the modules, wires the event bus and owns teardown."""

from __future__ import annotations

from typing import Any

import structlog
from rich.console import Console

from rollcall import __version__
from rollcall.core.events.bus import EventBus
from rollcall.core.events.types import WILDCARD, EventType
from rollcall.core.models.config import Settings, StorageConfig
from rollcall.core.models.roster import Score, Task, is_blank_score
from rollcall.core.registry.manager import ModuleRegistry
from rollcall.core.registry.models import InitReport
from rollcall.core.result import ErrorKind, RollcallError
from rollcall.core.state.store import StateStore
from rollcall.core.storage.backends import JsonFileStorage, MemoryStorage
from rollcall.core.storage.base import StorageService
from rollcall.domain.students import StudentManager
from rollcall.domain.tasks import TaskManager
from rollcall.ui.console import RosterView

logger = structlog.get_logger(__name__)

# Domain handlers run ahead of UI redraws.
HANDLER_PRIORITY = 10

_MISSING = object()


def create_storage(config: StorageConfig) -> StorageService:
    """Build the configured storage backend."""
    if config.backend == "memory":
        return MemoryStorage(quota_bytes=config.quota_bytes)
    return JsonFileStorage(config.path, quota_bytes=config.quota_bytes)


class Application:
    """Owns the registry, event bus, storage and state store of one session."""

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        storage: StorageService | None = None,
        console: Console | None = None,
    ) -> None:
        """
        Build the composition root.

        Args:
            settings: Configuration, defaults when omitted
            storage: Storage backend overriding the configured one
            console: Console used by the roster view
        """
        self.settings = settings or Settings()
        self.registry = ModuleRegistry()
        self.event_bus = EventBus()
        self.storage = storage or create_storage(self.settings.storage)
        self.state = StateStore(self.storage)
        self._console = console

        self._initialized = False
        self._report: InitReport | None = None
        self._state_listener_id: str | None = None

        self._register_modules()

    def _register_modules(self) -> None:
        roster = self.settings.roster
        ui = self.settings.ui

        self.registry.register("storage", lambda: self.storage)
        self.registry.register("event-bus", lambda: self.event_bus)
        self.registry.register("state", lambda storage: self.state, ["storage"], allow_missing=False)
        self.registry.register(
            "students",
            lambda storage: StudentManager(storage, roster.default_students()),
            ["storage"],
            allow_missing=False,
        )
        self.registry.register(
            "tasks",
            lambda storage: TaskManager(storage, default_title=roster.default_task_title),
            ["storage"],
            allow_missing=False,
        )
        self.registry.register(
            "ui",
            lambda state, event_bus, students, tasks: RosterView(
                state,
                event_bus,
                students,
                tasks,
                console=self._console,
                auto_render=ui.auto_render,
                columns=ui.columns,
            ),
            ["state", "event-bus", "students", "tasks"],
            allow_missing=False,
        )

    # Module access -------------------------------------------------------

    @property
    def students(self) -> StudentManager:
        return self.registry.get("students")

    @property
    def tasks(self) -> TaskManager:
        return self.registry.get("tasks")

    @property
    def view(self) -> RosterView:
        return self.registry.get("ui")

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    # Lifecycle -----------------------------------------------------------

    def init(self) -> InitReport:
        """
        Initialize every module and connect the event handlers.

        Returns:
            Initialization report

        Raises:
            RollcallError: A module failed and ``strict_init`` is enabled
        """
        if self._initialized and self._report is not None:
            logger.warning("Application already initialized")
            return self._report

        logger.info("Starting initialization", version=__version__)
        self.storage.on_error = self.notify
        report = self.registry.init_all()
        self._report = report

        if not report.ok:
            logger.error("Modules failed to initialize", failed=report.failed)
            if self.settings.strict_init:
                raise RollcallError(
                    ErrorKind.DEPENDENCY_FAILED,
                    f"modules failed to initialize: {', '.join(report.failed)}",
                )

        self._state_listener_id = self.state.add_listener(WILDCARD, self._bridge_state_change)
        self._connect_events()
        self._initialized = True

        logger.info("Initialization complete", modules=len(report.succeeded))
        self.event_bus.emit(EventType.APP_INITIALIZED, {"version": __version__})
        return report

    def _connect_events(self) -> None:
        handlers = {
            EventType.STUDENT_TOGGLE: self._on_student_toggle,
            EventType.STUDENT_ADD: self._on_student_add,
            EventType.STUDENT_EDIT: self._on_student_edit,
            EventType.STUDENT_DELETE: self._on_student_delete,
            EventType.TASK_CREATE: self._on_task_create,
            EventType.TASK_DELETE: self._on_task_delete,
            EventType.TASK_SWITCH: self._on_task_switch,
            EventType.TASK_SUBMIT: self._on_task_submit,
            EventType.TASK_SCORE: self._on_task_score,
            EventType.STATE_RESET: self._on_state_reset,
            EventType.APP_DESTROY: self._on_destroy,
        }
        for event, handler in handlers.items():
            self.event_bus.on(event, handler, HANDLER_PRIORITY)

    def shutdown(self) -> None:
        """Emit ``app:destroy``; its handler tears the session down."""
        if not self._initialized:
            return
        self.event_bus.emit(EventType.APP_DESTROY, {})
        if self._initialized:
            # Handler was removed before the destroy event was emitted.
            self._cleanup()

    def _cleanup(self) -> None:
        logger.info("Cleaning up")
        for name in reversed(self.registry.initialization_order):
            close = getattr(self.registry.get(name), "close", None)
            if callable(close):
                try:
                    close()
                except Exception as e:
                    logger.exception("Module close failed", name=name, error=str(e))

        self.event_bus.off()
        if self._state_listener_id:
            self.state.remove_listener(self._state_listener_id)
            self._state_listener_id = None
        self.storage.on_error = None
        self.registry.reset()
        self._initialized = False
        self._report = None

    def __enter__(self) -> Application:
        self.init()
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.shutdown()

    # Event handlers ------------------------------------------------------

    def _on_student_toggle(self, payload: dict[str, Any]) -> bool:
        """Turn a tap or long press on a student into a submit or score event."""
        student_id = payload.get("id")
        task_id = self._current_task_for(student_id)
        if task_id is None:
            return False

        target = {"task_id": task_id, "student_id": student_id}
        if payload.get("type") == "long":
            return self._emit_ok(EventType.TASK_SCORE, {**target, "score": payload.get("score")})

        record = self.tasks.get_record(task_id, student_id)
        return self._emit_ok(
            EventType.TASK_SUBMIT,
            {**target, "submitted": not (record and record.submitted)},
        )

    def _on_student_add(self, payload: dict[str, Any]) -> bool:
        name = payload.get("name", "")
        position = payload.get("id")
        if position is None:
            return self.students.add(name)
        if not isinstance(position, int) or not self.students.insert(position, name):
            return False
        self.tasks.shift_students(position)
        return True

    def _on_student_edit(self, payload: dict[str, Any]) -> bool:
        student_id = payload.get("id")
        if not isinstance(student_id, int):
            return False
        return self.students.edit(student_id, payload.get("name", ""))

    def _on_student_delete(self, payload: dict[str, Any]) -> bool:
        student_id = payload.get("id")
        if not isinstance(student_id, int) or not self.students.delete(student_id):
            return False
        self.tasks.remove_student(student_id)
        return True

    def _on_task_create(self, payload: dict[str, Any]) -> Task | None:
        return self.tasks.create(payload.get("title", ""))

    def _on_task_delete(self, payload: dict[str, Any]) -> bool:
        return self.tasks.delete(payload.get("task_id"))

    def _on_task_switch(self, payload: dict[str, Any]) -> bool:
        task = self.tasks.get_task(payload.get("task_id"))
        if task is None:
            self.notify("Task not found")
            return False
        self.tasks.switch(task.id)
        self.notify(f"Switched to '{task.title}'")
        return True

    def _on_task_submit(self, payload: dict[str, Any]) -> bool:
        student_id = payload.get("student_id")
        submitted = bool(payload.get("submitted", True))
        if not self.tasks.submit(payload.get("task_id"), student_id, submitted):
            return False

        name = self.students.get_name(student_id)
        self.notify(f"{name}: submitted" if submitted else f"{name}: cleared")
        return True

    def _on_task_score(self, payload: dict[str, Any]) -> bool:
        task_id = payload.get("task_id")
        student_id = payload.get("student_id")
        score: Score | None = payload.get("score")
        name = self.students.get_name(student_id)

        if is_blank_score(score):
            if self.tasks.get_record(task_id, student_id) is None:
                return False
            self.tasks.score(task_id, student_id, None)
            self.tasks.submit(task_id, student_id, False)
            self.notify(f"{name}: score cleared")
            return True

        if not self.tasks.score(task_id, student_id, score):
            return False
        self.notify(f"{name}: {score}")
        return True

    def _on_state_reset(self, _payload: Any) -> bool:
        return self.state.reset().ok

    def _on_destroy(self, _payload: Any) -> None:
        self._cleanup()

    def _bridge_state_change(self, new_state: dict[str, Any], old_state: dict[str, Any]) -> None:
        changes = {
            key: value
            for key, value in new_state.items()
            if old_state.get(key, _MISSING) != value
        }
        self.event_bus.emit(EventType.STATE_CHANGE, {"changes": changes, "state": new_state})

    def _current_task_for(self, student_id: Any) -> int | None:
        if not isinstance(student_id, int) or not self.students.exists(student_id):
            self.notify("Student not found")
            return None
        task = self.tasks.get_current()
        if task is None:
            self.notify("Select a task first")
            return None
        return task.id

    def _emit_ok(self, event: EventType, payload: dict[str, Any]) -> bool:
        """Emit and report whether any handler returned True."""
        return True in self.event_bus.emit(event, payload).values

    # Domain operations ---------------------------------------------------

    def toggle_student(self, student_id: int) -> bool:
        """Flip a student's submission on the current task."""
        return self._emit_ok(EventType.STUDENT_TOGGLE, {"id": student_id, "type": "tap"})

    def record_score(self, student_id: int, score: Score | None) -> bool:
        """Record (or with a blank score, clear) a student's score on the current task."""
        return self._emit_ok(
            EventType.STUDENT_TOGGLE,
            {"id": student_id, "type": "long", "score": score},
        )

    def add_student(self, name: str) -> bool:
        return self._emit_ok(EventType.STUDENT_ADD, {"name": name})

    def insert_student(self, student_id: int, name: str) -> bool:
        """Insert a student at a position; records of later students move up one id."""
        return self._emit_ok(EventType.STUDENT_ADD, {"name": name, "id": student_id})

    def edit_student(self, student_id: int, name: str) -> bool:
        return self._emit_ok(EventType.STUDENT_EDIT, {"id": student_id, "name": name})

    def delete_student(self, student_id: int) -> bool:
        """Remove a student and their records; later students move down one id."""
        return self._emit_ok(EventType.STUDENT_DELETE, {"id": student_id})

    def create_task(self, title: str) -> Task | None:
        result = self.event_bus.emit(EventType.TASK_CREATE, {"title": title})
        return next((value for value in result.values if isinstance(value, Task)), None)

    def delete_task(self, task_id: int) -> bool:
        return self._emit_ok(EventType.TASK_DELETE, {"task_id": task_id})

    def switch_task(self, task_id: int) -> bool:
        return self._emit_ok(EventType.TASK_SWITCH, {"task_id": task_id})

    def reset_state(self) -> bool:
        return self._emit_ok(EventType.STATE_RESET, {})

    def stats(self) -> tuple[int, int, int]:
        """Submitted count, roster size and rounded percentage for the current task."""
        task = self.tasks.get_current()
        total = self.students.count()
        submitted = self.tasks.submitted_count(task.id, total) if task else 0
        percent = round(submitted / total * 100) if total else 0
        return submitted, total, percent

    def notify(self, message: str, duration: float | None = None) -> None:
        """Show a transient notice through the UI."""
        self.event_bus.emit(
            EventType.UI_TOAST,
            {
                "message": message,
                "duration": self.settings.ui.toast_duration if duration is None else duration,
            },
        )
