"""Main CLI application."""

from __future__ import annotations

import json
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Annotated, Any, NoReturn

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from rollcall import __version__
from rollcall.app import Application
from rollcall.core.logging import configure_logging
from rollcall.core.models.config import Settings

# Create main app
app = typer.Typer(
    name="rollcall",
    help="Classroom roster: students, tasks and submissions",
    no_args_is_help=True,
    rich_markup_mode="rich",
)
students_app = typer.Typer(help="Manage the student roster", no_args_is_help=True)
tasks_app = typer.Typer(help="Manage tasks", no_args_is_help=True)
state_app = typer.Typer(help="Inspect and change view state", no_args_is_help=True)
app.add_typer(students_app, name="students")
app.add_typer(tasks_app, name="tasks")
app.add_typer(state_app, name="state")

console = Console()


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        console.print(f"[bold blue]rollcall[/bold blue] v{__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    config: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Config file path (YAML)"),
    ] = None,
    data: Annotated[
        Path | None,
        typer.Option("--data", "-d", help="Storage file path"),
    ] = None,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-v",
            help="Show version",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """rollcall - track who handed in what."""
    settings = Settings.from_yaml(config) if config else Settings()
    if data is not None:
        settings.storage.backend = "file"
        settings.storage.path = data
    configure_logging(settings.logs.level, settings.logs.structured)
    ctx.obj = settings


@contextmanager
def session(ctx: typer.Context, *, auto_render: bool = False) -> Iterator[Application]:
    """Open an initialized application for one command."""
    settings: Settings = ctx.obj or Settings()
    settings = settings.model_copy(deep=True)
    settings.ui.auto_render = auto_render
    application = Application(settings, console=console)
    application.init()
    try:
        yield application
    finally:
        application.shutdown()


def fail(message: str) -> NoReturn:
    console.print(f"[red]{escape(message)}[/red]")
    raise typer.Exit(code=1)


def parse_value(raw: str) -> Any:
    """JSON literal if it parses, otherwise the raw string."""
    try:
        return json.loads(raw)
    except ValueError:
        return raw


# ----------------------------------------------------------------------
# Grid


@app.command()
def show(ctx: typer.Context) -> None:
    """Show the current task's grid and progress."""
    with session(ctx) as application:
        application.view.render()


@app.command()
def toggle(
    ctx: typer.Context,
    student_id: Annotated[int, typer.Argument(help="Student id (1-based)")],
) -> None:
    """Flip a student's submission on the current task."""
    with session(ctx, auto_render=True) as application:
        if not application.toggle_student(student_id):
            fail(f"Could not toggle student {student_id}")


@app.command()
def score(
    ctx: typer.Context,
    student_id: Annotated[int, typer.Argument(help="Student id (1-based)")],
    value: Annotated[str, typer.Argument(help="Score; empty string clears it")],
) -> None:
    """Record a student's score on the current task."""
    with session(ctx, auto_render=True) as application:
        if not application.record_score(student_id, value):
            fail(f"Could not record a score for student {student_id}")


@app.command()
def switch(
    ctx: typer.Context,
    task_id: Annotated[int, typer.Argument(help="Task id")],
) -> None:
    """Make another task current."""
    with session(ctx, auto_render=True) as application:
        if not application.switch_task(task_id):
            fail(f"Task {task_id} not found")


@app.command()
def stats(ctx: typer.Context) -> None:
    """Print submission progress for the current task."""
    with session(ctx) as application:
        submitted, total, percent = application.stats()
        console.print(f"{submitted}/{total} ({percent}%)")


@app.command()
def modules(ctx: typer.Context) -> None:
    """Show module initialization status."""
    with session(ctx) as application:
        registry = application.registry
        table = Table(title="Modules")
        table.add_column("Module", style="cyan")
        table.add_column("State")
        table.add_column("Depends on", style="dim")
        for name in registry.registered:
            state = registry.state_of(name)
            table.add_row(name, state.value if state else "-", ", ".join(registry.dependencies_of(name)))
        console.print(table)


# ----------------------------------------------------------------------
# Students


@students_app.command("list")
def students_list(ctx: typer.Context) -> None:
    """List students."""
    with session(ctx) as application:
        table = Table(title="Students")
        table.add_column("ID", justify="right", style="dim")
        table.add_column("Name")
        for student in application.students.roster():
            table.add_row(str(student.id), student.name)
        console.print(table)


@students_app.command("add")
def students_add(
    ctx: typer.Context,
    name: Annotated[str, typer.Argument(help="Student name")],
) -> None:
    """Append a student to the roster."""
    with session(ctx) as application:
        if not application.add_student(name):
            fail("Name must not be empty")
        console.print(f"Added {escape(name.strip())} as #{application.students.count()}")


@students_app.command("edit")
def students_edit(
    ctx: typer.Context,
    student_id: Annotated[int, typer.Argument(help="Student id")],
    name: Annotated[str, typer.Argument(help="New name")],
) -> None:
    """Rename a student."""
    with session(ctx) as application:
        if not application.edit_student(student_id, name):
            fail(f"Could not rename student {student_id}")
        console.print(f"Student {student_id} is now {escape(name.strip())}")


@students_app.command("remove")
def students_remove(
    ctx: typer.Context,
    student_id: Annotated[int, typer.Argument(help="Student id")],
) -> None:
    """Remove a student; later ids shift down by one."""
    with session(ctx) as application:
        if not application.delete_student(student_id):
            fail(f"Student {student_id} not found")
        console.print(f"Removed student {student_id}")


@students_app.command("insert")
def students_insert(
    ctx: typer.Context,
    student_id: Annotated[int, typer.Argument(help="Id the new student takes")],
    name: Annotated[str, typer.Argument(help="Student name")],
) -> None:
    """Insert a student at a position."""
    with session(ctx) as application:
        if not application.insert_student(student_id, name):
            fail(f"Could not insert at {student_id}")
        console.print(f"Inserted {escape(name.strip())} as #{student_id}")


@students_app.command("reset")
def students_reset(ctx: typer.Context) -> None:
    """Restore the default roster."""
    with session(ctx) as application:
        application.students.reset_to_default()
        console.print(f"Roster reset to {application.students.count()} students")


@students_app.command("export")
def students_export(ctx: typer.Context) -> None:
    """Print the roster as JSON."""
    with session(ctx) as application:
        typer.echo(application.students.export_data())


@students_app.command("import")
def students_import(
    ctx: typer.Context,
    file: Annotated[Path, typer.Argument(help="JSON file with a list of names")],
) -> None:
    """Replace the roster from a JSON file."""
    with session(ctx) as application:
        if not application.students.import_data(file.read_text(encoding="utf-8")):
            fail("Import failed: expected a non-empty JSON list of names")
        console.print(f"Imported {application.students.count()} students")


# ----------------------------------------------------------------------
# Tasks


@tasks_app.command("list")
def tasks_list(ctx: typer.Context) -> None:
    """List tasks; the current one is bold."""
    with session(ctx) as application:
        application.view.render_tasks()


@tasks_app.command("create")
def tasks_create(
    ctx: typer.Context,
    title: Annotated[str, typer.Argument(help="Task title")],
    switch_to: Annotated[
        bool,
        typer.Option("--switch/--no-switch", help="Make the new task current"),
    ] = True,
) -> None:
    """Create a task."""
    with session(ctx) as application:
        task = application.create_task(title)
        if task is None:
            fail("Title must not be empty")
        if switch_to:
            application.switch_task(task.id)
        console.print(f"Created task {task.id}: {escape(task.title)}")


@tasks_app.command("rename")
def tasks_rename(
    ctx: typer.Context,
    task_id: Annotated[int, typer.Argument(help="Task id")],
    title: Annotated[str, typer.Argument(help="New title")],
) -> None:
    """Rename a task."""
    with session(ctx) as application:
        if not application.tasks.rename(task_id, title):
            fail(f"Could not rename task {task_id}")
        console.print(f"Task {task_id} renamed")


@tasks_app.command("delete")
def tasks_delete(
    ctx: typer.Context,
    task_id: Annotated[int, typer.Argument(help="Task id")],
) -> None:
    """Delete a task."""
    with session(ctx) as application:
        if not application.delete_task(task_id):
            fail(f"Task {task_id} not found")
        console.print(f"Deleted task {task_id}")


@tasks_app.command("export")
def tasks_export(ctx: typer.Context) -> None:
    """Print tasks and records as JSON."""
    with session(ctx) as application:
        typer.echo(application.tasks.export_data())


@tasks_app.command("import")
def tasks_import(
    ctx: typer.Context,
    file: Annotated[Path, typer.Argument(help="JSON file produced by 'tasks export'")],
) -> None:
    """Replace tasks from a JSON file."""
    with session(ctx) as application:
        if not application.tasks.import_data(file.read_text(encoding="utf-8")):
            fail("Import failed: no valid tasks found")
        console.print(f"Imported {application.tasks.count()} tasks")


# ----------------------------------------------------------------------
# State


@state_app.command("get")
def state_get(
    ctx: typer.Context,
    key: Annotated[str | None, typer.Argument(help="State key; omit for everything")] = None,
) -> None:
    """Print one state value or the whole state."""
    with session(ctx) as application:
        typer.echo(json.dumps(application.state.get(key), indent=2, ensure_ascii=False))


@state_app.command("set")
def state_set(
    ctx: typer.Context,
    key: Annotated[str, typer.Argument(help="State key")],
    value: Annotated[str, typer.Argument(help="Value, parsed as JSON when possible")],
) -> None:
    """Set one state value."""
    with session(ctx) as application:
        result = application.state.set(key, parse_value(value))
        if not result:
            fail(f"State not saved: {result.message}")
        typer.echo(f"{key} = {json.dumps(application.state.get(key), ensure_ascii=False)}")


@state_app.command("export")
def state_export(ctx: typer.Context) -> None:
    """Print the state as JSON."""
    with session(ctx) as application:
        typer.echo(application.state.export_state())


@state_app.command("import")
def state_import(
    ctx: typer.Context,
    file: Annotated[Path, typer.Argument(help="JSON file produced by 'state export'")],
) -> None:
    """Load state from a JSON file, merged over the defaults."""
    with session(ctx) as application:
        result = application.state.import_state(file.read_text(encoding="utf-8"))
        if not result:
            fail(f"Import failed: {result.message}")
        console.print("State imported")


@state_app.command("reset")
def state_reset(ctx: typer.Context) -> None:
    """Restore default state."""
    with session(ctx) as application:
        application.reset_state()
        console.print("State reset")


if __name__ == "__main__":
    app()
