"""Tests for the rollcall command line."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from rollcall import __version__
from rollcall.cli.app import app, parse_value

runner = CliRunner()


@pytest.fixture
def data_file(tmp_path: Path) -> Path:
    return tmp_path / "rollcall.json"


def invoke(data_file: Path, *args: str):
    return runner.invoke(app, ["--data", str(data_file), *args])


# ============================================================================
# GLOBAL OPTIONS
# ============================================================================


class TestGlobalOptions:
    """Tests for the main callback."""

    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"v{__version__}" in result.output

    def test_no_args_shows_help(self):
        result = runner.invoke(app, [])
        assert "Usage" in result.output

    def test_config_file(self, tmp_path: Path, data_file: Path):
        config = tmp_path / "rollcall.yaml"
        config.write_text(
            f"storage:\n  path: {data_file}\nroster:\n  default_size: 3\n",
            encoding="utf-8",
        )

        result = runner.invoke(app, ["--config", str(config), "students", "list"])

        assert result.exit_code == 0
        assert "Student 3" in result.output
        assert "Student 4" not in result.output
        assert data_file.exists()


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("true", True), ("12", 12), ('["a"]', ["a"]), ("plain text", "plain text")],
)
def test_parse_value(raw, expected):
    assert parse_value(raw) == expected


# ============================================================================
# GRID COMMANDS
# ============================================================================


class TestGrid:
    """Tests for show/toggle/score/switch/stats/modules."""

    def test_show(self, data_file: Path):
        result = invoke(data_file, "show")
        assert result.exit_code == 0
        assert "Task 1" in result.output
        assert "Submitted: 0/40 (0%)" in result.output

    def test_toggle_persists_across_invocations(self, data_file: Path):
        assert invoke(data_file, "toggle", "1").exit_code == 0
        assert invoke(data_file, "toggle", "2").exit_code == 0

        result = invoke(data_file, "stats")

        assert result.exit_code == 0
        assert "2/40 (5%)" in result.output

    def test_toggle_unknown_student(self, data_file: Path):
        result = invoke(data_file, "toggle", "99")
        assert result.exit_code == 1
        assert "Student not found" in result.output

    def test_score(self, data_file: Path):
        result = invoke(data_file, "score", "3", "A")
        assert result.exit_code == 0
        assert "Student 3: A" in result.output

        exported = json.loads(invoke(data_file, "tasks", "export").stdout)
        assert exported["tasks"][0]["records"]["3"] == {"submitted": True, "score": "A"}

    def test_switch(self, data_file: Path):
        invoke(data_file, "tasks", "create", "Essay", "--no-switch")
        exported = json.loads(invoke(data_file, "tasks", "export").stdout)
        essay_id = exported["tasks"][1]["id"]

        result = invoke(data_file, "switch", str(essay_id))

        assert result.exit_code == 0
        assert "Switched to 'Essay'" in result.output

    def test_switch_unknown(self, data_file: Path):
        result = invoke(data_file, "switch", "12345")
        assert result.exit_code == 1
        assert "Task not found" in result.output

    def test_modules(self, data_file: Path):
        result = invoke(data_file, "modules")
        assert result.exit_code == 0
        for name in ("storage", "event-bus", "state", "students", "tasks", "ui"):
            assert name in result.output
        assert "initialized" in result.output


# ============================================================================
# STUDENT COMMANDS
# ============================================================================


class TestStudents:
    """Tests for the students sub-app."""

    def test_add_edit_remove(self, data_file: Path):
        assert "#41" in invoke(data_file, "students", "add", "Zoe").output
        assert invoke(data_file, "students", "edit", "41", "Zoë").exit_code == 0

        names = json.loads(invoke(data_file, "students", "export").stdout)
        assert names[-1] == "Zoë"

        assert invoke(data_file, "students", "remove", "41").exit_code == 0
        assert len(json.loads(invoke(data_file, "students", "export").stdout)) == 40

    def test_add_blank(self, data_file: Path):
        result = invoke(data_file, "students", "add", "  ")
        assert result.exit_code == 1

    def test_insert(self, data_file: Path):
        result = invoke(data_file, "students", "insert", "1", "Aaron")
        assert result.exit_code == 0
        names = json.loads(invoke(data_file, "students", "export").stdout)
        assert names[:2] == ["Aaron", "Student 1"]

    def test_remove_unknown(self, data_file: Path):
        assert invoke(data_file, "students", "remove", "400").exit_code == 1

    def test_import_and_reset(self, tmp_path: Path, data_file: Path):
        roster = tmp_path / "roster.json"
        roster.write_text('["Ann", "Ben"]', encoding="utf-8")

        result = invoke(data_file, "students", "import", str(roster))
        assert result.exit_code == 0
        assert "Imported 2 students" in result.output

        assert "Roster reset to 40 students" in invoke(data_file, "students", "reset").output

    def test_import_invalid(self, tmp_path: Path, data_file: Path):
        roster = tmp_path / "roster.json"
        roster.write_text("{}", encoding="utf-8")
        assert invoke(data_file, "students", "import", str(roster)).exit_code == 1


# ============================================================================
# TASK COMMANDS
# ============================================================================


class TestTasks:
    """Tests for the tasks sub-app."""

    def test_create_switches_by_default(self, data_file: Path):
        result = invoke(data_file, "tasks", "create", "Lab")
        assert result.exit_code == 0

        exported = json.loads(invoke(data_file, "tasks", "export").stdout)
        assert exported["current_task_id"] == exported["tasks"][1]["id"]

    def test_create_blank(self, data_file: Path):
        assert invoke(data_file, "tasks", "create", " ").exit_code == 1

    def test_list(self, data_file: Path):
        invoke(data_file, "tasks", "create", "Lab")
        result = invoke(data_file, "tasks", "list")
        assert "Task 1" in result.output
        assert "Lab" in result.output

    def test_rename_and_delete(self, data_file: Path):
        task_id = json.loads(invoke(data_file, "tasks", "export").stdout)["current_task_id"]

        assert invoke(data_file, "tasks", "rename", str(task_id), "Essay").exit_code == 0
        assert "Essay" in invoke(data_file, "tasks", "list").output

        assert invoke(data_file, "tasks", "delete", str(task_id)).exit_code == 0
        assert invoke(data_file, "tasks", "delete", str(task_id)).exit_code == 1

    def test_import(self, tmp_path: Path, data_file: Path):
        payload = tmp_path / "tasks.json"
        payload.write_text(
            json.dumps({"tasks": [{"id": 1, "title": "Imported"}], "current_task_id": 1}),
            encoding="utf-8",
        )
        result = invoke(data_file, "tasks", "import", str(payload))
        assert result.exit_code == 0
        assert "Imported 1 tasks" in result.output


# ============================================================================
# STATE COMMANDS
# ============================================================================


class TestState:
    """Tests for the state sub-app."""

    def test_set_and_get(self, data_file: Path):
        result = invoke(data_file, "state", "set", "name_visibility", "true")
        assert result.exit_code == 0
        assert "name_visibility = true" in result.output

        assert invoke(data_file, "state", "get", "name_visibility").stdout.strip() == "true"

    def test_get_all(self, data_file: Path):
        state = json.loads(invoke(data_file, "state", "get").stdout)
        assert state["modal_stack"] == []

    def test_export_import_reset(self, tmp_path: Path, data_file: Path):
        invoke(data_file, "state", "set", "grading_mode", "true")
        exported = tmp_path / "state.json"
        exported.write_text(invoke(data_file, "state", "export").stdout, encoding="utf-8")

        assert invoke(data_file, "state", "reset").exit_code == 0
        assert invoke(data_file, "state", "get", "grading_mode").stdout.strip() == "false"

        assert invoke(data_file, "state", "import", str(exported)).exit_code == 0
        assert invoke(data_file, "state", "get", "grading_mode").stdout.strip() == "true"

    def test_import_invalid(self, tmp_path: Path, data_file: Path):
        bad = tmp_path / "state.json"
        bad.write_text("[1]", encoding="utf-8")
        result = invoke(data_file, "state", "import", str(bad))
        assert result.exit_code == 1
        assert "Import failed" in result.output
