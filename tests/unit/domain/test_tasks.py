"""Tests for TaskManager."""

from __future__ import annotations

import json

from rollcall.core.storage.backends import MemoryStorage
from rollcall.domain.tasks import CURRENT_TASK_KEY, TASKS_KEY, TaskManager


class TestInit:
    """Tests for loading and seeding."""

    def test_seeds_default_task(self, tasks: TaskManager, storage: MemoryStorage):
        assert tasks.count() == 1
        task = tasks.get_current()
        assert task.title == "Task 1"
        assert task.id == 1_700_000_000_000
        assert storage.get(CURRENT_TASK_KEY) == task.id

    def test_loads_only_valid_tasks(self, storage: MemoryStorage, clock):
        storage.set(
            TASKS_KEY,
            [
                {"id": 10, "title": "Essay", "records": {"1": {"submitted": True, "score": None}}},
                {"id": "11", "title": "Bad id"},
                {"id": True, "title": "Bool id"},
                {"id": 12},
                "junk",
            ],
        )
        storage.set(CURRENT_TASK_KEY, 10)
        manager = TaskManager(storage, clock=clock)
        manager.init()

        assert [t.id for t in manager.get_all()] == [10]
        assert manager.submitted_count(10) == 1

    def test_repairs_dangling_current_id(self, storage: MemoryStorage, clock):
        storage.set(TASKS_KEY, [{"id": 5, "title": "A"}, {"id": 6, "title": "B"}])
        storage.set(CURRENT_TASK_KEY, 999)
        manager = TaskManager(storage, clock=clock)
        manager.init()

        assert manager.current_id == 5
        assert storage.get(CURRENT_TASK_KEY) == 5


class TestIds:
    """Tests for id allocation."""

    def test_ids_strictly_increase_with_a_frozen_clock(self, tasks: TaskManager):
        first = tasks.create("A")
        second = tasks.create("B")
        assert tasks.get_current().id < first.id < second.id

    def test_ids_follow_the_clock(self, tasks: TaskManager, clock):
        clock.advance(60)
        task = tasks.create("Later")
        assert task.id == 1_700_000_060_000


class TestMutations:
    """Tests for create/delete/rename/switch."""

    def test_create(self, tasks: TaskManager, storage: MemoryStorage):
        task = tasks.create("  Lab report ")
        assert task.title == "Lab report"
        assert tasks.count() == 2
        assert len(storage.get(TASKS_KEY)) == 2

    def test_create_blank_title(self, tasks: TaskManager):
        assert tasks.create("  ") is None
        assert tasks.count() == 1

    def test_delete_current_moves_to_first(self, tasks: TaskManager):
        first = tasks.get_current()
        second = tasks.create("B")
        tasks.switch(second.id)

        assert tasks.delete(second.id)
        assert tasks.current_id == first.id
        assert not tasks.delete(second.id)

    def test_delete_last_task(self, tasks: TaskManager):
        assert tasks.delete(tasks.current_id)
        assert tasks.current_id is None
        assert tasks.get_current() is None

    def test_rename(self, tasks: TaskManager):
        task_id = tasks.current_id
        assert tasks.rename(task_id, "Essay")
        assert tasks.get_task(task_id).title == "Essay"
        assert not tasks.rename(task_id, "")
        assert not tasks.rename(12345, "Ghost")

    def test_switch(self, tasks: TaskManager, storage: MemoryStorage):
        other = tasks.create("B")
        assert tasks.switch(other.id)
        assert storage.get(CURRENT_TASK_KEY) == other.id
        assert not tasks.switch(other.id)
        assert not tasks.switch(12345)

    def test_summaries(self, tasks: TaskManager):
        tasks.submit(tasks.current_id, 1)
        other = tasks.create("B")
        summaries = tasks.summaries()
        assert [(s.title, s.submitted_count) for s in summaries] == [("Task 1", 1), ("B", 0)]
        assert summaries[1].id == other.id


class TestRecords:
    """Tests for submit() / score()."""

    def test_submit_and_unsubmit(self, tasks: TaskManager):
        task_id = tasks.current_id
        assert tasks.submit(task_id, 2)
        assert tasks.get_record(task_id, 2).submitted
        assert tasks.submitted_count(task_id) == 1

        assert tasks.submit(task_id, 2, False)
        assert tasks.get_record(task_id, 2) is None

    def test_unsubmit_keeps_scored_record(self, tasks: TaskManager):
        task_id = tasks.current_id
        tasks.score(task_id, 1, "A")
        tasks.submit(task_id, 1, False)
        record = tasks.get_record(task_id, 1)
        assert record.score == "A"
        assert not record.submitted

    def test_score_marks_submitted(self, tasks: TaskManager):
        task_id = tasks.current_id
        assert tasks.score(task_id, 3, 95)
        record = tasks.get_record(task_id, 3)
        assert record.submitted
        assert record.score == 95

    def test_blank_score_clears(self, tasks: TaskManager):
        task_id = tasks.current_id
        tasks.score(task_id, 3, 95)
        tasks.score(task_id, 3, "")
        record = tasks.get_record(task_id, 3)
        assert record.score is None
        assert record.submitted

    def test_blank_score_drops_unsubmitted_record(self, tasks: TaskManager):
        task_id = tasks.current_id
        tasks.score(task_id, 3, None)
        assert tasks.get_record(task_id, 3) is None

    def test_unknown_task(self, tasks: TaskManager):
        assert not tasks.submit(42, 1)
        assert not tasks.score(42, 1, "A")
        assert tasks.get_record(42, 1) is None
        assert tasks.submitted_count(42) == 0

    def test_records_survive_reload(self, tasks: TaskManager, storage: MemoryStorage, clock):
        task_id = tasks.current_id
        tasks.score(task_id, 2, "B+")

        reloaded = TaskManager(storage, clock=clock)
        reloaded.init()

        assert reloaded.get_record(task_id, 2).score == "B+"


class TestSerialization:
    """Tests for export_data() / import_data()."""

    def test_export_shape(self, tasks: TaskManager):
        data = json.loads(tasks.export_data())
        assert data["current_task_id"] == tasks.current_id
        assert data["tasks"][0]["title"] == "Task 1"

    def test_round_trip(self, tasks: TaskManager, storage: MemoryStorage, clock):
        tasks.submit(tasks.current_id, 1)
        second = tasks.create("B")
        tasks.switch(second.id)
        exported = tasks.export_data()

        other = TaskManager(MemoryStorage(), clock=clock)
        other.init()
        assert other.import_data(exported)
        assert other.current_id == second.id
        assert other.submitted_count(tasks.get_all()[0].id) == 1

    def test_import_rejects_bad_payloads(self, tasks: TaskManager):
        assert not tasks.import_data("nope")
        assert not tasks.import_data("[]")
        assert not tasks.import_data('{"tasks": [{"id": "x"}]}')
        assert tasks.count() == 1

    def test_import_repairs_current(self, tasks: TaskManager):
        assert tasks.import_data('{"tasks": [{"id": 3, "title": "C"}], "current_task_id": 99}')
        assert tasks.current_id == 3


class TestMalformedRecords:
    """Tests for tasks whose records are not a mapping."""

    def test_import_ignores_non_mapping_records(self, tasks: TaskManager):
        assert tasks.import_data('{"tasks": [{"id": 1, "title": "A", "records": ["x"]}]}')
        assert tasks.get_task(1).records == {}

    def test_init_survives_corrupt_records(self, storage: MemoryStorage, clock):
        storage.set(TASKS_KEY, [{"id": 4, "title": "Quiz", "records": "garbage"}])
        manager = TaskManager(storage, clock=clock)

        assert manager.init()
        assert manager.get_task(4).records == {}
        assert manager.current_id == 4


class TestStudentShifts:
    """Tests for re-keying records when the roster changes."""

    def test_remove_student_drops_and_shifts(self, tasks: TaskManager, storage: MemoryStorage):
        first = tasks.current_id
        second = tasks.create("B").id
        for student_id in (1, 2, 3):
            tasks.submit(first, student_id)
        tasks.score(second, 3, "A")

        tasks.remove_student(2)

        assert sorted(tasks.get_task(first).records) == ["1", "2"]
        assert tasks.get_record(second, 2).score == "A"
        assert tasks.get_record(second, 3) is None
        assert sorted(storage.get(TASKS_KEY)[0]["records"]) == ["1", "2"]

    def test_shift_students_makes_room(self, tasks: TaskManager):
        task_id = tasks.current_id
        tasks.submit(task_id, 1)
        tasks.score(task_id, 2, 7)

        tasks.shift_students(2)

        assert tasks.get_record(task_id, 1).submitted
        assert tasks.get_record(task_id, 2) is None
        assert tasks.get_record(task_id, 3).score == 7

    def test_submitted_count_bounded_by_roster(self, tasks: TaskManager):
        task_id = tasks.current_id
        for student_id in (1, 2, 5):
            tasks.submit(task_id, student_id)

        assert tasks.submitted_count(task_id) == 3
        assert tasks.submitted_count(task_id, roster_size=3) == 2
        assert tasks.submitted_count(task_id, roster_size=0) == 0
