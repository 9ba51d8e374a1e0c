"""Tests for StudentManager."""

from __future__ import annotations

import json

from rollcall.core.storage.backends import MemoryStorage
from rollcall.domain.students import STUDENTS_KEY, StudentManager


class TestInit:
    """Tests for loading and seeding."""

    def test_seeds_defaults_and_saves(self, storage: MemoryStorage):
        manager = StudentManager(storage, ["A", "B"])
        assert manager.init()
        assert manager.get_all() == ["A", "B"]
        assert storage.get(STUDENTS_KEY) == ["A", "B"]

    def test_loads_stored_roster(self, storage: MemoryStorage):
        storage.set(STUDENTS_KEY, ["Stored One", "Stored Two", "Stored Three"])
        manager = StudentManager(storage, ["A"])
        manager.init()
        assert manager.count() == 3

    def test_invalid_stored_roster_reseeds(self, storage: MemoryStorage):
        storage.set(STUDENTS_KEY, ["ok", 3])
        manager = StudentManager(storage, ["A"])
        manager.init()
        assert manager.get_all() == ["A"]

    def test_empty_stored_roster_reseeds(self, storage: MemoryStorage):
        storage.set(STUDENTS_KEY, [])
        manager = StudentManager(storage, ["A"])
        manager.init()
        assert manager.get_all() == ["A"]

    def test_lazy_init(self, storage: MemoryStorage):
        manager = StudentManager(storage, ["A"])
        assert manager.count() == 1


class TestQueries:
    """Tests for roster lookups."""

    def test_roster_ids_are_positions(self, students: StudentManager):
        roster = students.roster()
        assert [s.id for s in roster] == [1, 2, 3]
        assert roster[0].name == "Alice Zhang"

    def test_get_name_fallback(self, students: StudentManager):
        assert students.get_name(2) == "Bob Li"
        assert students.get_name(99) == "Student 99"

    def test_exists(self, students: StudentManager):
        assert students.exists(1)
        assert students.exists(3)
        assert not students.exists(0)
        assert not students.exists(4)

    def test_get_all_is_copy(self, students: StudentManager):
        students.get_all().append("Mallory")
        assert students.count() == 3


class TestMutations:
    """Tests for add/edit/delete/insert/reset."""

    def test_add_strips_and_persists(self, students: StudentManager, storage: MemoryStorage):
        assert students.add("  Dan  ")
        assert students.get_name(4) == "Dan"
        assert storage.get(STUDENTS_KEY)[-1] == "Dan"

    def test_blank_names_rejected(self, students: StudentManager):
        assert not students.add("   ")
        assert not students.edit(1, "")
        assert not students.insert(1, " ")
        assert students.count() == 3

    def test_edit(self, students: StudentManager):
        assert students.edit(2, "Bobby")
        assert students.get_name(2) == "Bobby"
        assert not students.edit(10, "Ghost")

    def test_delete_shifts_ids(self, students: StudentManager):
        assert students.delete(1)
        assert students.get_name(1) == "Bob Li"
        assert not students.delete(5)

    def test_insert_bounds(self, students: StudentManager):
        assert students.insert(1, "First")
        assert students.insert(5, "Last")
        assert not students.insert(0, "Nope")
        assert not students.insert(7, "Nope")
        assert students.get_all() == ["First", "Alice Zhang", "Bob Li", "Carol Wu", "Last"]

    def test_reset_to_default(self, students: StudentManager):
        students.add("Dan")
        assert students.reset_to_default()
        assert students.get_all() == students.default_students


class TestSerialization:
    """Tests for export_data() / import_data()."""

    def test_export(self, students: StudentManager):
        assert json.loads(students.export_data()) == ["Alice Zhang", "Bob Li", "Carol Wu"]

    def test_import_replaces_roster(self, students: StudentManager, storage: MemoryStorage):
        assert students.import_data('["X", "Y"]')
        assert students.get_all() == ["X", "Y"]
        assert storage.get(STUDENTS_KEY) == ["X", "Y"]

    def test_import_rejects_bad_payloads(self, students: StudentManager):
        assert not students.import_data("not json")
        assert not students.import_data("[]")
        assert not students.import_data('{"a": 1}')
        assert not students.import_data('["ok", 1]')
        assert students.count() == 3
