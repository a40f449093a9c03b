"""Tests für die Ablage (Filter, In-Memory-Store, JSON-Store)."""

import os
from datetime import datetime, timezone

import pytest

from models.assignment import Assignment
from models.campus_data import CampusData
from models.classroom import Classroom
from models.course import Course, Section
from models.enrollment import Enrollment, EnrollmentStatus
from models.person import Faculty, Student
from storage.base import ClassroomFilter, SectionFilter
from storage.json_store import JsonCampusStore
from storage.memory import InMemoryCampusStore


# ─── Hilfsfunktionen ──────────────────────────────────────────────────────────

def make_assignment(sid: str, start: str = "09:00", end: str = "10:30",
                    room: str = "R1", day: str = "monday") -> Assignment:
    return Assignment(section_id=sid, day_of_week=day, start_time=start,
                      end_time=end, classroom_id=room)


def make_data() -> CampusData:
    return CampusData(
        courses=[Course(id="C1", code="CENG301", name="Algorithmen",
                        required_features=["projector"], is_required=True)],
        sections=[
            Section(id="S1", course_id="C1", instructor_id="F1", capacity=30, term="2026-WS"),
            Section(id="S2", course_id="C1", section_number="2", instructor_id="F2",
                    capacity=30, term="2026-WS"),
            Section(id="S3", course_id="C1", section_number="3", instructor_id="F1",
                    capacity=30, deleted_at=datetime(2026, 9, 1, tzinfo=timezone.utc)),
        ],
        classrooms=[
            Classroom(id="R1", building="A", room_number="101", capacity=40),
            Classroom(id="R2", building="B", room_number="7", capacity=120),
        ],
        students=[Student(id="ST1", user_id="u-1")],
        faculty=[Faculty(id="F1", user_id="u-f1")],
        enrollments=[
            Enrollment(student_id="ST1", section_id="S1"),
            Enrollment(student_id="ST1", section_id="S2", status=EnrollmentStatus.DROPPED),
        ],
        assignments=[make_assignment("S1"), make_assignment("S2", room="R2")],
    )


# ─── Filter ───────────────────────────────────────────────────────────────────

class TestFilters:

    def test_deleted_excluded_by_default(self):
        store = InMemoryCampusStore(make_data())
        assert [s.id for s in store.list_sections()] == ["S1", "S2"]
        all_ids = [s.id for s in store.list_sections(SectionFilter(include_deleted=True))]
        assert all_ids == ["S1", "S2", "S3"]

    def test_section_filter_fields(self):
        store = InMemoryCampusStore(make_data())
        assert [s.id for s in store.list_sections(SectionFilter(ids=["S2", "S3"]))] == ["S2"]
        assert [s.id for s in store.list_sections_for_instructor("F1")] == ["S1"]
        assert len(store.list_sections(SectionFilter(term="2026-WS"))) == 2
        assert store.list_sections(SectionFilter(course_ids=["C9"])) == []

    def test_course_requirements_merged(self):
        section = InMemoryCampusStore(make_data()).list_sections(SectionFilter(ids=["S1"]))[0]
        assert section.required_features == ["projector"]
        assert section.is_required

    def test_classroom_filter(self):
        store = InMemoryCampusStore(make_data())
        assert [r.id for r in store.list_classrooms(ClassroomFilter(min_capacity=50))] == ["R2"]
        assert [r.id for r in store.list_classrooms(ClassroomFilter(building="A"))] == ["R1"]
        assert len(store.list_classrooms()) == 2


# ─── In-Memory-Store ──────────────────────────────────────────────────────────

class TestInMemoryStore:

    def test_active_enrollments(self):
        store = InMemoryCampusStore(make_data())
        assert [e.section_id for e in store.list_active_enrollments(["S1", "S2"])] == ["S1"]
        assert len(store.list_active_enrollments_for_student("ST1")) == 1

    def test_profiles(self):
        store = InMemoryCampusStore(make_data())
        assert store.find_student_by_user("u-1").id == "ST1"
        assert store.find_faculty_by_user("u-f1").id == "F1"
        assert store.find_student_by_user("u-f1") is None

    def test_replace_keeps_other_sections(self):
        store = InMemoryCampusStore(make_data())
        new = [make_assignment("S1", "13:30", "15:00"), make_assignment("S1", "15:15", "16:45")]
        store.replace_assignments_for_sections(["S1"], new)
        assert store.list_assignments_for_sections(["S1"]) == new
        assert len(store.list_assignments_for_sections(["S2"])) == 1

    def test_replace_with_empty_deletes(self):
        store = InMemoryCampusStore(make_data())
        store.replace_assignments_for_sections(["S1", "S2"], [])
        assert store.data.assignments == []

    def test_stray_section_rejected_without_change(self):
        store = InMemoryCampusStore(make_data())
        before = list(store.data.assignments)
        with pytest.raises(ValueError, match="S2"):
            store.replace_assignments_for_sections(["S1"], [make_assignment("S2")])
        assert store.data.assignments == before

    def test_readers_keep_old_snapshot(self):
        """Ein vorher gelesener Stand bleibt unverändert."""
        store = InMemoryCampusStore(make_data())
        snapshot = store.data
        store.replace_assignments_for_sections(["S1"], [])
        assert len(snapshot.assignments) == 2
        assert len(store.data.assignments) == 1


# ─── JSON-Store ───────────────────────────────────────────────────────────────

class TestJsonStore:

    def test_new_store_without_file(self, tmp_path):
        store = JsonCampusStore(tmp_path / "campus.json")
        assert store.list_sections() == []
        assert not (tmp_path / "campus.json").exists()

    def test_persist_and_reload(self, tmp_path):
        path = tmp_path / "campus.json"
        make_data().save_json(path)
        store = JsonCampusStore(path)
        store.replace_assignments_for_sections(["S1"], [make_assignment("S1", "13:30", "15:00")])

        reopened = JsonCampusStore(path)
        moved = reopened.list_assignments_for_sections(["S1"])
        assert [a.start_time for a in moved] == ["13:30"]
        assert reopened.data.modified_at is not None

    def test_save_creates_file(self, tmp_path):
        path = tmp_path / "sub" / "campus.json"
        store = JsonCampusStore(path)
        store.save()
        assert path.exists()
        assert CampusData.load_json(path).sections == []

    def test_failed_write_leaves_file_unchanged(self, tmp_path, monkeypatch):
        path = tmp_path / "campus.json"
        make_data().save_json(path)
        original = path.read_text(encoding="utf-8")
        store = JsonCampusStore(path)

        def boom(src, dst):
            raise OSError("Datenträger voll")

        monkeypatch.setattr(os, "replace", boom)
        with pytest.raises(OSError):
            store.replace_assignments_for_sections(["S1"], [])

        assert path.read_text(encoding="utf-8") == original
        assert len(store.data.assignments) == 2
        assert [p.name for p in tmp_path.iterdir()] == ["campus.json"]

    def test_reload_picks_up_external_change(self, tmp_path):
        path = tmp_path / "campus.json"
        make_data().save_json(path)
        store = JsonCampusStore(path)
        make_data().model_copy(update={"assignments": []}).save_json(path)
        store.reload()
        assert store.data.assignments == []
