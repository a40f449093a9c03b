"""End-to-End-Tests für den SchedulingService (Ablage → Solver → Ablage)."""

from datetime import date

import pytest

from analysis.solution_validator import SolutionValidator
from config.defaults import default_campus_config
from config.schema import SolverConfig
from data.fake_data import FakeCampusGenerator
from export.ical_export import IcalExporter
from models.assignment import Assignment
from models.campus_data import CampusData
from models.classroom import Classroom
from models.course import Course, Section
from models.enrollment import Enrollment
from models.person import Faculty, Student
from models.timeslot import TimeSlot, Weekday
from solver.scheduler import ScheduleInfeasibleError, SearchBudgetExceededError
from solver.service import SchedulingService
from storage.json_store import JsonCampusStore
from storage.memory import InMemoryCampusStore


# ─── Hilfsfunktionen ──────────────────────────────────────────────────────────

OLD = Assignment(section_id="S1", day_of_week="friday", start_time="15:15",
                 end_time="16:45", classroom_id="R1")


def make_data(capacity: int = 20) -> CampusData:
    return CampusData(
        courses=[Course(id="C1", code="CENG301", name="Algorithmen")],
        sections=[
            Section(id="S1", course_id="C1", instructor_id="F1", capacity=capacity),
            Section(id="S2", course_id="C1", section_number="2", instructor_id="F1", capacity=20),
        ],
        classrooms=[Classroom(id="R1", building="A", room_number="101", capacity=40)],
        faculty=[Faculty(id="F1", user_id="u-prof")],
        assignments=[OLD],
    )


def make_service(data: CampusData, **solver) -> SchedulingService:
    config = default_campus_config().model_copy(update={"solver": SolverConfig(**solver)})
    return SchedulingService(InMemoryCampusStore(data), config)


# ─── Tests ────────────────────────────────────────────────────────────────────

class TestGenerateSchedule:

    def test_persists_solution(self):
        service = make_service(make_data())
        solution = service.generate_schedule()
        stored = service.store.list_assignments_for_sections(["S1", "S2"])
        assert stored == solution.assignments
        assert OLD not in stored
        assert stored[0].start_time == "09:00"
        assert stored[1].start_time == "10:45", "gleiche Lehrkraft → nächster Slot"

    def test_infeasible_keeps_old_assignments(self):
        service = make_service(make_data(capacity=100))
        with pytest.raises(ScheduleInfeasibleError):
            service.generate_schedule()
        assert service.store.data.assignments == [OLD]

    def test_budget_exceeded_keeps_old_assignments(self):
        service = make_service(make_data(capacity=100), max_steps=3)
        with pytest.raises(SearchBudgetExceededError):
            service.generate_schedule()
        assert service.store.data.assignments == [OLD]

    def test_dry_run(self):
        service = make_service(make_data())
        solution = service.generate_schedule(persist=False)
        assert len(solution.assignments) == 2
        assert service.store.data.assignments == [OLD]

    def test_batch_subset(self):
        """Nur S2 wird geplant; die Zuweisung von S1 bleibt."""
        service = make_service(make_data())
        service.generate_schedule(section_ids=["S2"])
        assert OLD in service.store.data.assignments
        assert len(service.store.list_assignments_for_sections(["S2"])) == 1

    def test_batch_subset_avoids_stored_meetings(self):
        """S1 liegt gespeichert Mo 09:00 in R1; S2 hat dieselbe Lehrkraft und
        nur R1 → Mo 10:45, und der gespeicherte Gesamtplan bleibt gültig."""
        monday = OLD.model_copy(update={"day_of_week": Weekday.MONDAY,
                                        "start_time": "09:00", "end_time": "10:30"})
        service = make_service(make_data().model_copy(update={"assignments": [monday]}))

        solution = service.generate_schedule(section_ids=["S2"])

        (placed,) = solution.assignments
        assert (placed.day_of_week, placed.start_time) == (Weekday.MONDAY, "10:45")
        stored = service.store.data
        assert monday in stored.assignments
        report = SolutionValidator().validate(stored.assignments, stored)
        assert report.is_valid, [v.description for v in report.violations]

    def test_batch_subset_avoids_students_of_stored_sections(self):
        """ST1 besucht S1 (gespeichert Mo 09:00) und S3 → S3 nicht Mo 09:00."""
        data = CampusData(
            courses=[Course(id="C1", code="CENG301", name="Algorithmen")],
            sections=[
                Section(id="S1", course_id="C1", instructor_id="F1", capacity=20),
                Section(id="S3", course_id="C1", section_number="3", instructor_id="F2",
                        capacity=20),
            ],
            classrooms=[Classroom(id="R1", capacity=40), Classroom(id="R2", capacity=40)],
            students=[Student(id="ST1", user_id="u-st1")],
            enrollments=[Enrollment(student_id="ST1", section_id="S1"),
                         Enrollment(student_id="ST1", section_id="S3")],
            assignments=[Assignment(section_id="S1", day_of_week="monday", start_time="09:00",
                                    end_time="10:30", classroom_id="R1")],
        )
        service = make_service(data)
        (placed,) = service.generate_schedule(section_ids=["S3"]).assignments
        assert placed.start_time == "10:45"
        assert SolutionValidator().validate(service.store.data.assignments,
                                            service.store.data).is_valid

    def test_custom_slots(self):
        service = make_service(make_data())
        slots = [TimeSlot(day="thursday", start="08:00", end="09:00"),
                 TimeSlot(day="thursday", start="09:00", end="10:00")]
        solution = service.generate_schedule(time_slots=slots)
        assert [a.start_time for a in solution.assignments] == ["08:00", "09:00"]

    def test_fake_campus_end_to_end(self, tmp_path):
        path = tmp_path / "campus.json"
        FakeCampusGenerator(seed=3).generate().save_json(path)
        service = SchedulingService(JsonCampusStore(path))
        solution = service.generate_schedule()

        reopened = JsonCampusStore(path)
        assert reopened.data.assignments == solution.assignments
        assert "SEC-DEL" not in solution.section_ids


class TestUserViews:

    def test_weekly_and_ical(self, tmp_path):
        service = make_service(make_data())
        service.generate_schedule()

        weekly = service.get_user_schedule("u-prof", "faculty")
        assert weekly.total_meetings == 2

        out = tmp_path / "prof.ics"
        text = service.export_ical("u-prof", "faculty", date(2026, 10, 19),
                                   date(2026, 11, 1), path=out)
        assert text.count("BEGIN:VEVENT") == 4
        assert out.read_bytes().decode("utf-8") == text

    def test_ical_file_built_once(self, tmp_path, monkeypatch):
        """Mit Pfad wird der Kalender genau einmal erzeugt und unverändert geschrieben."""
        service = make_service(make_data())
        service.generate_schedule()

        calls = []
        original = IcalExporter.generate_ical

        def counting(self, *args, **kwargs):
            calls.append(args)
            return original(self, *args, **kwargs)

        monkeypatch.setattr(IcalExporter, "generate_ical", counting)
        out = tmp_path / "prof.ics"
        text = service.export_ical("u-prof", "faculty", date(2026, 10, 19),
                                   date(2026, 10, 25), path=out)
        assert len(calls) == 1
        assert out.read_bytes() == text.encode("utf-8")

    def test_ical_default_range(self):
        service = make_service(make_data())
        service.generate_schedule()
        text = service.export_ical("u-prof", "faculty", start_date=date(2026, 10, 19))
        assert text.count("BEGIN:VEVENT") == 2 * 16

    def test_unknown_user_gives_empty_calendar(self):
        service = make_service(make_data())
        text = service.export_ical("nobody", "student", date(2026, 10, 19), date(2026, 10, 25))
        assert "BEGIN:VEVENT" not in text
        assert text.startswith("BEGIN:VCALENDAR\r\n")
