"""Tests für Wochenansicht, iCal-Export und Terminal-Renderer."""

from datetime import date, datetime, timedelta, timezone

import pytest

from config.schema import CalendarConfig
from export.helpers import build_time_rows, format_entry, parse_date
from export.ical_export import (
    IcalExporter,
    escape_text,
    first_occurrence,
    fold_line,
    format_utc_offset,
    generate_ical,
)
from export.tui_renderer import render_weekly_rows
from export.weekly_view import ClassroomRef, WeeklyEntry, WeeklySchedule, WeeklyScheduleBuilder
from models.assignment import Assignment
from models.campus_data import CampusData
from models.classroom import Classroom
from models.course import Course, Section
from models.enrollment import Enrollment, EnrollmentStatus
from models.person import Faculty, Student, UserRole
from models.timeslot import ALL_WEEKDAYS, Weekday
from storage.memory import InMemoryCampusStore


# ─── Testdaten-Hilfsfunktionen ────────────────────────────────────────────────

def _make_campus() -> CampusData:
    """Zwei Kurse, eine Lehrkraft, ein Studierender mit zwei aktiven und einer
    abgebrochenen Einschreibung; eine gelöschte Section."""
    courses = [
        Course(id="C1", code="CENG301", name="Algorithmen"),
        Course(id="C2", code="MATH101", name="Analysis I"),
        Course(id="C3", code="HIST200", name="Geschichte"),
    ]
    sections = [
        Section(id="S1", course_id="C1", section_number="1", instructor_id="F1", capacity=30),
        Section(id="S2", course_id="C2", section_number="2", instructor_id="F1", capacity=30),
        Section(id="S3", course_id="C3", section_number="1", instructor_id="F2", capacity=30),
        Section(id="S4", course_id="C1", section_number="9", instructor_id="F1", capacity=30,
                deleted_at=datetime(2026, 9, 1, tzinfo=timezone.utc)),
    ]
    classrooms = [
        Classroom(id="R1", building="A", room_number="101", capacity=40),
        Classroom(id="R2", building="B", room_number="202", capacity=40),
    ]
    assignments = [
        Assignment(section_id="S1", day_of_week="monday", start_time="13:30",
                   end_time="15:00", classroom_id="R1"),
        Assignment(section_id="S2", day_of_week="monday", start_time="09:00",
                   end_time="10:30", classroom_id="R2"),
        Assignment(section_id="S3", day_of_week="tuesday", start_time="09:00",
                   end_time="10:30", classroom_id="R1"),
        Assignment(section_id="S4", day_of_week="wednesday", start_time="09:00",
                   end_time="10:30", classroom_id="R1"),
    ]
    return CampusData(
        courses=courses,
        sections=sections,
        classrooms=classrooms,
        students=[Student(id="ST1", user_id="u-student")],
        faculty=[Faculty(id="F1", user_id="u-prof"), Faculty(id="F2", user_id="u-other")],
        enrollments=[
            Enrollment(student_id="ST1", section_id="S1"),
            Enrollment(student_id="ST1", section_id="S2"),
            Enrollment(student_id="ST1", section_id="S3", status=EnrollmentStatus.DROPPED),
            Enrollment(student_id="ST1", section_id="S4"),
        ],
        assignments=assignments,
    )


@pytest.fixture
def builder() -> WeeklyScheduleBuilder:
    return WeeklyScheduleBuilder(InMemoryCampusStore(_make_campus()))


def _monday_meeting() -> WeeklySchedule:
    weekly = WeeklySchedule.empty()
    weekly.days[Weekday.MONDAY].append(WeeklyEntry(
        section_id="S1", section_number="1", course_code="CENG301",
        course_name="Algorithmen", day=Weekday.MONDAY, start_time="09:00",
        end_time="10:30", classroom=ClassroomRef(id="R1", building="A", room_number="101"),
    ))
    return weekly


def _unfold(text: str) -> list[str]:
    return text.replace("\r\n ", "").split("\r\n")


# ─── Wochenansicht ────────────────────────────────────────────────────────────

class TestWeeklyView:

    def test_all_seven_days_present(self, builder):
        weekly = builder.get_user_schedule("u-student", "student")
        assert list(weekly.days) == ALL_WEEKDAYS

    def test_sorted_by_start_minutes(self, builder):
        """13:30 und 09:00 am selben Tag → 09:00 zuerst."""
        weekly = builder.get_user_schedule("u-student", UserRole.STUDENT)
        monday = weekly.days[Weekday.MONDAY]
        assert [e.start_time for e in monday] == ["09:00", "13:30"]
        assert monday[0].course_code == "MATH101"
        assert monday[0].classroom.building == "B"
        assert monday[0].section_number == "2"

    def test_numeric_not_lexical_sort(self):
        entries = [
            WeeklyEntry(section_id=f"S{i}", section_number="1", course_code="X",
                        course_name="", day=Weekday.MONDAY, start_time=start,
                        end_time=end, classroom=ClassroomRef(id="R1"))
            for i, (start, end) in enumerate([("10:45", "12:15"), ("9:00", "10:30")])
        ]
        ordered = sorted(entries, key=lambda e: e.sort_key)
        assert ordered[0].start_time == "9:00"

    def test_student_only_active_enrollments(self, builder):
        weekly = builder.get_user_schedule("u-student", "student")
        section_ids = {e.section_id for e in weekly.entries()}
        assert section_ids == {"S1", "S2"}, "abgebrochene und gelöschte Sections fehlen"

    def test_faculty_non_deleted_sections(self, builder):
        weekly = builder.get_user_schedule("u-prof", "Faculty")
        assert {e.section_id for e in weekly.entries()} == {"S1", "S2"}
        assert weekly.total_meetings == 2

    @pytest.mark.parametrize("user_id,role", [
        ("u-student", "admin"),
        ("nobody", "student"),
        ("nobody", "faculty"),
        ("u-student", "faculty"),
    ])
    def test_unknown_role_or_profile_is_empty(self, builder, user_id, role):
        weekly = builder.get_user_schedule(user_id, role)
        assert weekly.is_empty
        assert len(weekly.days) == 7


# ─── iCal ─────────────────────────────────────────────────────────────────────

class TestIcalExport:

    STAMP = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)

    def test_four_mondays_from_wednesday(self):
        """Montag-Termin, 4 Wochen ab Mittwoch → 4 Events, je 7 Tage auseinander."""
        start = date(2026, 10, 21)   # Mittwoch
        end = start + timedelta(weeks=4) - timedelta(days=1)
        text = IcalExporter().generate_ical(_monday_meeting(), start, end, self.STAMP)

        assert text.count("BEGIN:VEVENT") == 4
        starts = [
            datetime.strptime(line.split(":", 1)[1], "%Y%m%dT%H%M%S")
            for line in _unfold(text) if line.startswith("DTSTART")
        ]
        assert len(starts) == 4
        assert all(s.weekday() == 0 for s in starts)
        assert all(b - a == timedelta(days=7) for a, b in zip(starts, starts[1:]))
        assert starts[0] == datetime(2026, 10, 26, 9, 0)

    def test_document_structure(self):
        text = IcalExporter().generate_ical(
            _monday_meeting(), date(2026, 10, 19), date(2026, 10, 19), self.STAMP,
        )
        lines = _unfold(text)
        assert lines[0] == "BEGIN:VCALENDAR"
        assert "VERSION:2.0" in lines
        assert "PRODID:-//Campus Management System//EN" in lines
        assert lines[-2] == "END:VCALENDAR"
        assert lines[-1] == ""
        assert "UID:S1-20261019@campus.edu.tr" in lines
        assert "DTSTAMP:20261019T120000Z" in lines
        assert "DTSTART:20261019T090000" in lines
        assert "DTEND:20261019T103000" in lines
        assert "SUMMARY:CENG301 - Algorithmen" in lines
        assert "LOCATION:A 101" in lines
        assert "DESCRIPTION:Section 1" in lines

    def test_crlf_line_endings(self):
        text = generate_ical(_monday_meeting(), date(2026, 10, 19), date(2026, 10, 19))
        assert "\n" not in text.replace("\r\n", "")

    def test_range_is_inclusive(self):
        text = IcalExporter().generate_ical(
            _monday_meeting(), date(2026, 10, 19), date(2026, 11, 2), self.STAMP,
        )
        assert text.count("BEGIN:VEVENT") == 3

    def test_no_occurrence_in_range(self):
        text = IcalExporter().generate_ical(
            _monday_meeting(), date(2026, 10, 20), date(2026, 10, 25), self.STAMP,
        )
        assert "BEGIN:VEVENT" not in text

    def test_end_before_start_raises(self):
        with pytest.raises(ValueError):
            IcalExporter().generate_ical(_monday_meeting(), date(2026, 10, 20), date(2026, 10, 19))

    def test_uids_unique(self):
        weekly = _monday_meeting()
        second = weekly.days[Weekday.MONDAY][0].model_copy(
            update={"meeting_index": 1, "start_time": "13:30", "end_time": "15:00"}
        )
        weekly.days[Weekday.MONDAY].append(second)
        text = IcalExporter().generate_ical(
            weekly, date(2026, 10, 19), date(2026, 11, 15), self.STAMP,
        )
        uids = [line for line in _unfold(text) if line.startswith("UID:")]
        assert len(uids) == 8
        assert len(set(uids)) == 8

    def test_timezone(self):
        config = CalendarConfig(timezone="Europe/Istanbul")
        text = IcalExporter(config).generate_ical(
            _monday_meeting(), date(2026, 10, 19), date(2026, 10, 19), self.STAMP,
        )
        lines = _unfold(text)
        assert "DTSTART;TZID=Europe/Istanbul:20261019T090000" in lines
        assert "X-WR-TIMEZONE:Europe/Istanbul" in lines
        # Jede referenzierte TZID braucht eine VTIMEZONE vor den Events
        block = lines[lines.index("BEGIN:VTIMEZONE"):lines.index("END:VTIMEZONE") + 1]
        assert block[1] == "TZID:Europe/Istanbul"
        assert "TZOFFSETFROM:+0300" in block
        assert "TZOFFSETTO:+0300" in block
        assert block.count("BEGIN:STANDARD") == 1
        assert lines.index("END:VTIMEZONE") < lines.index("BEGIN:VEVENT")

    def test_timezone_with_dst_change(self):
        """Europe/Berlin stellt am 25.10.2026 um 03:00 Sommerzeit auf Winterzeit."""
        config = CalendarConfig(timezone="Europe/Berlin")
        lines = _unfold(IcalExporter(config).generate_ical(
            _monday_meeting(), date(2026, 10, 19), date(2026, 11, 1), self.STAMP,
        ))
        block = lines[lines.index("BEGIN:VTIMEZONE"):lines.index("END:VTIMEZONE") + 1]
        daylight = block[block.index("BEGIN:DAYLIGHT"):block.index("END:DAYLIGHT")]
        standard = block[block.index("BEGIN:STANDARD"):block.index("END:STANDARD")]
        assert "TZOFFSETTO:+0200" in daylight
        assert standard[1:4] == [
            "DTSTART:20261025T030000", "TZOFFSETFROM:+0200", "TZOFFSETTO:+0100",
        ]

    def test_without_timezone_no_vtimezone(self):
        text = generate_ical(_monday_meeting(), date(2026, 10, 19), date(2026, 10, 19))
        assert "VTIMEZONE" not in text
        assert "TZID" not in text

    def test_unknown_timezone_rejected(self):
        with pytest.raises(ValueError, match="Zeitzone"):
            CalendarConfig(timezone="Mars/Olympus_Mons")

    def test_utc_offset_format(self):
        assert format_utc_offset(timedelta(hours=3)) == "+0300"
        assert format_utc_offset(timedelta(hours=-4, minutes=-30)) == "-0430"
        assert format_utc_offset(timedelta(0)) == "+0000"

    def test_escaping(self):
        assert escape_text("Algorithmen, Teil 1; Übung\\n") == "Algorithmen\\, Teil 1\\; Übung\\\\n"
        assert escape_text("a\nb") == "a\\nb"

    def test_folding_at_75_octets(self):
        line = "SUMMARY:" + "ä" * 80
        folded = fold_line(line)
        physical = folded.split("\r\n")
        assert len(physical) > 1
        assert all(len(p.encode("utf-8")) <= 75 for p in physical)
        assert all(p.startswith(" ") for p in physical[1:])
        assert folded.replace("\r\n ", "") == line

    def test_first_occurrence(self):
        assert first_occurrence(date(2026, 10, 21), Weekday.MONDAY) == date(2026, 10, 26)
        assert first_occurrence(date(2026, 10, 21), Weekday.WEDNESDAY) == date(2026, 10, 21)

    def test_export_writes_file(self, tmp_path):
        path = IcalExporter().export(
            _monday_meeting(), date(2026, 10, 19), date(2026, 10, 19),
            tmp_path / "cal" / "u.ics", self.STAMP,
        )
        raw = path.read_bytes()
        assert raw.startswith(b"BEGIN:VCALENDAR\r\n")
        assert raw.count(b"BEGIN:VEVENT") == 1

    def test_default_range(self):
        start, end = IcalExporter(CalendarConfig(default_weeks=16)).default_range(date(2026, 10, 19))
        assert start == date(2026, 10, 19)
        assert (end - start).days == 16 * 7 - 1


# ─── Renderer / Helpers ───────────────────────────────────────────────────────

class TestRenderer:

    def test_rows_and_days(self, builder):
        weekly = builder.get_user_schedule("u-student", "student")
        days, rows = render_weekly_rows(weekly)
        assert days == [Weekday.MONDAY]
        assert [r[0] for r in rows] == ["09:00–10:30", "13:30–15:00"]
        assert rows[0][1].startswith("MATH101")

    def test_time_rows_sorted(self):
        weekly = _monday_meeting()
        assert build_time_rows(weekly) == [("09:00", "10:30")]

    def test_format_entry_faculty(self):
        entry = _monday_meeting().days[Weekday.MONDAY][0]
        assert format_entry(entry, "faculty") == "CENG301 (1)\nA 101"

    def test_parse_date(self):
        assert parse_date("2026-10-21") == date(2026, 10, 21)
        assert parse_date("21.10.2026") == date(2026, 10, 21)
        with pytest.raises(ValueError):
            parse_date("21/10/2026")
