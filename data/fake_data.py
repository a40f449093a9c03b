"""Testdaten-Generator für den Kursplaner.

Erzeugt einen realistischen Campus-Datensatz (Kurse, Sections, Räume,
Lehrende, Studierende, Einschreibungen) aus einem Seed.

Lösbarkeits-Garantien (Standard-Zeitraster mit 20 Slots):
  - Die ersten beiden Räume sind Mehrzweck-Hörsäle mit allen Features und
    mehr Plätzen als jede Section.
  - Die Summe aller Termine pro Woche überschreitet max_meetings nicht.
    Jeder bereits geplante Termin blockiert für einen neuen Termin höchstens
    einen Slot; damit findet schon die erste Suche ohne Rücknahme eine Lösung.

Bewusste Unregelmäßigkeiten:
  - einige abgebrochene / abgeschlossene Einschreibungen (nicht aktiv)
  - eine gelöschte Section (soft delete), die nie geplant werden darf
  - Zeitwünsche für einen Teil der Lehrenden
"""

import random
from datetime import datetime, timezone
from typing import Optional

from config.defaults import ROOM_FEATURES
from models.campus_data import CampusData
from models.classroom import Classroom
from models.course import Course, Section
from models.enrollment import Enrollment, EnrollmentStatus
from models.person import Faculty, InstructorPreference, Student
from models.timeslot import Weekday

# ─── Namens-Listen ────────────────────────────────────────────────────────────

_FIRST_NAMES = [
    "Andreas", "Ayşe", "Bernd", "Claudia", "Deniz", "Emre", "Eva", "Franz",
    "Gabi", "Hakan", "Iris", "Jürgen", "Kathrin", "Lena", "Mehmet", "Monika",
    "Norbert", "Olga", "Peter", "Renate", "Selin", "Stefan", "Tanja", "Ulrich",
    "Vera", "Yusuf", "Zeynep",
]

_LAST_NAMES = [
    "Müller", "Schmidt", "Yılmaz", "Fischer", "Weber", "Kaya", "Wagner",
    "Becker", "Demir", "Hoffmann", "Koch", "Şahin", "Richter", "Klein",
    "Çelik", "Neumann", "Schwarz", "Arslan", "Braun", "Krüger", "Hartmann",
]

# (Code-Präfix, Kursname)
_COURSE_CATALOG: list[tuple[str, str]] = [
    ("CENG", "Einführung in die Programmierung"),
    ("CENG", "Datenstrukturen"),
    ("CENG", "Algorithmen"),
    ("CENG", "Datenbanksysteme"),
    ("CENG", "Betriebssysteme"),
    ("CENG", "Rechnernetze"),
    ("MATH", "Analysis I"),
    ("MATH", "Lineare Algebra"),
    ("MATH", "Stochastik"),
    ("PHYS", "Experimentalphysik"),
    ("PHYS", "Physik-Praktikum"),
    ("CHEM", "Allgemeine Chemie"),
    ("ECON", "Mikroökonomie"),
    ("ENGL", "Academic English"),
    ("HIST", "Wissenschaftsgeschichte"),
    ("ARCH", "Entwurf und Darstellung"),
]

_BUILDINGS = ["A", "B", "C", "D"]


class FakeCampusGenerator:
    """Generiert vollständige Testdaten als CampusData."""

    def __init__(
        self,
        seed: Optional[int] = None,
        num_courses: int = 12,
        num_faculty: int = 6,
        num_classrooms: int = 8,
        num_students: int = 60,
        enrollments_per_student: int = 3,
        max_meetings: int = 20,
    ) -> None:
        if num_courses > len(_COURSE_CATALOG):
            raise ValueError(f"Höchstens {len(_COURSE_CATALOG)} Kurse möglich")
        if num_classrooms < 2:
            raise ValueError("Mindestens 2 Räume erforderlich")
        self.rng = random.Random(seed)
        self.num_courses = num_courses
        self.num_faculty = max(1, num_faculty)
        self.num_classrooms = num_classrooms
        self.num_students = num_students
        self.enrollments_per_student = enrollments_per_student
        self.max_meetings = max_meetings

    # ─── Kurse ────────────────────────────────────────────────────────────────

    def _generate_courses(self) -> list[Course]:
        courses = []
        features = list(ROOM_FEATURES)
        for i, (prefix, name) in enumerate(_COURSE_CATALOG[:self.num_courses]):
            required: list[str] = []
            if self.rng.random() < 0.3:
                required = [self.rng.choice(features)]
            courses.append(Course(
                id=f"C{i + 1:02d}",
                code=f"{prefix}{100 + (i + 1) * 3}",
                name=name,
                required_features=required,
                is_required=self.rng.random() < 0.4,
            ))
        return courses

    # ─── Räume ────────────────────────────────────────────────────────────────

    def _generate_classrooms(self) -> list[Classroom]:
        rooms = []
        for i in range(self.num_classrooms):
            building = _BUILDINGS[i % len(_BUILDINGS)]
            number = f"{1 + i // len(_BUILDINGS)}{i % 10:02d}"
            if i < 2:
                # Mehrzweck-Hörsaal: alle Features, größer als jede Section
                capacity = 150
                features = {f: True for f in ROOM_FEATURES}
            else:
                capacity = self.rng.choice([20, 30, 40, 60, 80])
                features = {
                    f: self.rng.random() < 0.4 for f in ROOM_FEATURES
                }
                features["whiteboard"] = True
            rooms.append(Classroom(
                id=f"R{i + 1:02d}",
                building=building,
                room_number=number,
                capacity=capacity,
                features=features,
            ))
        return rooms

    # ─── Personen ─────────────────────────────────────────────────────────────

    def _name(self) -> str:
        return f"{self.rng.choice(_FIRST_NAMES)} {self.rng.choice(_LAST_NAMES)}"

    def _generate_faculty(self) -> list[Faculty]:
        faculty = []
        for i in range(self.num_faculty):
            preference = None
            if self.rng.random() < 0.5:
                days = self.rng.sample(list(Weekday)[:5], k=3)
                preference = InstructorPreference(
                    preferred_days=sorted(days, key=lambda d: d.python_weekday),
                    earliest_start=self.rng.choice([None, "10:00", "10:45"]),
                    latest_end=self.rng.choice([None, "15:00", "16:45"]),
                )
            faculty.append(Faculty(
                id=f"F{i + 1:02d}",
                user_id=f"u-f{i + 1}",
                name=self._name(),
                preference=preference,
            ))
        return faculty

    def _generate_students(self) -> list[Student]:
        return [
            Student(id=f"S{i + 1:03d}", user_id=f"u-s{i + 1}", name=self._name())
            for i in range(self.num_students)
        ]

    # ─── Sections ─────────────────────────────────────────────────────────────

    def _generate_sections(self, courses: list[Course], faculty: list[Faculty]) -> list[Section]:
        sections = []
        meetings = 0
        for i, course in enumerate(courses):
            if meetings >= self.max_meetings:
                break
            count = 2 if self.rng.random() < 0.25 else 1
            count = min(count, self.max_meetings - meetings)
            meetings += count
            sections.append(Section(
                id=f"SEC{i + 1:02d}",
                course_id=course.id,
                section_number="1",
                instructor_id=faculty[i % len(faculty)].id,
                capacity=self.rng.randint(15, 60),
                meetings_per_week=count,
                term="2026-WS",
            ))
        if courses:
            # gelöschte Parallel-Section des ersten Kurses
            sections.append(Section(
                id="SEC-DEL",
                course_id=courses[0].id,
                section_number="2",
                instructor_id=faculty[0].id,
                capacity=30,
                term="2026-WS",
                deleted_at=datetime(2026, 9, 1, tzinfo=timezone.utc),
            ))
        return sections

    def _generate_enrollments(
        self, students: list[Student], sections: list[Section]
    ) -> list[Enrollment]:
        active_sections = [s for s in sections if not s.is_deleted]
        if not active_sections:
            return []
        enrollments = []
        k = min(self.enrollments_per_student, len(active_sections))
        for student in students:
            for section in self.rng.sample(active_sections, k=k):
                roll = self.rng.random()
                if roll < 0.08:
                    status = EnrollmentStatus.DROPPED
                elif roll < 0.12:
                    status = EnrollmentStatus.COMPLETED
                else:
                    status = EnrollmentStatus.ACTIVE
                enrollments.append(Enrollment(
                    student_id=student.id, section_id=section.id, status=status,
                ))
        return enrollments

    # ─── Vollständiger Datensatz ──────────────────────────────────────────────

    def generate(self) -> CampusData:
        """Erzeugt den vollständigen Datensatz als CampusData-Objekt."""
        courses = self._generate_courses()
        classrooms = self._generate_classrooms()
        faculty = self._generate_faculty()
        students = self._generate_students()
        sections = self._generate_sections(courses, faculty)
        enrollments = self._generate_enrollments(students, sections)
        return CampusData(
            courses=courses,
            sections=sections,
            classrooms=classrooms,
            faculty=faculty,
            students=students,
            enrollments=enrollments,
        )

    # ─── Ausgabe ──────────────────────────────────────────────────────────────

    def print_summary(self, data: CampusData) -> None:
        """Gibt eine Rich-Tabelle mit Übersicht der erzeugten Daten aus."""
        from rich.console import Console
        from rich.table import Table
        from rich import box

        console = Console()
        table = Table(title="Erzeugte Testdaten", box=box.ROUNDED)
        table.add_column("Kategorie", style="bold cyan")
        table.add_column("Anzahl", justify="right")
        table.add_column("Details")

        active = [s for s in data.sections if not s.is_deleted]
        meetings = sum(s.meetings_per_week for s in active)
        required = sum(1 for c in data.courses if c.is_required)
        with_pref = sum(1 for f in data.faculty if f.preference is not None)
        active_enr = sum(1 for e in data.enrollments if e.is_active)

        table.add_row("Kurse", str(len(data.courses)), f"{required} Pflicht")
        table.add_row("Sections", str(len(data.sections)),
                      f"{len(active)} aktiv, {meetings} Termine/Woche")
        table.add_row("Räume", str(len(data.classrooms)),
                      f"{sum(r.capacity for r in data.classrooms)} Plätze")
        table.add_row("Lehrende", str(len(data.faculty)), f"{with_pref} mit Zeitwünschen")
        table.add_row("Studierende", str(len(data.students)), "")
        table.add_row("Einschreibungen", str(len(data.enrollments)), f"{active_enr} aktiv")

        console.print(table)
