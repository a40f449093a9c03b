"""CampusData: Vollständiger Datensatz + Machbarkeits-Check (Pydantic v2)."""

from collections import Counter
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from pydantic import BaseModel

from models.assignment import Assignment
from models.classroom import Classroom
from models.course import Course, Section
from models.enrollment import Enrollment, build_student_sections
from models.person import Faculty, InstructorPreference, Student
from models.timeslot import TimeSlot


class FeasibilityReport(BaseModel):
    """Ergebnis des Machbarkeits-Checks."""

    is_feasible: bool
    errors: list[str]      # Kritische Probleme (Lösung unmöglich)
    warnings: list[str]    # Hinweise (Lösung schwierig aber möglich)

    def print_rich(self) -> None:
        """Gibt den Report formatiert über Rich aus."""
        from rich.console import Console
        from rich.panel import Panel

        console = Console()
        if self.is_feasible:
            status = "[bold green]✓ LÖSBAR (Vorprüfung)[/bold green]"
        else:
            status = "[bold red]✗ NICHT LÖSBAR[/bold red]"

        lines = [status]
        if self.errors:
            lines.append("\n[red bold]Fehler (kritisch):[/red bold]")
            for e in self.errors:
                lines.append(f"  [red]• {e}[/red]")
        if self.warnings:
            lines.append("\n[yellow bold]Warnungen:[/yellow bold]")
            for w in self.warnings:
                lines.append(f"  [yellow]• {w}[/yellow]")
        if not self.errors and not self.warnings:
            lines.append("[dim]Keine Probleme gefunden.[/dim]")

        console.print(Panel("\n".join(lines), title="Machbarkeits-Check", border_style="cyan"))


class CampusData(BaseModel):
    """Vollständiger Datensatz: Kurse, Sections, Räume, Personen, Einschreibungen
    und die persistierten Zuweisungen."""

    courses: list[Course] = []
    sections: list[Section] = []
    classrooms: list[Classroom] = []
    students: list[Student] = []
    faculty: list[Faculty] = []
    enrollments: list[Enrollment] = []
    assignments: list[Assignment] = []
    created_at: Optional[datetime] = None
    modified_at: Optional[datetime] = None
    data_version: str = "1.0"

    # ─── Lookups ───

    def course_map(self) -> dict[str, Course]:
        return {c.id: c for c in self.courses}

    def section_map(self) -> dict[str, Section]:
        return {s.id: s for s in self.sections}

    def classroom_map(self) -> dict[str, Classroom]:
        return {r.id: r for r in self.classrooms}

    def instructor_preferences(self) -> dict[str, InstructorPreference]:
        """Zeitwünsche je Lehrkraft (nur Lehrende mit hinterlegtem Wunsch)."""
        return {f.id: f.preference for f in self.faculty if f.preference is not None}

    def schedulable_sections(self) -> list[Section]:
        """Nicht gelöschte Sections, Kurs-Anforderungen bereits übernommen."""
        courses = self.course_map()
        return [
            s.with_course(courses.get(s.course_id))
            for s in self.sections
            if not s.is_deleted
        ]

    # ─── Übersicht ───

    def summary(self) -> str:
        """Kurze Übersicht über den Datensatz."""
        active = sum(1 for e in self.enrollments if e.is_active)
        meetings = sum(s.meetings_per_week for s in self.sections if not s.is_deleted)
        lines = [
            f"Kurse: {len(self.courses)}",
            f"Sections: {len(self.sections)} ({meetings} Termine/Woche)",
            f"Räume: {len(self.classrooms)} "
            f"(Gesamtkapazität {sum(r.capacity for r in self.classrooms)} Plätze)",
            f"Lehrende: {len(self.faculty)}",
            f"Studierende: {len(self.students)}",
            f"Einschreibungen: {len(self.enrollments)} ({active} aktiv)",
            f"Geplante Termine: {len(self.assignments)}",
        ]
        return "\n".join(lines)

    # ─── Machbarkeits-Check ───

    def validate_feasibility(self, time_slots: list[TimeSlot]) -> FeasibilityReport:
        """Prüft ob der Datensatz grundsätzlich planbar ist (notwendige Bedingungen).

        Prüfungen:
        1. Referenzen: Kurs / Lehrkraft / Section existieren
        2. Pro Section: mindestens ein Raum mit Kapazität und Features
        3. Gesamtbilanz: Termine ≤ Slots × Räume
        4. Pro Lehrkraft: Termine ≤ Anzahl paarweise überschneidungsfreier Slots
        5. Pro Studierende: Termine ≤ Anzahl überschneidungsfreier Slots (Warnung)

        Bestehen heißt NICHT, dass eine Lösung existiert – nur dass keine
        offensichtliche Unmöglichkeit vorliegt.
        """
        errors: list[str] = []
        warnings: list[str] = []

        sections = self.schedulable_sections()
        section_ids = {s.id for s in sections}
        course_ids = {c.id for c in self.courses}
        faculty_ids = {f.id for f in self.faculty}

        if not sections:
            warnings.append("Keine planbaren Sections vorhanden.")
        if sections and not self.classrooms:
            errors.append("Keine Räume definiert.")
        if sections and not time_slots:
            errors.append("Keine Zeitslots definiert.")

        # ── 1. Referenzen ────────────────────────────────────────────────
        for s in sections:
            if s.course_id not in course_ids:
                warnings.append(f"Section {s.id}: unbekannter Kurs '{s.course_id}'.")
            if self.faculty and s.instructor_id not in faculty_ids:
                warnings.append(f"Section {s.id}: unbekannte Lehrkraft '{s.instructor_id}'.")
        known_sections = {s.id for s in self.sections}
        unknown = sorted({e.section_id for e in self.enrollments} - known_sections)
        if unknown:
            warnings.append(
                f"{len(unknown)} Einschreibung(en) verweisen auf unbekannte Sections: "
                f"{', '.join(unknown[:5])}"
            )

        # ── 2. Raum-Eignung pro Section ──────────────────────────────────
        for s in sections:
            suitable = [
                r for r in self.classrooms
                if r.capacity >= s.capacity and not r.missing_features(s.required_features)
            ]
            if self.classrooms and not suitable:
                errors.append(
                    f"Section {s.id}: kein Raum mit ≥ {s.capacity} Plätzen"
                    + (f" und Features {s.required_features}" if s.required_features else "")
                    + "."
                )
            elif suitable and len(suitable) * len(time_slots) < s.meetings_per_week:
                errors.append(
                    f"Section {s.id}: {s.meetings_per_week} Termine, aber nur "
                    f"{len(suitable) * len(time_slots)} passende Slot/Raum-Paare."
                )

        # ── 3. Gesamtbilanz ──────────────────────────────────────────────
        total_meetings = sum(s.meetings_per_week for s in sections)
        capacity = len(time_slots) * len(self.classrooms)
        if capacity and total_meetings > capacity:
            errors.append(
                f"Gesamtbilanz: {total_meetings} Termine, aber nur {capacity} "
                f"Slot/Raum-Paare ({len(time_slots)} Slots × {len(self.classrooms)} Räume)."
            )
        elif capacity and total_meetings > capacity * 0.9:
            warnings.append(
                f"Gesamtbilanz sehr knapp: {total_meetings} von {capacity} Slot/Raum-Paaren belegt."
            )

        # ── 4./5. Lehrkräfte und Studierende ─────────────────────────────
        free_slots = _max_disjoint_slots(time_slots)

        load = Counter()
        for s in sections:
            load[s.instructor_id] += s.meetings_per_week
        for instructor_id, meetings in sorted(load.items()):
            if meetings > free_slots:
                errors.append(
                    f"Lehrkraft {instructor_id}: {meetings} Termine, aber nur "
                    f"{free_slots} überschneidungsfreie Slots."
                )

        meetings_of = {s.id: s.meetings_per_week for s in sections}
        index = build_student_sections(self.enrollments, section_ids)
        for student_id, ids in sorted(index.items()):
            meetings = sum(meetings_of[i] for i in ids)
            if meetings > free_slots:
                warnings.append(
                    f"Studierende {student_id}: {meetings} Termine bei nur "
                    f"{free_slots} überschneidungsfreien Slots – Konflikt unvermeidbar."
                )

        return FeasibilityReport(
            is_feasible=len(errors) == 0,
            errors=errors,
            warnings=warnings,
        )

    # ─── Persistenz ────────────────────────────────────────────────────────

    def save_json(self, path: Path) -> None:
        """Speichert den kompletten Datensatz als JSON-Datei."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            f.write(self.stamped().model_dump_json(indent=2))

    def stamped(self) -> "CampusData":
        """Kopie mit aktualisierten Zeitstempeln."""
        now = datetime.now(timezone.utc)
        return self.model_copy(update={
            "modified_at": now,
            "created_at": self.created_at or now,
        })

    @classmethod
    def load_json(cls, path: Path) -> "CampusData":
        """Lädt einen Datensatz aus einer JSON-Datei."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"JSON-Datei nicht gefunden: {path}")
        with open(path, "r", encoding="utf-8") as f:
            return cls.model_validate_json(f.read())


def _max_disjoint_slots(time_slots: list[TimeSlot]) -> int:
    """Maximale Anzahl paarweise überschneidungsfreier Slots (Greedy pro Tag)."""
    by_day: dict = {}
    for slot in time_slots:
        by_day.setdefault(slot.day, []).append(slot)
    total = 0
    for slots in by_day.values():
        last_end = -1
        for slot in sorted(slots, key=lambda s: s.end_minutes):
            if slot.start_minutes >= last_end:
                total += 1
                last_end = slot.end_minutes
    return total
