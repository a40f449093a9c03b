"""Post-Solve Validierung der fertigen Zuweisungen.

Prüft die fertige Lösung auf Constraint-Verletzungen als Sicherheitsnetz
unabhängig vom Solver. Es wird paarweise über alle Termine geprüft und nicht
über die Kandidaten-Prädikate des Solvers.
"""

from collections import Counter, defaultdict
from itertools import combinations
from typing import Iterable, Literal, Optional

from pydantic import BaseModel

from models.assignment import Assignment
from models.campus_data import CampusData
from models.enrollment import build_student_sections


class ValidationViolation(BaseModel):
    """Eine einzelne Constraint-Verletzung."""

    severity: Literal["error", "warning"]
    constraint: str      # z.B. "classroom_double_booking"
    description: str
    entity: str          # section_id / classroom_id / instructor_id / student_id


class ValidationReport(BaseModel):
    """Ergebnis der Post-Solve Validierung."""

    violations: list[ValidationViolation]
    is_valid: bool       # True wenn keine Errors (Warnings ok)

    def by_constraint(self, constraint: str) -> list[ValidationViolation]:
        return [v for v in self.violations if v.constraint == constraint]

    def print_rich(self) -> None:
        """Gibt den Report formatiert über Rich aus."""
        from rich.console import Console
        from rich.panel import Panel
        from rich.table import Table
        from rich import box

        console = Console()
        errors = [v for v in self.violations if v.severity == "error"]
        warnings = [v for v in self.violations if v.severity == "warning"]

        status = (
            "[bold green]✓ VALIDE[/bold green]"
            if self.is_valid
            else "[bold red]✗ VERLETZUNGEN GEFUNDEN[/bold red]"
        )
        lines = [status, f"Fehler: {len(errors)} | Warnungen: {len(warnings)}"]
        console.print(Panel("\n".join(lines), title="Lösung-Validierung", border_style="cyan"))

        if not self.violations:
            console.print("[dim]Keine Verletzungen gefunden.[/dim]")
            return

        table = Table(box=box.ROUNDED, show_lines=True)
        table.add_column("Typ", width=8)
        table.add_column("Constraint", width=30)
        table.add_column("Entität", width=12)
        table.add_column("Beschreibung")

        for v in self.violations:
            color = "red" if v.severity == "error" else "yellow"
            table.add_row(
                f"[{color}]{v.severity.upper()}[/{color}]",
                v.constraint,
                v.entity,
                v.description,
            )
        console.print(table)


def _describe(a: Assignment) -> str:
    return f"{a.section_id}#{a.meeting_index} ({a.time_slot})"


class SolutionValidator:
    """Prüft eine Zuweisungsliste gegen den Datensatz."""

    def validate(
        self,
        assignments: list[Assignment],
        data: CampusData,
        section_ids: Optional[Iterable[str]] = None,
    ) -> ValidationReport:
        """Führt alle Validierungschecks durch und gibt einen ValidationReport zurück.

        Args:
            assignments: zu prüfende Termine (z.B. ScheduleSolution.assignments)
            data: Datensatz mit Sections, Räumen und Einschreibungen
            section_ids: Batch, dessen Termine vollständig sein müssen
                (Default: alle planbaren Sections)
        """
        sections = {s.id: s for s in data.schedulable_sections()}
        if section_ids is None:
            expected = list(sections)
        else:
            expected = list(section_ids)

        violations: list[ValidationViolation] = []
        violations.extend(self._check_references(assignments, data, sections))

        known = [a for a in assignments if a.section_id in sections]
        violations.extend(self._check_classroom_double_booking(known))
        violations.extend(self._check_instructor_double_booking(known, sections))
        violations.extend(self._check_student_conflicts(known, data))
        violations.extend(self._check_rooms(known, data, sections))
        violations.extend(self._check_meeting_counts(known, sections, expected))

        has_errors = any(v.severity == "error" for v in violations)
        return ValidationReport(violations=violations, is_valid=not has_errors)

    # ── Einzelne Prüfungen ────────────────────────────────────────────────────

    def _check_references(self, assignments, data, sections) -> list[ValidationViolation]:
        """Termine müssen auf planbare Sections und existierende Räume verweisen."""
        violations: list[ValidationViolation] = []
        rooms = data.classroom_map()
        for a in assignments:
            if a.section_id not in sections:
                violations.append(ValidationViolation(
                    severity="error",
                    constraint="unknown_section",
                    entity=a.section_id,
                    description=f"Termin {_describe(a)} verweist auf keine planbare Section.",
                ))
            if a.classroom_id not in rooms:
                violations.append(ValidationViolation(
                    severity="error",
                    constraint="unknown_classroom",
                    entity=a.classroom_id,
                    description=f"Termin {_describe(a)} verweist auf unbekannten Raum.",
                ))
        return violations

    def _check_classroom_double_booking(self, assignments) -> list[ValidationViolation]:
        """Kein Raum darf überlappend belegt sein."""
        by_room: dict[str, list[Assignment]] = defaultdict(list)
        for a in assignments:
            by_room[a.classroom_id].append(a)

        violations: list[ValidationViolation] = []
        for room_id, entries in by_room.items():
            for a, b in combinations(entries, 2):
                if a.overlaps(b):
                    violations.append(ValidationViolation(
                        severity="error",
                        constraint="classroom_double_booking",
                        entity=room_id,
                        description=f"{_describe(a)} überlappt {_describe(b)}.",
                    ))
        return violations

    def _check_instructor_double_booking(self, assignments, sections) -> list[ValidationViolation]:
        """Keine Lehrkraft darf in zwei überlappenden Terminen sein."""
        by_instructor: dict[str, list[Assignment]] = defaultdict(list)
        for a in assignments:
            by_instructor[sections[a.section_id].instructor_id].append(a)

        violations: list[ValidationViolation] = []
        for instructor_id, entries in by_instructor.items():
            for a, b in combinations(entries, 2):
                if a.overlaps(b):
                    violations.append(ValidationViolation(
                        severity="error",
                        constraint="instructor_double_booking",
                        entity=instructor_id,
                        description=f"{_describe(a)} überlappt {_describe(b)}.",
                    ))
        return violations

    def _check_student_conflicts(self, assignments, data) -> list[ValidationViolation]:
        """Aktiv eingeschriebene Studierende dürfen keine Überschneidung haben."""
        by_section: dict[str, list[Assignment]] = defaultdict(list)
        for a in assignments:
            by_section[a.section_id].append(a)

        index = build_student_sections(data.enrollments, set(by_section))
        violations: list[ValidationViolation] = []
        for student_id, section_ids in sorted(index.items()):
            for first, second in combinations(section_ids, 2):
                clash = next(
                    ((a, b) for a in by_section[first] for b in by_section[second]
                     if a.overlaps(b)),
                    None,
                )
                if clash is not None:
                    a, b = clash
                    violations.append(ValidationViolation(
                        severity="error",
                        constraint="student_schedule_conflict",
                        entity=student_id,
                        description=f"{_describe(a)} überlappt {_describe(b)}.",
                    ))
        return violations

    def _check_rooms(self, assignments, data, sections) -> list[ValidationViolation]:
        """Kapazität und Ausstattung des zugewiesenen Raums."""
        rooms = data.classroom_map()
        violations: list[ValidationViolation] = []
        for a in assignments:
            room = rooms.get(a.classroom_id)
            if room is None:
                continue
            section = sections[a.section_id]
            if room.capacity < section.capacity:
                violations.append(ValidationViolation(
                    severity="error",
                    constraint="classroom_capacity",
                    entity=section.id,
                    description=(
                        f"Raum {room.label} hat {room.capacity} Plätze, "
                        f"Section braucht {section.capacity}."
                    ),
                ))
            missing = room.missing_features(section.required_features)
            if missing:
                violations.append(ValidationViolation(
                    severity="error",
                    constraint="classroom_features",
                    entity=section.id,
                    description=f"Raum {room.label} fehlt: {', '.join(missing)}.",
                ))
        return violations

    def _check_meeting_counts(self, assignments, sections, expected) -> list[ValidationViolation]:
        """Jede Section des Batches hat genau ihre Termine, jeden einmal."""
        keys = Counter(a.key for a in assignments)
        violations: list[ValidationViolation] = []

        for (section_id, meeting), count in sorted(keys.items()):
            if count > 1:
                violations.append(ValidationViolation(
                    severity="error",
                    constraint="duplicate_meeting",
                    entity=section_id,
                    description=f"Termin #{meeting} ist {count}× zugewiesen.",
                ))

        for section_id in expected:
            section = sections.get(section_id)
            if section is None:
                continue
            missing = [
                m for m in range(section.meetings_per_week)
                if (section_id, m) not in keys
            ]
            if missing:
                violations.append(ValidationViolation(
                    severity="error",
                    constraint="missing_meeting",
                    entity=section_id,
                    description=(
                        f"{len(missing)} von {section.meetings_per_week} Terminen "
                        f"nicht zugewiesen."
                    ),
                ))
            extra = sorted(
                m for (sid, m) in keys
                if sid == section_id and m >= section.meetings_per_week
            )
            if extra:
                violations.append(ValidationViolation(
                    severity="warning",
                    constraint="unexpected_meeting",
                    entity=section_id,
                    description=f"Termine {extra} über meetings_per_week hinaus.",
                ))
        return violations
