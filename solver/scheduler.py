"""Backtracking-Solver für die Raum- und Zeitplanung von Sections.

Architektur:
  - Suchvariablen: ein Termin pro (Section, meeting_index), Reihenfolge = Eingabe
  - Wertebereich: Kartesisches Produkt Slots × Räume (Slot-major, Eingabereihenfolge)
  - Tiefensuche mit chronologischem Rückbau über einen expliziten Stapel von
    Kandidaten-Iteratoren; die erste vollständige Lösung gewinnt
  - Bereits gespeicherte Termine außerhalb des Batches gehen als feste Belegung ein
  - Harte Constraints über solver.constraints.is_feasible
  - Optionales Suchbudget (Schritte / Zeit) und Nachoptimierung
"""

import time
import logging
from dataclasses import dataclass, field
from itertools import product
from pathlib import Path
from typing import Iterable, Mapping, Optional

from pydantic import BaseModel

from config.schema import SolverConfig
from models.assignment import Assignment
from models.classroom import Classroom
from models.course import Section
from models.enrollment import Enrollment, build_student_sections
from models.person import InstructorPreference
from models.timeslot import TimeSlot
from solver.constraints import MeetingKey, is_feasible
from solver.optimizer import ScheduleOptimizer
from solver.soft_constraints import score_schedule, slot_days

logger = logging.getLogger(__name__)


# ─── Fehler ───────────────────────────────────────────────────────────────────

class SchedulingError(Exception):
    """Basisklasse aller Fehler der Stundenplan-Suche."""


class ScheduleInfeasibleError(SchedulingError):
    """Die Suche hat alle Möglichkeiten erschöpft: keine gültige Lösung."""

    def __init__(self, message: str = "", section_id: Optional[str] = None, steps: int = 0) -> None:
        super().__init__(
            message or "Could not generate valid schedule with given constraints"
        )
        self.section_id = section_id
        self.steps = steps


class SearchBudgetExceededError(SchedulingError):
    """Suchbudget (Schritte oder Zeit) aufgebraucht – Unlösbarkeit NICHT bewiesen."""

    def __init__(self, message: str, steps: int = 0, elapsed: float = 0.0) -> None:
        super().__init__(message)
        self.steps = steps
        self.elapsed = elapsed


class InvalidScheduleInputError(SchedulingError, ValueError):
    """Eingaben verletzen den Aufruf-Vertrag (leere Listen, doppelte IDs, …)."""


# ─── Ergebnis-Modelle ─────────────────────────────────────────────────────────

class ScheduleSolution(BaseModel):
    """Vollständige Lösung des Solvers."""

    assignments: list[Assignment]
    solver_status: str            # "FEASIBLE" (bzw. "EMPTY" bei leerem Batch)
    steps: int                    # geprüfte Kandidaten-Paare
    backtracks: int               # zurückgenommene Zuweisungen
    solve_time_seconds: float
    optimized: bool = False
    soft_score_before: Optional[float] = None
    soft_score_after: Optional[float] = None

    @property
    def section_ids(self) -> list[str]:
        return list(dict.fromkeys(a.section_id for a in self.assignments))

    def get_section_assignments(self, section_id: str) -> list[Assignment]:
        """Alle Termine einer Section."""
        return [a for a in self.assignments if a.section_id == section_id]

    def get_classroom_assignments(self, classroom_id: str) -> list[Assignment]:
        """Alle Termine in einem Raum."""
        return [a for a in self.assignments if a.classroom_id == classroom_id]

    def save_json(self, path: Path) -> None:
        """Speichert die Lösung als JSON-Datei."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            f.write(self.model_dump_json(indent=2))

    @classmethod
    def load_json(cls, path: Path) -> "ScheduleSolution":
        """Lädt eine gespeicherte Lösung aus JSON."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Lösung nicht gefunden: {path}")
        with open(path, "r", encoding="utf-8") as f:
            return cls.model_validate_json(f.read())


# ─── Suchzustand ──────────────────────────────────────────────────────────────

@dataclass
class SearchState:
    """Veränderlicher Zustand genau eines solve()-Aufrufs."""

    variables: list[tuple[Section, int]]
    committed: dict[MeetingKey, Assignment] = field(default_factory=dict)
    steps: int = 0
    backtracks: int = 0
    deepest: int = 0
    started: float = field(default_factory=time.monotonic)
    deadline: Optional[float] = None

    @property
    def elapsed(self) -> float:
        return time.monotonic() - self.started


# ─── Haupt-Solver ─────────────────────────────────────────────────────────────

class ScheduleSolver:
    """Backtracking-Solver.

    Verwendung:
        solver = ScheduleSolver(config.solver)
        solution = solver.solve(sections, classrooms, time_slots, enrollments)
    """

    def __init__(self, config: Optional[SolverConfig] = None) -> None:
        self.config = config or SolverConfig()

    # ─── Öffentliche API ──────────────────────────────────────────────────────

    def solve(
        self,
        sections: list[Section],
        classrooms: list[Classroom],
        time_slots: list[TimeSlot],
        enrollments: Iterable[Enrollment] = (),
        instructor_preferences: Optional[Mapping[str, InstructorPreference]] = None,
        fixed: Iterable[Assignment] = (),
        fixed_sections: Iterable[Section] = (),
    ) -> ScheduleSolution:
        """Ordnet jedem Termin jeder Section genau ein (Slot, Raum)-Paar zu.

        Args:
            fixed: gespeicherte Termine außerhalb des Batches. Sie belegen Räume,
                Lehrkräfte und Studierende, werden aber nie verschoben und sind
                nicht Teil der Lösung.
            fixed_sections: Sections zu `fixed` (Lehrkraft-Abgleich)

        Raises:
            InvalidScheduleInputError: leere Raum-/Slot-Liste, doppelte Section-IDs
            ScheduleInfeasibleError: keine gültige Gesamtlösung
            SearchBudgetExceededError: Budget aufgebraucht, bevor die Suche fertig war
        """
        t0 = time.monotonic()
        self._validate_input(sections, classrooms, time_slots)

        if not sections:
            return ScheduleSolution(
                assignments=[], solver_status="EMPTY", steps=0, backtracks=0,
                solve_time_seconds=0.0,
            )

        fixed = list(fixed)
        section_map = {s.id: s for s in fixed_sections}
        section_map.update((s.id, s) for s in sections)
        stray = sorted({a.section_id for a in fixed} & {s.id for s in sections})
        if stray:
            raise InvalidScheduleInputError(
                f"Feste Termine für Sections im Batch: {', '.join(stray)}"
            )
        # Index nur über aktive Einschreibungen des Batches und der festen Sections
        student_sections = build_student_sections(list(enrollments), set(section_map))

        state = SearchState(
            variables=[(s, m) for s in sections for m in range(s.meetings_per_week)],
            committed={a.key: a for a in fixed},
        )
        if self.config.time_limit_seconds:
            state.deadline = state.started + self.config.time_limit_seconds

        logger.info(
            f"Suche gestartet: {len(state.variables)} Termine "
            f"({len(sections)} Sections) × {len(time_slots)} Slots × {len(classrooms)} Räume | "
            f"feste Termine: {len(fixed)} | "
            f"Constraints: {', '.join(self.config.hard.enabled_names()) or '—'}"
        )

        found = self._search(state, classrooms, time_slots, student_sections, section_map)

        if not found:
            blocker = state.variables[state.deepest][0].id
            logger.error(
                f"Keine gültige Lösung: {state.steps} Schritte, {state.backtracks} Rücknahmen, "
                f"tiefste Section {blocker}"
            )
            raise ScheduleInfeasibleError(section_id=blocker, steps=state.steps)

        # Reihenfolge der Lösung = Reihenfolge der Suchvariablen
        assignments = [
            state.committed[(section.id, meeting)] for section, meeting in state.variables
        ]

        solution = self._post_process(
            assignments, sections, classrooms, time_slots,
            student_sections, instructor_preferences, fixed, section_map,
        )
        solution.steps = state.steps
        solution.backtracks = state.backtracks
        solution.solve_time_seconds = time.monotonic() - t0

        logger.info(
            f"Solver beendet: {solution.solver_status} | "
            f"Zeit: {solution.solve_time_seconds:.2f}s | "
            f"Schritte: {state.steps} | Rücknahmen: {state.backtracks}"
        )
        return solution

    # ─── Validierung ──────────────────────────────────────────────────────────

    @staticmethod
    def _validate_input(
        sections: list[Section], classrooms: list[Classroom], time_slots: list[TimeSlot]
    ) -> None:
        ids = [s.id for s in sections]
        duplicates = sorted({i for i in ids if ids.count(i) > 1})
        if duplicates:
            raise InvalidScheduleInputError(
                f"Doppelte Section-IDs im Batch: {', '.join(duplicates)}"
            )
        room_ids = [r.id for r in classrooms]
        if len(set(room_ids)) != len(room_ids):
            raise InvalidScheduleInputError("Doppelte Raum-IDs im Batch")
        if sections and not classrooms:
            raise InvalidScheduleInputError("Keine Räume angegeben")
        if sections and not time_slots:
            raise InvalidScheduleInputError("Keine Zeitslots angegeben")

    # ─── Suche ────────────────────────────────────────────────────────────────

    def _search(
        self,
        state: SearchState,
        classrooms: list[Classroom],
        time_slots: list[TimeSlot],
        student_sections: dict[str, list[str]],
        section_map: dict[str, Section],
    ) -> bool:
        """Tiefensuche über alle Variablen. True sobald alle Termine platziert sind.

        Pro platzierter Variable liegt ein Kandidaten-Iterator (Slot × Raum) auf
        dem Stapel; die Suchtiefe ist damit nicht durch den Python-Stack begrenzt.
        """
        if not state.variables:
            return True
        stack = [product(time_slots, classrooms)]

        while stack:
            index = len(stack) - 1
            state.deepest = max(state.deepest, index)
            section, meeting = state.variables[index]

            placed = False
            for slot, classroom in stack[-1]:
                self._charge_step(state)
                if not is_feasible(section, classroom, slot, state.committed,
                                   student_sections, section_map, self.config.hard):
                    continue
                state.committed[(section.id, meeting)] = Assignment.from_slot(
                    section.id, slot, classroom.id, meeting
                )
                placed = True
                break

            if placed:
                if index + 1 == len(state.variables):
                    return True
                stack.append(product(time_slots, classrooms))
                continue

            # Kandidaten erschöpft → Vorgänger zurückbauen
            stack.pop()
            if stack:
                previous, previous_meeting = state.variables[len(stack) - 1]
                del state.committed[(previous.id, previous_meeting)]
                state.backtracks += 1

        return False

    def _charge_step(self, state: SearchState) -> None:
        """Zählt einen Schritt und prüft das Budget."""
        state.steps += 1
        max_steps = self.config.max_steps
        if max_steps and state.steps > max_steps:
            raise SearchBudgetExceededError(
                f"Suchbudget erschöpft: mehr als {max_steps} Schritte "
                f"(Unlösbarkeit nicht bewiesen)",
                steps=state.steps, elapsed=state.elapsed,
            )
        if state.deadline is not None and time.monotonic() > state.deadline:
            raise SearchBudgetExceededError(
                f"Zeitlimit von {self.config.time_limit_seconds}s überschritten "
                f"(Unlösbarkeit nicht bewiesen)",
                steps=state.steps, elapsed=state.elapsed,
            )

    # ─── Nachbearbeitung ──────────────────────────────────────────────────────

    def _post_process(
        self,
        assignments: list[Assignment],
        sections: list[Section],
        classrooms: list[Classroom],
        time_slots: list[TimeSlot],
        student_sections: dict[str, list[str]],
        instructor_preferences: Optional[Mapping[str, InstructorPreference]],
        fixed: list[Assignment],
        lookup: dict[str, Section],
    ) -> ScheduleSolution:
        """Optimierer-Stufe (Identität, solange optimize=False)."""
        if not self.config.optimize:
            return ScheduleSolution(
                assignments=assignments, solver_status="FEASIBLE", steps=0,
                backtracks=0, solve_time_seconds=0.0,
            )

        soft = self.config.soft
        section_map = {s.id: s for s in sections}
        days = slot_days(time_slots)
        before = score_schedule(assignments, section_map, days, instructor_preferences, soft)

        optimizer = ScheduleOptimizer(self.config.hard, soft, student_sections)
        optimized = optimizer.optimize(
            assignments, sections, classrooms, time_slots, instructor_preferences,
            fixed=fixed, fixed_sections=list(lookup.values()),
        )
        after = score_schedule(optimized, section_map, days, instructor_preferences, soft)

        return ScheduleSolution(
            assignments=optimized,
            solver_status="FEASIBLE",
            steps=0,
            backtracks=0,
            solve_time_seconds=0.0,
            optimized=True,
            soft_score_before=before.total,
            soft_score_after=after.total,
        )


def generate_schedule(
    sections: list[Section],
    classrooms: list[Classroom],
    time_slots: list[TimeSlot],
    enrollments: Iterable[Enrollment] = (),
    instructor_preferences: Optional[Mapping[str, InstructorPreference]] = None,
    config: Optional[SolverConfig] = None,
) -> list[Assignment]:
    """Kurzform: gibt nur die Zuweisungen zurück (eine pro Termin)."""
    solution = ScheduleSolver(config).solve(
        sections, classrooms, time_slots, enrollments, instructor_preferences
    )
    return solution.assignments
