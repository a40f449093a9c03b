"""Systematische INFEASIBLE-Diagnose durch schrittweise Constraint-Lockerung."""

import time
import logging
from typing import Iterable, Optional

from pydantic import BaseModel

from config.schema import HardConstraintConfig, SolverConfig
from models.assignment import Assignment
from models.classroom import Classroom
from models.course import Section
from models.enrollment import Enrollment
from models.timeslot import TimeSlot

logger = logging.getLogger(__name__)


# ─── Ergebnis-Modelle ─────────────────────────────────────────────────────────

class RelaxResult(BaseModel):
    """Ergebnis einer einzelnen Constraint-Lockerung."""
    name: str
    description: str
    status: str        # "FEASIBLE" / "INFEASIBLE" / "UNKNOWN"
    steps: int
    solve_time: float


class RelaxReport(BaseModel):
    """Vollständiger Bericht der Constraint-Relaxierung."""
    original_status: str
    relaxations: list[RelaxResult]
    recommendation: str

    def print_rich(self) -> None:
        """Gibt den Bericht als Rich-Tabelle aus."""
        from rich.console import Console
        from rich.table import Table
        from rich import box

        console = Console()
        table = Table(title=f"Constraint-Relaxierung (Original: {self.original_status})",
                      box=box.ROUNDED)
        table.add_column("Lockerung", style="bold")
        table.add_column("Status")
        table.add_column("Schritte", justify="right")
        table.add_column("Beschreibung")
        for r in self.relaxations:
            color = {"FEASIBLE": "green", "INFEASIBLE": "red"}.get(r.status, "yellow")
            table.add_row(r.name, f"[{color}]{r.status}[/{color}]", str(r.steps), r.description)
        console.print(table)
        console.print(self.recommendation)


# ─── Lockerungen ──────────────────────────────────────────────────────────────

_RELAXATIONS: list[tuple[str, str]] = [
    ("no_instructor_double_booking", "Lehrkräfte dürfen parallel eingeplant werden"),
    ("no_classroom_double_booking", "Räume dürfen mehrfach belegt werden"),
    ("no_student_schedule_conflict", "Überschneidungen für Studierende erlaubt"),
    ("classroom_capacity", "Raumkapazität wird ignoriert"),
    ("classroom_features", "Raumausstattung wird ignoriert"),
]

_HINTS: dict[str, str] = {
    "no_instructor_double_booking": (
        "Lehrkräfte: Einzelne Lehrkräfte haben mehr Termine als freie Slots. "
        "Zusätzliche Slots anbieten oder Sections umverteilen."
    ),
    "no_classroom_double_booking": (
        "Räume: Zu wenige Raum/Slot-Paare. Mehr Räume oder Slots hinzufügen."
    ),
    "no_student_schedule_conflict": (
        "Studierende: Einschreibungen erzwingen zu viele überschneidungsfreie Termine. "
        "Batch aufteilen oder Slots ergänzen."
    ),
    "classroom_capacity": (
        "Kapazität: Für einige Sections gibt es keinen (freien) ausreichend großen Raum."
    ),
    "classroom_features": (
        "Ausstattung: Für einige Sections gibt es keinen (freien) Raum mit allen Features."
    ),
}


class ConstraintRelaxer:
    """Diagnose bei INFEASIBLE durch Abschalten einzelner harter Constraints.

    Testet jede der fünf Constraints einzeln abgeschaltet und zuletzt alle
    zusammen. Jeder Lauf erhält ein eigenes Schrittbudget, damit die Diagnose
    auch bei großen Batches endet (Ergebnis dann UNKNOWN).
    """

    def __init__(
        self,
        sections: list[Section],
        classrooms: list[Classroom],
        time_slots: list[TimeSlot],
        enrollments: Iterable[Enrollment] = (),
        config: Optional[SolverConfig] = None,
        fixed: Iterable[Assignment] = (),
        fixed_sections: Iterable[Section] = (),
    ) -> None:
        self.sections = sections
        self.classrooms = classrooms
        self.time_slots = time_slots
        self.enrollments = list(enrollments)
        self.config = config or SolverConfig()
        # Gespeicherte Termine außerhalb des Batches bleiben in jedem Lauf fest
        self.fixed = list(fixed)
        self.fixed_sections = list(fixed_sections)

    def diagnose(self, max_steps: int = 200_000) -> RelaxReport:
        """Führt alle Relaxierungen durch und erstellt einen Bericht.

        Args:
            max_steps: Schrittbudget pro Relaxierungs-Lauf
        """
        original_status, _, _ = self._run(self.config.hard, max_steps)

        results: list[RelaxResult] = []
        for name, description in _RELAXATIONS:
            hard = self.config.hard.model_copy(update={name: False})
            results.append(self._test_relaxation(name, description, hard, max_steps))

        all_off = HardConstraintConfig(**{name: False for name, _ in _RELAXATIONS})
        results.append(self._test_relaxation(
            "all_combined", "Alle harten Constraints abgeschaltet", all_off, max_steps,
        ))

        recommendation = self._build_recommendation(original_status, results)
        logger.info(f"ConstraintRelaxer: {recommendation}")

        return RelaxReport(
            original_status=original_status,
            relaxations=results,
            recommendation=recommendation,
        )

    # ─── Solver-Ausführung ────────────────────────────────────────────────────

    def _test_relaxation(
        self, name: str, description: str, hard: HardConstraintConfig, max_steps: int
    ) -> RelaxResult:
        """Testet eine einzelne Relaxierung."""
        status, steps, elapsed = self._run(hard, max_steps)
        logger.info(f"  Relaxierung '{name}': {status} ({steps} Schritte, {elapsed:.2f}s)")
        return RelaxResult(
            name=name, description=description, status=status,
            steps=steps, solve_time=elapsed,
        )

    def _run(self, hard: HardConstraintConfig, max_steps: int) -> tuple[str, int, float]:
        """Führt den Solver aus und gibt (Status, Schritte, Zeit) zurück."""
        from solver.scheduler import (
            ScheduleInfeasibleError, ScheduleSolver, SearchBudgetExceededError,
        )

        config = self.config.model_copy(update={
            "hard": hard, "max_steps": max_steps, "optimize": False,
        })
        t0 = time.monotonic()
        try:
            solution = ScheduleSolver(config).solve(
                self.sections, self.classrooms, self.time_slots, self.enrollments,
                fixed=self.fixed, fixed_sections=self.fixed_sections,
            )
            return solution.solver_status, solution.steps, time.monotonic() - t0
        except ScheduleInfeasibleError as e:
            return "INFEASIBLE", e.steps, time.monotonic() - t0
        except SearchBudgetExceededError as e:
            return "UNKNOWN", e.steps, time.monotonic() - t0

    # ─── Empfehlung ───────────────────────────────────────────────────────────

    def _build_recommendation(self, original_status: str, results: list[RelaxResult]) -> str:
        """Erstellt eine menschenlesbare Empfehlung basierend auf den Ergebnissen."""
        if original_status in ("FEASIBLE", "EMPTY"):
            return "Der Batch ist mit allen Constraints lösbar – keine Lockerung nötig."

        single = [r for r in results if r.name != "all_combined"]
        fixes = [_HINTS[r.name] for r in single if r.status == "FEASIBLE"]
        if fixes:
            return "Mögliche Ursachen:\n" + "\n".join(f"  • {f}" for f in fixes)

        combined = next((r for r in results if r.name == "all_combined"), None)
        if combined is not None and combined.status == "FEASIBLE":
            return (
                "Erst mehrere Lockerungen gleichzeitig helfen. "
                "Der Batch hat mehrere gleichzeitige Constraint-Konflikte; "
                "Batch aufteilen (z.B. nach Fachbereich) oder Räume/Slots ergänzen."
            )
        if all(r.status == "UNKNOWN" for r in results):
            return (
                "Alle Relaxierungen endeten mit UNKNOWN (Schrittbudget?). "
                "Erhöhen Sie max_steps oder verkleinern Sie den Batch."
            )
        return (
            "Auch ohne harte Constraints keine Lösung: Es gibt weniger "
            "Slot/Raum-Paare als Termine, oder Slots/Räume fehlen ganz."
        )
