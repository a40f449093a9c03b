"""Solver-Modul (Backtracking-Suche mit harten Constraints + lokale Nachoptimierung)."""

from .scheduler import (
    ScheduleSolver,
    ScheduleSolution,
    SchedulingError,
    ScheduleInfeasibleError,
    SearchBudgetExceededError,
    InvalidScheduleInputError,
    generate_schedule,
)
from .constraints import is_feasible, violated_constraints
from .optimizer import ScheduleOptimizer
from .constraint_relaxer import ConstraintRelaxer, RelaxReport
from .service import SchedulingService

__all__ = [
    "ScheduleSolver",
    "ScheduleSolution",
    "SchedulingError",
    "ScheduleInfeasibleError",
    "SearchBudgetExceededError",
    "InvalidScheduleInputError",
    "generate_schedule",
    "is_feasible",
    "violated_constraints",
    "ScheduleOptimizer",
    "ConstraintRelaxer",
    "RelaxReport",
    "SchedulingService",
]
