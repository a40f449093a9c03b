"""Nachoptimierung einer gültigen Lösung über weiche Constraints.

Deterministische lokale Suche (Hill Climbing, Best Improvement pro Termin):
Jeder Termin wird probeweise auf jedes (Slot, Raum)-Paar verschoben; der beste
streng verbessernde Zug, der alle harten Constraints gegen die übrigen Termine
und die festen Termine außerhalb des Batches erfüllt, wird übernommen. Die
harte Gültigkeit geht dabei nie verloren.
"""

import logging
from typing import Iterable, Mapping, Optional

from config.schema import HardConstraintConfig, SoftConstraintConfig
from models.assignment import Assignment
from models.classroom import Classroom
from models.course import Section
from models.person import InstructorPreference
from models.timeslot import TimeSlot
from solver.constraints import is_feasible
from solver.soft_constraints import score_schedule, slot_days

logger = logging.getLogger(__name__)


class ScheduleOptimizer:
    """Verbessert eine Zuweisungsmenge, ohne harte Constraints zu verletzen.

    Verwendung:
        optimizer = ScheduleOptimizer(hard, soft, student_sections)
        improved = optimizer.optimize(assignments, sections, classrooms, slots, prefs)
    """

    def __init__(
        self,
        hard: HardConstraintConfig,
        soft: SoftConstraintConfig,
        student_sections: Optional[Mapping[str, list[str]]] = None,
    ) -> None:
        self.hard = hard
        self.soft = soft
        self.student_sections = student_sections or {}
        self.moves = 0

    def optimize(
        self,
        assignments: list[Assignment],
        sections: list[Section],
        classrooms: list[Classroom],
        time_slots: list[TimeSlot],
        instructor_preferences: Optional[Mapping[str, InstructorPreference]] = None,
        soft: Optional[SoftConstraintConfig] = None,
        fixed: Iterable[Assignment] = (),
        fixed_sections: Iterable[Section] = (),
    ) -> list[Assignment]:
        """Gibt eine (ggf. verbesserte) Kopie der Zuweisungen zurück.

        Ohne aktive Gewichte ist das die Identität. `fixed` bleibt unverändert
        und zählt nicht zum Score.
        """
        soft = soft or self.soft
        self.moves = 0
        if not assignments or not soft.is_active:
            return list(assignments)

        section_map = {s.id: s for s in sections}
        lookup = {s.id: s for s in fixed_sections}
        lookup.update(section_map)
        pinned = {a.key: a for a in fixed}
        days = slot_days(time_slots)
        current = list(assignments)
        best = score_schedule(current, section_map, days, instructor_preferences, soft).total

        for pass_no in range(1, soft.max_passes + 1):
            improved = False
            for i, assignment in enumerate(current):
                section = section_map.get(assignment.section_id)
                if section is None:
                    continue
                others = dict(pinned)
                others.update((a.key, a) for j, a in enumerate(current) if j != i)

                best_move: Optional[Assignment] = None
                best_total = best
                for slot in time_slots:
                    for classroom in classrooms:
                        if (slot == assignment.time_slot
                                and classroom.id == assignment.classroom_id):
                            continue
                        if not is_feasible(section, classroom, slot, others,
                                           self.student_sections, lookup, self.hard):
                            continue
                        candidate = Assignment.from_slot(
                            section.id, slot, classroom.id, assignment.meeting_index
                        )
                        trial = current[:i] + [candidate] + current[i + 1:]
                        total = score_schedule(
                            trial, section_map, days, instructor_preferences, soft
                        ).total
                        if total < best_total:
                            best_total = total
                            best_move = candidate

                if best_move is not None:
                    current[i] = best_move
                    best = best_total
                    self.moves += 1
                    improved = True

            logger.debug(f"Optimierung Durchlauf {pass_no}: Score {best:.2f}, Züge {self.moves}")
            if not improved:
                break

        logger.info(f"Optimierung beendet: {self.moves} Züge, Score {best:.2f}")
        return current
