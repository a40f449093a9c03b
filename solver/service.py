"""SchedulingService: Batch laden → planen → atomar speichern.

Verbindet Solver, Ablage, Wochenansicht und iCal-Export. Gespeichert wird
erst, wenn die Suche eine vollständige Lösung geliefert hat; bei jedem Fehler
bleiben die bisherigen Zuweisungen unverändert.
"""

import logging
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Iterable, Mapping, Optional, Union

from config.defaults import default_campus_config
from config.schema import CampusConfig
from models.assignment import Assignment
from models.course import Section
from models.person import InstructorPreference, UserRole
from models.timeslot import TimeSlot
from solver.scheduler import ScheduleSolution, ScheduleSolver
from storage.base import CampusStore, ClassroomFilter, SectionFilter

logger = logging.getLogger(__name__)


class SchedulingService:
    """Fassade über Ablage und Solver.

    Verwendung:
        service = SchedulingService(JsonCampusStore(path), config)
        solution = service.generate_schedule()
    """

    def __init__(self, store: CampusStore, config: Optional[CampusConfig] = None) -> None:
        self.store = store
        self.config = config or default_campus_config()

    def generate_schedule(
        self,
        section_ids: Optional[Iterable[str]] = None,
        classroom_ids: Optional[Iterable[str]] = None,
        time_slots: Optional[list[TimeSlot]] = None,
        instructor_preferences: Optional[Mapping[str, InstructorPreference]] = None,
        persist: bool = True,
    ) -> ScheduleSolution:
        """Plant einen Batch und ersetzt dessen Zuweisungen in der Ablage.

        Gespeicherte Termine der übrigen Sections gehen als feste Belegung in
        die Suche ein und bleiben unverändert.

        Args:
            section_ids: Batch (Default: alle nicht gelöschten Sections)
            classroom_ids: verfügbare Räume (Default: alle)
            time_slots: Kandidaten-Slots (Default: Zeitraster der Konfiguration)
            persist: False = nur rechnen, nichts speichern

        Raises:
            ScheduleInfeasibleError / SearchBudgetExceededError /
            InvalidScheduleInputError aus dem Solver; Fehler der Ablage unverändert.
        """
        sections = self.store.list_sections(SectionFilter(
            ids=list(section_ids) if section_ids is not None else None,
        ))
        classrooms = self.store.list_classrooms(ClassroomFilter(
            ids=list(classroom_ids) if classroom_ids is not None else None,
        ))
        if time_slots is None:
            time_slots = self.config.time_grid.time_slots()
        batch_ids = [s.id for s in sections]
        fixed_sections, fixed = self.fixed_commitments(batch_ids)
        enrollments = self.store.list_active_enrollments(
            batch_ids + [s.id for s in fixed_sections]
        )

        logger.info(
            f"Planungslauf: {len(sections)} Sections, {len(classrooms)} Räume, "
            f"{len(time_slots)} Slots, {len(enrollments)} aktive Einschreibungen, "
            f"{len(fixed)} feste Termine"
        )

        solver = ScheduleSolver(self.config.solver)
        solution = solver.solve(
            sections, classrooms, time_slots, enrollments, instructor_preferences,
            fixed=fixed, fixed_sections=fixed_sections,
        )

        if persist:
            self.store.replace_assignments_for_sections(batch_ids, solution.assignments)
        return solution

    def fixed_commitments(
        self, batch_ids: Iterable[str]
    ) -> tuple[list[Section], list[Assignment]]:
        """Nicht gelöschte Sections außerhalb des Batches und ihre gespeicherten
        Termine. Sie bleiben beim Planen des Batches unverändert belegt."""
        batch = set(batch_ids)
        others = [s for s in self.store.list_sections() if s.id not in batch]
        return others, self.store.list_assignments_for_sections([s.id for s in others])

    # ─── Wochenansicht / Kalender ─────────────────────────────────────────────

    def get_user_schedule(self, user_id: str, role: Union[UserRole, str]):
        """Delegiert an WeeklyScheduleBuilder."""
        from export.weekly_view import WeeklyScheduleBuilder

        return WeeklyScheduleBuilder(self.store).get_user_schedule(user_id, role)

    def export_ical(
        self,
        user_id: str,
        role: Union[UserRole, str],
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        path: Optional[Path] = None,
    ) -> str:
        """Wochenansicht eines Benutzers als iCal-Text (optional als Datei).

        Ohne Zeitraum: ab heute über calendar.default_weeks Wochen.
        """
        from export.ical_export import IcalExporter

        exporter = IcalExporter(self.config.calendar)
        default_start, default_end = exporter.default_range(start_date)
        start_date = start_date or default_start
        end_date = end_date or default_end

        weekly = self.get_user_schedule(user_id, role)
        text = exporter.generate_ical(weekly, start_date, end_date, datetime.now(timezone.utc))
        if path is not None:
            exporter.write(text, path)
            logger.info(f"iCal exportiert: {path}")
        return text
