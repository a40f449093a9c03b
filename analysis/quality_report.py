"""Qualitätsbericht für fertige Stundenpläne.

Analysiert Lehrenden-Auslastung, Raumnutzung und berechnet die weichen
Metriken mit derselben Bewertung wie der Optimierer.
"""

from collections import defaultdict
from typing import Mapping, Optional

from pydantic import BaseModel

from config.schema import SoftConstraintConfig
from models.assignment import Assignment
from models.campus_data import CampusData
from models.person import InstructorPreference
from models.timeslot import TimeSlot, Weekday
from models.timewindow import to_minutes
from solver.scheduler import ScheduleSolution
from solver.soft_constraints import (
    SoftScore, instructor_gap_minutes, preference_violations, score_schedule, slot_days,
)


# ─── Metriken-Modelle ─────────────────────────────────────────────────────────

class InstructorQualityMetrics(BaseModel):
    """Qualitäts-Metriken für eine einzelne Lehrkraft."""

    instructor_id: str
    name: str
    meetings: int
    gap_minutes: int
    meetings_per_day: dict[str, int]
    free_days: int
    preference_violations: int


class ClassroomQualityMetrics(BaseModel):
    """Auslastung eines Raums."""

    classroom_id: str
    label: str
    meetings: int
    utilization: float   # belegte Slots / verfügbare Slots (0.0–1.0)
    avg_fill: float      # Ø Section-Kapazität / Raumkapazität


class ScheduleQualityReport(BaseModel):
    """Vollständiger Qualitätsbericht für eine ScheduleSolution."""

    instructor_metrics: list[InstructorQualityMetrics]
    classroom_metrics: list[ClassroomQualityMetrics]
    meetings_per_day: dict[str, int]
    total_gap_minutes: int
    avg_gap_minutes_per_instructor: float
    required_morning_ratio: float   # Anteil Pflicht-Termine am Vormittag (1.0 = alle)
    soft_score: SoftScore
    solver_status: str
    solve_time: float


# ─── Analyzer ─────────────────────────────────────────────────────────────────

class QualityAnalyzer:
    """Berechnet Qualitätsmetriken für eine fertige ScheduleSolution."""

    def __init__(self, soft: Optional[SoftConstraintConfig] = None) -> None:
        self.soft = soft or SoftConstraintConfig()

    def analyze(
        self,
        solution: ScheduleSolution,
        data: CampusData,
        time_slots: list[TimeSlot],
        instructor_preferences: Optional[Mapping[str, InstructorPreference]] = None,
    ) -> ScheduleQualityReport:
        """Hauptmethode: berechnet alle Metriken und gibt einen Report zurück."""
        prefs = instructor_preferences or {}
        sections = {s.id: s for s in data.schedulable_sections()}
        assignments = [a for a in solution.assignments if a.section_id in sections]
        days = slot_days(time_slots)

        instructor_metrics = self._instructor_metrics(assignments, data, sections, days, prefs)
        classroom_metrics = self._classroom_metrics(assignments, data, sections, time_slots)

        per_day = {d.value: 0 for d in days}
        for a in assignments:
            per_day[a.day_of_week.value] = per_day.get(a.day_of_week.value, 0) + 1

        total_gaps = sum(m.gap_minutes for m in instructor_metrics)
        n = len(instructor_metrics)
        avg_gaps = total_gaps / n if n > 0 else 0.0

        cutoff = to_minutes(self.soft.morning_cutoff)
        required = [a for a in assignments if sections[a.section_id].is_required]
        morning = sum(1 for a in required if to_minutes(a.start_time) < cutoff)
        morning_ratio = morning / len(required) if required else 1.0

        return ScheduleQualityReport(
            instructor_metrics=instructor_metrics,
            classroom_metrics=classroom_metrics,
            meetings_per_day=per_day,
            total_gap_minutes=total_gaps,
            avg_gap_minutes_per_instructor=round(avg_gaps, 2),
            required_morning_ratio=round(morning_ratio, 4),
            soft_score=score_schedule(assignments, sections, days, prefs, self.soft),
            solver_status=solution.solver_status,
            solve_time=round(solution.solve_time_seconds, 1),
        )

    def print_rich(self, report: ScheduleQualityReport) -> None:
        """Gibt den Qualitätsbericht formatiert über Rich aus."""
        from rich.console import Console
        from rich.panel import Panel
        from rich.table import Table
        from rich import box

        console = Console()

        morning_color = (
            "green" if report.required_morning_ratio >= 0.8
            else "yellow" if report.required_morning_ratio >= 0.5
            else "red"
        )
        day_line = " | ".join(
            f"{Weekday(d).short_name}: {n}" for d, n in report.meetings_per_day.items()
        )
        console.print(Panel(
            f"Status: [bold]{report.solver_status}[/bold] | "
            f"Zeit: {report.solve_time}s\n"
            f"Leerlauf gesamt: [bold]{report.total_gap_minutes} min[/bold] | "
            f"Ø pro Lehrkraft: [bold]{report.avg_gap_minutes_per_instructor:.1f} min[/bold]\n"
            f"Pflichtkurse vormittags: "
            f"[{morning_color}]{report.required_morning_ratio:.1%}[/{morning_color}]\n"
            f"Termine pro Tag: {day_line}\n"
            f"Soft-Score: [bold]{report.soft_score.total:.2f}[/bold] (kleiner = besser)",
            title="Qualitätsbericht – Übersicht",
            border_style="cyan",
        ))

        t_table = Table(title="Lehrenden-Auslastung", box=box.ROUNDED, show_lines=False)
        t_table.add_column("ID", width=8)
        t_table.add_column("Name", width=25)
        t_table.add_column("Termine", justify="right", width=8)
        t_table.add_column("Leerlauf", justify="right", width=9)
        t_table.add_column("Freie Tage", justify="right", width=10)
        t_table.add_column("Wunsch-Verl.", justify="right", width=12)

        for m in sorted(report.instructor_metrics, key=lambda x: x.instructor_id):
            pref = (
                f"[red]{m.preference_violations}[/red]"
                if m.preference_violations else "[green]0[/green]"
            )
            t_table.add_row(
                m.instructor_id, m.name, str(m.meetings),
                f"{m.gap_minutes} min", str(m.free_days), pref,
            )
        console.print(t_table)

        r_table = Table(title="Raumnutzung", box=box.ROUNDED, show_lines=False)
        r_table.add_column("Raum", width=14)
        r_table.add_column("Termine", justify="right", width=8)
        r_table.add_column("Auslastung", justify="right", width=11)
        r_table.add_column("Ø Füllgrad", justify="right", width=11)

        for m in sorted(report.classroom_metrics, key=lambda x: x.classroom_id):
            fill_color = (
                "green" if 0.5 <= m.avg_fill <= 1.0
                else "yellow" if m.avg_fill > 0
                else "dim"
            )
            r_table.add_row(
                m.label, str(m.meetings), f"{m.utilization:.0%}",
                f"[{fill_color}]{m.avg_fill:.0%}[/{fill_color}]",
            )
        console.print(r_table)

    # ── Private Berechnungen ──────────────────────────────────────────────────

    def _instructor_metrics(
        self, assignments, data, sections, days, prefs
    ) -> list[InstructorQualityMetrics]:
        """Berechnet Metriken für alle Lehrenden mit mindestens einer Section."""
        names = {f.id: f.name for f in data.faculty}
        by_instructor: dict[str, list[Assignment]] = defaultdict(list)
        for a in assignments:
            by_instructor[sections[a.section_id].instructor_id].append(a)

        metrics = []
        for instructor_id in sorted({s.instructor_id for s in sections.values()}):
            entries = by_instructor.get(instructor_id, [])
            per_day = {d.value: 0 for d in days}
            for a in entries:
                per_day[a.day_of_week.value] = per_day.get(a.day_of_week.value, 0) + 1
            busy = {a.day_of_week for a in entries}

            metrics.append(InstructorQualityMetrics(
                instructor_id=instructor_id,
                name=names.get(instructor_id, instructor_id),
                meetings=len(entries),
                gap_minutes=instructor_gap_minutes(entries, sections),
                meetings_per_day=per_day,
                free_days=len([d for d in days if d not in busy]),
                preference_violations=preference_violations(entries, sections, prefs),
            ))
        return metrics

    def _classroom_metrics(
        self, assignments, data, sections, time_slots
    ) -> list[ClassroomQualityMetrics]:
        """Belegung und Füllgrad pro Raum."""
        by_room: dict[str, list[Assignment]] = defaultdict(list)
        for a in assignments:
            by_room[a.classroom_id].append(a)

        metrics = []
        for room in data.classrooms:
            entries = by_room.get(room.id, [])
            utilization = len(entries) / len(time_slots) if time_slots else 0.0
            if entries and room.capacity:
                fill = sum(sections[a.section_id].capacity for a in entries) / (
                    len(entries) * room.capacity
                )
            else:
                fill = 0.0
            metrics.append(ClassroomQualityMetrics(
                classroom_id=room.id,
                label=room.label,
                meetings=len(entries),
                utilization=round(utilization, 4),
                avg_fill=round(fill, 4),
            ))
        return metrics
