"""Weiche Constraints: Bewertung einer gültigen Zuweisungsmenge.

Kleinere Werte sind besser. Wird vom Optimierer und vom Qualitätsbericht
gemeinsam genutzt, damit beide dieselbe Bewertung sehen.
"""

from collections import defaultdict
from typing import Mapping, Optional

from pydantic import BaseModel

from config.schema import SoftConstraintConfig
from models.assignment import Assignment
from models.course import Section
from models.person import InstructorPreference
from models.timeslot import TimeSlot, Weekday
from models.timewindow import gap_minutes, to_minutes


class SoftScore(BaseModel):
    """Aufschlüsselung der Strafpunkte."""

    preference_violations: int = 0   # verletzte Zeitwünsche (Summe über Termine)
    gap_minutes: int = 0             # Leerlauf der Lehrkräfte zwischen Terminen
    distribution_penalty: float = 0  # Abweichung der Tagesbelegung vom Mittel (Quadratsumme)
    late_required: int = 0           # Pflichtkurs-Termine nach dem Vormittag
    total: float = 0


def preference_violations(
    assignments: list[Assignment],
    sections: Mapping[str, Section],
    instructor_preferences: Mapping[str, InstructorPreference],
) -> int:
    total = 0
    for a in assignments:
        section = sections.get(a.section_id)
        if section is None:
            continue
        pref = instructor_preferences.get(section.instructor_id)
        if pref is not None:
            total += pref.violations(a.time_slot)
    return total


def instructor_gap_minutes(
    assignments: list[Assignment], sections: Mapping[str, Section]
) -> int:
    """Summe der Leerlauf-Minuten zwischen aufeinanderfolgenden Terminen je
    Lehrkraft und Tag."""
    by_day: dict[tuple, list[Assignment]] = defaultdict(list)
    for a in assignments:
        section = sections.get(a.section_id)
        if section is not None:
            by_day[(section.instructor_id, a.day_of_week)].append(a)
    total = 0
    for entries in by_day.values():
        ordered = sorted(entries, key=lambda a: to_minutes(a.start_time))
        for prev, nxt in zip(ordered, ordered[1:]):
            total += gap_minutes(prev.end_time, nxt.start_time)
    return total


def day_distribution_penalty(
    assignments: list[Assignment], days: list[Weekday]
) -> float:
    """Quadratische Abweichung der Termine pro Tag vom Tagesmittel."""
    if not days:
        return 0.0
    counts = {d: 0 for d in days}
    for a in assignments:
        if a.day_of_week in counts:
            counts[a.day_of_week] += 1
    mean = len(assignments) / len(days)
    return sum((c - mean) ** 2 for c in counts.values())


def late_required_meetings(
    assignments: list[Assignment], sections: Mapping[str, Section], morning_cutoff: str
) -> int:
    cutoff = to_minutes(morning_cutoff)
    late = 0
    for a in assignments:
        section = sections.get(a.section_id)
        if section is not None and section.is_required and to_minutes(a.start_time) >= cutoff:
            late += 1
    return late


def slot_days(time_slots: list[TimeSlot]) -> list[Weekday]:
    """Tage des Rasters in Reihenfolge des ersten Auftretens."""
    return list(dict.fromkeys(s.day for s in time_slots))


def score_schedule(
    assignments: list[Assignment],
    sections: Mapping[str, Section],
    days: list[Weekday],
    instructor_preferences: Optional[Mapping[str, InstructorPreference]],
    soft: SoftConstraintConfig,
) -> SoftScore:
    """Bewertet eine Zuweisungsmenge. Deaktivierte Kriterien (Gewicht 0) werden
    nicht berechnet."""
    prefs = instructor_preferences or {}
    score = SoftScore()
    total = 0.0
    if soft.weight_instructor_preferences and prefs:
        score.preference_violations = preference_violations(assignments, sections, prefs)
        total += soft.weight_instructor_preferences * score.preference_violations
    if soft.weight_gaps:
        score.gap_minutes = instructor_gap_minutes(assignments, sections)
        total += soft.weight_gaps * score.gap_minutes / 60
    if soft.weight_distribution:
        score.distribution_penalty = day_distribution_penalty(assignments, days)
        total += soft.weight_distribution * score.distribution_penalty
    if soft.weight_morning_required:
        score.late_required = late_required_meetings(assignments, sections, soft.morning_cutoff)
        total += soft.weight_morning_required * score.late_required
    score.total = round(total, 6)
    return score
