"""Harte Constraints: Prüfung eines Kandidaten (Section, Raum, Slot).

Reine Prädikate ohne Seiteneffekte. Jede Prüfung liefert True, wenn der
Kandidat die Regel VERLETZT; is_feasible() verknüpft die aktivierten
Prüfungen per UND. Überschneidungen zwischen Terminen derselben Section sind
unabhängig von den Schaltern immer verboten.
"""

from typing import Mapping

from config.schema import HardConstraintConfig
from models.assignment import Assignment
from models.classroom import Classroom
from models.course import Section
from models.timeslot import TimeSlot

# Schlüssel einer Suchvariable: (section_id, meeting_index)
MeetingKey = tuple[str, int]


def instructor_double_booked(
    section: Section,
    time_slot: TimeSlot,
    committed: Mapping[MeetingKey, Assignment],
    sections: Mapping[str, Section],
) -> bool:
    """Lehrkraft der Section hat am selben Tag bereits einen überlappenden Termin."""
    for assignment in committed.values():
        if not assignment.overlaps_slot(time_slot):
            continue
        other = sections.get(assignment.section_id)
        if other is not None and other.instructor_id == section.instructor_id:
            return True
    return False


def classroom_double_booked(
    classroom: Classroom,
    time_slot: TimeSlot,
    committed: Mapping[MeetingKey, Assignment],
) -> bool:
    """Raum ist am selben Tag bereits überlappend belegt."""
    return any(
        a.classroom_id == classroom.id and a.overlaps_slot(time_slot)
        for a in committed.values()
    )


def own_meeting_overlap(
    section: Section,
    time_slot: TimeSlot,
    committed: Mapping[MeetingKey, Assignment],
) -> bool:
    """Ein bereits geplanter Termin derselben Section überlappt den Kandidaten."""
    return any(
        a.section_id == section.id and a.overlaps_slot(time_slot)
        for a in committed.values()
    )


def co_enrolled_sections(
    section_id: str, student_sections: Mapping[str, list[str]]
) -> set[str]:
    """Alle anderen Sections, in die Studierende dieser Section eingeschrieben sind."""
    result: set[str] = set()
    for section_ids in student_sections.values():
        if section_id in section_ids:
            result.update(section_ids)
    result.discard(section_id)
    return result


def student_conflict(
    section: Section,
    time_slot: TimeSlot,
    committed: Mapping[MeetingKey, Assignment],
    student_sections: Mapping[str, list[str]],
) -> bool:
    """Ein Studierender der Section hat eine andere, bereits geplante Section
    mit überlappendem Termin."""
    others = co_enrolled_sections(section.id, student_sections)
    if not others:
        return False
    return any(
        a.section_id in others and a.overlaps_slot(time_slot)
        for a in committed.values()
    )


def capacity_exceeded(section: Section, classroom: Classroom) -> bool:
    """Raum hat weniger Plätze als die Section."""
    return classroom.capacity < section.capacity


def features_missing(section: Section, classroom: Classroom) -> bool:
    """Raum bietet nicht alle vom Kurs geforderten Features."""
    return bool(classroom.missing_features(section.required_features))


def violated_constraints(
    section: Section,
    classroom: Classroom,
    time_slot: TimeSlot,
    committed: Mapping[MeetingKey, Assignment],
    student_sections: Mapping[str, list[str]],
    sections: Mapping[str, Section],
    constraints: HardConstraintConfig,
) -> list[str]:
    """Namen aller aktivierten Constraints, die der Kandidat verletzt.

    "section_meeting_overlap" wird unabhängig von den Schaltern gemeldet.
    """
    violated: list[str] = []
    if own_meeting_overlap(section, time_slot, committed):
        violated.append("section_meeting_overlap")
    if constraints.no_instructor_double_booking and instructor_double_booked(
        section, time_slot, committed, sections
    ):
        violated.append("no_instructor_double_booking")
    if constraints.no_classroom_double_booking and classroom_double_booked(
        classroom, time_slot, committed
    ):
        violated.append("no_classroom_double_booking")
    if constraints.no_student_schedule_conflict and student_conflict(
        section, time_slot, committed, student_sections
    ):
        violated.append("no_student_schedule_conflict")
    if constraints.classroom_capacity and capacity_exceeded(section, classroom):
        violated.append("classroom_capacity")
    if constraints.classroom_features and features_missing(section, classroom):
        violated.append("classroom_features")
    return violated


def is_feasible(
    section: Section,
    classroom: Classroom,
    time_slot: TimeSlot,
    committed: Mapping[MeetingKey, Assignment],
    student_sections: Mapping[str, list[str]],
    sections: Mapping[str, Section],
    constraints: HardConstraintConfig,
) -> bool:
    """True gdw. keine aktivierte harte Constraint verletzt ist.

    Die billigen Raum-Prüfungen laufen zuerst; das Ergebnis hängt nicht von
    der Reihenfolge ab.
    """
    if constraints.classroom_capacity and capacity_exceeded(section, classroom):
        return False
    if constraints.classroom_features and features_missing(section, classroom):
        return False
    if own_meeting_overlap(section, time_slot, committed):
        return False
    if constraints.no_classroom_double_booking and classroom_double_booked(
        classroom, time_slot, committed
    ):
        return False
    if constraints.no_instructor_double_booking and instructor_double_booked(
        section, time_slot, committed, sections
    ):
        return False
    if constraints.no_student_schedule_conflict and student_conflict(
        section, time_slot, committed, student_sections
    ):
        return False
    return True
