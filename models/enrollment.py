"""Datenmodell für eine Einschreibung (Pydantic v2)."""

from enum import Enum

from pydantic import BaseModel


class EnrollmentStatus(str, Enum):
    ACTIVE = "active"
    DROPPED = "dropped"
    COMPLETED = "completed"
    FAILED = "failed"


class Enrollment(BaseModel):
    """Eine Einschreibung (Studierende × Section).

    Nur aktive Einschreibungen zählen für Konflikte im Studierenden-Stundenplan.
    """

    student_id: str
    section_id: str
    status: EnrollmentStatus = EnrollmentStatus.ACTIVE

    @property
    def is_active(self) -> bool:
        return self.status == EnrollmentStatus.ACTIVE


def build_student_sections(
    enrollments: list[Enrollment], section_ids: "set[str] | None" = None
) -> dict[str, list[str]]:
    """Index Studierende → Liste eingeschriebener Section-IDs.

    Berücksichtigt nur aktive Einschreibungen; mit section_ids werden
    Einschreibungen außerhalb des Batches verworfen. Einmal pro Lauf aufbauen,
    nicht pro Kandidatenprüfung.
    """
    index: dict[str, list[str]] = {}
    for enrollment in enrollments:
        if not enrollment.is_active:
            continue
        if section_ids is not None and enrollment.section_id not in section_ids:
            continue
        sections = index.setdefault(enrollment.student_id, [])
        if enrollment.section_id not in sections:
            sections.append(enrollment.section_id)
    return index
