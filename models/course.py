"""Datenmodelle für Kurs und Kursabschnitt (Section) (Pydantic v2)."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class Course(BaseModel):
    """Ein Kurs im Vorlesungsverzeichnis."""

    id: str
    code: str                          # "CENG301"
    name: str                          # "Algorithmen"
    required_features: list[str] = []  # Raum-Anforderungen, z.B. ["projector"]
    is_required: bool = False          # Pflichtveranstaltung


class Section(BaseModel):
    """Ein konkretes Angebot eines Kurses in einem Semester.

    Für den Kern read-only; angelegt wird sie von der Kursverwaltung.
    """

    id: str
    course_id: str
    section_number: str = "1"
    instructor_id: str
    capacity: int = Field(ge=1)
    # Vom Kurs geerbt (wird beim Laden über einen Store zusammengeführt)
    required_features: list[str] = []
    is_required: bool = False
    # Anzahl Termine pro Woche; jeder Termin ist eine eigene Suchvariable
    meetings_per_week: int = Field(1, ge=1, le=7)
    term: Optional[str] = None
    deleted_at: Optional[datetime] = None

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def with_course(self, course: Optional[Course]) -> "Section":
        """Übernimmt Feature-Anforderungen und Pflicht-Flag vom Kurs."""
        if course is None:
            return self
        features = list(dict.fromkeys(self.required_features + course.required_features))
        return self.model_copy(update={
            "required_features": features,
            "is_required": self.is_required or course.is_required,
        })
