"""Datenmodelle für Studierende, Lehrende und deren Präferenzen (Pydantic v2)."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, field_validator, model_validator

from models.timeslot import TimeSlot, Weekday
from models.timewindow import normalize_clock, to_minutes


class UserRole(str, Enum):
    STUDENT = "student"
    FACULTY = "faculty"

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            lowered = value.strip().lower()
            for member in cls:
                if member.value == lowered:
                    return member
        return None


class Student(BaseModel):
    """Studierenden-Profil (verknüpft Benutzerkonto und Studierenden-ID)."""

    id: str
    user_id: str
    name: str = ""


class InstructorPreference(BaseModel):
    """Weiche Zeitwünsche einer Lehrkraft (nur für den Optimierer relevant)."""

    preferred_days: list[Weekday] = []   # leer = keine Tagespräferenz
    earliest_start: Optional[str] = None  # "HH:MM"
    latest_end: Optional[str] = None      # "HH:MM"

    @field_validator("preferred_days", mode="before")
    @classmethod
    def _parse_days(cls, v):
        return [Weekday.parse(d) for d in v]

    @field_validator("earliest_start", "latest_end")
    @classmethod
    def _normalize_clock(cls, v: Optional[str]) -> Optional[str]:
        return normalize_clock(v) if v is not None else None

    @model_validator(mode="after")
    def _check_window(self):
        if self.earliest_start and self.latest_end:
            if to_minutes(self.earliest_start) >= to_minutes(self.latest_end):
                raise ValueError("earliest_start muss vor latest_end liegen")
        return self

    def violations(self, slot: TimeSlot) -> int:
        """Anzahl verletzter Wünsche für einen Termin in diesem Slot (0–3)."""
        count = 0
        if self.preferred_days and slot.day not in self.preferred_days:
            count += 1
        if self.earliest_start and slot.start_minutes < to_minutes(self.earliest_start):
            count += 1
        if self.latest_end and slot.end_minutes > to_minutes(self.latest_end):
            count += 1
        return count


class Faculty(BaseModel):
    """Lehrenden-Profil (verknüpft Benutzerkonto und Dozenten-ID)."""

    id: str
    user_id: str
    name: str = ""
    preference: Optional[InstructorPreference] = None
