"""Datenmodell für eine feste Zuweisung (Stundenplan-Zeile) (Pydantic v2)."""

from pydantic import BaseModel, Field, field_validator

from models.timeslot import TimeSlot, Weekday
from models.timewindow import normalize_clock, overlaps


class Assignment(BaseModel):
    """Ergebnis der Suche: ein Termin einer Section in Slot und Raum."""

    section_id: str
    day_of_week: Weekday
    start_time: str   # "HH:MM"
    end_time: str     # "HH:MM"
    classroom_id: str
    # 0 für Sections mit einem Termin pro Woche
    meeting_index: int = Field(0, ge=0)

    @field_validator("day_of_week", mode="before")
    @classmethod
    def _parse_day(cls, v):
        return Weekday.parse(v)

    @field_validator("start_time", "end_time")
    @classmethod
    def _normalize_clock(cls, v: str) -> str:
        return normalize_clock(v)

    @classmethod
    def from_slot(
        cls, section_id: str, slot: TimeSlot, classroom_id: str, meeting_index: int = 0
    ) -> "Assignment":
        return cls(
            section_id=section_id,
            day_of_week=slot.day,
            start_time=slot.start,
            end_time=slot.end,
            classroom_id=classroom_id,
            meeting_index=meeting_index,
        )

    @property
    def key(self) -> tuple[str, int]:
        """Schlüssel der Suchvariable: (section_id, meeting_index)."""
        return (self.section_id, self.meeting_index)

    @property
    def time_slot(self) -> TimeSlot:
        return TimeSlot(day=self.day_of_week, start=self.start_time, end=self.end_time)

    def overlaps_slot(self, slot: TimeSlot) -> bool:
        """Gleicher Tag und überlappendes Intervall wie der Kandidaten-Slot."""
        return (
            self.day_of_week == slot.day
            and overlaps(self.start_time, self.end_time, slot.start, slot.end)
        )

    def overlaps(self, other: "Assignment") -> bool:
        return (
            self.day_of_week == other.day_of_week
            and overlaps(self.start_time, self.end_time, other.start_time, other.end_time)
        )
