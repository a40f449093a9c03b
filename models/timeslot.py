"""Datenmodell für Wochentag und Zeitslot (Pydantic v2)."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from models.timewindow import normalize_clock, overlaps, to_minutes


class Weekday(str, Enum):
    """Wochentag. Eingaben sind case-insensitiv ("Monday" == "monday")."""

    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            lowered = value.strip().lower()
            for member in cls:
                if member.value == lowered:
                    return member
        return None

    @classmethod
    def parse(cls, value: "str | Weekday") -> "Weekday":
        """Wie Weekday(value), aber mit verständlicher Fehlermeldung."""
        try:
            return cls(value)
        except ValueError:
            raise ValueError(
                f"Unbekannter Wochentag: {value!r} "
                f"(erlaubt: {', '.join(d.value for d in cls)})"
            ) from None

    @property
    def python_weekday(self) -> int:
        """Index wie date.weekday() (0=Montag … 6=Sonntag)."""
        return list(Weekday).index(self)

    @property
    def short_name(self) -> str:
        """Abgekürzter deutscher Tagesname."""
        return ["Mo", "Di", "Mi", "Do", "Fr", "Sa", "So"][self.python_weekday]


ALL_WEEKDAYS: list[Weekday] = list(Weekday)


class TimeSlot(BaseModel):
    """Ein Kandidaten-Zeitfenster (Tag, Beginn, Ende) im Wochenraster.

    Immutable (frozen) damit es als Dict-Key / Set-Element nutzbar ist.
    """

    model_config = ConfigDict(frozen=True)

    day: Weekday
    start: str   # "HH:MM"
    end: str     # "HH:MM"

    @field_validator("day", mode="before")
    @classmethod
    def _parse_day(cls, v):
        return Weekday.parse(v)

    @field_validator("start", "end")
    @classmethod
    def _normalize_clock(cls, v: str) -> str:
        return normalize_clock(v)

    @model_validator(mode="after")
    def _check_order(self):
        if to_minutes(self.start) >= to_minutes(self.end):
            raise ValueError(
                f"Slot {self.day.value} {self.start}-{self.end}: Beginn muss vor Ende liegen"
            )
        return self

    @property
    def start_minutes(self) -> int:
        return to_minutes(self.start)

    @property
    def end_minutes(self) -> int:
        return to_minutes(self.end)

    @property
    def duration_minutes(self) -> int:
        return self.end_minutes - self.start_minutes

    def overlaps(self, other: "TimeSlot") -> bool:
        """Gleicher Tag und überlappende Intervalle (Berührung zählt nicht)."""
        return self.day == other.day and overlaps(self.start, self.end, other.start, other.end)

    def __str__(self) -> str:
        return f"{self.day.short_name} {self.start}–{self.end}"
