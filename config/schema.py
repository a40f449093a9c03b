from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from models.timeslot import TimeSlot, Weekday
from models.timewindow import normalize_clock, to_minutes


# ─── ZEITRASTER ───

class SlotWindow(BaseModel):
    """Ein Zeitfenster im Tagesraster (gilt für jeden Unterrichtstag)."""
    # Beginn im Format "HH:MM"
    start: str
    # Ende im Format "HH:MM"
    end: str

    @field_validator("start", "end")
    @classmethod
    def _normalize_clock(cls, v: str) -> str:
        return normalize_clock(v)


class TimeGridConfig(BaseModel):
    """Standard-Zeitraster, falls der Aufrufer keine Slots vorgibt.

    Reihenfolge ist relevant: Der Solver probiert Slots tageweise in dieser
    Reihenfolge (erster passender Slot gewinnt).
    """
    # Unterrichtstage
    days: list[Weekday] = Field(
        default=[Weekday.MONDAY, Weekday.TUESDAY, Weekday.WEDNESDAY,
                 Weekday.THURSDAY, Weekday.FRIDAY],
        description="Unterrichtstage")
    # Zeitfenster pro Tag
    slots: list[SlotWindow] = Field(
        description="Zeitfenster pro Tag")

    @field_validator("days", mode="before")
    @classmethod
    def _parse_days(cls, v):
        return [Weekday.parse(d) for d in v]

    @model_validator(mode='after')
    def validate_slots(self):
        """Prüfe dass die Fenster eines Tages sich nicht überlappen."""
        if not self.days:
            raise ValueError("Mindestens ein Unterrichtstag erforderlich")
        if len(set(self.days)) != len(self.days):
            raise ValueError("Unterrichtstage doppelt angegeben")
        ordered = sorted(self.slots, key=lambda s: to_minutes(s.start))
        for s in ordered:
            if to_minutes(s.start) >= to_minutes(s.end):
                raise ValueError(f"Fenster {s.start}-{s.end}: Beginn muss vor Ende liegen")
        for a, b in zip(ordered, ordered[1:]):
            if to_minutes(b.start) < to_minutes(a.end):
                raise ValueError(
                    f"Fenster {a.start}-{a.end} und {b.start}-{b.end} überlappen")
        return self

    def time_slots(self) -> list[TimeSlot]:
        """Alle Kandidaten-Slots (Tag-major, dann Fenster-Reihenfolge)."""
        return [
            TimeSlot(day=day, start=w.start, end=w.end)
            for day in self.days
            for w in self.slots
        ]


# ─── HARTE CONSTRAINTS ───

class HardConstraintConfig(BaseModel):
    """Schalter für die harten Constraints (alle standardmäßig aktiv)."""
    # Keine Lehrkraft in zwei überlappenden Terminen
    no_instructor_double_booking: bool = True
    # Kein Raum mit zwei überlappenden Terminen
    no_classroom_double_booking: bool = True
    # Keine Überschneidung im Stundenplan aktiv eingeschriebener Studierender
    no_student_schedule_conflict: bool = True
    # Raumkapazität ≥ Section-Kapazität
    classroom_capacity: bool = True
    # Raum bietet alle vom Kurs geforderten Features
    classroom_features: bool = True

    def enabled_names(self) -> list[str]:
        return [name for name, on in self.model_dump().items() if on]


# ─── WEICHE CONSTRAINTS ───

class SoftConstraintConfig(BaseModel):
    """Gewichte für die Nachoptimierung. 0 = deaktiviert."""
    # Gewicht für Zeitwünsche der Lehrkräfte
    weight_instructor_preferences: int = Field(100, ge=0,
        description="Gewicht: Zeitwünsche der Lehrkräfte")
    # Gewicht für Leerlauf zwischen Terminen einer Lehrkraft (pro Stunde Lücke)
    weight_gaps: int = Field(20, ge=0,
        description="Gewicht: Lücken im Tagesplan minimieren")
    # Gewicht für gleichmäßige Verteilung über die Woche
    weight_distribution: int = Field(10, ge=0,
        description="Gewicht: Gleichmäßige Verteilung auf die Tage")
    # Gewicht für Vormittags-Termine bei Pflichtveranstaltungen
    weight_morning_required: int = Field(30, ge=0,
        description="Gewicht: Pflichtkurse vormittags")
    # Grenze "Vormittag": Termine mit Beginn davor gelten als Vormittag
    morning_cutoff: str = Field("12:00",
        description="Ende des Vormittags (HH:MM)")
    # Maximale Anzahl Verbesserungsdurchläufe
    max_passes: int = Field(5, ge=1, le=100,
        description="Max. Durchläufe der lokalen Suche")

    @field_validator("morning_cutoff")
    @classmethod
    def _normalize_clock(cls, v: str) -> str:
        return normalize_clock(v)

    @property
    def is_active(self) -> bool:
        return any((
            self.weight_instructor_preferences,
            self.weight_gaps,
            self.weight_distribution,
            self.weight_morning_required,
        ))


# ─── SOLVER ───

class SolverConfig(BaseModel):
    """Solver-Konfiguration: harte Constraints, Suchbudget, Nachoptimierung."""
    # Harte Constraints
    hard: HardConstraintConfig = Field(default_factory=HardConstraintConfig)
    # Weiche Constraints (nur bei optimize=True relevant)
    soft: SoftConstraintConfig = Field(default_factory=SoftConstraintConfig)
    # Max. geprüfte Kandidaten (Slot × Raum) pro Lauf (0 = unbegrenzt)
    max_steps: int = Field(0, ge=0,
        description="Suchbudget in Kandidaten-Prüfungen (0=unbegrenzt)")
    # Zeitlimit in Sekunden (0 = unbegrenzt)
    time_limit_seconds: float = Field(0, ge=0,
        description="Zeitlimit Suche (Sekunden, 0=unbegrenzt)")
    # Nachoptimierung (lokale Suche) nach der ersten gültigen Lösung
    optimize: bool = Field(False,
        description="Lokale Suche über weiche Constraints")


# ─── KALENDER ───

class CalendarConfig(BaseModel):
    """iCalendar-Export."""
    # PRODID des Kalenders
    prodid: str = Field("-//Campus Management System//EN")
    # Domain-Teil der Event-UIDs
    uid_domain: str = Field("campus.edu.tr")
    # Anzeigename (X-WR-CALNAME); leer = weglassen
    calendar_name: str = Field("Stundenplan")
    # IANA-Zeitzone für DTSTART/DTEND; None = floating local time
    timezone: Optional[str] = Field(None,
        description="IANA-Zeitzone, z.B. 'Europe/Istanbul'")
    # Standard-Zeitraum in Wochen ab heute, wenn kein Ende angegeben ist
    default_weeks: int = Field(16, ge=1, le=104)

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, v: Optional[str]) -> Optional[str]:
        if not v:
            return None
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unbekannte Zeitzone: {v!r}") from e
        return v


# ─── SPEICHER ───

class StorageConfig(BaseModel):
    """Ablage des Datensatzes."""
    # Pfad der JSON-Datei mit Kursen, Räumen, Einschreibungen und Zuweisungen
    data_path: str = Field("output/campus_data.json")


# ─── GESAMT-CONFIG ───

class CampusConfig(BaseModel):
    """Gesamtkonfiguration der Raum- und Zeitplanung."""
    # Name der Einrichtung
    institution_name: str = Field("Muster-Universität",
        description="Name der Einrichtung")
    # Standard-Zeitraster
    time_grid: TimeGridConfig
    # Solver-Konfiguration
    solver: SolverConfig = Field(default_factory=SolverConfig)
    # Kalender-Export
    calendar: CalendarConfig = Field(default_factory=CalendarConfig)
    # Datenablage
    storage: StorageConfig = Field(default_factory=StorageConfig)
