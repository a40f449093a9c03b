"""Gemeinsame Hilfsfunktionen für Terminal-Ausgabe und Kalender-Export."""

from datetime import date, datetime
from typing import Iterable, Optional

from export.weekly_view import WeeklyEntry, WeeklySchedule
from models.timeslot import TimeSlot, Weekday
from models.timewindow import to_minutes


def parse_date(value: str) -> date:
    """Liest ein Datum als YYYY-MM-DD oder DD.MM.YYYY."""
    for fmt in ("%Y-%m-%d", "%d.%m.%Y"):
        try:
            return datetime.strptime(value.strip(), fmt).date()
        except ValueError:
            continue
    raise ValueError(f"Ungültiges Datum: {value!r} (erwartet YYYY-MM-DD oder DD.MM.YYYY)")


# ─── Zeitraster-Hilfsfunktionen ───────────────────────────────────────────────

def build_time_rows(
    weekly: WeeklySchedule, time_slots: Optional[Iterable[TimeSlot]] = None
) -> list[tuple[str, str]]:
    """Alle Zeitfenster (start, end) der Woche, nach Beginn sortiert.

    Fenster des Rasters erscheinen auch ohne Termin; Termine außerhalb des
    Rasters bekommen eine eigene Zeile.
    """
    windows = {(e.start_time, e.end_time) for e in weekly.entries()}
    if time_slots is not None:
        windows.update((s.start, s.end) for s in time_slots)
    return sorted(windows, key=lambda w: (to_minutes(w[0]), to_minutes(w[1])))


def visible_days(
    weekly: WeeklySchedule, time_slots: Optional[Iterable[TimeSlot]] = None
) -> list[Weekday]:
    """Tage mit Raster-Slots oder Terminen, in Wochenreihenfolge."""
    days = {d for d, entries in weekly.days.items() if entries}
    if time_slots is not None:
        days.update(s.day for s in time_slots)
    return [d for d in Weekday if d in days]


# ─── Zelleninhalt-Formatierung ────────────────────────────────────────────────

def format_entry(entry: WeeklyEntry, mode: str = "student") -> str:
    """Formatiert einen einzelnen Termin als Zelleninhalt.

    mode='student': "Kurs-Code\nRaum"
    mode='faculty': "Kurs-Code (Section)\nRaum"
    """
    if mode == "faculty":
        return f"{entry.course_code} ({entry.section_number})\n{entry.classroom.label}"
    return f"{entry.course_code}\n{entry.classroom.label}"


def format_entries(entries: list[WeeklyEntry], mode: str = "student") -> str:
    """Mehrere Termine in einer Zelle (getrennt durch ──)."""
    if not entries:
        return ""
    if len(entries) == 1:
        return format_entry(entries[0], mode)
    return "\n──\n".join(format_entry(e, mode) for e in entries)
