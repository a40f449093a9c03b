"""Renderer für die Terminal-Anzeige der Wochenansicht.

Wird von cmd_show (Rich) verwendet.
"""

from typing import TYPE_CHECKING, Iterable, Optional

if TYPE_CHECKING:
    from export.weekly_view import WeeklySchedule
    from models.timeslot import TimeSlot, Weekday


def render_weekly_rows(
    weekly: "WeeklySchedule",
    time_slots: Optional[Iterable["TimeSlot"]] = None,
    mode: str = "student",
) -> tuple[list["Weekday"], list[list[str]]]:
    """Gibt (Tage, Tabellenzeilen) für die Wochenansicht zurück.

    Jede Zeile: [Zeitfenster, Tag 1, Tag 2, …]. Freie Zellen enthalten '—'.
    Überlappende Termine, die nicht exakt ins Raster fallen, bekommen eine
    eigene Zeile.
    """
    from export.helpers import build_time_rows, format_entries, visible_days

    slots = list(time_slots) if time_slots is not None else None
    days = visible_days(weekly, slots)
    rows: list[list[str]] = []

    for start, end in build_time_rows(weekly, slots):
        cells = [f"{start}–{end}"]
        for day in days:
            entries = [
                e for e in weekly.days.get(day, [])
                if e.start_time == start and e.end_time == end
            ]
            cells.append(format_entries(entries, mode) if entries else "—")
        rows.append(cells)

    return days, rows


def render_weekly_table(
    weekly: "WeeklySchedule",
    title: str,
    time_slots: Optional[Iterable["TimeSlot"]] = None,
    mode: str = "student",
):
    """Baut eine Rich-Tabelle aus render_weekly_rows()."""
    from rich.table import Table
    from rich import box

    days, rows = render_weekly_rows(weekly, time_slots, mode)
    table = Table(title=title, box=box.ROUNDED, show_lines=True)
    table.add_column("Zeit", style="bold", width=13)
    for day in days:
        table.add_column(day.short_name, width=16)
    for row in rows:
        table.add_row(*row)
    return table
