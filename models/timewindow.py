"""Zeitfenster-Hilfsfunktionen: Uhrzeiten als Minuten-Offsets und Überlappung.

Alle Uhrzeiten sind "HH:MM"-Strings im 24h-Format. Verglichen wird immer
numerisch über den Minuten-Offset ab Mitternacht, nie lexikalisch.
"""

import re

_CLOCK_RE = re.compile(r"^(\d{1,2}):(\d{2})$")

MINUTES_PER_DAY = 24 * 60


def to_minutes(clock: str) -> int:
    """Wandelt "HH:MM" in Minuten seit Mitternacht um ("09:30" → 570).

    Raises:
        ValueError: bei nicht wohlgeformter Uhrzeit.
    """
    match = _CLOCK_RE.match(clock.strip()) if isinstance(clock, str) else None
    if match is None:
        raise ValueError(f"Ungültige Uhrzeit: {clock!r} (erwartet 'HH:MM')")
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        raise ValueError(f"Uhrzeit außerhalb des Bereichs: {clock!r}")
    return hours * 60 + minutes


def format_minutes(minutes: int) -> str:
    """Gegenstück zu to_minutes (570 → "09:30")."""
    if not 0 <= minutes < MINUTES_PER_DAY:
        raise ValueError(f"Minuten-Offset außerhalb eines Tages: {minutes}")
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def normalize_clock(clock: str) -> str:
    """Bringt eine Uhrzeit in die kanonische Form ("9:05" → "09:05")."""
    return format_minutes(to_minutes(clock))


def overlaps(start1: str, end1: str, start2: str, end2: str) -> bool:
    """Halboffene Intervalle [start, end) überlappen?

    Sich berührende Intervalle (09:00–10:00 und 10:00–11:00) überlappen NICHT.
    """
    return to_minutes(start1) < to_minutes(end2) and to_minutes(end1) > to_minutes(start2)


def gap_minutes(end1: str, start2: str) -> int:
    """Leerlauf zwischen dem Ende eines Termins und dem Beginn des nächsten (≥ 0)."""
    return max(0, to_minutes(start2) - to_minutes(end1))
