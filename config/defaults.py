from config.schema import (
    CampusConfig,
    SlotWindow,
    TimeGridConfig,
)
from models.timeslot import TimeSlot


def default_time_grid() -> TimeGridConfig:
    """Standard-Zeitraster: Montag–Freitag, vier 90-Minuten-Blöcke.

    Blockraster:
    1. Block  09:00 - 10:30
       ── Pause (15 min) ──
    2. Block  10:45 - 12:15
       ── Mittagspause (75 min) ──
    3. Block  13:30 - 15:00
       ── Pause (15 min) ──
    4. Block  15:15 - 16:45
    """
    return TimeGridConfig(
        slots=[
            SlotWindow(start="09:00", end="10:30"),
            SlotWindow(start="10:45", end="12:15"),
            SlotWindow(start="13:30", end="15:00"),
            SlotWindow(start="15:15", end="16:45"),
        ],
    )


def default_time_slots() -> list[TimeSlot]:
    """Die 20 Standard-Slots (Mo–Fr × 4) in Suchreihenfolge."""
    return default_time_grid().time_slots()


def default_campus_config() -> CampusConfig:
    """Komplette Default-Konfiguration."""
    return CampusConfig(
        institution_name="Muster-Universität",
        time_grid=default_time_grid(),
    )


# ─── RAUM-FEATURES ───
# Bekannte Ausstattungsmerkmale (Schlüssel in Classroom.features).

ROOM_FEATURES: dict[str, str] = {
    "projector":  "Beamer",
    "whiteboard": "Whiteboard",
    "computers":  "PC-Pool",
    "lab":        "Laborausstattung",
    "recording":  "Vorlesungsaufzeichnung",
}
