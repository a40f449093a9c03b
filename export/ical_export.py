"""iCalendar-Export (RFC 5545) der Wochenansicht.

Jeder wöchentliche Termin wird im Zeitraum [start_date, end_date] (beide
inklusive) zu einem Event pro Woche expandiert. Kein RRULE: jedes Vorkommen
ist ein eigenes VEVENT mit stabiler UID aus Section und Datum. Mit
konfigurierter Zeitzone enthält der Kalender eine passende VTIMEZONE.
"""

import logging
from datetime import date, datetime, time, timedelta, timezone
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo

from config.schema import CalendarConfig
from export.weekly_view import WeeklyEntry, WeeklySchedule
from models.timeslot import ALL_WEEKDAYS, Weekday
from models.timewindow import to_minutes

logger = logging.getLogger(__name__)

CRLF = "\r\n"
MAX_LINE_OCTETS = 75


# ─── Text-Hilfen ──────────────────────────────────────────────────────────────

def escape_text(value: str) -> str:
    """Maskiert TEXT-Werte (Backslash, Semikolon, Komma, Zeilenumbruch)."""
    return (
        value.replace("\\", "\\\\")
        .replace(";", "\\;")
        .replace(",", "\\,")
        .replace("\r\n", "\\n")
        .replace("\n", "\\n")
    )


def fold_line(line: str) -> str:
    """Faltet eine Inhaltszeile auf höchstens 75 Oktette pro physischer Zeile.

    Folgezeilen beginnen mit einem Leerzeichen; UTF-8-Zeichen werden nie
    zerteilt.
    """
    if len(line.encode("utf-8")) <= MAX_LINE_OCTETS:
        return line
    parts: list[str] = []
    current: list[str] = []
    size = 0
    for ch in line:
        width = len(ch.encode("utf-8"))
        if size + width > MAX_LINE_OCTETS:
            parts.append("".join(current))
            current = [" "]
            size = 1
        current.append(ch)
        size += width
    parts.append("".join(current))
    return CRLF.join(parts)


def first_occurrence(start_date: date, day: Weekday) -> date:
    """Erstes Datum ≥ start_date, das auf den Wochentag fällt."""
    return start_date + timedelta(days=(day.python_weekday - start_date.weekday()) % 7)


def _format_local(d: date, clock: str) -> str:
    minutes = to_minutes(clock)
    return datetime.combine(d, time(minutes // 60, minutes % 60)).strftime("%Y%m%dT%H%M%S")


def format_utc_offset(offset: timedelta) -> str:
    """UTC-Offset im iCal-Format: +0300, -0430 (Sekunden nur wenn nötig)."""
    seconds = int(offset.total_seconds())
    sign = "-" if seconds < 0 else "+"
    hours, rest = divmod(abs(seconds), 3600)
    minutes, seconds = divmod(rest, 60)
    text = f"{sign}{hours:02d}{minutes:02d}"
    return text + f"{seconds:02d}" if seconds else text


def vtimezone_lines(tzid: str, start_date: date, end_date: date) -> list[str]:
    """VTIMEZONE für den Zeitraum: die zu Beginn gültige Regel plus jede
    Umstellung bis end_date (stundengenau in UTC gesucht)."""
    zone = ZoneInfo(tzid)
    moment = datetime.combine(start_date, time(), zone).astimezone(timezone.utc)
    end = datetime.combine(end_date + timedelta(days=1), time(), zone).astimezone(timezone.utc)

    local = moment.astimezone(zone)
    observances = [(local.replace(tzinfo=None), local.utcoffset(), local)]
    previous = local.utcoffset()
    while moment < end:
        moment += timedelta(hours=1)
        local = moment.astimezone(zone)
        if local.utcoffset() != previous:
            # Beginn in der bis dahin gültigen Ortszeit
            onset = (moment + previous).replace(tzinfo=None)
            observances.append((onset, previous, local))
            previous = local.utcoffset()

    lines = ["BEGIN:VTIMEZONE", f"TZID:{tzid}"]
    for onset, offset_from, local in observances:
        kind = "DAYLIGHT" if local.dst() else "STANDARD"
        lines += [
            f"BEGIN:{kind}",
            f"DTSTART:{onset.strftime('%Y%m%dT%H%M%S')}",
            f"TZOFFSETFROM:{format_utc_offset(offset_from)}",
            f"TZOFFSETTO:{format_utc_offset(local.utcoffset())}",
        ]
        if local.tzname():
            lines.append(f"TZNAME:{escape_text(local.tzname())}")
        lines.append(f"END:{kind}")
    lines.append("END:VTIMEZONE")
    return lines


# ─── Exporter ─────────────────────────────────────────────────────────────────

class IcalExporter:
    """Erzeugt iCalendar-Text aus einer WeeklySchedule.

    Verwendung:
        exporter = IcalExporter(config.calendar)
        text = exporter.generate_ical(weekly, date(2026, 10, 21), date(2026, 11, 17))
    """

    def __init__(self, config: Optional[CalendarConfig] = None) -> None:
        self.config = config or CalendarConfig()

    def default_range(self, today: Optional[date] = None) -> tuple[date, date]:
        """Zeitraum ab heute über config.default_weeks Wochen."""
        start = today or date.today()
        end = start + timedelta(weeks=self.config.default_weeks) - timedelta(days=1)
        return start, end

    def generate_ical(
        self,
        weekly: WeeklySchedule,
        start_date: date,
        end_date: date,
        dtstamp: Optional[datetime] = None,
    ) -> str:
        """Kompletter VCALENDAR-Text mit CRLF-Zeilenenden.

        Raises:
            ValueError: end_date liegt vor start_date
        """
        if end_date < start_date:
            raise ValueError(
                f"Enddatum {end_date.isoformat()} liegt vor Startdatum {start_date.isoformat()}"
            )
        stamp = (dtstamp or datetime.now(timezone.utc)).astimezone(timezone.utc)
        stamp_text = stamp.strftime("%Y%m%dT%H%M%SZ")

        lines = [
            "BEGIN:VCALENDAR",
            "VERSION:2.0",
            f"PRODID:{self.config.prodid}",
            "CALSCALE:GREGORIAN",
            "METHOD:PUBLISH",
        ]
        if self.config.calendar_name:
            lines.append(f"X-WR-CALNAME:{escape_text(self.config.calendar_name)}")
        if self.config.timezone:
            lines.append(f"X-WR-TIMEZONE:{self.config.timezone}")
            lines.extend(vtimezone_lines(self.config.timezone, start_date, end_date))

        events = 0
        for day in ALL_WEEKDAYS:
            entries = weekly.days.get(day, [])
            if not entries:
                continue
            current = first_occurrence(start_date, day)
            while current <= end_date:
                for entry in entries:
                    lines.extend(self._event(entry, current, stamp_text))
                    events += 1
                current += timedelta(days=7)

        lines.append("END:VCALENDAR")
        logger.debug(
            f"iCal erzeugt: {events} Events ({start_date.isoformat()} – {end_date.isoformat()})"
        )
        return CRLF.join(fold_line(line) for line in lines) + CRLF

    def export(
        self,
        weekly: WeeklySchedule,
        start_date: date,
        end_date: date,
        path: Path,
        dtstamp: Optional[datetime] = None,
    ) -> Path:
        """Schreibt die .ics-Datei und gibt den Pfad zurück."""
        return self.write(self.generate_ical(weekly, start_date, end_date, dtstamp), path)

    @staticmethod
    def write(text: str, path: Path) -> Path:
        """Schreibt bereits erzeugten iCal-Text unverändert in eine Datei."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        # newline="" damit die CRLF-Zeilenenden erhalten bleiben
        with open(path, "w", encoding="utf-8", newline="") as f:
            f.write(text)
        return path

    def _event(self, entry: WeeklyEntry, occurrence: date, stamp_text: str) -> list[str]:
        uid = f"{entry.section_id}-{occurrence.strftime('%Y%m%d')}"
        if entry.meeting_index:
            uid += f"-{entry.meeting_index}"
        tz = f";TZID={self.config.timezone}" if self.config.timezone else ""
        summary = f"{entry.course_code} - {entry.course_name}" if entry.course_name else entry.course_code
        location = f"{entry.classroom.building} {entry.classroom.room_number}".strip()
        return [
            "BEGIN:VEVENT",
            f"UID:{uid}@{self.config.uid_domain}",
            f"DTSTAMP:{stamp_text}",
            f"DTSTART{tz}:{_format_local(occurrence, entry.start_time)}",
            f"DTEND{tz}:{_format_local(occurrence, entry.end_time)}",
            f"SUMMARY:{escape_text(summary)}",
            f"LOCATION:{escape_text(location or entry.classroom.id)}",
            f"DESCRIPTION:{escape_text(f'Section {entry.section_number}')}",
            "END:VEVENT",
        ]


def generate_ical(
    weekly: WeeklySchedule,
    start_date: date,
    end_date: date,
    config: Optional[CalendarConfig] = None,
) -> str:
    """Kurzform mit Default-Kalenderkonfiguration."""
    return IcalExporter(config).generate_ical(weekly, start_date, end_date)
