"""Export-Modul: Wochenansicht und iCalendar-Export für den Stundenplan."""

from export.weekly_view import WeeklyEntry, WeeklySchedule, WeeklyScheduleBuilder
from export.ical_export import IcalExporter

__all__ = ["WeeklyEntry", "WeeklySchedule", "WeeklyScheduleBuilder", "IcalExporter"]
