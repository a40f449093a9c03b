"""Wochenansicht: persistierte Zuweisungen eines Benutzers nach Tagen sortiert."""

import logging
from typing import Iterable, Iterator, Union

from pydantic import BaseModel, Field

from models.assignment import Assignment
from models.classroom import Classroom
from models.course import Course, Section
from models.person import UserRole
from models.timeslot import ALL_WEEKDAYS, Weekday
from models.timewindow import to_minutes
from storage.base import CampusStore, ClassroomFilter, SectionFilter

logger = logging.getLogger(__name__)


class ClassroomRef(BaseModel):
    """Raumangabe eines Termins."""

    id: str
    building: str = ""
    room_number: str = ""

    @property
    def label(self) -> str:
        text = f"{self.building} {self.room_number}".strip()
        return text or self.id


class WeeklyEntry(BaseModel):
    """Ein Termin in der Wochenansicht."""

    section_id: str
    section_number: str
    course_code: str
    course_name: str
    day: Weekday
    start_time: str
    end_time: str
    classroom: ClassroomRef
    meeting_index: int = 0

    @property
    def sort_key(self) -> tuple[int, int, str]:
        # Numerisch über Minuten-Offsets, nie lexikalisch
        return (to_minutes(self.start_time), to_minutes(self.end_time), self.course_code)


def _empty_days() -> dict[Weekday, list[WeeklyEntry]]:
    return {day: [] for day in ALL_WEEKDAYS}


class WeeklySchedule(BaseModel):
    """Alle sieben Wochentage, jeweils aufsteigend nach Beginn sortiert."""

    days: dict[Weekday, list[WeeklyEntry]] = Field(default_factory=_empty_days)

    @classmethod
    def empty(cls) -> "WeeklySchedule":
        return cls()

    def entries(self) -> Iterator[WeeklyEntry]:
        """Alle Termine, Montag zuerst."""
        for day in ALL_WEEKDAYS:
            yield from self.days.get(day, [])

    @property
    def total_meetings(self) -> int:
        return sum(len(v) for v in self.days.values())

    @property
    def is_empty(self) -> bool:
        return self.total_meetings == 0


class WeeklyScheduleBuilder:
    """Baut die Wochenansicht für Studierende oder Lehrende.

    Verwendung:
        builder = WeeklyScheduleBuilder(store)
        weekly = builder.get_user_schedule("u-17", "student")
    """

    def __init__(self, store: CampusStore) -> None:
        self.store = store

    def get_user_schedule(self, user_id: str, role: Union[UserRole, str]) -> WeeklySchedule:
        """Unbekannte Rolle oder fehlendes Profil ergeben eine leere Woche."""
        try:
            role = UserRole(role)
        except ValueError:
            logger.warning(f"Unbekannte Rolle '{role}' für Benutzer {user_id}")
            return WeeklySchedule.empty()

        if role == UserRole.STUDENT:
            sections = self._student_sections(user_id)
        else:
            sections = self._faculty_sections(user_id)
        if sections is None:
            logger.info(f"Kein {role.value}-Profil für Benutzer {user_id}")
            return WeeklySchedule.empty()
        if not sections:
            return WeeklySchedule.empty()

        section_ids = [s.id for s in sections]
        assignments = self.store.list_assignments_for_sections(section_ids)
        courses = self.store.list_courses({s.course_id for s in sections})
        room_ids = sorted({a.classroom_id for a in assignments})
        classrooms = self.store.list_classrooms(ClassroomFilter(ids=room_ids))
        return self.build(assignments, sections, courses, classrooms)

    def _student_sections(self, user_id: str):
        student = self.store.find_student_by_user(user_id)
        if student is None:
            return None
        enrollments = self.store.list_active_enrollments_for_student(student.id)
        ids = list(dict.fromkeys(e.section_id for e in enrollments))
        if not ids:
            return []
        return self.store.list_sections(SectionFilter(ids=ids))

    def _faculty_sections(self, user_id: str):
        faculty = self.store.find_faculty_by_user(user_id)
        if faculty is None:
            return None
        return self.store.list_sections_for_instructor(faculty.id)

    @staticmethod
    def build(
        assignments: Iterable[Assignment],
        sections: Iterable[Section],
        courses: Iterable[Course],
        classrooms: Iterable[Classroom],
    ) -> WeeklySchedule:
        """Gruppiert Zuweisungen nach Tag und sortiert nach Beginn.

        Zuweisungen zu Sections, die nicht übergeben wurden, werden ignoriert.
        """
        section_map = {s.id: s for s in sections}
        course_map = {c.id: c for c in courses}
        room_map = {r.id: r for r in classrooms}

        weekly = WeeklySchedule.empty()
        for a in assignments:
            section = section_map.get(a.section_id)
            if section is None:
                continue
            course = course_map.get(section.course_id)
            room = room_map.get(a.classroom_id)
            weekly.days[a.day_of_week].append(WeeklyEntry(
                section_id=section.id,
                section_number=section.section_number,
                course_code=course.code if course else section.course_id,
                course_name=course.name if course else "",
                day=a.day_of_week,
                start_time=a.start_time,
                end_time=a.end_time,
                classroom=ClassroomRef(
                    id=a.classroom_id,
                    building=room.building if room else "",
                    room_number=room.room_number if room else "",
                ),
                meeting_index=a.meeting_index,
            ))

        for entries in weekly.days.values():
            entries.sort(key=lambda e: e.sort_key)
        return weekly
