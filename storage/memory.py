"""In-Memory-Ablage auf Basis eines CampusData-Datensatzes."""

import logging
from typing import Iterable, Optional

from models.assignment import Assignment
from models.campus_data import CampusData
from models.classroom import Classroom
from models.course import Course, Section
from models.enrollment import Enrollment
from models.person import Faculty, Student
from storage.base import CampusStore, ClassroomFilter, SectionFilter

logger = logging.getLogger(__name__)


class InMemoryCampusStore(CampusStore):
    """Hält den Datensatz im Speicher.

    Schreibzugriffe erzeugen einen neuen CampusData-Stand und tauschen die
    Referenz in einem Schritt aus (_commit); Leser sehen nie einen Zwischenstand.
    """

    def __init__(self, data: Optional[CampusData] = None) -> None:
        self._data = data if data is not None else CampusData()

    @property
    def data(self) -> CampusData:
        return self._data

    # ─── Sections / Kurse / Räume ─────────────────────────────────────────────

    def list_sections(self, filter: Optional[SectionFilter] = None) -> list[Section]:
        filter = filter or SectionFilter()
        courses = self._data.course_map()
        return [
            s.with_course(courses.get(s.course_id))
            for s in self._data.sections
            if filter.matches(s)
        ]

    def list_sections_for_instructor(self, instructor_id: str) -> list[Section]:
        return self.list_sections(SectionFilter(instructor_id=instructor_id))

    def list_courses(self, course_ids: Optional[Iterable[str]] = None) -> list[Course]:
        if course_ids is None:
            return list(self._data.courses)
        wanted = set(course_ids)
        return [c for c in self._data.courses if c.id in wanted]

    def list_classrooms(self, filter: Optional[ClassroomFilter] = None) -> list[Classroom]:
        filter = filter or ClassroomFilter()
        return [r for r in self._data.classrooms if filter.matches(r)]

    # ─── Einschreibungen ──────────────────────────────────────────────────────

    def list_active_enrollments(self, section_ids: Iterable[str]) -> list[Enrollment]:
        wanted = set(section_ids)
        return [
            e for e in self._data.enrollments
            if e.is_active and e.section_id in wanted
        ]

    def list_active_enrollments_for_student(self, student_id: str) -> list[Enrollment]:
        return [
            e for e in self._data.enrollments
            if e.is_active and e.student_id == student_id
        ]

    # ─── Zuweisungen ──────────────────────────────────────────────────────────

    def replace_assignments_for_sections(
        self, section_ids: Iterable[str], assignments: list[Assignment]
    ) -> None:
        ids = set(section_ids)
        stray = sorted({a.section_id for a in assignments} - ids)
        if stray:
            raise ValueError(
                f"Zuweisungen für Sections außerhalb des Batches: {', '.join(stray)}"
            )
        kept = [a for a in self._data.assignments if a.section_id not in ids]
        removed = len(self._data.assignments) - len(kept)
        self._commit(self._data.model_copy(update={"assignments": kept + list(assignments)}))
        logger.info(
            f"Zuweisungen ersetzt: {removed} gelöscht, {len(assignments)} eingefügt "
            f"({len(ids)} Sections)"
        )

    def list_assignments_for_sections(self, section_ids: Iterable[str]) -> list[Assignment]:
        wanted = set(section_ids)
        return [a for a in self._data.assignments if a.section_id in wanted]

    # ─── Profile ──────────────────────────────────────────────────────────────

    def find_student_by_user(self, user_id: str) -> Optional[Student]:
        return next((s for s in self._data.students if s.user_id == user_id), None)

    def find_faculty_by_user(self, user_id: str) -> Optional[Faculty]:
        return next((f for f in self._data.faculty if f.user_id == user_id), None)

    # ─── Intern ───────────────────────────────────────────────────────────────

    def _commit(self, data: CampusData) -> None:
        self._data = data
