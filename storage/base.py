"""Abstrakte Speicher-Schnittstellen für Sections, Räume, Einschreibungen,
Profile und Zuweisungen.

Der Planungskern liest und schreibt nur über diese Schnittstellen; konkrete
Ablagen siehe storage.memory und storage.json_store. Fehler der Ablage werden
unverändert an den Aufrufer weitergereicht.
"""

from abc import ABC, abstractmethod
from typing import Iterable, Optional

from pydantic import BaseModel

from models.assignment import Assignment
from models.classroom import Classroom
from models.course import Course, Section
from models.enrollment import Enrollment
from models.person import Faculty, Student


# ─── Filter ───────────────────────────────────────────────────────────────────

class SectionFilter(BaseModel):
    """Auswahl von Sections. None = kein Filter auf dieses Feld."""

    ids: Optional[list[str]] = None
    course_ids: Optional[list[str]] = None
    instructor_id: Optional[str] = None
    term: Optional[str] = None
    include_deleted: bool = False

    def matches(self, section: Section) -> bool:
        if section.is_deleted and not self.include_deleted:
            return False
        if self.ids is not None and section.id not in self.ids:
            return False
        if self.course_ids is not None and section.course_id not in self.course_ids:
            return False
        if self.instructor_id is not None and section.instructor_id != self.instructor_id:
            return False
        if self.term is not None and section.term != self.term:
            return False
        return True


class ClassroomFilter(BaseModel):
    """Auswahl von Räumen."""

    ids: Optional[list[str]] = None
    building: Optional[str] = None
    min_capacity: int = 0

    def matches(self, classroom: Classroom) -> bool:
        if self.ids is not None and classroom.id not in self.ids:
            return False
        if self.building is not None and classroom.building != self.building:
            return False
        return classroom.capacity >= self.min_capacity


# ─── Schnittstellen ───────────────────────────────────────────────────────────

class SectionStore(ABC):
    @abstractmethod
    def list_sections(self, filter: Optional[SectionFilter] = None) -> list[Section]:
        """Sections in Ablage-Reihenfolge; Kurs-Anforderungen sind übernommen."""

    @abstractmethod
    def list_sections_for_instructor(self, instructor_id: str) -> list[Section]:
        """Alle nicht gelöschten Sections einer Lehrkraft."""


class CourseStore(ABC):
    @abstractmethod
    def list_courses(self, course_ids: Optional[Iterable[str]] = None) -> list[Course]:
        ...


class ClassroomStore(ABC):
    @abstractmethod
    def list_classrooms(self, filter: Optional[ClassroomFilter] = None) -> list[Classroom]:
        ...


class EnrollmentStore(ABC):
    @abstractmethod
    def list_active_enrollments(self, section_ids: Iterable[str]) -> list[Enrollment]:
        """Aktive Einschreibungen, die eine der Sections betreffen."""

    @abstractmethod
    def list_active_enrollments_for_student(self, student_id: str) -> list[Enrollment]:
        ...


class AssignmentStore(ABC):
    @abstractmethod
    def replace_assignments_for_sections(
        self, section_ids: Iterable[str], assignments: list[Assignment]
    ) -> None:
        """Löscht alle Zeilen der Sections und fügt die neuen ein – atomar.

        Leser sehen entweder den alten oder den neuen Stand, nie einen Zwischenstand.
        """

    @abstractmethod
    def list_assignments_for_sections(self, section_ids: Iterable[str]) -> list[Assignment]:
        ...


class ProfileStore(ABC):
    @abstractmethod
    def find_student_by_user(self, user_id: str) -> Optional[Student]:
        ...

    @abstractmethod
    def find_faculty_by_user(self, user_id: str) -> Optional[Faculty]:
        ...


class CampusStore(
    SectionStore, CourseStore, ClassroomStore, EnrollmentStore, AssignmentStore, ProfileStore
):
    """Alle Schnittstellen in einem Objekt (so nutzt sie der SchedulingService)."""
