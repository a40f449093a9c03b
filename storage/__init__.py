"""Speicher-Modul: Schnittstellen und Ablagen (In-Memory, JSON-Datei)."""

from storage.base import (
    AssignmentStore,
    CampusStore,
    ClassroomFilter,
    ClassroomStore,
    CourseStore,
    EnrollmentStore,
    ProfileStore,
    SectionFilter,
    SectionStore,
)
from storage.memory import InMemoryCampusStore
from storage.json_store import JsonCampusStore

__all__ = [
    "AssignmentStore",
    "CampusStore",
    "ClassroomFilter",
    "ClassroomStore",
    "CourseStore",
    "EnrollmentStore",
    "ProfileStore",
    "SectionFilter",
    "SectionStore",
    "InMemoryCampusStore",
    "JsonCampusStore",
]
