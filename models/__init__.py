from models.timeslot import TimeSlot, Weekday, ALL_WEEKDAYS
from models.course import Course, Section
from models.classroom import Classroom
from models.enrollment import Enrollment, EnrollmentStatus, build_student_sections
from models.person import Student, Faculty, InstructorPreference, UserRole
from models.assignment import Assignment
from models.campus_data import CampusData, FeasibilityReport

__all__ = [
    "TimeSlot",
    "Weekday",
    "ALL_WEEKDAYS",
    "Course",
    "Section",
    "Classroom",
    "Enrollment",
    "EnrollmentStatus",
    "build_student_sections",
    "Student",
    "Faculty",
    "InstructorPreference",
    "UserRole",
    "Assignment",
    "CampusData",
    "FeasibilityReport",
]
