from schoolhub.models.academic_record import AcademicRecord
from schoolhub.models.attendance import Attendance
from schoolhub.models.course import Course
from schoolhub.models.department import Department
from schoolhub.models.program import Program
from schoolhub.models.user import User

__all__ = ["AcademicRecord", "Attendance", "Course", "Department", "Program", "User"]
