from app.auth.models import User
from app.core.models.attendance_event import AttendanceEvent
from app.core.models.attendance_session import AttendanceSession
from app.core.models.attendance_tally import AttendanceTally
from app.core.models.class_model import SchoolClass
from app.core.models.student import Student
from app.core.models.subject import Subject

__all__ = [
    "AttendanceEvent",
    "AttendanceSession",
    "AttendanceTally",
    "SchoolClass",
    "Student",
    "Subject",
    "User",
]
