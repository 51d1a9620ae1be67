from enum import Enum


class UserRole(str, Enum):
    ADMIN = "admin"
    TEACHER = "teacher"
    STUDENT = "student"


class AttendanceStatus(str, Enum):
    PRESENT = "present"
    CANCELLED = "cancelled"


class SessionState(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
