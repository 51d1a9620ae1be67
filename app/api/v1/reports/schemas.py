from typing import List, Optional

from pydantic import BaseModel, Field


class AttendanceReportRow(BaseModel):
    """One tally with the names needed to display it."""

    tally_id: int
    student_id: int
    student_name: str
    nis: str
    class_id: int
    class_name: str
    subject_name: Optional[str] = None
    teacher_name: Optional[str] = None
    attendance_count: int
    total_expected: int
    percentage: float = Field(..., description="attendance_count / total_expected * 100, two decimals")


class StudentRecapResponse(BaseModel):
    student_id: int
    student_name: str
    nis: str
    classes: List[AttendanceReportRow]
