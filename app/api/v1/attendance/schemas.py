from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from app.core.enums import AttendanceStatus


class AttendanceSubmitRequest(BaseModel):
    """Student submits the code shown by the teacher."""

    class_id: int = Field(..., gt=0)
    code: str = Field(..., description="Current attendance code of the class session")

    @field_validator("code")
    @classmethod
    def _normalize_code(cls, v: str) -> str:
        return v.strip().upper()


class ManualEntryRequest(BaseModel):
    """Teacher records attendance for a student without a code."""

    nis: str = Field(..., min_length=1, max_length=50)
    status: AttendanceStatus = Field(AttendanceStatus.PRESENT, description="present or cancelled")


class CancelAttendanceRequest(BaseModel):
    nis: str = Field(..., min_length=1, max_length=50)


class AttendanceEntryResponse(BaseModel):
    """Echo of the recorded attendance event."""

    class_id: int
    student_id: int
    nis: str
    student_name: str
    status: AttendanceStatus
    day: date
    recorded_at: datetime


class CancelAttendanceResponse(BaseModel):
    class_id: int
    student_id: int
    student_name: str
    status: AttendanceStatus
    changed: bool = Field(..., description="False when the event was already cancelled")


class RosterEntry(BaseModel):
    student_id: int
    nis: str
    full_name: str
    status: AttendanceStatus
    recorded_at: datetime


class RosterSummary(BaseModel):
    total: int
    present: int
    cancelled: int


class DailyRosterResponse(BaseModel):
    class_id: int
    class_name: Optional[str] = None
    day: date
    summary: RosterSummary
    records: List[RosterEntry]


class TallyReconcileResponse(BaseModel):
    class_id: int
    corrected_student_ids: List[int]
