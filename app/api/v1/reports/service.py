"""Attendance reports built from the tallies."""

import io
from typing import List, Optional

from openpyxl import Workbook
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from app.core.exceptions import NotFound
from app.core.models import AttendanceTally, SchoolClass, Student, Subject, User
from app.core.services import get_student_or_404

from .schemas import AttendanceReportRow, StudentRecapResponse


def attendance_percentage(count: int, total_expected: int) -> float:
    if total_expected <= 0:
        return 0.0
    return round(count * 100.0 / total_expected, 2)


def _report_stmt():
    teacher = aliased(User)
    return (
        select(AttendanceTally, Student, SchoolClass, Subject.name, teacher.full_name)
        .join(Student, Student.id == AttendanceTally.student_id)
        .join(SchoolClass, SchoolClass.id == AttendanceTally.class_id)
        .outerjoin(Subject, Subject.id == SchoolClass.subject_id)
        .outerjoin(teacher, teacher.id == SchoolClass.teacher_id)
    )


def _to_row(tally, student, school_class, subject_name, teacher_name) -> AttendanceReportRow:
    return AttendanceReportRow(
        tally_id=tally.id,
        student_id=student.id,
        student_name=student.full_name,
        nis=student.nis,
        class_id=school_class.id,
        class_name=school_class.name,
        subject_name=subject_name,
        teacher_name=teacher_name,
        attendance_count=tally.count,
        total_expected=tally.total_expected,
        percentage=attendance_percentage(tally.count, tally.total_expected),
    )


async def list_attendance_reports(
    db: AsyncSession,
    class_id: Optional[int] = None,
) -> List[AttendanceReportRow]:
    """All tallies, optionally for one class, ordered by class then student name."""
    stmt = _report_stmt()
    if class_id is not None:
        stmt = stmt.where(AttendanceTally.class_id == class_id)
    stmt = stmt.order_by(SchoolClass.name.asc(), Student.full_name.asc())
    result = await db.execute(stmt)
    return [_to_row(*row) for row in result.all()]


async def get_student_recap(db: AsyncSession, student_id: int) -> StudentRecapResponse:
    """Per-class attendance of one student with percentages."""
    student = await get_student_or_404(db, student_id)
    stmt = (
        _report_stmt()
        .where(AttendanceTally.student_id == student_id)
        .order_by(Subject.name.asc(), SchoolClass.name.asc())
    )
    result = await db.execute(stmt)
    rows = [_to_row(*row) for row in result.all()]
    if not rows:
        raise NotFound("No attendance recap for this student")
    return StudentRecapResponse(
        student_id=student.id,
        student_name=student.full_name,
        nis=student.nis,
        classes=rows,
    )


REPORT_SHEET_NAME = "Attendance"
REPORT_HEADERS = (
    "nis",
    "student_name",
    "class_name",
    "subject_name",
    "teacher_name",
    "attendance_count",
    "total_expected",
    "percentage",
)


def build_report_workbook(rows: List[AttendanceReportRow]) -> bytes:
    """Excel file with one line per tally, same columns as the JSON report."""
    wb = Workbook()
    ws = wb.active
    ws.title = REPORT_SHEET_NAME
    ws.append(list(REPORT_HEADERS))
    for row in rows:
        ws.append([
            row.nis,
            row.student_name,
            row.class_name,
            row.subject_name or "",
            row.teacher_name or "",
            row.attendance_count,
            row.total_expected,
            row.percentage,
        ])
    bio = io.BytesIO()
    wb.save(bio)
    return bio.getvalue()
