"""Attendance report API router."""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_user
from app.auth.rbac import require_roles
from app.auth.schemas import CurrentUser
from app.core.enums import UserRole
from app.core.exceptions import ServiceError
from app.core.services import get_student_for_user
from app.db.session import get_db

from . import service
from .schemas import AttendanceReportRow, StudentRecapResponse

router = APIRouter(prefix="/api/v1/reports", tags=["reports"])


@router.get(
    "/attendance",
    response_model=List[AttendanceReportRow],
    dependencies=[Depends(require_roles(UserRole.TEACHER, UserRole.ADMIN))],
)
async def list_attendance_reports(
    class_id: Optional[int] = Query(None, description="Only tallies of this class"),
    db: AsyncSession = Depends(get_db),
):
    """Attendance count and percentage for every student in every class."""
    return await service.list_attendance_reports(db, class_id)


@router.get(
    "/attendance/export",
    dependencies=[Depends(require_roles(UserRole.TEACHER, UserRole.ADMIN))],
)
async def export_attendance_reports(
    class_id: Optional[int] = Query(None, description="Only tallies of this class"),
    db: AsyncSession = Depends(get_db),
) -> Response:
    """Download the attendance report as an Excel file."""
    rows = await service.list_attendance_reports(db, class_id)
    content = service.build_report_workbook(rows)
    return Response(
        content=content,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": "attachment; filename=attendance_report.xlsx"},
    )


@router.get(
    "/attendance/students/{student_id}",
    response_model=StudentRecapResponse,
)
async def get_student_recap(
    student_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Staff: any student. Student: own recap only."""
    try:
        if current_user.role == UserRole.STUDENT:
            own = await get_student_for_user(db, current_user.id)
            if own.id != student_id:
                raise HTTPException(
                    status_code=status.HTTP_403_FORBIDDEN,
                    detail="Cannot view other students' attendance",
                )
        return await service.get_student_recap(db, student_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())
