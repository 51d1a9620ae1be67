"""Attendance API router."""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_user
from app.auth.rbac import require_roles
from app.auth.schemas import CurrentUser
from app.core.enums import UserRole
from app.core.exceptions import ServiceError
from app.core.services import get_student_for_user
from app.db.session import get_db

from . import service, tally
from .schemas import (
    AttendanceEntryResponse,
    AttendanceSubmitRequest,
    CancelAttendanceRequest,
    CancelAttendanceResponse,
    DailyRosterResponse,
    ManualEntryRequest,
    TallyReconcileResponse,
)

router = APIRouter(prefix="/api/v1/attendance", tags=["attendance"])

staff_only = Depends(require_roles(UserRole.TEACHER, UserRole.ADMIN))


@router.post(
    "/submit",
    response_model=AttendanceEntryResponse,
    dependencies=[Depends(require_roles(UserRole.STUDENT))],
)
async def submit_attendance(
    payload: AttendanceSubmitRequest,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Student marks themselves present with the code shown in class."""
    try:
        student = await get_student_for_user(db, current_user.id)
        return await service.submit_attendance(db, payload.class_id, student.id, payload.code)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())


@router.post(
    "/{class_id}/manual",
    response_model=AttendanceEntryResponse,
    dependencies=[staff_only],
)
async def record_manual_entry(
    class_id: int,
    payload: ManualEntryRequest,
    db: AsyncSession = Depends(get_db),
):
    """Teacher records attendance for a student by NIS."""
    try:
        return await service.record_manual_entry(db, class_id, payload.nis, payload.status)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())


@router.post(
    "/{class_id}/cancel",
    response_model=CancelAttendanceResponse,
    dependencies=[staff_only],
)
async def cancel_attendance(
    class_id: int,
    payload: CancelAttendanceRequest,
    db: AsyncSession = Depends(get_db),
):
    """Cancel today's attendance for a student; repeated calls are no-ops."""
    try:
        return await service.cancel_attendance(db, class_id, payload.nis)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())


@router.get(
    "/{class_id}/roster",
    response_model=DailyRosterResponse,
    dependencies=[staff_only],
)
async def get_daily_roster(
    class_id: int,
    att_date: Optional[date] = Query(None, alias="date", description="Attendance date, defaults to today"),
    db: AsyncSession = Depends(get_db),
):
    """Who has checked in for the class on a day, with present/cancelled counts."""
    try:
        return await service.get_daily_roster(db, class_id, att_date)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())


@router.post(
    "/{class_id}/tallies/reconcile",
    response_model=TallyReconcileResponse,
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_roles(UserRole.ADMIN))],
)
async def reconcile_tallies(
    class_id: int,
    db: AsyncSession = Depends(get_db),
):
    """Rebuild the class's tallies from the attendance ledger."""
    try:
        corrected = await tally.reconcile_class_tallies(db, class_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())
    return TallyReconcileResponse(class_id=class_id, corrected_student_ids=corrected)
