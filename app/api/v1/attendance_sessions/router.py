"""Attendance session API router (teacher side of the code workflow)."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.rbac import require_roles
from app.core.enums import UserRole
from app.core.exceptions import ServiceError
from app.db.session import get_db

from . import service
from .dependencies import get_rotation_scheduler
from .scheduler import CodeRotationScheduler
from .schemas import (
    SessionCloseResponse,
    SessionOpenResponse,
    SessionRestartResponse,
    SessionStatusResponse,
)

router = APIRouter(prefix="/api/v1/attendance-sessions", tags=["attendance-sessions"])

staff_only = Depends(require_roles(UserRole.TEACHER, UserRole.ADMIN))


@router.post(
    "/{class_id}/open",
    response_model=SessionOpenResponse,
    dependencies=[staff_only],
)
async def open_session(
    class_id: int,
    db: AsyncSession = Depends(get_db),
    scheduler: CodeRotationScheduler = Depends(get_rotation_scheduler),
):
    """Open the class's attendance window, or return the running one."""
    try:
        return await service.open_session(db, scheduler, class_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())


@router.post(
    "/{class_id}/restart",
    response_model=SessionRestartResponse,
    dependencies=[staff_only],
)
async def restart_session(
    class_id: int,
    db: AsyncSession = Depends(get_db),
    scheduler: CodeRotationScheduler = Depends(get_rotation_scheduler),
):
    """Replace the code immediately and restart the rotation clock."""
    try:
        return await service.restart_session(db, scheduler, class_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())


@router.get(
    "/{class_id}/status",
    response_model=SessionStatusResponse,
    dependencies=[staff_only],
)
async def get_session_status(
    class_id: int,
    db: AsyncSession = Depends(get_db),
    scheduler: CodeRotationScheduler = Depends(get_rotation_scheduler),
):
    """Active session details including the current code, or inactive."""
    try:
        return await service.get_session_status(db, class_id, scheduler.interval_seconds)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())


@router.post(
    "/{class_id}/close",
    response_model=SessionCloseResponse,
    dependencies=[staff_only],
)
async def close_session(
    class_id: int,
    db: AsyncSession = Depends(get_db),
    scheduler: CodeRotationScheduler = Depends(get_rotation_scheduler),
):
    """End the attendance window; recorded attendance stays."""
    try:
        return await service.close_session(db, scheduler, class_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())
