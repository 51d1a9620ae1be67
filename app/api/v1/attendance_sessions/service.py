"""Attendance session lifecycle: open, restart, status, close."""

import logging
from datetime import date

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.attendance_code import generate_attendance_code
from app.core.enums import SessionState
from app.core.exceptions import NotFound, StorageError
from app.core.models import AttendanceEvent, SchoolClass
from app.core.services import get_class_or_404

from . import store
from .scheduler import CodeRotationScheduler
from .schemas import (
    SessionCloseResponse,
    SessionDetail,
    SessionOpenResponse,
    SessionRestartResponse,
    SessionStatusResponse,
)

logger = logging.getLogger(__name__)

NO_ACTIVE_SESSION_MESSAGE = "No active attendance session for this class"


async def open_session(
    db: AsyncSession,
    scheduler: CodeRotationScheduler,
    class_id: int,
) -> SessionOpenResponse:
    """
    Open the attendance window for a class.
    Already active: return the current code and make sure rotation is running, no new code.
    """
    await get_class_or_404(db, class_id)
    try:
        existing = await store.get_session(db, class_id)
        if existing:
            if scheduler.ensure_running(class_id):
                logger.warning("Rotation for active class %s was not running, restarted", class_id)
            return SessionOpenResponse(
                class_id=class_id,
                code=existing.code,
                already_active=True,
                rotation_interval_seconds=scheduler.interval_seconds,
            )

        code = generate_attendance_code()
        try:
            await store.create_session(db, class_id, code)
        except IntegrityError:
            # Lost the race against a concurrent open; the winner's session stands.
            await db.rollback()
            winner = await store.get_session(db, class_id)
            if not winner:
                raise StorageError("Failed to open attendance session")
            scheduler.ensure_running(class_id)
            return SessionOpenResponse(
                class_id=class_id,
                code=winner.code,
                already_active=True,
                rotation_interval_seconds=scheduler.interval_seconds,
            )
    except SQLAlchemyError as e:
        await db.rollback()
        raise StorageError("Failed to open attendance session") from e

    scheduler.start(class_id)
    logger.info("Attendance session opened for class %s", class_id)
    return SessionOpenResponse(
        class_id=class_id,
        code=code,
        already_active=False,
        rotation_interval_seconds=scheduler.interval_seconds,
    )


async def restart_session(
    db: AsyncSession,
    scheduler: CodeRotationScheduler,
    class_id: int,
) -> SessionRestartResponse:
    """Issue a new code now and push the next scheduled rotation a full interval out."""
    try:
        existing = await store.get_session(db, class_id)
        if not existing:
            raise NotFound(NO_ACTIVE_SESSION_MESSAGE)
        old_code = existing.code
        new_code = generate_attendance_code(previous=old_code)
        if not await store.update_code(db, class_id, new_code):
            # Closed between the read and the write
            raise NotFound(NO_ACTIVE_SESSION_MESSAGE)
    except SQLAlchemyError as e:
        await db.rollback()
        raise StorageError("Failed to restart attendance session") from e

    scheduler.start(class_id)
    logger.info("Attendance session restarted for class %s", class_id)
    return SessionRestartResponse(
        class_id=class_id,
        old_code=old_code,
        new_code=new_code,
        rotation_interval_seconds=scheduler.interval_seconds,
    )


async def get_session_status(
    db: AsyncSession,
    class_id: int,
    rotation_interval_seconds: float,
) -> SessionStatusResponse:
    try:
        session_row = await store.get_session(db, class_id)
        if not session_row:
            return SessionStatusResponse(
                class_id=class_id,
                status=SessionState.INACTIVE,
                rotation_interval_seconds=rotation_interval_seconds,
            )
        school_class = await db.get(SchoolClass, class_id)
        count_result = await db.execute(
            select(func.count(AttendanceEvent.id)).where(
                AttendanceEvent.class_id == class_id,
                AttendanceEvent.day == date.today(),
            )
        )
        today_count = count_result.scalar_one()
    except SQLAlchemyError as e:
        raise StorageError("Failed to read attendance session status") from e

    return SessionStatusResponse(
        class_id=class_id,
        status=SessionState.ACTIVE,
        session=SessionDetail(
            code=session_row.code,
            class_name=school_class.name if school_class else "",
            opened_at=session_row.opened_at,
            updated_at=session_row.updated_at,
            today_attendance_count=today_count,
        ),
        rotation_interval_seconds=rotation_interval_seconds,
    )


async def close_session(
    db: AsyncSession,
    scheduler: CodeRotationScheduler,
    class_id: int,
) -> SessionCloseResponse:
    """End the code window. Attendance events and tallies are left as they are."""
    try:
        existing = await store.get_session(db, class_id)
        if not existing:
            raise NotFound(NO_ACTIVE_SESSION_MESSAGE)
        last_code = existing.code
        stopped = scheduler.stop(class_id)
        rows_removed = await store.delete_session(db, class_id)
    except SQLAlchemyError as e:
        await db.rollback()
        raise StorageError("Failed to close attendance session") from e

    logger.info("Attendance session closed for class %s", class_id)
    return SessionCloseResponse(
        class_id=class_id,
        last_code=last_code,
        rows_removed=rows_removed,
        rotation_stopped=stopped,
    )
