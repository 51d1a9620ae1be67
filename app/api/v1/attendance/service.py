"""Attendance ledger: code submissions, manual entries, cancellations and the daily roster."""

import logging
from datetime import date
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.attendance_sessions import store as session_store
from app.core.attendance_code import is_well_formed_code
from app.core.enums import AttendanceStatus
from app.core.exceptions import (
    ConsistencyWarning,
    DuplicateSubmission,
    InvalidCode,
    NotFound,
    StorageError,
    ValidationError,
)
from app.core.models import AttendanceEvent, SchoolClass, Student
from app.core.services import get_class_or_404, get_student_by_nis_or_404, get_student_or_404

from . import tally
from .schemas import (
    AttendanceEntryResponse,
    CancelAttendanceResponse,
    DailyRosterResponse,
    RosterEntry,
    RosterSummary,
)

logger = logging.getLogger(__name__)


async def _find_event(
    db: AsyncSession,
    student_id: int,
    class_id: int,
    day: date,
) -> Optional[AttendanceEvent]:
    result = await db.execute(
        select(AttendanceEvent).where(
            AttendanceEvent.student_id == student_id,
            AttendanceEvent.class_id == class_id,
            AttendanceEvent.day == day,
        )
    )
    return result.scalar_one_or_none()


async def _record_event(
    db: AsyncSession,
    school_class: SchoolClass,
    student: Student,
    status_value: AttendanceStatus,
) -> AttendanceEntryResponse:
    """
    Insert today's event and, for present, bump the tally in the same transaction.
    The unique (student, class, day) constraint settles concurrent submitters.
    """
    today = date.today()
    event = AttendanceEvent(
        class_id=school_class.id,
        student_id=student.id,
        status=status_value.value,
        day=today,
    )
    tally_found = True
    try:
        if await _find_event(db, student.id, school_class.id, today):
            logger.info("Duplicate attendance for student %s in class %s on %s", student.id, school_class.id, today)
            raise DuplicateSubmission()
        db.add(event)
        await db.flush()
        if status_value == AttendanceStatus.PRESENT:
            tally_found = await tally.increment_tally(db, student.id, school_class.id)
        await db.commit()
    except IntegrityError:
        await db.rollback()
        logger.info("Concurrent duplicate attendance for student %s in class %s", student.id, school_class.id)
        raise DuplicateSubmission()
    except SQLAlchemyError as e:
        await db.rollback()
        raise StorageError("Failed to record attendance") from e

    if not tally_found:
        logger.warning(
            "Attendance recorded for student %s in class %s but no tally row exists",
            student.id, school_class.id,
        )
        raise ConsistencyWarning(
            f"Attendance was recorded but the tally for student {student.id} in class "
            f"{school_class.id} is missing; run a tally reconciliation after provisioning it"
        )

    return AttendanceEntryResponse(
        class_id=school_class.id,
        student_id=student.id,
        nis=student.nis,
        student_name=student.full_name,
        status=status_value,
        day=event.day,
        recorded_at=event.created_at,
    )


async def submit_attendance(
    db: AsyncSession,
    class_id: int,
    student_id: int,
    code: str,
) -> AttendanceEntryResponse:
    """Student self check-in with the class's current code."""
    if not is_well_formed_code(code):
        raise ValidationError("Attendance code must be 6 letters or digits")
    school_class = await get_class_or_404(db, class_id)
    student = await get_student_or_404(db, student_id)

    active = await session_store.get_session(db, class_id)
    if not active or active.code != code:
        raise InvalidCode()

    return await _record_event(db, school_class, student, AttendanceStatus.PRESENT)


async def record_manual_entry(
    db: AsyncSession,
    class_id: int,
    nis: str,
    status_value: AttendanceStatus,
) -> AttendanceEntryResponse:
    """Teacher-entered attendance; no code needed, same one-per-day rule."""
    school_class = await get_class_or_404(db, class_id)
    student = await get_student_by_nis_or_404(db, nis)
    return await _record_event(db, school_class, student, status_value)


async def cancel_attendance(
    db: AsyncSession,
    class_id: int,
    nis: str,
) -> CancelAttendanceResponse:
    """Cancel today's attendance. Cancelling a cancelled event is a no-op."""
    student = await get_student_by_nis_or_404(db, nis)
    tally_found = True
    try:
        event = await _find_event(db, student.id, class_id, date.today())
        if not event:
            raise NotFound("No attendance recorded today for this student in this class")

        # Only the caller that flips present -> cancelled touches the tally
        result = await db.execute(
            update(AttendanceEvent)
            .where(
                AttendanceEvent.id == event.id,
                AttendanceEvent.status == AttendanceStatus.PRESENT.value,
            )
            .values(status=AttendanceStatus.CANCELLED.value)
        )
        changed = result.rowcount == 1
        if changed:
            tally_found = await tally.decrement_tally(db, student.id, class_id)
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        raise StorageError("Failed to cancel attendance") from e

    if not changed:
        return CancelAttendanceResponse(
            class_id=class_id,
            student_id=student.id,
            student_name=student.full_name,
            status=AttendanceStatus.CANCELLED,
            changed=False,
        )

    if not tally_found:
        logger.warning("Attendance cancelled for student %s in class %s but no tally row exists", student.id, class_id)
        raise ConsistencyWarning(
            f"Attendance was cancelled but the tally for student {student.id} in class {class_id} is missing"
        )

    return CancelAttendanceResponse(
        class_id=class_id,
        student_id=student.id,
        student_name=student.full_name,
        status=AttendanceStatus.CANCELLED,
        changed=True,
    )


async def get_daily_roster(
    db: AsyncSession,
    class_id: int,
    day: Optional[date] = None,
) -> DailyRosterResponse:
    """Events of a class on one day (default today), newest first, with present/cancelled counts."""
    day = day or date.today()
    try:
        school_class = await db.get(SchoolClass, class_id)
        result = await db.execute(
            select(AttendanceEvent, Student)
            .join(Student, AttendanceEvent.student_id == Student.id)
            .where(AttendanceEvent.class_id == class_id, AttendanceEvent.day == day)
            .order_by(AttendanceEvent.created_at.desc(), Student.full_name.asc())
        )
        rows = result.all()
    except SQLAlchemyError as e:
        raise StorageError("Failed to load attendance roster") from e

    records = []
    counts = {AttendanceStatus.PRESENT.value: 0, AttendanceStatus.CANCELLED.value: 0}
    for event, student in rows:
        counts[event.status] = counts.get(event.status, 0) + 1
        records.append(RosterEntry(
            student_id=student.id,
            nis=student.nis,
            full_name=student.full_name,
            status=event.status,
            recorded_at=event.created_at,
        ))
    return DailyRosterResponse(
        class_id=class_id,
        class_name=school_class.name if school_class else None,
        day=day,
        summary=RosterSummary(
            total=len(records),
            present=counts[AttendanceStatus.PRESENT.value],
            cancelled=counts[AttendanceStatus.CANCELLED.value],
        ),
        records=records,
    )
