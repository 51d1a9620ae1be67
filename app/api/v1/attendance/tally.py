"""
Attendance tallies: running present-count per (student, class).

increment/decrement only stage an UPDATE in the caller's transaction; the ledger
commits the event and the tally together. reconcile_* rebuild counts from the
ledger when the two have drifted.
"""

import logging
from typing import List

from sqlalchemy import case, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.enums import AttendanceStatus
from app.core.exceptions import StorageError
from app.core.models import AttendanceEvent, AttendanceTally

logger = logging.getLogger(__name__)


async def increment_tally(db: AsyncSession, student_id: int, class_id: int) -> bool:
    """Add one present. Returns False when no tally row exists for the pair."""
    result = await db.execute(
        update(AttendanceTally)
        .where(AttendanceTally.student_id == student_id, AttendanceTally.class_id == class_id)
        .values(count=AttendanceTally.count + 1)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount > 0


async def decrement_tally(db: AsyncSession, student_id: int, class_id: int) -> bool:
    """Remove one present, never going below zero. Returns False when no tally row exists."""
    result = await db.execute(
        update(AttendanceTally)
        .where(AttendanceTally.student_id == student_id, AttendanceTally.class_id == class_id)
        .values(count=case((AttendanceTally.count > 0, AttendanceTally.count - 1), else_=0))
        .execution_options(synchronize_session=False)
    )
    return result.rowcount > 0


async def count_present_events(db: AsyncSession, student_id: int, class_id: int) -> int:
    result = await db.execute(
        select(func.count(AttendanceEvent.id)).where(
            AttendanceEvent.student_id == student_id,
            AttendanceEvent.class_id == class_id,
            AttendanceEvent.status == AttendanceStatus.PRESENT.value,
        )
    )
    return result.scalar_one()


async def reconcile_tally(db: AsyncSession, student_id: int, class_id: int) -> bool:
    """Set the tally count to the ledger's present count. Returns True if the row changed."""
    result = await db.execute(
        select(AttendanceTally).where(
            AttendanceTally.student_id == student_id,
            AttendanceTally.class_id == class_id,
        ).execution_options(populate_existing=True)
    )
    tally = result.scalar_one_or_none()
    if not tally:
        return False
    expected = await count_present_events(db, student_id, class_id)
    if tally.count == expected:
        return False
    logger.warning(
        "Tally drift for student %s in class %s: stored %s, ledger %s",
        student_id, class_id, tally.count, expected,
    )
    tally.count = expected
    await db.commit()
    return True


async def reconcile_class_tallies(db: AsyncSession, class_id: int) -> List[int]:
    """Reconcile every tally of a class. Returns the student ids whose tally was corrected."""
    corrected: List[int] = []
    try:
        result = await db.execute(
            select(AttendanceTally.student_id).where(AttendanceTally.class_id == class_id)
        )
        for student_id in result.scalars().all():
            if await reconcile_tally(db, student_id, class_id):
                corrected.append(student_id)
    except SQLAlchemyError as e:
        await db.rollback()
        raise StorageError("Failed to reconcile attendance tallies") from e
    return corrected
