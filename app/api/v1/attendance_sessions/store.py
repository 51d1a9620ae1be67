"""Persistence for attendance sessions, keyed by class_id."""

from datetime import datetime
from typing import Optional

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.models import AttendanceSession


async def get_session(db: AsyncSession, class_id: int) -> Optional[AttendanceSession]:
    result = await db.execute(select(AttendanceSession).where(AttendanceSession.class_id == class_id))
    return result.scalar_one_or_none()


async def create_session(db: AsyncSession, class_id: int, code: str) -> AttendanceSession:
    """Insert the session row. Raises IntegrityError if the class already has one."""
    now = datetime.utcnow()
    session_row = AttendanceSession(class_id=class_id, code=code, opened_at=now, updated_at=now)
    db.add(session_row)
    await db.commit()
    await db.refresh(session_row)
    return session_row


async def update_code(db: AsyncSession, class_id: int, code: str) -> bool:
    """Replace the code of an active session. Returns False when no session row exists."""
    result = await db.execute(
        update(AttendanceSession)
        .where(AttendanceSession.class_id == class_id)
        .values(code=code, updated_at=datetime.utcnow())
    )
    await db.commit()
    return result.rowcount > 0


async def delete_session(db: AsyncSession, class_id: int) -> int:
    result = await db.execute(delete(AttendanceSession).where(AttendanceSession.class_id == class_id))
    await db.commit()
    return result.rowcount
