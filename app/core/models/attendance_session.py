"""Open attendance window for a class. The row exists only while the session is active."""

from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from app.db.session import Base


class AttendanceSession(Base):
    """One row per class at most: class_id is the primary key."""

    __tablename__ = "attendance_sessions"

    class_id = Column(Integer, ForeignKey("classes.id", ondelete="CASCADE"), primary_key=True, autoincrement=False)
    code = Column(String(6), nullable=False)
    opened_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    # Last code rotation (scheduled tick or explicit restart)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

    school_class = relationship("SchoolClass", foreign_keys=[class_id])
