"""Subjects taught in classes. planned_meetings feeds AttendanceTally.total_expected."""

from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, String

from app.db.session import Base


class Subject(Base):
    __tablename__ = "subjects"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    code = Column(String(50), nullable=False, unique=True)
    planned_meetings = Column(Integer, nullable=False, default=16)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
