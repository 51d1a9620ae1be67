from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from app.db.session import Base


class Student(Base):
    """
    Student record. nis is the school-issued identifier teachers type in for manual entries.
    user_id links the record to a login; students without a login can still be marked manually.
    """

    __tablename__ = "students"

    id = Column(Integer, primary_key=True, autoincrement=True)
    nis = Column(String(50), nullable=False, unique=True, index=True)
    full_name = Column(String(255), nullable=False)
    class_id = Column(Integer, ForeignKey("classes.id", ondelete="SET NULL"), nullable=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, unique=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

    user = relationship("User", back_populates="student_profile")
    school_class = relationship("SchoolClass", foreign_keys=[class_id])
