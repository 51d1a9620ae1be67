from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text
from sqlalchemy.orm import relationship

from app.db.session import Base


class User(Base):
    """Login identity for admins, teachers and students."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    # NIP for admins and teachers, NIS for students
    login_id = Column(String(50), nullable=False, unique=True, index=True)
    full_name = Column(String(255), nullable=False)
    password_hash = Column(Text, nullable=False)
    # admin | teacher | student
    role = Column(String(20), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

    student_profile = relationship("Student", back_populates="user", uselist=False)
