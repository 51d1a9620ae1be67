from sqlalchemy import CheckConstraint, Column, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import relationship

from app.db.session import Base


class AttendanceTally(Base):
    """
    Running count of present events per (student, class), across all days.
    Rows are provisioned when a student is enrolled in a class; the attendance
    workflow only increments and decrements count.
    """

    __tablename__ = "attendance_tallies"
    __table_args__ = (
        UniqueConstraint("student_id", "class_id", name="uq_attendance_tally_student_class"),
        CheckConstraint("count >= 0", name="ck_attendance_tally_count_non_negative"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    student_id = Column(Integer, ForeignKey("students.id", ondelete="CASCADE"), nullable=False)
    class_id = Column(Integer, ForeignKey("classes.id", ondelete="CASCADE"), nullable=False)
    count = Column(Integer, nullable=False, default=0)
    # Planned meetings, copied from the class subject
    total_expected = Column(Integer, nullable=False, default=0)

    student = relationship("Student", foreign_keys=[student_id])
    school_class = relationship("SchoolClass", foreign_keys=[class_id])
