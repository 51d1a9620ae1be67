"""Lookups shared by the attendance services."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFound
from app.core.models import SchoolClass, Student


async def get_class_or_404(db: AsyncSession, class_id: int) -> SchoolClass:
    school_class = await db.get(SchoolClass, class_id)
    if not school_class:
        raise NotFound(f"Class {class_id} not found")
    return school_class


async def get_student_or_404(db: AsyncSession, student_id: int) -> Student:
    student = await db.get(Student, student_id)
    if not student:
        raise NotFound(f"Student {student_id} not found")
    return student


async def get_student_by_nis_or_404(db: AsyncSession, nis: str) -> Student:
    result = await db.execute(select(Student).where(Student.nis == nis))
    student = result.scalar_one_or_none()
    if not student:
        raise NotFound(f"Student with NIS {nis} not found")
    return student


async def get_student_for_user(db: AsyncSession, user_id: int) -> Student:
    """Student record linked to a login."""
    result = await db.execute(select(Student).where(Student.user_id == user_id))
    student = result.scalar_one_or_none()
    if not student:
        raise NotFound("No student record is linked to this account")
    return student
