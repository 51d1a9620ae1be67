"""
Create tables and seed a small demo school.

Run once against an empty database:
  python -m app.db.seed_demo

Creates:
- users: one admin (NIP 1001), one teacher (NIP 2001), two students (NIS 3001, 3002); password "password123"
- subjects: one subject with 16 planned meetings
- classes: one class taught by the teacher
- students + attendance_tallies: both students enrolled in the class
"""
import asyncio
from typing import Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from app.auth.models import User
from app.auth.security import hash_password
from app.core.enums import UserRole
from app.core.models import AttendanceTally, SchoolClass, Student, Subject
from app.db.session import AsyncSessionLocal, Base, engine

DEMO_PASSWORD = "password123"


async def create_tables(bind: AsyncEngine) -> None:
    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def provision_tally(db: AsyncSession, student: Student, school_class: SchoolClass) -> AttendanceTally:
    """Enrollment side of the tally lifecycle: one zeroed row per student-class pair."""
    total_expected = 0
    if school_class.subject_id:
        subject = await db.get(Subject, school_class.subject_id)
        total_expected = subject.planned_meetings if subject else 0
    tally = AttendanceTally(
        student_id=student.id,
        class_id=school_class.id,
        count=0,
        total_expected=total_expected,
    )
    db.add(tally)
    await db.flush()
    return tally


async def _ensure_user(db: AsyncSession, login_id: str, full_name: str, role: UserRole) -> Tuple[User, bool]:
    result = await db.execute(select(User).where(User.login_id == login_id))
    user = result.scalar_one_or_none()
    if user:
        return user, False
    user = User(
        login_id=login_id,
        full_name=full_name,
        password_hash=hash_password(DEMO_PASSWORD),
        role=role.value,
    )
    db.add(user)
    await db.flush()
    return user, True


async def seed_demo_data(db: AsyncSession) -> None:
    await _ensure_user(db, "1001", "Demo Admin", UserRole.ADMIN)
    teacher, _ = await _ensure_user(db, "2001", "Demo Teacher", UserRole.TEACHER)

    result = await db.execute(select(Subject).where(Subject.code == "MATH-01"))
    subject = result.scalar_one_or_none()
    if not subject:
        subject = Subject(name="Mathematics", code="MATH-01", planned_meetings=16)
        db.add(subject)
        await db.flush()
        print("Created subject:", subject.code)

    result = await db.execute(select(SchoolClass).where(SchoolClass.name == "X-A Mathematics"))
    school_class = result.scalar_one_or_none()
    if not school_class:
        school_class = SchoolClass(name="X-A Mathematics", teacher_id=teacher.id, subject_id=subject.id)
        db.add(school_class)
        await db.flush()
        print("Created class:", school_class.name)

    for nis, name in (("3001", "Ani Student"), ("3002", "Budi Student")):
        user, created = await _ensure_user(db, nis, name, UserRole.STUDENT)
        if not created:
            continue
        student = Student(nis=nis, full_name=name, class_id=school_class.id, user_id=user.id)
        db.add(student)
        await db.flush()
        await provision_tally(db, student, school_class)
        print("Enrolled student:", nis)

    await db.commit()
    print("Demo seed done.")


async def main() -> None:
    await create_tables(engine)
    async with AsyncSessionLocal() as db:
        try:
            await seed_demo_data(db)
        except Exception as e:
            await db.rollback()
            print("Error:", e)
            raise


if __name__ == "__main__":
    asyncio.run(main())
