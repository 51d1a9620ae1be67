import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./.pytest-default.db")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")

from dataclasses import dataclass
from typing import AsyncGenerator, Dict

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from app.api.v1.attendance_sessions.scheduler import CodeRotationScheduler
from app.auth.models import User
from app.auth.security import create_access_token, hash_password
from app.core.enums import UserRole
from app.core.models import AttendanceTally, SchoolClass, Student, Subject
from app.db.seed_demo import provision_tally
from app.db.session import Base, get_db
from app.main import app

TEST_PASSWORD = "StrongPass123"
TEST_PASSWORD_HASH = hash_password(TEST_PASSWORD)

# Long enough that no tick fires during a request-level test
DEFAULT_TEST_INTERVAL = 60.0


@dataclass
class School:
    admin: User
    teacher: User
    student_user: User
    subject: Subject
    school_class: SchoolClass
    student: Student
    other_student: Student


@pytest.fixture()
async def engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """File-backed SQLite so concurrent sessions see each other's commits."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", echo=False, future=True)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture()
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture()
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture()
async def scheduler(session_factory) -> AsyncGenerator[CodeRotationScheduler, None]:
    sched = CodeRotationScheduler(session_factory, DEFAULT_TEST_INTERVAL)
    yield sched
    await sched.shutdown()


@pytest.fixture()
async def fast_scheduler(session_factory) -> AsyncGenerator[CodeRotationScheduler, None]:
    sched = CodeRotationScheduler(session_factory, 0.05)
    yield sched
    await sched.shutdown()


@pytest.fixture()
async def client(session_factory, scheduler) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to the FastAPI app, one DB session per request."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.state.rotation_scheduler = scheduler
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
    app.state.rotation_scheduler = None


async def _add_user(db: AsyncSession, login_id: str, full_name: str, role: UserRole) -> User:
    user = User(
        login_id=login_id,
        full_name=full_name,
        password_hash=TEST_PASSWORD_HASH,
        role=role.value,
    )
    db.add(user)
    await db.flush()
    return user


@pytest.fixture()
async def school(db_session: AsyncSession) -> School:
    """Admin, teacher, one class with two enrolled students (only the first has a login)."""
    admin = await _add_user(db_session, "1001", "Admin One", UserRole.ADMIN)
    teacher = await _add_user(db_session, "2001", "Teacher One", UserRole.TEACHER)
    student_user = await _add_user(db_session, "3001", "Ani Student", UserRole.STUDENT)

    subject = Subject(name="Mathematics", code="MATH-01", planned_meetings=16)
    db_session.add(subject)
    await db_session.flush()

    school_class = SchoolClass(name="X-A Mathematics", teacher_id=teacher.id, subject_id=subject.id)
    db_session.add(school_class)
    await db_session.flush()

    student = Student(nis="3001", full_name="Ani Student", class_id=school_class.id, user_id=student_user.id)
    other_student = Student(nis="3002", full_name="Budi Student", class_id=school_class.id)
    db_session.add_all([student, other_student])
    await db_session.flush()

    await provision_tally(db_session, student, school_class)
    await provision_tally(db_session, other_student, school_class)
    await db_session.commit()

    return School(
        admin=admin,
        teacher=teacher,
        student_user=student_user,
        subject=subject,
        school_class=school_class,
        student=student,
        other_student=other_student,
    )


def auth_headers(user: User) -> Dict[str, str]:
    token = create_access_token(subject={
        "sub": str(user.id),
        "role": user.role,
        "display_name": user.full_name,
    })
    return {"Authorization": f"Bearer {token}"}


async def tally_count(session_factory, student_id: int, class_id: int) -> int:
    """Read a tally through a fresh session so no cached state leaks in."""
    async with session_factory() as db:
        result = await db.execute(
            select(AttendanceTally.count).where(
                AttendanceTally.student_id == student_id,
                AttendanceTally.class_id == class_id,
            )
        )
        return result.scalar_one()
