"""
Shared test fixtures

Each test gets its own SQLite database file; the API's get_db dependency is
overridden to hand out sessions bound to it.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./coursemaster-test.db")

import uuid
from datetime import datetime

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from app.database import get_db, init_models
from app.models import Course, Enrollment, Quiz, User
from main import app as api_app


@pytest.fixture(scope="function")
async def db_engine(tmp_path):
    """Fresh schema per test"""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        poolclass=NullPool,
    )
    await init_models(engine)
    yield engine
    await engine.dispose()


@pytest.fixture(scope="function")
def session_factory(db_engine):
    return async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest.fixture(scope="function")
async def client(session_factory):
    """HTTP client against the ASGI app with the test database injected"""
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    api_app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=api_app), base_url="http://test") as ac:
        yield ac
    api_app.dependency_overrides.clear()


def lessons(count: int) -> list:
    return [
        {"title": f"Lesson {i}", "description": "", "video_url": None, "duration": 10, "order": i}
        for i in range(count)
    ]


@pytest.fixture(scope="function")
def make_user(session_factory):
    """Factory inserting a user row"""
    async def _make_user(role: str = "student", is_active: bool = True, email: str = None) -> User:
        suffix = uuid.uuid4().hex[:8]
        user = User(
            id=uuid.uuid4(),
            external_uid=f"uid-{suffix}",
            email=email or f"user-{suffix}@example.com",
            display_name=f"User {suffix}",
            role=role,
            is_active=is_active,
        )
        async with session_factory() as session:
            session.add(user)
            await session.commit()
        return user

    return _make_user


@pytest.fixture(scope="function")
def make_course(session_factory):
    """Factory inserting a published course owned by the given instructor"""
    async def _make_course(instructor: User, lesson_count: int = 4, **fields) -> Course:
        values = {
            "id": uuid.uuid4(),
            "title": "Test Course",
            "description": "A course used in tests",
            "price": 10.0,
            "syllabus": lessons(lesson_count),
            "thumbnail": "https://img.example.com/course.png",
            "category": "Programming",
            "tags": ["python"],
            "instructor_id": instructor.id,
            "status": "published",
            "enrolled_count": 0,
            "batches": [],
        }
        values.update(fields)
        course = Course(**values)
        async with session_factory() as session:
            session.add(course)
            await session.commit()
        return course

    return _make_course


@pytest.fixture(scope="function")
def make_quiz(session_factory):
    """Factory inserting a quiz for a course"""
    async def _make_quiz(course: Course, correct=(0, 1, 2), is_published: bool = True) -> Quiz:
        quiz = Quiz(
            id=uuid.uuid4(),
            course_id=course.id,
            title="Checkpoint",
            description="Knowledge check",
            questions=[
                {"text": f"Question {i}", "options": ["A", "B", "C"], "correct_index": index}
                for i, index in enumerate(correct)
            ],
            is_published=is_published,
        )
        async with session_factory() as session:
            session.add(quiz)
            await session.commit()
        return quiz

    return _make_quiz


@pytest.fixture(scope="function")
def make_enrollment(session_factory):
    """Factory inserting an enrollment row directly (bypasses the engine)"""
    async def _make_enrollment(student: User, course_id: uuid.UUID, created_at: datetime = None) -> Enrollment:
        fields = {}
        if created_at is not None:
            fields = {"created_at": created_at, "enrolled_at": created_at}
        enrollment = Enrollment(
            id=uuid.uuid4(),
            student_id=student.id,
            course_id=course_id,
            status="active",
            progress=0,
            **fields,
        )
        async with session_factory() as session:
            session.add(enrollment)
            await session.commit()
        return enrollment

    return _make_enrollment
