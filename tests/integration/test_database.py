"""Integration tests for database schema and storage-level uniqueness"""
import uuid

import pytest
from sqlalchemy import inspect
from sqlalchemy.exc import IntegrityError

from app.database import utcnow
from app.models import CompletedLesson, Enrollment, QuizSubmission


@pytest.mark.asyncio
async def test_all_tables_exist(db_engine):
    """Verify every table is created from model metadata"""
    async with db_engine.connect() as conn:
        tables = await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names())

    expected_tables = {
        "users",
        "courses",
        "enrollments",
        "enrollment_lessons",
        "quizzes",
        "quiz_submissions",
        "assignments",
    }

    for table in expected_tables:
        assert table in tables, f"Table {table} not found in database"


@pytest.mark.asyncio
async def test_enrollment_pair_is_unique(session_factory, make_user):
    """A second row for the same (student, course) is rejected by the store"""
    student = await make_user()
    course_id = uuid.uuid4()

    async with session_factory() as session:
        session.add(Enrollment(id=uuid.uuid4(), student_id=student.id, course_id=course_id))
        await session.commit()

        session.add(Enrollment(id=uuid.uuid4(), student_id=student.id, course_id=course_id))
        with pytest.raises(IntegrityError):
            await session.commit()


@pytest.mark.asyncio
async def test_completed_lesson_is_unique(session_factory, make_user):
    student = await make_user()
    enrollment_id = uuid.uuid4()

    async with session_factory() as session:
        session.add(Enrollment(id=enrollment_id, student_id=student.id, course_id=uuid.uuid4()))
        session.add(CompletedLesson(enrollment_id=enrollment_id, lesson_index=0, completed_at=utcnow()))
        await session.commit()

        session.add(CompletedLesson(enrollment_id=enrollment_id, lesson_index=0, completed_at=utcnow()))
        with pytest.raises(IntegrityError):
            await session.commit()


@pytest.mark.asyncio
async def test_quiz_submission_is_unique(session_factory, make_user, make_course, make_quiz):
    student = await make_user()
    quiz = await make_quiz(await make_course(await make_user()))

    def submission():
        return QuizSubmission(
            id=uuid.uuid4(),
            student_id=student.id,
            quiz_id=quiz.id,
            course_id=quiz.course_id,
            score=100,
            total_questions=3,
            correct_answers=3,
            answers=[],
        )

    async with session_factory() as session:
        session.add(submission())
        await session.commit()

        session.add(submission())
        with pytest.raises(IntegrityError):
            await session.commit()


@pytest.mark.asyncio
async def test_progress_bounds_enforced(session_factory, make_user):
    student = await make_user()

    async with session_factory() as session:
        session.add(Enrollment(id=uuid.uuid4(), student_id=student.id, course_id=uuid.uuid4(), progress=101))
        with pytest.raises(IntegrityError):
            await session.commit()
