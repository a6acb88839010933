"""
Enrollment Engine

Owns the enrollment entity: one enrollment per (student, course), progress
derived from the course syllabus, and the automatic active -> completed
transition.

Every multi-step mutation runs inside the request's transaction:
- enroll inserts with ON CONFLICT DO NOTHING against the
  (student_id, course_id) unique constraint, then increments the course
  counter server-side (enrolled_count = enrolled_count + 1)
- lesson completion first locks the enrollment row (SELECT ... FOR UPDATE),
  so completions of the same enrollment run one after another; it then
  inserts with ON CONFLICT DO NOTHING against the (enrollment_id,
  lesson_index) unique constraint and recomputes progress from a COUNT of
  the stored indices that are still inside the syllabus
- completion is a conditional UPDATE ... WHERE status = 'active', so it can
  only happen once
"""
import logging
import uuid
from typing import Any, Dict, List, Optional

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import conflict_insert, utcnow
from app.errors import ConflictError, NotFoundError, ValidationError
from app.models.course import Course
from app.models.enrollment import Enrollment, CompletedLesson, ENROLLMENT_STATUSES
from app.models.user import User
from app.services.course_catalog import serialize_course
from app.services.identity_directory import user_summary
from app.services.progress import compute_progress, should_complete

logger = logging.getLogger(__name__)


def serialize_enrollment(enrollment: Enrollment) -> Dict[str, Any]:
    return {
        "id": enrollment.id,
        "student_id": enrollment.student_id,
        "course_id": enrollment.course_id,
        "enrolled_at": enrollment.enrolled_at,
        "completed_lessons": [
            {"lesson_index": lesson.lesson_index, "completed_at": lesson.completed_at}
            for lesson in enrollment.completed_lessons
        ],
        "progress": enrollment.progress,
        "status": enrollment.status,
        "last_accessed_at": enrollment.last_accessed_at,
        "completed_at": enrollment.completed_at,
        "created_at": enrollment.created_at,
        "updated_at": enrollment.updated_at,
    }


def with_progress(enrollment: Enrollment, course: Optional[Course]) -> Dict[str, Any]:
    """Enrollment payload annotated with progress derived at read time"""
    total_lessons = course.total_lessons if course is not None else 0
    # Indices past the end of a shortened syllabus no longer count
    completed_count = sum(
        1 for lesson in enrollment.completed_lessons if lesson.lesson_index < total_lessons
    )

    data = serialize_enrollment(enrollment)
    data["progress"] = compute_progress(completed_count, total_lessons)
    data["total_lessons"] = total_lessons
    data["completed_lessons_count"] = completed_count
    return data


def owned_enrollment_query(student_id: uuid.UUID, enrollment_id: uuid.UUID, lock: bool = False):
    """
    SELECT for one enrollment of one student.

    With lock=True the row is taken FOR UPDATE, serializing concurrent
    writers of the same enrollment until the transaction ends.
    """
    stmt = (
        select(Enrollment)
        .where(Enrollment.id == enrollment_id, Enrollment.student_id == student_id)
        .execution_options(populate_existing=True)
    )
    if lock:
        stmt = stmt.with_for_update()
    return stmt


class EnrollmentService:
    """Enrollment lifecycle for the authenticated student"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _get_owned(self, student_id: uuid.UUID, enrollment_id: uuid.UUID, lock: bool = False) -> Enrollment:
        """
        Fetch an enrollment scoped to its student.

        Another student's enrollment resolves as NotFound so that its
        existence is not confirmed.
        """
        result = await self.session.execute(owned_enrollment_query(student_id, enrollment_id, lock=lock))
        enrollment = result.scalar_one_or_none()
        if enrollment is None:
            raise NotFoundError("Enrollment not found")
        return enrollment

    async def enroll(self, student: User, course_id: uuid.UUID) -> Dict[str, Any]:
        """
        Enroll a student in a course.

        Raises:
            NotFoundError: Course does not exist
            ConflictError: Student is already enrolled
        """
        course = await self.session.get(Course, course_id)
        if course is None:
            raise NotFoundError("Course not found")

        # Payment is not verified; enrollment is unconditional once unique
        now = utcnow()
        stmt = (
            conflict_insert(self.session, Enrollment)
            .values(
                id=uuid.uuid4(),
                student_id=student.id,
                course_id=course.id,
                enrolled_at=now,
                progress=0,
                status="active",
                last_accessed_at=now,
                created_at=now,
                updated_at=now,
            )
            .on_conflict_do_nothing(index_elements=["student_id", "course_id"])
            .returning(Enrollment.id)
        )
        enrollment_id = (await self.session.execute(stmt)).scalar_one_or_none()

        if enrollment_id is None:
            raise ConflictError("You are already enrolled in this course")

        await self.session.execute(
            update(Course)
            .where(Course.id == course.id)
            .values(enrolled_count=Course.enrolled_count + 1)
            .execution_options(synchronize_session=False)
        )
        await self.session.commit()

        await self.session.refresh(course)
        enrollment = await self.session.get(Enrollment, enrollment_id)
        instructor = await self.session.get(User, course.instructor_id)

        logger.info(f"Student {student.id} enrolled in course {course.id} (enrollment {enrollment_id})")

        data = serialize_enrollment(enrollment)
        data["course"] = serialize_course(course, instructor)
        return data

    async def list_my_courses(self, student: User, status: str = "active") -> List[Dict[str, Any]]:
        """
        List the student's enrollments with the given status.

        The inner join on courses drops enrollments whose course was deleted.
        """
        if status not in ENROLLMENT_STATUSES:
            raise ValidationError(
                "Validation error",
                errors=[{"field": "status", "message": f"status must be one of {list(ENROLLMENT_STATUSES)}"}],
            )

        stmt = (
            select(Enrollment, Course, User)
            .join(Course, Course.id == Enrollment.course_id)
            .outerjoin(User, User.id == Course.instructor_id)
            .where(Enrollment.student_id == student.id, Enrollment.status == status)
            .order_by(Enrollment.last_accessed_at.desc())
        )
        rows = (await self.session.execute(stmt)).all()

        result = []
        for enrollment, course, instructor in rows:
            data = with_progress(enrollment, course)
            data["course"] = serialize_course(course, instructor)
            result.append(data)
        return result

    async def get_enrollment(self, student: User, enrollment_id: uuid.UUID) -> Dict[str, Any]:
        enrollment = await self._get_owned(student.id, enrollment_id)
        course = await self.session.get(Course, enrollment.course_id)
        if course is None:
            raise NotFoundError("Course not found")

        instructor = await self.session.get(User, course.instructor_id)
        data = with_progress(enrollment, course)
        data["course"] = serialize_course(course, instructor)
        return data

    async def complete_lesson(self, student: User, enrollment_id: uuid.UUID, lesson_index: int) -> Dict[str, Any]:
        """
        Mark a lesson of the course as completed.

        Re-marking a lesson is a no-op on the completed set. Progress and
        last-accessed are refreshed either way.

        Returns:
            Dict with progress, completed_lessons, total_lessons, status

        Raises:
            NotFoundError: Enrollment (or its course) not found for this student
            ValidationError: lesson_index outside the syllabus
        """
        enrollment = await self._get_owned(student.id, enrollment_id, lock=True)

        course = await self.session.get(Course, enrollment.course_id)
        if course is None:
            raise NotFoundError("Course not found")

        total_lessons = course.total_lessons
        if lesson_index < 0 or lesson_index >= total_lessons:
            raise ValidationError(
                "Invalid lesson index",
                errors=[{"field": "lesson_index", "message": f"Lesson index must be below {total_lessons}"}],
            )

        now = utcnow()
        await self.session.execute(
            conflict_insert(self.session, CompletedLesson)
            .values(enrollment_id=enrollment.id, lesson_index=lesson_index, completed_at=now)
            .on_conflict_do_nothing(index_elements=["enrollment_id", "lesson_index"])
        )

        completed_count = await self.session.scalar(
            select(func.count())
            .select_from(CompletedLesson)
            .where(
                CompletedLesson.enrollment_id == enrollment.id,
                CompletedLesson.lesson_index < total_lessons,
            )
        )
        progress = compute_progress(completed_count, total_lessons)

        await self.session.execute(
            update(Enrollment)
            .where(Enrollment.id == enrollment.id)
            .values(progress=progress, last_accessed_at=now)
            .execution_options(synchronize_session=False)
        )

        if should_complete(progress, enrollment.status):
            result = await self.session.execute(
                update(Enrollment)
                .where(Enrollment.id == enrollment.id, Enrollment.status == "active")
                .values(status="completed", completed_at=now)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount:
                logger.info(f"Enrollment {enrollment.id} completed course {course.id}")

        await self.session.commit()

        enrollment = await self._get_owned(student.id, enrollment.id)
        return {
            "progress": enrollment.progress,
            "completed_lessons": completed_count,
            "total_lessons": total_lessons,
            "status": enrollment.status,
            "completed_at": enrollment.completed_at,
        }

    async def touch(self, student: User, enrollment_id: uuid.UUID) -> None:
        """Record that the student opened the course"""
        enrollment = await self._get_owned(student.id, enrollment_id)
        enrollment.last_accessed_at = utcnow()
        await self.session.commit()

    async def list_by_course(self, course_id: uuid.UUID) -> List[Dict[str, Any]]:
        """Admin view of every enrollment in a course"""
        course = await self.session.get(Course, course_id)

        stmt = (
            select(Enrollment, User)
            .outerjoin(User, User.id == Enrollment.student_id)
            .where(Enrollment.course_id == course_id)
            .order_by(Enrollment.enrolled_at.desc())
        )
        rows = (await self.session.execute(stmt)).all()

        result = []
        for enrollment, student in rows:
            data = with_progress(enrollment, course)
            data["student"] = user_summary(student)
            result.append(data)
        return result
