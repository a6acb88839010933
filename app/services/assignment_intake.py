"""
Assignment Intake

Records student-submitted assignment links per course. Submissions are
append-only; grading fills in the optional grade and feedback fields.
"""
import logging
import uuid
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import utcnow
from app.errors import NotFoundError
from app.models.assignment import Assignment
from app.models.course import Course
from app.models.user import User
from app.services.identity_directory import user_summary

logger = logging.getLogger(__name__)


def serialize_assignment(
    assignment: Assignment,
    course: Optional[Course] = None,
    student: Optional[User] = None,
) -> Dict[str, Any]:
    data = {
        "id": assignment.id,
        "student_id": assignment.student_id,
        "course_id": assignment.course_id,
        "title": assignment.title,
        "description": assignment.description,
        "submission_link": assignment.submission_link,
        "status": assignment.status,
        "grade": assignment.grade,
        "feedback": assignment.feedback,
        "submitted_at": assignment.submitted_at,
        "graded_at": assignment.graded_at,
    }
    if course is not None:
        data["course"] = {"id": course.id, "title": course.title, "category": course.category}
    if student is not None:
        data["student"] = user_summary(student)
    return data


class AssignmentIntake:

    def __init__(self, session: AsyncSession):
        self.session = session

    async def submit(self, data: Dict[str, Any], student: User) -> Dict[str, Any]:
        course = await self.session.get(Course, data["course_id"])
        if course is None:
            raise NotFoundError("Course not found")

        assignment = Assignment(
            id=uuid.uuid4(),
            student_id=student.id,
            course_id=course.id,
            title=data["title"],
            description=data.get("description") or None,
            submission_link=str(data["submission_link"]),
            status="submitted",
        )
        self.session.add(assignment)
        await self.session.commit()

        logger.info(f"Assignment {assignment.id} submitted by {student.id} for course {course.id}")
        return serialize_assignment(assignment, course)

    async def list_mine(self, student: User) -> List[Dict[str, Any]]:
        stmt = (
            select(Assignment, Course)
            .outerjoin(Course, Course.id == Assignment.course_id)
            .where(Assignment.student_id == student.id)
            .order_by(Assignment.created_at.desc())
        )
        rows = (await self.session.execute(stmt)).all()
        return [serialize_assignment(assignment, course) for assignment, course in rows]

    async def list_all(self) -> List[Dict[str, Any]]:
        stmt = (
            select(Assignment, Course, User)
            .outerjoin(Course, Course.id == Assignment.course_id)
            .outerjoin(User, User.id == Assignment.student_id)
            .order_by(Assignment.created_at.desc())
        )
        rows = (await self.session.execute(stmt)).all()
        return [serialize_assignment(*row) for row in rows]

    async def grade(self, assignment_id: uuid.UUID, grade: int, feedback: Optional[str]) -> Dict[str, Any]:
        assignment = await self.session.get(Assignment, assignment_id)
        if assignment is None:
            raise NotFoundError("Assignment not found")

        assignment.grade = grade
        assignment.feedback = feedback
        assignment.status = "graded"
        assignment.graded_at = utcnow()
        await self.session.commit()

        logger.info(f"Assignment {assignment.id} graded: {grade}")
        return serialize_assignment(assignment)
