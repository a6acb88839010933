"""
Quiz Engine

Stores course quizzes and auto-grades submissions. A student keeps one
submission per quiz; resubmitting overwrites the previous result. The full
per-question breakdown (selected and correct option) is always returned to
the submitting student.
"""
import logging
import uuid
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import conflict_insert, utcnow
from app.errors import AuthorizationError, NotFoundError, ValidationError
from app.models.course import Course
from app.models.quiz import Quiz, QuizSubmission
from app.models.user import User
from app.services.permissions import can_modify
from app.services.progress import grade_answers

logger = logging.getLogger(__name__)


def serialize_quiz(quiz: Quiz) -> Dict[str, Any]:
    return {
        "id": quiz.id,
        "course_id": quiz.course_id,
        "title": quiz.title,
        "description": quiz.description,
        "questions": quiz.questions,
        "is_published": quiz.is_published,
        "created_at": quiz.created_at,
        "updated_at": quiz.updated_at,
    }


def check_questions(questions: List[Dict[str, Any]]) -> None:
    """Every correct_index must address one of the question's options"""
    errors = [
        {
            "field": f"questions.{index}.correct_index",
            "message": "Correct index must reference an existing option",
        }
        for index, question in enumerate(questions)
        if question["correct_index"] >= len(question["options"])
    ]
    if errors:
        raise ValidationError("Validation error", errors=errors)


class QuizService:
    """Quiz authoring, visibility and grading"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _course_owner(self, course_id: uuid.UUID) -> Optional[uuid.UUID]:
        course = await self.session.get(Course, course_id)
        return course.instructor_id if course is not None else None

    async def _get_quiz(self, quiz_id: uuid.UUID) -> Quiz:
        quiz = await self.session.get(Quiz, quiz_id)
        if quiz is None:
            raise NotFoundError("Quiz not found")
        return quiz

    async def _get_visible_quiz(self, quiz_id: uuid.UUID, caller: Optional[User]) -> Quiz:
        """Unpublished quizzes only exist for their course owner and admins"""
        quiz = await self._get_quiz(quiz_id)
        if not quiz.is_published and not can_modify(caller, await self._course_owner(quiz.course_id)):
            raise NotFoundError("Quiz not found")
        return quiz

    async def _get_modifiable_quiz(self, quiz_id: uuid.UUID, caller: User, action: str) -> Quiz:
        quiz = await self._get_quiz(quiz_id)
        if not can_modify(caller, await self._course_owner(quiz.course_id)):
            raise AuthorizationError(f"You don't have permission to {action} this quiz")
        return quiz

    async def create_quiz(self, data: Dict[str, Any], caller: User) -> Dict[str, Any]:
        course = await self.session.get(Course, data["course_id"])
        if course is None:
            raise NotFoundError("Course not found")
        if not can_modify(caller, course.instructor_id):
            raise AuthorizationError("You don't have permission to add quizzes to this course")

        check_questions(data["questions"])

        quiz = Quiz(
            id=uuid.uuid4(),
            course_id=course.id,
            title=data["title"],
            description=data.get("description"),
            questions=data["questions"],
            is_published=bool(data.get("is_published")),
        )
        self.session.add(quiz)
        await self.session.commit()

        logger.info(f"Quiz {quiz.id} created for course {course.id} ({len(quiz.questions)} questions)")
        return serialize_quiz(quiz)

    async def list_for_course(self, course_id: uuid.UUID, caller: Optional[User]) -> List[Dict[str, Any]]:
        stmt = select(Quiz).where(Quiz.course_id == course_id)
        if not can_modify(caller, await self._course_owner(course_id)):
            stmt = stmt.where(Quiz.is_published.is_(True))

        result = await self.session.execute(stmt.order_by(Quiz.created_at.desc()))
        return [serialize_quiz(quiz) for quiz in result.scalars()]

    async def get_quiz(self, quiz_id: uuid.UUID, caller: Optional[User]) -> Dict[str, Any]:
        return serialize_quiz(await self._get_visible_quiz(quiz_id, caller))

    async def update_quiz(self, quiz_id: uuid.UUID, changes: Dict[str, Any], caller: User) -> Dict[str, Any]:
        quiz = await self._get_modifiable_quiz(quiz_id, caller, "update")

        if "questions" in changes:
            check_questions(changes["questions"])

        for field, value in changes.items():
            setattr(quiz, field, value)
        await self.session.commit()

        logger.info(f"Quiz {quiz.id} updated by {caller.id}: {sorted(changes)}")
        return serialize_quiz(quiz)

    async def delete_quiz(self, quiz_id: uuid.UUID, caller: User) -> None:
        quiz = await self._get_modifiable_quiz(quiz_id, caller, "delete")

        await self.session.execute(delete(QuizSubmission).where(QuizSubmission.quiz_id == quiz.id))
        await self.session.execute(delete(Quiz).where(Quiz.id == quiz.id))
        await self.session.commit()
        logger.info(f"Quiz {quiz_id} deleted by {caller.id}")

    async def submit(self, quiz_id: uuid.UUID, answers: List[int], student: User) -> Dict[str, Any]:
        """
        Grade a quiz attempt and store it, replacing any earlier attempt.

        Raises:
            NotFoundError: Quiz missing or not visible to the student
            ValidationError: Answer count differs from question count
        """
        quiz = await self._get_visible_quiz(quiz_id, student)

        try:
            graded = grade_answers(quiz.questions, answers)
        except ValueError as e:
            raise ValidationError(str(e), errors=[{"field": "answers", "message": str(e)}])

        now = utcnow()
        values = {
            "course_id": quiz.course_id,
            "score": graded["score"],
            "total_questions": graded["total_questions"],
            "correct_answers": graded["correct_answers"],
            "answers": graded["answers"],
            "submitted_at": now,
            "updated_at": now,
        }
        stmt = conflict_insert(self.session, QuizSubmission).values(
            id=uuid.uuid4(),
            student_id=student.id,
            quiz_id=quiz.id,
            created_at=now,
            **values,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["student_id", "quiz_id"],
            set_=values,
        )
        await self.session.execute(stmt)
        await self.session.commit()

        logger.info(
            f"Quiz {quiz.id} graded for student {student.id}: "
            f"{graded['correct_answers']}/{graded['total_questions']} ({graded['score']})"
        )
        return graded

    async def my_results(self, student: User) -> List[Dict[str, Any]]:
        stmt = (
            select(QuizSubmission, Quiz, Course)
            .outerjoin(Quiz, Quiz.id == QuizSubmission.quiz_id)
            .outerjoin(Course, Course.id == QuizSubmission.course_id)
            .where(QuizSubmission.student_id == student.id)
            .order_by(QuizSubmission.submitted_at.desc())
        )
        rows = (await self.session.execute(stmt)).all()

        return [
            {
                "id": submission.id,
                "quiz": {"id": quiz.id, "title": quiz.title, "description": quiz.description} if quiz else None,
                "course": {"id": course.id, "title": course.title, "category": course.category} if course else None,
                "score": submission.score,
                "total_questions": submission.total_questions,
                "correct_answers": submission.correct_answers,
                "answers": submission.answers,
                "submitted_at": submission.submitted_at,
            }
            for submission, quiz, course in rows
        ]
