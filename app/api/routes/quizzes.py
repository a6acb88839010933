"""
Quiz API Endpoints

POST /api/quizzes - Create a quiz (course owner or admin)
GET /api/quizzes/course/{course_id} - Quizzes of a course
GET /api/quizzes/my/results - Caller's graded submissions
GET /api/quizzes/{quiz_id} - Single quiz
PUT /api/quizzes/{quiz_id} - Update (course owner or admin)
DELETE /api/quizzes/{quiz_id} - Delete (course owner or admin)
POST /api/quizzes/{quiz_id}/submit - Submit answers for auto-grading
"""
import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, Path, status
from pydantic import BaseModel, ConfigDict, Field, model_validator
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.auth import get_current_user
from app.database import get_db
from app.models.user import User
from app.services.quiz_engine import QuizService

router = APIRouter(prefix="/api/quizzes", tags=["quizzes"])


class QuestionIn(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    text: str = Field(..., min_length=1)
    options: List[str] = Field(..., min_length=2)
    correct_index: int = Field(..., ge=0)


class QuizCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    course_id: uuid.UUID
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=1000)
    is_published: bool = False
    questions: List[QuestionIn] = Field(..., min_length=1)


class QuizUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=1000)
    is_published: Optional[bool] = None
    questions: Optional[List[QuestionIn]] = Field(None, min_length=1)

    @model_validator(mode="after")
    def check_not_empty(self):
        if not self.model_fields_set:
            raise ValueError("At least one field must be provided")
        return self


class QuizSubmitRequest(BaseModel):
    answers: List[int] = Field(..., min_length=1, description="Selected option index per question")

    @model_validator(mode="after")
    def check_indices(self):
        if any(answer < 0 for answer in self.answers):
            raise ValueError("Answer indices cannot be negative")
        return self


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_quiz(
    payload: QuizCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    quiz = await QuizService(db).create_quiz(payload.model_dump(), caller=user)
    return {"success": True, "message": "Quiz created successfully", "quiz": quiz}


@router.get("/course/{course_id}")
async def list_course_quizzes(
    course_id: uuid.UUID = Path(..., description="Course id"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    quizzes = await QuizService(db).list_for_course(course_id, caller=user)
    return {"success": True, "data": quizzes, "count": len(quizzes)}


@router.get("/my/results")
async def my_results(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    results = await QuizService(db).my_results(user)
    return {"success": True, "data": results, "count": len(results)}


@router.get("/{quiz_id}")
async def get_quiz(
    quiz_id: uuid.UUID = Path(..., description="Quiz id"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    quiz = await QuizService(db).get_quiz(quiz_id, caller=user)
    return {"success": True, "quiz": quiz}


@router.put("/{quiz_id}")
async def update_quiz(
    payload: QuizUpdate,
    quiz_id: uuid.UUID = Path(..., description="Quiz id"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    changes = payload.model_dump(mode="json", exclude_unset=True, exclude_none=True)
    quiz = await QuizService(db).update_quiz(quiz_id, changes, caller=user)
    return {"success": True, "message": "Quiz updated successfully", "quiz": quiz}


@router.delete("/{quiz_id}")
async def delete_quiz(
    quiz_id: uuid.UUID = Path(..., description="Quiz id"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await QuizService(db).delete_quiz(quiz_id, caller=user)
    return {"success": True, "message": "Quiz deleted successfully"}


@router.post("/{quiz_id}/submit")
async def submit_quiz(
    payload: QuizSubmitRequest,
    quiz_id: uuid.UUID = Path(..., description="Quiz id"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await QuizService(db).submit(quiz_id, payload.answers, student=user)
    return {"success": True, "message": "Quiz submitted successfully", "result": result}
