"""
Assignment API Endpoints

POST /api/assignments - Submit an assignment link
GET /api/assignments/my - Caller's submissions
GET /api/assignments/admin/all - Admin list of every submission
PATCH /api/assignments/{assignment_id}/grade - Admin grading
"""
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Path, status
from pydantic import BaseModel, ConfigDict, Field, HttpUrl
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.auth import get_current_user, require_admin
from app.database import get_db
from app.models.user import User
from app.services.assignment_intake import AssignmentIntake

router = APIRouter(prefix="/api/assignments", tags=["assignments"])


class AssignmentSubmit(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    course_id: uuid.UUID
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    submission_link: HttpUrl


class AssignmentGrade(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    grade: int = Field(..., ge=0, le=100)
    feedback: Optional[str] = Field(None, max_length=2000)


@router.post("", status_code=status.HTTP_201_CREATED)
async def submit_assignment(
    payload: AssignmentSubmit,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    assignment = await AssignmentIntake(db).submit(payload.model_dump(), student=user)
    return {"success": True, "message": "Assignment submitted successfully", "assignment": assignment}


@router.get("/my")
async def my_assignments(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    assignments = await AssignmentIntake(db).list_mine(user)
    return {"success": True, "data": assignments, "count": len(assignments)}


@router.get("/admin/all")
async def all_assignments(
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    assignments = await AssignmentIntake(db).list_all()
    return {"success": True, "data": assignments, "count": len(assignments)}


@router.patch("/{assignment_id}/grade")
async def grade_assignment(
    payload: AssignmentGrade,
    assignment_id: uuid.UUID = Path(..., description="Assignment id"),
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    assignment = await AssignmentIntake(db).grade(assignment_id, payload.grade, payload.feedback)
    return {"success": True, "message": "Assignment graded successfully", "assignment": assignment}
