"""
Enrollment API Endpoints

POST /api/enrollments - Enroll the caller in a course
GET /api/enrollments/my-courses - Caller's enrollments with progress
GET /api/enrollments/admin/analytics - Admin daily enrollment counts
GET /api/enrollments/admin/course/{course_id} - Admin enrollments of a course
GET /api/enrollments/{enrollment_id} - Single enrollment of the caller
POST /api/enrollments/{enrollment_id}/complete-lesson - Mark a lesson complete
PATCH /api/enrollments/{enrollment_id}/access - Update last accessed time
"""
import uuid
from typing import Literal

from fastapi import APIRouter, Depends, Path, Query, status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.auth import get_current_user, require_admin
from app.config import ANALYTICS_DEFAULT_RANGE_DAYS
from app.database import get_db
from app.models.user import User
from app.services.enrollment_analytics import EnrollmentAnalytics
from app.services.enrollment_engine import EnrollmentService

router = APIRouter(prefix="/api/enrollments", tags=["enrollments"])


class EnrollRequest(BaseModel):
    course_id: uuid.UUID


class CompleteLessonRequest(BaseModel):
    lesson_index: int = Field(..., ge=0, description="Position of the lesson in the syllabus")


@router.post("", status_code=status.HTTP_201_CREATED)
async def enroll(
    payload: EnrollRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    enrollment = await EnrollmentService(db).enroll(user, payload.course_id)
    return {"success": True, "message": "Successfully enrolled in course", "enrollment": enrollment}


@router.get("/my-courses")
async def my_courses(
    enrollment_status: Literal["active", "completed", "dropped"] = Query("active", alias="status"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    enrollments = await EnrollmentService(db).list_my_courses(user, enrollment_status)
    return {"success": True, "data": enrollments, "count": len(enrollments)}


@router.get("/admin/analytics")
async def enrollment_analytics(
    range_days: int = Query(ANALYTICS_DEFAULT_RANGE_DAYS, ge=1, le=3650),
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Daily enrollment counts; days without enrollments are omitted"""
    data = await EnrollmentAnalytics(db).daily_enrollments(range_days)
    return {"success": True, "data": data, "range_days": range_days}


@router.get("/admin/course/{course_id}")
async def course_enrollments(
    course_id: uuid.UUID = Path(..., description="Course id"),
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    enrollments = await EnrollmentService(db).list_by_course(course_id)
    return {"success": True, "data": enrollments, "count": len(enrollments)}


@router.get("/{enrollment_id}")
async def get_enrollment(
    enrollment_id: uuid.UUID = Path(..., description="Enrollment id"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    enrollment = await EnrollmentService(db).get_enrollment(user, enrollment_id)
    return {"success": True, "enrollment": enrollment}


@router.post("/{enrollment_id}/complete-lesson")
async def complete_lesson(
    payload: CompleteLessonRequest,
    enrollment_id: uuid.UUID = Path(..., description="Enrollment id"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    summary = await EnrollmentService(db).complete_lesson(user, enrollment_id, payload.lesson_index)
    return {"success": True, "message": "Lesson marked as completed", "enrollment": summary}


@router.patch("/{enrollment_id}/access")
async def update_last_accessed(
    enrollment_id: uuid.UUID = Path(..., description="Enrollment id"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await EnrollmentService(db).touch(user, enrollment_id)
    return {"success": True, "message": "Last accessed updated"}
