"""
Course API Endpoints

GET /api/courses - List courses with search, filters, sorting and pagination
GET /api/courses/instructor/{instructor_id} - Courses owned by an instructor
GET /api/courses/{course_id} - Single course
POST /api/courses - Create a course owned by the caller
PUT /api/courses/{course_id} - Update (owner or admin)
DELETE /api/courses/{course_id} - Delete (owner or admin)
"""
import uuid
from datetime import datetime
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, Path, Query, status
from pydantic import BaseModel, ConfigDict, Field, HttpUrl, model_validator
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.auth import get_current_user
from app.config import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from app.database import get_db
from app.models.user import User
from app.services.course_catalog import CourseCatalog

router = APIRouter(prefix="/api/courses", tags=["courses"])

CourseStatus = Literal["draft", "published", "archived"]


# Pydantic models for request validation


class LessonIn(BaseModel):
    """Syllabus lesson"""
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field("", max_length=1000)
    video_url: Optional[str] = Field(None, max_length=500)
    duration: float = Field(0, ge=0, description="Duration in minutes")
    order: int = Field(..., ge=0)


class BatchIn(BaseModel):
    """Scheduled cohort window"""
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=100)
    start_date: datetime
    end_date: Optional[datetime] = None
    is_active: bool = True

    @model_validator(mode="after")
    def check_dates(self):
        if self.end_date is not None and self.end_date < self.start_date:
            raise ValueError("end_date cannot be before start_date")
        return self


class CourseCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1, max_length=5000)
    price: float = Field(..., ge=0)
    syllabus: List[LessonIn] = Field(..., min_length=1)
    thumbnail: HttpUrl
    category: str = Field(..., min_length=1, max_length=100)
    tags: List[str] = Field(default_factory=list)
    status: CourseStatus = "draft"
    batches: List[BatchIn] = Field(default_factory=list)


class CourseUpdate(BaseModel):
    """All fields optional, at least one required"""
    model_config = ConfigDict(str_strip_whitespace=True)

    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, min_length=1, max_length=5000)
    price: Optional[float] = Field(None, ge=0)
    syllabus: Optional[List[LessonIn]] = None
    thumbnail: Optional[HttpUrl] = None
    category: Optional[str] = Field(None, min_length=1, max_length=100)
    tags: Optional[List[str]] = None
    status: Optional[CourseStatus] = None
    batches: Optional[List[BatchIn]] = None

    @model_validator(mode="after")
    def check_not_empty(self):
        if not self.model_fields_set:
            raise ValueError("At least one field must be provided")
        return self


# API Endpoints


@router.get("")
async def list_courses(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    search: str = Query("", max_length=200),
    category: str = Query(""),
    sort_by: str = Query("created_at"),
    sort_order: Literal["asc", "desc"] = Query("desc"),
    min_price: Optional[float] = Query(None, ge=0),
    max_price: Optional[float] = Query(None, ge=0),
    course_status: str = Query("published", alias="status", description="Empty string lists every status"),
    db: AsyncSession = Depends(get_db),
):
    courses, pagination = await CourseCatalog(db).list_courses(
        page=page,
        limit=limit,
        search=search.strip(),
        category=category.strip(),
        sort_by=sort_by,
        sort_order=sort_order,
        min_price=min_price,
        max_price=max_price,
        status=course_status.strip() or None,
    )
    return {"success": True, "data": courses, "pagination": pagination}


@router.get("/instructor/{instructor_id}")
async def list_instructor_courses(
    instructor_id: uuid.UUID = Path(..., description="Instructor user id"),
    db: AsyncSession = Depends(get_db),
):
    courses = await CourseCatalog(db).list_by_instructor(instructor_id)
    return {"success": True, "data": courses}


@router.get("/{course_id}")
async def get_course(
    course_id: uuid.UUID = Path(..., description="Course id"),
    db: AsyncSession = Depends(get_db),
):
    course = await CourseCatalog(db).get_course_detail(course_id)
    return {"success": True, "course": course}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_course(
    payload: CourseCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    course = await CourseCatalog(db).create_course(payload.model_dump(mode="json"), instructor=user)
    return {"success": True, "message": "Course created successfully", "course": course}


@router.put("/{course_id}")
async def update_course(
    payload: CourseUpdate,
    course_id: uuid.UUID = Path(..., description="Course id"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    changes = payload.model_dump(mode="json", exclude_unset=True, exclude_none=True)
    course = await CourseCatalog(db).update_course(course_id, changes, caller=user)
    return {"success": True, "message": "Course updated successfully", "course": course}


@router.delete("/{course_id}")
async def delete_course(
    course_id: uuid.UUID = Path(..., description="Course id"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await CourseCatalog(db).delete_course(course_id, caller=user)
    return {"success": True, "message": "Course deleted successfully"}
