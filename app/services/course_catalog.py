"""
Course Catalog

Owns course definitions: syllabus ordering, pricing, status and batches.
Supplies lesson-count facts to the enrollment engine.
"""
import logging
import math
import uuid
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy import String, cast, delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.errors import AuthorizationError, NotFoundError, ValidationError
from app.models.course import Course
from app.models.user import User
from app.services.identity_directory import user_summary
from app.services.permissions import can_modify

logger = logging.getLogger(__name__)

SORTABLE_FIELDS = {
    "created_at": Course.created_at,
    "updated_at": Course.updated_at,
    "price": Course.price,
    "title": Course.title,
    "enrolled_count": Course.enrolled_count,
}


def normalize_syllabus(lessons: Sequence[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Sort lessons by their order value.

    Raises:
        ValidationError: If two lessons share the same order value
    """
    seen = set()
    for lesson in lessons:
        if lesson["order"] in seen:
            raise ValidationError(
                "Validation error: duplicate lesson order",
                errors=[{"field": "syllabus", "message": f"Lesson order {lesson['order']} is used more than once"}],
            )
        seen.add(lesson["order"])
    return sorted((dict(lesson) for lesson in lessons), key=lambda lesson: lesson["order"])


def normalize_tags(tags: Sequence[str]) -> List[str]:
    """Drop blanks and duplicates while keeping first-seen order"""
    result = []
    for tag in tags:
        tag = tag.strip()
        if tag and tag not in result:
            result.append(tag)
    return result


def serialize_course(course: Course, instructor: Optional[User] = None) -> Dict[str, Any]:
    return {
        "id": course.id,
        "title": course.title,
        "description": course.description,
        "price": course.price,
        "syllabus": course.syllabus,
        "thumbnail": course.thumbnail,
        "category": course.category,
        "tags": course.tags,
        "instructor_id": course.instructor_id,
        "instructor": user_summary(instructor),
        "status": course.status,
        "enrolled_count": course.enrolled_count,
        "batches": course.batches,
        "total_lessons": course.total_lessons,
        "total_duration": course.total_duration,
        "created_at": course.created_at,
        "updated_at": course.updated_at,
    }


class CourseCatalog:
    """Course CRUD and catalog queries"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_course(self, course_id: uuid.UUID) -> Course:
        course = await self.session.get(Course, course_id)
        if course is None:
            raise NotFoundError("Course not found")
        return course

    async def get_course_detail(self, course_id: uuid.UUID) -> Dict[str, Any]:
        course = await self.get_course(course_id)
        instructor = await self.session.get(User, course.instructor_id)
        return serialize_course(course, instructor)

    async def create_course(self, data: Dict[str, Any], instructor: User) -> Dict[str, Any]:
        course = Course(
            id=uuid.uuid4(),
            title=data["title"],
            description=data["description"],
            price=data["price"],
            syllabus=normalize_syllabus(data.get("syllabus") or []),
            thumbnail=data["thumbnail"],
            category=data["category"],
            tags=normalize_tags(data.get("tags") or []),
            instructor_id=instructor.id,
            status=data.get("status") or "draft",
            enrolled_count=0,
            batches=data.get("batches") or [],
        )
        self.session.add(course)
        await self.session.commit()

        logger.info(f"Course {course.id} created by {instructor.id} ({course.total_lessons} lessons)")
        return serialize_course(course, instructor)

    async def update_course(self, course_id: uuid.UUID, changes: Dict[str, Any], caller: User) -> Dict[str, Any]:
        course = await self.get_course(course_id)
        if not can_modify(caller, course.instructor_id):
            raise AuthorizationError("You don't have permission to update this course")

        if "syllabus" in changes:
            changes["syllabus"] = normalize_syllabus(changes["syllabus"] or [])
        if "tags" in changes:
            changes["tags"] = normalize_tags(changes["tags"] or [])

        for field, value in changes.items():
            setattr(course, field, value)
        await self.session.commit()

        instructor = await self.session.get(User, course.instructor_id)
        logger.info(f"Course {course.id} updated by {caller.id}: {sorted(changes)}")
        return serialize_course(course, instructor)

    async def delete_course(self, course_id: uuid.UUID, caller: User) -> None:
        course = await self.get_course(course_id)
        if not can_modify(caller, course.instructor_id):
            raise AuthorizationError("You don't have permission to delete this course")

        await self.session.execute(delete(Course).where(Course.id == course.id))
        await self.session.commit()
        logger.info(f"Course {course_id} deleted by {caller.id}")

    async def list_courses(
        self,
        page: int = 1,
        limit: int = 10,
        search: str = "",
        category: str = "",
        sort_by: str = "created_at",
        sort_order: str = "desc",
        min_price: Optional[float] = None,
        max_price: Optional[float] = None,
        status: Optional[str] = "published",
    ) -> Tuple[List[Dict[str, Any]], Dict[str, int]]:
        """
        List courses with filtering, sorting and pagination.

        Returns:
            Tuple of (serialized courses, pagination dict)
        """
        if sort_by not in SORTABLE_FIELDS:
            raise ValidationError(
                "Validation error",
                errors=[{"field": "sort_by", "message": f"sort_by must be one of {sorted(SORTABLE_FIELDS)}"}],
            )

        filters = []
        if search:
            pattern = f"%{search}%"
            filters.append(or_(
                Course.title.ilike(pattern),
                Course.description.ilike(pattern),
                cast(Course.tags, String).ilike(pattern),
            ))
        if category:
            filters.append(Course.category == category)
        if min_price is not None:
            filters.append(Course.price >= min_price)
        if max_price is not None:
            filters.append(Course.price <= max_price)
        if status:
            filters.append(Course.status == status)

        column = SORTABLE_FIELDS[sort_by]
        order = column.asc() if sort_order == "asc" else column.desc()

        stmt = (
            select(Course, User)
            .outerjoin(User, User.id == Course.instructor_id)
            .where(*filters)
            .order_by(order, Course.id)
            .offset((page - 1) * limit)
            .limit(limit)
        )
        rows = (await self.session.execute(stmt)).all()

        total = await self.session.scalar(
            select(func.count()).select_from(Course).where(*filters)
        )

        pagination = {
            "page": page,
            "limit": limit,
            "total": total,
            "pages": math.ceil(total / limit) if limit else 0,
        }
        return [serialize_course(course, instructor) for course, instructor in rows], pagination

    async def list_by_instructor(self, instructor_id: uuid.UUID) -> List[Dict[str, Any]]:
        stmt = (
            select(Course, User)
            .outerjoin(User, User.id == Course.instructor_id)
            .where(Course.instructor_id == instructor_id)
            .order_by(Course.created_at.desc())
        )
        rows = (await self.session.execute(stmt)).all()
        return [serialize_course(course, instructor) for course, instructor in rows]
