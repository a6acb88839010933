"""Course model - Catalog entries with embedded syllabus and batches"""
from sqlalchemy import (
    Column, String, Text, Integer, Float, DateTime, ForeignKey, JSON,
    CheckConstraint, Index, Uuid,
)
import uuid

from app.database import Base, utcnow

COURSE_STATUSES = ("draft", "published", "archived")


class Course(Base):
    """
    Course definition.

    syllabus is an ordered JSON list of lessons
    ({title, description, video_url, duration, order}); a lesson is
    identified by its position in the list. batches is a JSON list of
    {name, start_date, end_date, is_active}.
    """

    __tablename__ = "courses"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)
    price = Column(
        Float,
        CheckConstraint("price >= 0", name="ck_courses_price"),
        nullable=False,
        default=0,
    )
    syllabus = Column(JSON, nullable=False, default=list)
    thumbnail = Column(String(500), nullable=False)
    category = Column(String(100), nullable=False)
    tags = Column(JSON, nullable=False, default=list)
    instructor_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False)
    status = Column(
        String(20),
        CheckConstraint("status IN ('draft', 'published', 'archived')", name="ck_courses_status"),
        nullable=False,
        default="draft",
    )
    enrolled_count = Column(
        Integer,
        CheckConstraint("enrolled_count >= 0", name="ck_courses_enrolled_count"),
        nullable=False,
        default=0,
    )
    batches = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        Index("idx_courses_category_status", "category", "status"),
        Index("idx_courses_instructor_status", "instructor_id", "status"),
        Index("idx_courses_price", "price"),
    )

    @property
    def total_lessons(self) -> int:
        return len(self.syllabus or [])

    @property
    def total_duration(self) -> float:
        """Sum of lesson durations in minutes"""
        return sum(lesson.get("duration") or 0 for lesson in (self.syllabus or []))

    def __repr__(self):
        return f"<Course(id={self.id}, title={self.title}, status={self.status})>"
