"""Enrollment model - Student enrollment in a course with progress tracking"""
from sqlalchemy import (
    Column, Integer, String, DateTime, ForeignKey, CheckConstraint,
    Index, UniqueConstraint, Uuid,
)
from sqlalchemy.orm import relationship
import uuid

from app.database import Base, utcnow

ENROLLMENT_STATUSES = ("active", "completed", "dropped")


class Enrollment(Base):
    """
    Student enrollment in a course.

    course_id has no foreign key; deleted courses leave
    dangling enrollments that read paths filter out.
    """

    __tablename__ = "enrollments"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    student_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False)
    course_id = Column(Uuid(as_uuid=True), nullable=False)
    enrolled_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    progress = Column(
        Integer,
        CheckConstraint("progress >= 0 AND progress <= 100", name="ck_enrollments_progress"),
        nullable=False,
        default=0,
    )
    status = Column(
        String(20),
        CheckConstraint("status IN ('active', 'completed', 'dropped')", name="ck_enrollments_status"),
        nullable=False,
        default="active",
    )
    last_accessed_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    completed_lessons = relationship(
        "CompletedLesson",
        lazy="selectin",
        order_by="CompletedLesson.lesson_index",
    )

    __table_args__ = (
        UniqueConstraint("student_id", "course_id", name="uq_enrollments_student_course"),
        Index("idx_enrollments_student_status", "student_id", "status"),
        Index("idx_enrollments_course_status", "course_id", "status"),
        Index("idx_enrollments_created_at", "created_at"),
    )

    def __repr__(self):
        return f"<Enrollment(id={self.id}, student={self.student_id}, course={self.course_id}, status={self.status})>"


class CompletedLesson(Base):
    """One completed lesson within an enrollment; at most one row per index"""

    __tablename__ = "enrollment_lessons"

    id = Column(Integer, primary_key=True, autoincrement=True)
    enrollment_id = Column(Uuid(as_uuid=True), ForeignKey("enrollments.id"), nullable=False)
    lesson_index = Column(
        Integer,
        CheckConstraint("lesson_index >= 0", name="ck_enrollment_lessons_index"),
        nullable=False,
    )
    completed_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (
        UniqueConstraint("enrollment_id", "lesson_index", name="uq_enrollment_lessons_index"),
    )

    def __repr__(self):
        return f"<CompletedLesson(enrollment={self.enrollment_id}, lesson_index={self.lesson_index})>"
