"""Assignment model - Student-submitted assignment links"""
from sqlalchemy import (
    Column, String, Text, Integer, DateTime, ForeignKey, CheckConstraint, Index, Uuid,
)
import uuid

from app.database import Base, utcnow


class Assignment(Base):
    """Append-only assignment submission with optional grading fields"""

    __tablename__ = "assignments"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    student_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False)
    course_id = Column(Uuid(as_uuid=True), nullable=False)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    submission_link = Column(String(1000), nullable=False)
    status = Column(
        String(20),
        CheckConstraint("status IN ('submitted', 'graded')", name="ck_assignments_status"),
        nullable=False,
        default="submitted",
    )
    grade = Column(
        Integer,
        CheckConstraint("grade >= 0 AND grade <= 100", name="ck_assignments_grade"),
        nullable=True,
    )
    feedback = Column(Text, nullable=True)
    submitted_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    graded_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        Index("idx_assignments_student_course_status", "student_id", "course_id", "status"),
    )

    def __repr__(self):
        return f"<Assignment(id={self.id}, student={self.student_id}, status={self.status})>"
