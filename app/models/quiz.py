"""Quiz models - Course quizzes and auto-graded student submissions"""
from sqlalchemy import (
    Column, String, Text, Integer, Boolean, DateTime, ForeignKey, JSON,
    CheckConstraint, Index, UniqueConstraint, Uuid,
)
import uuid

from app.database import Base, utcnow


class Quiz(Base):
    """Quiz with an ordered JSON list of {text, options, correct_index} questions"""

    __tablename__ = "quizzes"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    course_id = Column(Uuid(as_uuid=True), nullable=False)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    questions = Column(JSON, nullable=False, default=list)
    is_published = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        Index("idx_quizzes_course_published", "course_id", "is_published"),
    )

    def __repr__(self):
        return f"<Quiz(id={self.id}, course={self.course_id}, title={self.title})>"


class QuizSubmission(Base):
    """Latest graded attempt of a student on a quiz"""

    __tablename__ = "quiz_submissions"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    student_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False)
    quiz_id = Column(Uuid(as_uuid=True), ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False)
    course_id = Column(Uuid(as_uuid=True), nullable=False)
    score = Column(
        Integer,
        CheckConstraint("score >= 0 AND score <= 100", name="ck_quiz_submissions_score"),
        nullable=False,
    )
    total_questions = Column(
        Integer,
        CheckConstraint("total_questions >= 1", name="ck_quiz_submissions_total"),
        nullable=False,
    )
    correct_answers = Column(
        Integer,
        CheckConstraint("correct_answers >= 0", name="ck_quiz_submissions_correct"),
        nullable=False,
    )
    answers = Column(JSON, nullable=False, default=list)
    submitted_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        UniqueConstraint("student_id", "quiz_id", name="uq_quiz_submissions_student_quiz"),
        Index("idx_quiz_submissions_course", "course_id"),
    )

    def __repr__(self):
        return f"<QuizSubmission(student={self.student_id}, quiz={self.quiz_id}, score={self.score})>"
