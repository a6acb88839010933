"""SQLAlchemy ORM Models for the course marketplace schema"""
from app.models.user import User
from app.models.course import Course
from app.models.enrollment import Enrollment, CompletedLesson
from app.models.quiz import Quiz, QuizSubmission
from app.models.assignment import Assignment

__all__ = [
    "User",
    "Course",
    "Enrollment",
    "CompletedLesson",
    "Quiz",
    "QuizSubmission",
    "Assignment",
]
