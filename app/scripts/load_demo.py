"""
Demo Catalog Loader

Seeds a small catalog for local development and presentations.
Usage: python -m app.scripts.load_demo --scenario starter [--reset]
"""
import asyncio
import argparse
import uuid
from datetime import timedelta
from sqlalchemy import text

from app.database import AsyncSessionLocal, init_models, utcnow
from app.models.user import User
from app.models.course import Course
from app.models.enrollment import Enrollment, CompletedLesson
from app.models.quiz import Quiz
from app.services.progress import compute_progress


async def clear_demo_data():
    """Clear all existing data"""
    async with AsyncSessionLocal() as session:
        tables = [
            "assignments", "quiz_submissions", "quizzes",
            "enrollment_lessons", "enrollments", "courses", "users",
        ]
        for table in tables:
            await session.execute(text(f"DELETE FROM {table}"))
        await session.commit()
    print("✓ Cleared existing data")


def build_syllabus(topic: str, lessons: int):
    return [
        {
            "title": f"{topic} - Part {i + 1}",
            "description": f"Lesson {i + 1} of the {topic} track",
            "video_url": f"https://videos.example.com/{topic.lower().replace(' ', '-')}/{i + 1}",
            "duration": 15 + 5 * (i % 3),
            "order": i,
        }
        for i in range(lessons)
    ]


async def load_starter_scenario():
    """
    Load the starter scenario.

    One admin, one instructor, three students, three published courses,
    enrollments spread over the last two weeks and one quiz per course.
    """
    print("\nLoading starter scenario...")

    async with AsyncSessionLocal() as session:
        admin = User(id=uuid.uuid4(), external_uid="demo-admin", email="admin@example.com",
                     display_name="Demo Admin", role="admin", email_verified=True)
        instructor = User(id=uuid.uuid4(), external_uid="demo-instructor", email="instructor@example.com",
                          display_name="Demo Instructor", role="student", email_verified=True)
        students = [
            User(id=uuid.uuid4(), external_uid=f"demo-student-{i + 1}", email=f"student{i + 1}@example.com",
                 display_name=f"Student {i + 1}", role="student", email_verified=True)
            for i in range(3)
        ]
        session.add_all([admin, instructor, *students])
        await session.flush()
        print(f"  Created {2 + len(students)} users")

        catalog = [
            ("Python Fundamentals", "Programming", 0, 6),
            ("Data Analysis with SQL", "Data", 49.0, 4),
            ("Web APIs in Practice", "Programming", 79.0, 8),
        ]
        courses = []
        for title, category, price, lessons in catalog:
            course = Course(
                id=uuid.uuid4(),
                title=title,
                description=f"{title}: a hands-on course.",
                price=price,
                syllabus=build_syllabus(title, lessons),
                thumbnail=f"https://images.example.com/{title.lower().replace(' ', '-')}.png",
                category=category,
                tags=[category.lower(), "beginner"],
                instructor_id=instructor.id,
                status="published",
                enrolled_count=0,
                batches=[{
                    "name": "Batch 1",
                    "start_date": utcnow().date().isoformat(),
                    "end_date": None,
                    "is_active": True,
                }],
            )
            session.add(course)
            courses.append(course)
        await session.flush()
        print(f"  Created {len(courses)} published courses")

        now = utcnow()
        enrollment_count = 0
        for s_index, student in enumerate(students):
            for c_index, course in enumerate(courses):
                if (s_index + c_index) % 3 == 2:
                    continue
                enrolled_at = now - timedelta(days=(s_index * 4 + c_index * 3) % 14)
                completed = min(course.total_lessons, s_index + c_index + 1)
                progress = compute_progress(completed, course.total_lessons)
                enrollment = Enrollment(
                    id=uuid.uuid4(),
                    student_id=student.id,
                    course_id=course.id,
                    enrolled_at=enrolled_at,
                    created_at=enrolled_at,
                    last_accessed_at=enrolled_at,
                    progress=progress,
                    status="completed" if progress == 100 else "active",
                    completed_at=now if progress == 100 else None,
                )
                session.add(enrollment)
                await session.flush()
                session.add_all([
                    CompletedLesson(enrollment_id=enrollment.id, lesson_index=i, completed_at=enrolled_at)
                    for i in range(completed)
                ])
                course.enrolled_count += 1
                enrollment_count += 1
        print(f"  Created {enrollment_count} enrollments")

        for course in courses:
            session.add(Quiz(
                id=uuid.uuid4(),
                course_id=course.id,
                title=f"{course.title} checkpoint",
                description="Quick knowledge check",
                questions=[
                    {"text": "Which option is correct?", "options": ["A", "B", "C"], "correct_index": 0},
                    {"text": "And this time?", "options": ["A", "B", "C"], "correct_index": 1},
                    {"text": "Last one", "options": ["A", "B", "C"], "correct_index": 2},
                ],
                is_published=True,
            ))
        print(f"  Created {len(courses)} quizzes")

        await session.commit()

    print("✓ Starter scenario loaded")


SCENARIOS = {
    "starter": load_starter_scenario,
}


async def main():
    parser = argparse.ArgumentParser(description="Load a demo catalog")
    parser.add_argument(
        "--scenario",
        choices=sorted(SCENARIOS),
        default="starter",
        help="Scenario to load"
    )
    parser.add_argument(
        "--reset",
        action="store_true",
        help="Delete existing data before loading"
    )
    parser.add_argument(
        "--create-tables",
        action="store_true",
        help="Create tables from model metadata instead of running migrations"
    )
    args = parser.parse_args()

    if args.create_tables:
        await init_models()
    if args.reset:
        await clear_demo_data()

    await SCENARIOS[args.scenario]()


if __name__ == "__main__":
    asyncio.run(main())
