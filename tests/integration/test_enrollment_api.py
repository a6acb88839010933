"""
Integration tests for the enrollment engine API

Covers enrollment uniqueness, lesson completion, progress derivation and
the automatic transition to completed.
"""
import uuid

import pytest
from sqlalchemy import func, select

from app.models import Course, CompletedLesson, Enrollment


def auth_headers(user):
    return {"X-Identity-UID": user.external_uid}


@pytest.fixture
async def student(make_user):
    return await make_user()


@pytest.fixture
async def instructor(make_user):
    return await make_user()


@pytest.fixture
async def course(make_course, instructor):
    return await make_course(instructor, lesson_count=4)


async def enroll(client, user, course_id):
    return await client.post(
        "/api/enrollments",
        json={"course_id": str(course_id)},
        headers=auth_headers(user),
    )


async def complete(client, user, enrollment_id, lesson_index):
    return await client.post(
        f"/api/enrollments/{enrollment_id}/complete-lesson",
        json={"lesson_index": lesson_index},
        headers=auth_headers(user),
    )


class TestEnroll:
    """POST /api/enrollments"""

    @pytest.mark.asyncio
    async def test_enroll_creates_active_enrollment(self, client, student, course):
        response = await enroll(client, student, course.id)

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        enrollment = body["enrollment"]
        assert enrollment["status"] == "active"
        assert enrollment["progress"] == 0
        assert enrollment["completed_lessons"] == []
        assert enrollment["completed_at"] is None
        assert enrollment["student_id"] == str(student.id)
        assert enrollment["course"]["id"] == str(course.id)
        assert enrollment["course"]["enrolled_count"] == 1

    @pytest.mark.asyncio
    async def test_duplicate_enrollment_rejected(self, client, student, course, session_factory):
        """Second enrollment fails and the course counter moves once"""
        first = await enroll(client, student, course.id)
        second = await enroll(client, student, course.id)

        assert first.status_code == 201
        assert second.status_code == 400
        assert second.json() == {"success": False, "message": "You are already enrolled in this course"}

        async with session_factory() as session:
            stored = await session.get(Course, course.id)
            count = await session.scalar(
                select(func.count()).select_from(Enrollment).where(Enrollment.student_id == student.id)
            )
        assert stored.enrolled_count == 1
        assert count == 1

    @pytest.mark.asyncio
    async def test_unknown_course(self, client, student):
        response = await enroll(client, student, uuid.uuid4())

        assert response.status_code == 404
        assert response.json()["message"] == "Course not found"

    @pytest.mark.asyncio
    async def test_missing_course_id(self, client, student):
        response = await client.post("/api/enrollments", json={}, headers=auth_headers(student))

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["errors"][0]["field"] == "course_id"

    @pytest.mark.asyncio
    async def test_requires_identity(self, client, course):
        response = await client.post("/api/enrollments", json={"course_id": str(course.id)})

        assert response.status_code == 401
        assert response.json()["success"] is False

    @pytest.mark.asyncio
    async def test_unknown_identity(self, client, course):
        response = await client.post(
            "/api/enrollments",
            json={"course_id": str(course.id)},
            headers={"X-Identity-UID": "nobody"},
        )
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_email_header_fallback(self, client, student, course):
        response = await client.post(
            "/api/enrollments",
            json={"course_id": str(course.id)},
            headers={"X-User-Email": student.email},
        )
        assert response.status_code == 201

    @pytest.mark.asyncio
    async def test_inactive_user_forbidden(self, client, make_user, course):
        inactive = await make_user(is_active=False)

        response = await enroll(client, inactive, course.id)

        assert response.status_code == 403
        assert response.json()["message"] == "Account is inactive"


class TestCompleteLesson:
    """POST /api/enrollments/{id}/complete-lesson"""

    @pytest.mark.asyncio
    async def test_four_lesson_walkthrough(self, client, student, course):
        """25% per lesson, completed exactly at 100%"""
        enrollment_id = (await enroll(client, student, course.id)).json()["enrollment"]["id"]

        expected = [(0, 25, 1), (1, 50, 2), (2, 75, 3)]
        for index, progress, completed in expected:
            response = await complete(client, student, enrollment_id, index)
            assert response.status_code == 200
            summary = response.json()["enrollment"]
            assert summary["progress"] == progress
            assert summary["completed_lessons"] == completed
            assert summary["total_lessons"] == 4
            assert summary["status"] == "active"

        response = await complete(client, student, enrollment_id, 3)
        summary = response.json()["enrollment"]
        assert summary["progress"] == 100
        assert summary["status"] == "completed"
        assert summary["completed_at"] is not None

    @pytest.mark.asyncio
    async def test_recompleting_lesson_is_idempotent(self, client, student, course, session_factory):
        enrollment_id = (await enroll(client, student, course.id)).json()["enrollment"]["id"]

        await complete(client, student, enrollment_id, 2)
        response = await complete(client, student, enrollment_id, 2)

        summary = response.json()["enrollment"]
        assert summary["progress"] == 25
        assert summary["completed_lessons"] == 1

        async with session_factory() as session:
            rows = await session.scalar(
                select(func.count()).select_from(CompletedLesson)
                .where(CompletedLesson.enrollment_id == uuid.UUID(enrollment_id))
            )
        assert rows == 1

    @pytest.mark.asyncio
    async def test_completed_timestamp_not_reset(self, client, student, make_course, instructor):
        single = await make_course(instructor, lesson_count=1)
        enrollment_id = (await enroll(client, student, single.id)).json()["enrollment"]["id"]

        first = (await complete(client, student, enrollment_id, 0)).json()["enrollment"]
        again = (await complete(client, student, enrollment_id, 0)).json()["enrollment"]

        assert first["status"] == "completed"
        assert again["status"] == "completed"
        assert again["completed_at"] == first["completed_at"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("lesson_index", [4, 10])
    async def test_index_outside_syllabus(self, client, student, course, lesson_index):
        enrollment_id = (await enroll(client, student, course.id)).json()["enrollment"]["id"]

        response = await complete(client, student, enrollment_id, lesson_index)

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid lesson index"

    @pytest.mark.asyncio
    async def test_negative_index(self, client, student, course):
        enrollment_id = (await enroll(client, student, course.id)).json()["enrollment"]["id"]

        response = await complete(client, student, enrollment_id, -1)

        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "lesson_index"

    @pytest.mark.asyncio
    async def test_other_students_enrollment_not_found(self, client, student, make_user, course):
        """Someone else's enrollment is indistinguishable from a missing one"""
        intruder = await make_user()
        enrollment_id = (await enroll(client, student, course.id)).json()["enrollment"]["id"]

        response = await complete(client, intruder, enrollment_id, 0)

        assert response.status_code == 404
        assert response.json()["message"] == "Enrollment not found"

    @pytest.mark.asyncio
    async def test_malformed_enrollment_id(self, client, student):
        response = await complete(client, student, "not-a-uuid", 0)
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_course_deleted_after_enrollment(self, client, student, instructor, course):
        enrollment_id = (await enroll(client, student, course.id)).json()["enrollment"]["id"]
        await client.delete(f"/api/courses/{course.id}", headers=auth_headers(instructor))

        response = await complete(client, student, enrollment_id, 0)

        assert response.status_code == 404
        assert response.json()["message"] == "Course not found"


class TestMyCourses:
    """GET /api/enrollments/my-courses"""

    @pytest.mark.asyncio
    async def test_lists_active_with_progress(self, client, student, course):
        enrollment_id = (await enroll(client, student, course.id)).json()["enrollment"]["id"]
        await complete(client, student, enrollment_id, 0)

        response = await client.get("/api/enrollments/my-courses", headers=auth_headers(student))

        assert response.status_code == 200
        body = response.json()
        assert body["count"] == 1
        item = body["data"][0]
        assert item["id"] == enrollment_id
        assert item["progress"] == 25
        assert item["total_lessons"] == 4
        assert item["completed_lessons_count"] == 1
        assert item["course"]["title"] == course.title

    @pytest.mark.asyncio
    async def test_status_filter(self, client, student, instructor, make_course):
        short = await make_course(instructor, lesson_count=1, title="Short")
        long = await make_course(instructor, lesson_count=3, title="Long")
        short_id = (await enroll(client, student, short.id)).json()["enrollment"]["id"]
        await enroll(client, student, long.id)
        await complete(client, student, short_id, 0)

        active = await client.get("/api/enrollments/my-courses", headers=auth_headers(student))
        completed = await client.get(
            "/api/enrollments/my-courses", params={"status": "completed"}, headers=auth_headers(student)
        )

        assert [e["course"]["title"] for e in active.json()["data"]] == ["Long"]
        assert [e["course"]["title"] for e in completed.json()["data"]] == ["Short"]

    @pytest.mark.asyncio
    async def test_invalid_status(self, client, student):
        response = await client.get(
            "/api/enrollments/my-courses", params={"status": "paused"}, headers=auth_headers(student)
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_dangling_enrollment_omitted(self, client, student, course, make_enrollment):
        """Enrollments whose course no longer exists are silently left out"""
        await make_enrollment(student, uuid.uuid4())
        await enroll(client, student, course.id)

        response = await client.get("/api/enrollments/my-courses", headers=auth_headers(student))

        body = response.json()
        assert body["count"] == 1
        assert body["data"][0]["course_id"] == str(course.id)

    @pytest.mark.asyncio
    async def test_only_own_enrollments(self, client, student, make_user, course):
        other = await make_user()
        await enroll(client, other, course.id)

        response = await client.get("/api/enrollments/my-courses", headers=auth_headers(student))

        assert response.json()["data"] == []


class TestEnrollmentDetail:

    @pytest.mark.asyncio
    async def test_get_own_enrollment(self, client, student, course):
        enrollment_id = (await enroll(client, student, course.id)).json()["enrollment"]["id"]

        response = await client.get(f"/api/enrollments/{enrollment_id}", headers=auth_headers(student))

        assert response.status_code == 200
        assert response.json()["enrollment"]["id"] == enrollment_id

    @pytest.mark.asyncio
    async def test_touch_updates_last_accessed(self, client, student, course):
        created = (await enroll(client, student, course.id)).json()["enrollment"]

        response = await client.patch(
            f"/api/enrollments/{created['id']}/access", headers=auth_headers(student)
        )
        assert response.status_code == 200

        detail = (await client.get(f"/api/enrollments/{created['id']}", headers=auth_headers(student))).json()
        assert detail["enrollment"]["last_accessed_at"] >= created["last_accessed_at"]

    @pytest.mark.asyncio
    async def test_touch_other_students_enrollment(self, client, student, make_user, course):
        other = await make_user()
        enrollment_id = (await enroll(client, student, course.id)).json()["enrollment"]["id"]

        response = await client.patch(f"/api/enrollments/{enrollment_id}/access", headers=auth_headers(other))

        assert response.status_code == 404


class TestAdminCourseEnrollments:
    """GET /api/enrollments/admin/course/{course_id}"""

    @pytest.mark.asyncio
    async def test_admin_lists_course_enrollments(self, client, student, make_user, course):
        admin = await make_user(role="admin")
        await enroll(client, student, course.id)

        response = await client.get(f"/api/enrollments/admin/course/{course.id}", headers=auth_headers(admin))

        assert response.status_code == 200
        body = response.json()
        assert body["count"] == 1
        assert body["data"][0]["student"]["email"] == student.email

    @pytest.mark.asyncio
    async def test_student_forbidden(self, client, student, course):
        response = await client.get(f"/api/enrollments/admin/course/{course.id}", headers=auth_headers(student))

        assert response.status_code == 403
        assert response.json()["message"] == "Admin access required"


class TestShortenedSyllabus:
    """Progress after the owner replaces the syllabus with a shorter one"""

    async def shrink(self, client, instructor, course, lesson_count):
        syllabus = [{"title": f"Lesson {i}", "order": i} for i in range(lesson_count)]
        response = await client.put(
            f"/api/courses/{course.id}", json={"syllabus": syllabus}, headers=auth_headers(instructor)
        )
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_progress_capped_and_completion_still_works(self, client, student, instructor, course):
        enrollment_id = (await enroll(client, student, course.id)).json()["enrollment"]["id"]
        for index in (0, 1, 2):
            await complete(client, student, enrollment_id, index)

        await self.shrink(client, instructor, course, 2)

        listing = (await client.get("/api/enrollments/my-courses", headers=auth_headers(student))).json()
        item = listing["data"][0]
        assert item["total_lessons"] == 2
        assert item["completed_lessons_count"] == 2
        assert item["progress"] == 100

        response = await complete(client, student, enrollment_id, 1)

        assert response.status_code == 200
        summary = response.json()["enrollment"]
        assert summary["progress"] == 100
        assert summary["completed_lessons"] == 2
        assert summary["status"] == "completed"

    @pytest.mark.asyncio
    async def test_lessons_past_the_end_are_ignored(self, client, student, instructor, course):
        enrollment_id = (await enroll(client, student, course.id)).json()["enrollment"]["id"]
        await complete(client, student, enrollment_id, 2)
        await complete(client, student, enrollment_id, 3)

        await self.shrink(client, instructor, course, 2)

        listing = (await client.get("/api/enrollments/my-courses", headers=auth_headers(student))).json()
        assert listing["data"][0]["progress"] == 0

        response = await complete(client, student, enrollment_id, 0)

        assert response.status_code == 200
        summary = response.json()["enrollment"]
        assert summary["progress"] == 50
        assert summary["completed_lessons"] == 1
        assert summary["status"] == "active"
