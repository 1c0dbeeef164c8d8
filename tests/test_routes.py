"""HTTP tests for the enrollment, progress, analytics and certificate routes."""

from datetime import UTC, date, datetime
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient


@pytest.fixture
def headers(auth_headers, student_id):
    return auth_headers(student_id)


class TestEnrollmentRoutes:
    def test_requires_token(self, client: TestClient, catalog) -> None:
        course = catalog.add_course()
        response = client.post(
            "/v1/enrollments", json={"unit_kind": "course", "unit_id": str(course.id)}
        )

        assert response.status_code == 401
        assert response.json()["error"] is True

    def test_enroll_then_reenroll(self, client: TestClient, catalog, headers) -> None:
        path = catalog.add_path([catalog.add_course(lesson_count=2)])
        body = {"unit_kind": "path", "unit_id": str(path.id)}

        first = client.post("/v1/enrollments", json=body, headers=headers)
        second = client.post("/v1/enrollments", json=body, headers=headers)

        assert first.status_code == 201
        assert second.status_code == 200
        assert first.json()["enrolled_at"] == second.json()["enrolled_at"]
        assert first.json()["progress"] == 0

    def test_unknown_unit(self, client: TestClient, headers) -> None:
        response = client.post(
            "/v1/enrollments",
            json={"unit_kind": "course", "unit_id": str(uuid4())},
            headers=headers,
        )

        assert response.status_code == 404

    def test_invalid_unit_kind(self, client: TestClient, headers) -> None:
        response = client.post(
            "/v1/enrollments",
            json={"unit_kind": "module", "unit_id": str(uuid4())},
            headers=headers,
        )

        assert response.status_code == 422

    def test_list_and_get(self, client: TestClient, catalog, headers) -> None:
        course_a = catalog.add_course()
        course_b = catalog.add_course()
        path = catalog.add_path([course_a, course_b])
        client.post(
            "/v1/enrollments",
            json={"unit_kind": "path", "unit_id": str(path.id)},
            headers=headers,
        )

        listing = client.get("/v1/enrollments/my", headers=headers)
        single = client.get(f"/v1/enrollments/course/{course_a.id}", headers=headers)
        missing = client.get(f"/v1/enrollments/course/{uuid4()}", headers=headers)

        assert listing.json()["total"] == 3
        assert single.status_code == 200
        assert single.json()["unit_kind"] == "course"
        assert missing.status_code == 404


class TestProgressRoutes:
    def test_quiz_pass_completes_lesson(
        self, client: TestClient, catalog, headers
    ) -> None:
        course = catalog.add_course(lesson_count=2)
        lesson_id = catalog.lesson_ids(course)[0]
        client.post(
            "/v1/enrollments",
            json={"unit_kind": "course", "unit_id": str(course.id)},
            headers=headers,
        )

        response = client.post(
            "/v1/progress/quiz-attempts",
            json={
                "lesson_id": str(lesson_id),
                "quiz_id": str(uuid4()),
                "answers": {"q1": "a"},
                "score": 85,
            },
            headers=headers,
        )
        unit = client.get(f"/v1/progress/units/course/{course.id}", headers=headers)

        assert response.status_code == 200
        data = response.json()
        assert data["passed"] is True
        assert data["progress"]["completed"] is True
        assert data["progress"]["last_completed_segment_index"] == 3
        assert unit.json()["percent"] == 50

    def test_quiz_without_enrollment(self, client: TestClient, catalog, headers) -> None:
        course = catalog.add_course()

        response = client.post(
            "/v1/progress/quiz-attempts",
            json={
                "lesson_id": str(catalog.lesson_ids(course)[0]),
                "quiz_id": str(uuid4()),
                "answers": [],
                "score": 100,
            },
            headers=headers,
        )

        assert response.status_code == 403

    def test_quiz_score_out_of_range(self, client: TestClient, headers) -> None:
        response = client.post(
            "/v1/progress/quiz-attempts",
            json={
                "lesson_id": str(uuid4()),
                "quiz_id": str(uuid4()),
                "answers": [],
                "score": 101,
            },
            headers=headers,
        )

        assert response.status_code == 422

    def test_manual_update_not_owned(self, client: TestClient, catalog, headers) -> None:
        lesson = catalog.add_scheduled_lesson(uuid4(), date(2024, 1, 5))

        response = client.put(
            f"/v1/progress/lessons/{lesson.id}",
            json={"completed": True},
            headers=headers,
        )

        assert response.status_code == 403

    def test_manual_update_and_resume(
        self, client: TestClient, catalog, headers, student_id
    ) -> None:
        lesson = catalog.add_scheduled_lesson(student_id, date(2024, 1, 5))

        update = client.put(
            f"/v1/progress/lessons/{lesson.id}",
            json={"completed": False, "segment_index": 2},
            headers=headers,
        )
        resume = client.get(f"/v1/progress/lessons/{lesson.id}", headers=headers)

        assert update.status_code == 200
        assert resume.json()["resume_segment_index"] == 2
        assert resume.json()["total_segments"] == 3

    def test_unknown_lesson(self, client: TestClient, headers) -> None:
        response = client.get(f"/v1/progress/lessons/{uuid4()}", headers=headers)

        assert response.status_code == 404


class TestAnalyticsRoutes:
    def test_streak_activity_summary(
        self, client: TestClient, progress_store, headers, student_id
    ) -> None:
        streak = client.get("/v1/analytics/streak", headers=headers)
        activity = client.get("/v1/analytics/activity?window_days=7", headers=headers)
        summary = client.get("/v1/analytics/summary", headers=headers)

        assert streak.json() == {"streak_days": 0}
        assert activity.json()["window_days"] == 7
        assert len(activity.json()["days"]) == 7
        assert summary.status_code == 200
        assert summary.json()["total_lessons_completed"] == 0
        assert len(summary.json()["activity"]) == 30

    def test_activity_window_too_large(self, client: TestClient, headers) -> None:
        response = client.get("/v1/analytics/activity?window_days=366", headers=headers)

        assert response.status_code == 422

    def test_activity_window_must_be_positive(
        self, client: TestClient, headers
    ) -> None:
        response = client.get("/v1/analytics/activity?window_days=0", headers=headers)

        assert response.status_code == 422


class TestCalendarRoutes:
    def test_daily(self, client: TestClient, catalog, headers, student_id) -> None:
        catalog.add_scheduled_lesson(student_id, date(2024, 1, 5), lesson_order=1)

        response = client.get("/v1/calendar/daily?date=2024-01-05", headers=headers)

        assert response.status_code == 200
        data = response.json()
        assert data["date"] == "2024-01-05"
        assert len(data["lessons"]) == 1
        assert data["lessons"][0]["completed"] is False
        assert data["lessons"][0]["progress"] is None

    def test_month(self, client: TestClient, headers) -> None:
        response = client.get("/v1/calendar/month?year=2024&month=4", headers=headers)

        assert response.status_code == 200
        assert len(response.json()["days"]) == 30

    def test_invalid_month(self, client: TestClient, headers) -> None:
        response = client.get("/v1/calendar/month?year=2024&month=13", headers=headers)

        assert response.status_code == 422


class TestCertificateRoutes:
    def test_not_completed(self, client: TestClient, catalog, headers) -> None:
        certification = catalog.add_certification(lesson_count=2)
        client.post(
            "/v1/enrollments",
            json={"unit_kind": "certification", "unit_id": str(certification.id)},
            headers=headers,
        )

        response = client.post(
            "/v1/certificates",
            json={"certification_id": str(certification.id)},
            headers=headers,
        )

        assert response.status_code == 409

    def test_issue_then_reissue(
        self, client: TestClient, catalog, enrollment_store, headers, student_id
    ) -> None:
        certification = catalog.add_certification(lesson_count=1, skills=["sql"])
        client.post(
            "/v1/enrollments",
            json={"unit_kind": "certification", "unit_id": str(certification.id)},
            headers=headers,
        )
        record = enrollment_store.rows[(student_id, certification.kind, certification.id)]
        record.progress = 100
        record.completed_at = datetime(2024, 3, 1, tzinfo=UTC)
        body = {"certification_id": str(certification.id)}

        first = client.post("/v1/certificates", json=body, headers=headers)
        second = client.post("/v1/certificates", json=body, headers=headers)

        assert first.status_code == 201
        assert second.status_code == 200
        assert first.json()["id"] == second.json()["id"]
        assert first.json()["id"].startswith("CERT-")
        assert first.json()["skills"] == ["sql"]
