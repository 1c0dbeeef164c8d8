"""Shared fixtures.

In-memory stores honour the same natural-key semantics as the Cassandra
stores (insert-if-absent vs last-write-wins), so services can be exercised
end to end without a cluster.
"""

import asyncio
import os
from collections.abc import Callable
from datetime import UTC, date, datetime, timedelta
from typing import Any
from uuid import UUID, uuid4

import pytest
from fastapi.testclient import TestClient
from jose import jwt


os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("REDIS_ENABLED", "false")

from learnhub.analytics.service import ProgressAggregator  # noqa: E402
from learnhub.catalog.models import (  # noqa: E402
    Certification,
    Course,
    LearningPath,
    LearningUnit,
    Lesson,
    ScheduledLesson,
    UnitKind,
    UnitRef,
)
from learnhub.certificates.models import Certificate  # noqa: E402
from learnhub.certificates.service import CertificateService  # noqa: E402
from learnhub.config.settings import get_settings  # noqa: E402
from learnhub.core.exceptions import (  # noqa: E402
    LessonNotFoundError,
    StorageError,
    UnitNotFoundError,
)
from learnhub.enrollments.models import EnrollmentRecord  # noqa: E402
from learnhub.enrollments.refresh import EnrollmentProgressRefresher  # noqa: E402
from learnhub.enrollments.service import EnrollmentCascade  # noqa: E402
from learnhub.progress.models import LessonProgress, QuizAttempt  # noqa: E402
from learnhub.progress.service import CompletionGate  # noqa: E402


DEFAULT_SCRIPT = "## Intro\ntext\n## Practice\ntext\n## Recap\ntext"


# ==============================================================================
# In-memory doubles
# ==============================================================================


class FakeCatalog:
    """Catalog built in memory by the tests."""

    def __init__(self) -> None:
        self.units: dict[UnitRef, LearningUnit] = {}
        self.unit_lessons: dict[UnitRef, list[UUID]] = {}
        self.path_members: dict[UUID, list[UUID]] = {}
        self.lessons: dict[UUID, Lesson] = {}
        self.scheduled: dict[UUID, list[ScheduledLesson]] = {}
        self.broken_units: set[UnitRef] = set()

    def _add_lessons(self, unit: LearningUnit, count: int, scripts: list[str] | None) -> None:
        module_id = uuid4()
        lesson_ids = []
        for index in range(count):
            lesson = Lesson(
                id=uuid4(),
                module_id=module_id,
                unit=unit.ref,
                title=f"Lesson {index + 1}",
                lesson_order=index,
                lesson_script=scripts[index] if scripts else DEFAULT_SCRIPT,
            )
            self.lessons[lesson.id] = lesson
            lesson_ids.append(lesson.id)
        self.units[unit.ref] = unit
        self.unit_lessons[unit.ref] = lesson_ids

    def add_course(self, lesson_count: int = 1, scripts: list[str] | None = None) -> Course:
        course = Course(id=uuid4(), title="Course")
        self._add_lessons(course, lesson_count, scripts)
        return course

    def add_certification(
        self, lesson_count: int = 1, skills: list[str] | None = None
    ) -> Certification:
        certification = Certification(
            id=uuid4(), title="Certification", skills=skills or ["python"]
        )
        self._add_lessons(certification, lesson_count, None)
        return certification

    def add_path(self, courses: list[Course]) -> LearningPath:
        path = LearningPath(id=uuid4(), title="Path")
        self.units[path.ref] = path
        self.unit_lessons[path.ref] = []
        self.path_members[path.id] = [course.id for course in courses]
        return path

    def add_scheduled_lesson(
        self,
        student_id: UUID,
        scheduled_date: date,
        lesson_order: int = 0,
        script: str = DEFAULT_SCRIPT,
    ) -> Lesson:
        lesson = Lesson(
            id=uuid4(),
            module_id=uuid4(),
            unit=UnitRef(UnitKind.COURSE, uuid4()),
            title=f"Day lesson {lesson_order}",
            lesson_order=lesson_order,
            lesson_script=script,
            scheduled_date=scheduled_date,
            owner_student_id=student_id,
        )
        self.lessons[lesson.id] = lesson
        self.scheduled.setdefault(student_id, []).append(
            ScheduledLesson(
                lesson_id=lesson.id,
                scheduled_date=scheduled_date,
                lesson_order=lesson_order,
                title=lesson.title,
            )
        )
        return lesson

    def lesson_ids(self, unit: LearningUnit) -> list[UUID]:
        return list(self.unit_lessons[unit.ref])

    async def find_unit(self, ref: UnitRef) -> LearningUnit | None:
        return self.units.get(ref)

    async def get_unit(self, ref: UnitRef) -> LearningUnit:
        unit = self.units.get(ref)
        if unit is None:
            raise UnitNotFoundError
        return unit

    async def get_member_units(self, unit: LearningUnit) -> list[LearningUnit]:
        return [
            self.units[UnitRef(UnitKind.COURSE, course_id)]
            for course_id in self.path_members.get(unit.id, [])
        ]

    async def get_own_lesson_ids(self, unit: LearningUnit) -> list[UUID]:
        return list(self.unit_lessons.get(unit.ref, []))

    async def get_unit_lesson_ids(self, unit: LearningUnit) -> list[UUID]:
        if unit.ref in self.broken_units:
            raise StorageError
        lesson_ids = await self.get_own_lesson_ids(unit)
        for member in await self.get_member_units(unit):
            lesson_ids += await self.get_unit_lesson_ids(member)
        return list(dict.fromkeys(lesson_ids))

    async def get_lesson(self, lesson_id: UUID) -> Lesson:
        lesson = self.lessons.get(lesson_id)
        if lesson is None:
            raise LessonNotFoundError
        return lesson

    async def get_paths_containing(self, course_id: UUID) -> list[UUID]:
        return [
            path_id
            for path_id, course_ids in self.path_members.items()
            if course_id in course_ids
        ]

    async def list_scheduled_lessons(
        self, student_id: UUID, start: date, end: date
    ) -> list[ScheduledLesson]:
        lessons = [
            lesson
            for lesson in self.scheduled.get(student_id, [])
            if start <= lesson.scheduled_date <= end
        ]
        return sorted(lessons, key=lambda lesson: lesson.sort_key)


class InMemoryEnrollmentStore:
    def __init__(self) -> None:
        self.rows: dict[tuple[UUID, UnitKind, UUID], EnrollmentRecord] = {}
        self.fail_for: set[UnitRef] = set()

    async def insert_if_absent(
        self, record: EnrollmentRecord
    ) -> tuple[EnrollmentRecord, bool]:
        # Yield first so concurrent callers interleave before the atomic check
        await asyncio.sleep(0)
        if record.ref in self.fail_for:
            raise StorageError
        key = (record.student_id, record.unit_kind, record.unit_id)
        if key in self.rows:
            return self.rows[key], False
        self.rows[key] = record
        return record, True

    async def get(self, student_id: UUID, ref: UnitRef) -> EnrollmentRecord | None:
        return self.rows.get((student_id, ref.kind, ref.id))

    async def list_for_student(self, student_id: UUID) -> list[EnrollmentRecord]:
        return [row for key, row in self.rows.items() if key[0] == student_id]

    async def update_progress(self, student_id, ref, progress, completed_at) -> None:
        row = self.rows[(student_id, ref.kind, ref.id)]
        row.progress = progress
        row.completed_at = completed_at

    async def set_certificate(self, student_id, ref, certificate_id) -> None:
        self.rows[(student_id, ref.kind, ref.id)].certificate_id = certificate_id


class InMemoryProgressStore:
    def __init__(self) -> None:
        self.rows: dict[tuple[UUID, UUID], LessonProgress] = {}
        self.fail_for: set[UUID] = set()
        self.saves = 0

    async def initialize(
        self, student_id: UUID, lesson_id: UUID
    ) -> tuple[LessonProgress, bool]:
        await asyncio.sleep(0)
        if lesson_id in self.fail_for:
            raise StorageError
        key = (student_id, lesson_id)
        if key in self.rows:
            return self.rows[key], False
        self.rows[key] = LessonProgress(student_id=student_id, lesson_id=lesson_id)
        return self.rows[key], True

    async def save(self, progress: LessonProgress) -> LessonProgress:
        self.saves += 1
        self.rows[(progress.student_id, progress.lesson_id)] = progress
        return progress

    async def get(self, student_id: UUID, lesson_id: UUID) -> LessonProgress | None:
        return self.rows.get((student_id, lesson_id))

    async def get_many(
        self, student_id: UUID, lesson_ids: list[UUID]
    ) -> dict[UUID, LessonProgress]:
        return {
            lesson_id: self.rows[(student_id, lesson_id)]
            for lesson_id in lesson_ids
            if (student_id, lesson_id) in self.rows
        }

    async def list_for_student(self, student_id: UUID) -> list[LessonProgress]:
        return [row for key, row in self.rows.items() if key[0] == student_id]

    def for_student(self, student_id: UUID) -> list[LessonProgress]:
        return [row for key, row in self.rows.items() if key[0] == student_id]


class InMemoryQuizAttemptStore:
    def __init__(self) -> None:
        self.rows: dict[tuple[UUID, UUID, UUID], QuizAttempt] = {}

    async def save(self, attempt: QuizAttempt) -> QuizAttempt:
        self.rows[(attempt.student_id, attempt.lesson_id, attempt.quiz_id)] = attempt
        return attempt

    async def list_for_student(self, student_id: UUID) -> list[QuizAttempt]:
        return [row for key, row in self.rows.items() if key[0] == student_id]


class InMemoryCertificateStore:
    def __init__(self) -> None:
        self.rows: dict[tuple[UUID, UUID], Certificate] = {}

    async def insert_if_absent(self, certificate: Certificate) -> tuple[Certificate, bool]:
        key = (certificate.student_id, certificate.certification_id)
        if key in self.rows:
            return self.rows[key], False
        self.rows[key] = certificate
        return certificate, True

    async def get(self, student_id: UUID, certification_id: UUID) -> Certificate | None:
        return self.rows.get((student_id, certification_id))


# ==============================================================================
# Fixtures
# ==============================================================================


@pytest.fixture
def student_id() -> UUID:
    return uuid4()


@pytest.fixture
def catalog() -> FakeCatalog:
    return FakeCatalog()


@pytest.fixture
def enrollment_store() -> InMemoryEnrollmentStore:
    return InMemoryEnrollmentStore()


@pytest.fixture
def progress_store() -> InMemoryProgressStore:
    return InMemoryProgressStore()


@pytest.fixture
def quiz_store() -> InMemoryQuizAttemptStore:
    return InMemoryQuizAttemptStore()


@pytest.fixture
def certificate_store() -> InMemoryCertificateStore:
    return InMemoryCertificateStore()


@pytest.fixture
def cascade(catalog, enrollment_store, progress_store) -> EnrollmentCascade:
    return EnrollmentCascade(
        catalog=catalog,
        enrollments=enrollment_store,
        progress=progress_store,
        max_concurrency=4,
    )


@pytest.fixture
def aggregator(catalog, progress_store, quiz_store, enrollment_store) -> ProgressAggregator:
    return ProgressAggregator(
        catalog=catalog,
        progress=progress_store,
        quiz_attempts=quiz_store,
        enrollments=enrollment_store,
    )


@pytest.fixture
def certificate_service(catalog, enrollment_store, certificate_store) -> CertificateService:
    return CertificateService(
        catalog=catalog,
        enrollments=enrollment_store,
        certificates=certificate_store,
    )


@pytest.fixture
def refresher(
    catalog, enrollment_store, aggregator, certificate_service
) -> EnrollmentProgressRefresher:
    return EnrollmentProgressRefresher(
        catalog=catalog,
        enrollments=enrollment_store,
        aggregator=aggregator,
        certificates=certificate_service,
    )


@pytest.fixture
def gate(
    catalog, enrollment_store, progress_store, quiz_store, refresher
) -> CompletionGate:
    return CompletionGate(
        catalog=catalog,
        enrollments=enrollment_store,
        progress=progress_store,
        quiz_attempts=quiz_store,
        refresher=refresher,
    )


@pytest.fixture
def app(cascade, gate, aggregator, certificate_service, enrollment_store, catalog):
    """Application wired to the in-memory doubles (lifespan is not run)."""
    from learnhub.main import create_app

    application = create_app()
    application.state.catalog_service = catalog
    application.state.enrollment_store = enrollment_store
    application.state.enrollment_cascade = cascade
    application.state.completion_gate = gate
    application.state.progress_aggregator = aggregator
    application.state.certificate_service = certificate_service
    return application


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)


@pytest.fixture
def make_token() -> Callable[..., str]:
    """Sign access tokens the way the identity service issues them."""

    def _make(data: dict[str, Any], expires_delta: timedelta | None = None) -> str:
        settings = get_settings()
        now = datetime.now(UTC)
        payload = {
            **data,
            "exp": now + (expires_delta or timedelta(minutes=15)),
            "iat": now,
            "type": "access",
        }
        return jwt.encode(
            payload, settings.auth_secret_key, algorithm=settings.auth_algorithm
        )

    return _make


@pytest.fixture
def auth_headers(make_token) -> Callable[[UUID], dict[str, str]]:
    """Build Authorization headers for a student."""

    def _headers(student: UUID) -> dict[str, str]:
        token = make_token({"sub": str(student)})
        return {"Authorization": f"Bearer {token}"}

    return _headers
