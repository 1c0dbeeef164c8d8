"""Enrollment cascade.

Business logic for:
- Idempotent top-level enrollment (insert-if-absent on the natural key)
- Fan-out to member courses of a learning path
- Not-started progress rows for every descendant lesson

Only the unit lookup and the top-level insert can fail an enrollment.
Every descendant write is attempted under a shared concurrency bound and
recorded as a ``CascadeStepResult``; failed steps are logged, never raised.
"""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from functools import partial
from typing import TYPE_CHECKING, Any
from uuid import UUID

import structlog

from learnhub.catalog.models import LearningUnit, UnitRef
from learnhub.utils.timeutils import utc_now

from .models import EnrollmentRecord


if TYPE_CHECKING:
    from learnhub.catalog.service import CatalogService
    from learnhub.progress.store import ProgressStore

    from .store import EnrollmentStore

logger = structlog.get_logger(__name__)


class CascadeStep(str, Enum):
    """Kinds of descendant work done by the cascade."""

    RESOLVE_MEMBERS = "resolve_members"
    RESOLVE_LESSONS = "resolve_lessons"
    ENROLL_MEMBER = "enroll_member"
    INIT_PROGRESS = "init_progress"


@dataclass
class CascadeStepResult:
    """Outcome of one descendant step.

    ``target`` is the descendant the step worked on (unit ref or lesson id).
    ``created`` is set by insert steps: False when the row already existed.
    """

    step: CascadeStep
    target: str
    ok: bool
    error: str | None = None
    created: bool | None = None
    value: Any = field(default=None, repr=False)


@dataclass
class CascadeReport:
    """Top-level enrollment plus every descendant step outcome."""

    enrollment: EnrollmentRecord
    created: bool
    steps: list[CascadeStepResult] = field(default_factory=list)

    @property
    def failures(self) -> list[CascadeStepResult]:
        return [step for step in self.steps if not step.ok]

    def count(self, step: CascadeStep, *, created: bool | None = None) -> int:
        """Number of successful steps of a kind, optionally by ``created``."""
        return sum(
            1
            for result in self.steps
            if result.step is step
            and result.ok
            and (created is None or result.created is created)
        )


class EnrollmentCascade:
    """Enrolls a student in a unit and everything below it."""

    def __init__(
        self,
        catalog: "CatalogService",
        enrollments: "EnrollmentStore",
        progress: "ProgressStore",
        max_concurrency: int = 8,
    ):
        self.catalog = catalog
        self.enrollments = enrollments
        self.progress = progress
        self.max_concurrency = max_concurrency

    async def enroll(self, student_id: UUID, ref: UnitRef) -> EnrollmentRecord:
        """Enroll a student in a unit.

        Returns:
            The top-level EnrollmentRecord, new or pre-existing

        Raises:
            UnitNotFoundError: If ``ref`` does not resolve
        """
        report = await self.enroll_with_report(student_id, ref)
        return report.enrollment

    async def enroll_with_report(self, student_id: UUID, ref: UnitRef) -> CascadeReport:
        """Enroll a student in a unit and report every cascade step."""
        unit = await self.catalog.get_unit(ref)

        enrollment, created = await self._insert_enrollment(student_id, unit.ref)
        if not created:
            logger.info(
                "enrollment_exists",
                student_id=str(student_id),
                unit=str(unit.ref),
                enrolled_at=enrollment.enrolled_at.isoformat(),
            )
            return CascadeReport(enrollment=enrollment, created=False)

        logger.info(
            "enrollment_created",
            student_id=str(student_id),
            unit=str(unit.ref),
        )

        report = CascadeReport(enrollment=enrollment, created=True)
        report.steps = await self._cascade(student_id, unit)

        logger.info(
            "cascade_completed",
            student_id=str(student_id),
            unit=str(unit.ref),
            steps=len(report.steps),
            failed=len(report.failures),
            members_enrolled=report.count(CascadeStep.ENROLL_MEMBER, created=True),
            progress_initialized=report.count(CascadeStep.INIT_PROGRESS, created=True),
        )
        return report

    async def _cascade(
        self, student_id: UUID, unit: LearningUnit
    ) -> list[CascadeStepResult]:
        semaphore = asyncio.Semaphore(self.max_concurrency)
        step = partial(self._attempt, semaphore)
        results: list[CascadeStepResult] = []

        own_lessons = await step(
            CascadeStep.RESOLVE_LESSONS,
            str(unit.ref),
            partial(self.catalog.get_own_lesson_ids, unit),
        )
        members = await step(
            CascadeStep.RESOLVE_MEMBERS,
            str(unit.ref),
            partial(self.catalog.get_member_units, unit),
        )
        results += [own_lessons, members]

        member_results = await asyncio.gather(
            *(
                self._cascade_member(semaphore, student_id, member)
                for member in members.value or []
            )
        )

        lesson_ids: list[UUID] = list(own_lessons.value or [])
        for member_steps in member_results:
            results += member_steps
            for result in member_steps:
                if result.step is CascadeStep.RESOLVE_LESSONS and result.ok:
                    lesson_ids += result.value

        results += await asyncio.gather(
            *(
                step(
                    CascadeStep.INIT_PROGRESS,
                    str(lesson_id),
                    partial(self.progress.initialize, student_id, lesson_id),
                )
                for lesson_id in dict.fromkeys(lesson_ids)
            )
        )
        return results

    async def _cascade_member(
        self,
        semaphore: asyncio.Semaphore,
        student_id: UUID,
        member: LearningUnit,
    ) -> list[CascadeStepResult]:
        enrolled = await self._attempt(
            semaphore,
            CascadeStep.ENROLL_MEMBER,
            str(member.ref),
            partial(self._insert_enrollment, student_id, member.ref),
        )
        lessons = await self._attempt(
            semaphore,
            CascadeStep.RESOLVE_LESSONS,
            str(member.ref),
            partial(self.catalog.get_unit_lesson_ids, member),
        )
        return [enrolled, lessons]

    async def _insert_enrollment(
        self, student_id: UUID, ref: UnitRef
    ) -> tuple[EnrollmentRecord, bool]:
        record = EnrollmentRecord(
            student_id=student_id,
            unit_kind=ref.kind,
            unit_id=ref.id,
            enrolled_at=utc_now(),
            progress=0,
        )
        return await self.enrollments.insert_if_absent(record)

    async def _attempt(
        self,
        semaphore: asyncio.Semaphore,
        step: CascadeStep,
        target: str,
        action: Callable[[], Awaitable[Any]],
    ) -> CascadeStepResult:
        async with semaphore:
            try:
                value = await action()
            except Exception as e:
                logger.warning(
                    "cascade_step_failed",
                    step=step.value,
                    target=target,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                return CascadeStepResult(step=step, target=target, ok=False, error=str(e))

        # Insert steps return (row, created)
        if isinstance(value, tuple):
            return CascadeStepResult(
                step=step, target=target, ok=True, created=value[1], value=value[0]
            )
        return CascadeStepResult(step=step, target=target, ok=True, value=value)
