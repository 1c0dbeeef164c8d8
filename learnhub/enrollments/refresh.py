"""Cached enrollment progress refresh.

After a lesson is completed, the enrollment of the unit owning it (and of
every learning path of the student containing that course) gets its
cached ``progress`` recomputed. ``completed_at`` is set the first time the
unit reaches 100% and is never cleared. A completed certification gets its
certificate issued right away.
"""

from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from learnhub.catalog.models import Certification, Lesson, UnitKind, UnitRef
from learnhub.core.exceptions import LearnHubError
from learnhub.utils.timeutils import utc_now

from .models import EnrollmentRecord


if TYPE_CHECKING:
    from learnhub.analytics.service import ProgressAggregator
    from learnhub.catalog.service import CatalogService
    from learnhub.certificates.service import CertificateService

    from .store import EnrollmentStore

logger = structlog.get_logger(__name__)


class EnrollmentProgressRefresher:
    """Recomputes cached enrollment progress after lesson completions."""

    def __init__(
        self,
        catalog: "CatalogService",
        enrollments: "EnrollmentStore",
        aggregator: "ProgressAggregator",
        certificates: "CertificateService | None" = None,
    ):
        self.catalog = catalog
        self.enrollments = enrollments
        self.aggregator = aggregator
        self.certificates = certificates

    async def refresh_for_lesson(self, student_id: UUID, lesson: Lesson) -> None:
        """Refresh every enrollment whose progress depends on ``lesson``.

        Failures are logged; the lesson completion itself already happened.
        """
        targets = [lesson.unit]
        try:
            if lesson.unit.kind is UnitKind.COURSE:
                targets += [
                    UnitRef(UnitKind.PATH, path_id)
                    for path_id in await self.catalog.get_paths_containing(lesson.unit.id)
                ]
        except LearnHubError as e:
            logger.warning(
                "enrollment_progress_refresh_failed",
                student_id=str(student_id),
                unit=str(lesson.unit),
                error=e.message,
            )

        for ref in targets:
            try:
                await self.refresh(student_id, ref)
            except LearnHubError as e:
                logger.warning(
                    "enrollment_progress_refresh_failed",
                    student_id=str(student_id),
                    unit=str(ref),
                    error=e.message,
                )

    async def refresh(self, student_id: UUID, ref: UnitRef) -> EnrollmentRecord | None:
        """Recompute the cached progress of one enrollment, if it exists."""
        enrollment = await self.enrollments.get(student_id, ref)
        if enrollment is None:
            return None

        unit = await self.catalog.get_unit(ref)
        live = await self.aggregator.progress_for_unit(student_id, unit)

        completed_at = enrollment.completed_at
        if completed_at is None and live.percent == 100:
            completed_at = utc_now()

        if live.percent != enrollment.progress or completed_at != enrollment.completed_at:
            await self.enrollments.update_progress(
                student_id, ref, live.percent, completed_at
            )
            enrollment.progress = live.percent
            enrollment.completed_at = completed_at
            logger.info(
                "enrollment_progress_refreshed",
                student_id=str(student_id),
                unit=str(ref),
                progress=live.percent,
                completed=completed_at is not None,
            )

        if (
            isinstance(unit, Certification)
            and enrollment.completed_at is not None
            and enrollment.certificate_id is None
            and self.certificates is not None
        ):
            await self.certificates.issue_for_enrollment(unit, enrollment)

        return enrollment
