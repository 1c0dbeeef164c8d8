"""Read-side progress derivations.

Business logic for:
- Live unit completion percent
- Study streak and activity histogram from completion history
- Daily and monthly calendar of scheduled personal-path lessons
- Student analytics summary

Nothing here writes to storage; every figure is recomputed from progress
rows on each call.
"""

import calendar
from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from learnhub.catalog.models import LearningUnit, ScheduledLesson, UnitRef
from learnhub.progress.models import LessonProgress
from learnhub.utils.timeutils import utc_now


if TYPE_CHECKING:
    from learnhub.catalog.service import CatalogService
    from learnhub.enrollments.models import EnrollmentRecord
    from learnhub.enrollments.store import EnrollmentStore
    from learnhub.progress.store import ProgressStore, QuizAttemptStore

logger = structlog.get_logger(__name__)


# ==============================================================================
# Pure derivations
# ==============================================================================


def percent_complete(completed: int, total: int) -> int:
    """Whole percent of ``completed`` over ``total``, halves rounded up."""
    if total <= 0:
        return 0
    value = Decimal(100 * completed) / Decimal(total)
    return int(value.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def study_hours(completed: int, minutes_per_lesson: int) -> int:
    """Whole study hours for ``completed`` lessons, halves rounded up."""
    value = Decimal(completed * minutes_per_lesson) / Decimal(60)
    return int(value.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def completion_dates(history: Iterable[LessonProgress]) -> list[date]:
    """UTC day of every completed lesson in ``history``."""
    return [
        progress.completed_at.date()
        for progress in history
        if progress.completed and progress.completed_at is not None
    ]


def streak_from_dates(dates: Iterable[date], today: date) -> int:
    """Consecutive study days ending today or yesterday.

    A streak whose latest day is older than yesterday is broken (0).
    """
    days = sorted(set(dates), reverse=True)
    if not days or days[0] < today - timedelta(days=1):
        return 0

    streak = 1
    for previous, current in zip(days, days[1:], strict=False):
        if previous - current != timedelta(days=1):
            break
        streak += 1
    return streak


def activity_from_dates(
    dates: Iterable[date], today: date, window_days: int
) -> list[tuple[date, int]]:
    """Completions per day for the ``window_days`` days ending today, ascending."""
    counts = Counter(dates)
    start = today - timedelta(days=window_days - 1)
    return [
        (day, counts.get(day, 0))
        for day in (start + timedelta(days=offset) for offset in range(window_days))
    ]


# ==============================================================================
# Result types
# ==============================================================================


@dataclass
class UnitProgress:
    """Live completion of a unit's descendant lessons."""

    unit: UnitRef
    percent: int
    completed_count: int
    total_count: int


@dataclass
class DailyLesson:
    """Scheduled lesson joined with the student's progress (None = not started)."""

    lesson: ScheduledLesson
    progress: LessonProgress | None = None

    @property
    def completed(self) -> bool:
        return bool(self.progress and self.progress.completed)


@dataclass
class CalendarDay:
    """One day of a month calendar."""

    day: date
    lessons: list[DailyLesson] = field(default_factory=list)


@dataclass
class AnalyticsSummary:
    """Aggregated study figures for one student."""

    total_lessons_completed: int
    average_quiz_score: float
    total_study_hours: int
    streak_days: int
    activity: list[tuple[date, int]]
    enrollments: list["EnrollmentRecord"]


# ==============================================================================
# Aggregator
# ==============================================================================


class ProgressAggregator:
    """Computes progress figures on demand from durable storage."""

    def __init__(
        self,
        catalog: "CatalogService",
        progress: "ProgressStore",
        quiz_attempts: "QuizAttemptStore",
        enrollments: "EnrollmentStore",
        default_window_days: int = 30,
        minutes_per_lesson: int = 45,
    ):
        self.catalog = catalog
        self.progress = progress
        self.quiz_attempts = quiz_attempts
        self.enrollments = enrollments
        self.default_window_days = default_window_days
        self.minutes_per_lesson = minutes_per_lesson

    async def unit_progress(self, student_id: UUID, ref: UnitRef) -> UnitProgress:
        """Live percent complete of a unit.

        Raises:
            UnitNotFoundError: If ``ref`` does not resolve
        """
        unit = await self.catalog.get_unit(ref)
        return await self.progress_for_unit(student_id, unit)

    async def progress_for_unit(
        self, student_id: UUID, unit: LearningUnit
    ) -> UnitProgress:
        """Live percent complete of an already resolved unit."""
        lesson_ids = await self.catalog.get_unit_lesson_ids(unit)
        rows = await self.progress.get_many(student_id, lesson_ids)
        completed = sum(1 for progress in rows.values() if progress.completed)
        return UnitProgress(
            unit=unit.ref,
            percent=percent_complete(completed, len(lesson_ids)),
            completed_count=completed,
            total_count=len(lesson_ids),
        )

    async def streak_days(self, student_id: UUID, today: date | None = None) -> int:
        """Current study streak in days."""
        history = await self.progress.list_for_student(student_id)
        return streak_from_dates(completion_dates(history), today or utc_now().date())

    async def activity_histogram(
        self,
        student_id: UUID,
        window_days: int | None = None,
        today: date | None = None,
    ) -> list[tuple[date, int]]:
        """Completions per day over the trailing window."""
        window = window_days or self.default_window_days
        if window < 1:
            raise ValueError("window_days must be positive")
        history = await self.progress.list_for_student(student_id)
        return activity_from_dates(
            completion_dates(history), today or utc_now().date(), window
        )

    async def daily_lessons(self, student_id: UUID, day: date) -> list[DailyLesson]:
        """Lessons scheduled for ``day`` in lesson order, with progress."""
        return await self._scheduled_with_progress(student_id, day, day)

    async def month_calendar(
        self, student_id: UUID, year: int, month: int
    ) -> list[CalendarDay]:
        """Every day of the month with the lessons scheduled on it."""
        days_in_month = calendar.monthrange(year, month)[1]
        first = date(year, month, 1)
        last = date(year, month, days_in_month)

        by_day: dict[date, list[DailyLesson]] = {}
        for entry in await self._scheduled_with_progress(student_id, first, last):
            by_day.setdefault(entry.lesson.scheduled_date, []).append(entry)

        return [
            CalendarDay(day=day, lessons=by_day.get(day, []))
            for day in (first + timedelta(days=offset) for offset in range(days_in_month))
        ]

    async def summary(
        self, student_id: UUID, today: date | None = None
    ) -> AnalyticsSummary:
        """Totals, averages, streak, activity and enrollments of a student."""
        today = today or utc_now().date()
        history = await self.progress.list_for_student(student_id)
        attempts = await self.quiz_attempts.list_for_student(student_id)
        enrollments = await self.enrollments.list_for_student(student_id)

        dates = completion_dates(history)
        completed = sum(1 for progress in history if progress.completed)
        average_score = (
            round(sum(attempt.score for attempt in attempts) / len(attempts), 2)
            if attempts
            else 0.0
        )

        logger.debug(
            "analytics_summary_computed",
            student_id=str(student_id),
            lessons_completed=completed,
            quiz_attempts=len(attempts),
        )

        return AnalyticsSummary(
            total_lessons_completed=completed,
            average_quiz_score=average_score,
            total_study_hours=study_hours(completed, self.minutes_per_lesson),
            streak_days=streak_from_dates(dates, today),
            activity=activity_from_dates(dates, today, self.default_window_days),
            enrollments=enrollments,
        )

    async def _scheduled_with_progress(
        self, student_id: UUID, start: date, end: date
    ) -> list[DailyLesson]:
        lessons = await self.catalog.list_scheduled_lessons(student_id, start, end)
        rows = await self.progress.get_many(
            student_id, [lesson.lesson_id for lesson in lessons]
        )
        return [DailyLesson(lesson, rows.get(lesson.lesson_id)) for lesson in lessons]
