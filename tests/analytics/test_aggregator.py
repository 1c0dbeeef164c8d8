"""Tests for progress aggregation and calendar views."""

from datetime import UTC, date, datetime, timedelta
from uuid import uuid4

import pytest

from learnhub.analytics.service import (
    activity_from_dates,
    percent_complete,
    streak_from_dates,
    study_hours,
)
from learnhub.catalog.models import UnitKind, UnitRef
from learnhub.core.exceptions import UnitNotFoundError
from learnhub.progress.models import LessonProgress, QuizAttempt


TODAY = date(2024, 1, 5)


async def complete_on(progress_store, student_id, day: date, lesson_id=None):
    await progress_store.save(
        LessonProgress(
            student_id=student_id,
            lesson_id=lesson_id or uuid4(),
            completed=True,
            completed_at=datetime(day.year, day.month, day.day, 12, 0, tzinfo=UTC),
            last_completed_segment_index=1,
        )
    )


class TestPercentComplete:
    @pytest.mark.parametrize(
        ("completed", "total", "expected"),
        [(1, 4, 25), (0, 3, 0), (3, 3, 100), (1, 3, 33), (2, 3, 67), (1, 8, 13)],
    )
    def test_rounding(self, completed, total, expected) -> None:
        assert percent_complete(completed, total) == expected

    def test_empty_unit_is_zero(self) -> None:
        assert percent_complete(0, 0) == 0


class TestStudyHours:
    @pytest.mark.parametrize(
        ("completed", "expected"),
        [(0, 0), (2, 2), (6, 5), (10, 8), (3, 2)],
    )
    def test_halves_round_up(self, completed, expected) -> None:
        assert study_hours(completed, 45) == expected


class TestStreak:
    def test_gap_breaks_streak(self) -> None:
        dates = [date(2024, 1, 5), date(2024, 1, 4), date(2024, 1, 2)]
        assert streak_from_dates(dates, TODAY) == 2

    def test_streak_ending_yesterday_counts(self) -> None:
        dates = [date(2024, 1, 4), date(2024, 1, 3)]
        assert streak_from_dates(dates, TODAY) == 2

    def test_stale_activity_is_zero(self) -> None:
        assert streak_from_dates([date(2024, 1, 1)], TODAY) == 0

    def test_no_activity(self) -> None:
        assert streak_from_dates([], TODAY) == 0

    def test_several_completions_same_day(self) -> None:
        assert streak_from_dates([TODAY, TODAY, TODAY], TODAY) == 1


class TestActivity:
    def test_window_is_zero_filled_and_ascending(self) -> None:
        histogram = activity_from_dates([TODAY, TODAY, date(2024, 1, 1)], TODAY, 30)

        assert len(histogram) == 30
        assert histogram[0][0] == TODAY - timedelta(days=29)
        assert histogram[-1] == (TODAY, 2)
        assert dict(histogram)[date(2024, 1, 1)] == 1
        assert sum(count for _, count in histogram) == 3


class TestProgressAggregator:
    @pytest.mark.asyncio
    async def test_unit_progress(
        self, aggregator, catalog, progress_store, student_id
    ) -> None:
        course = catalog.add_course(lesson_count=4)
        await complete_on(
            progress_store, student_id, TODAY, catalog.lesson_ids(course)[0]
        )

        progress = await aggregator.unit_progress(student_id, course.ref)

        assert progress.percent == 25
        assert progress.completed_count == 1
        assert progress.total_count == 4

    @pytest.mark.asyncio
    async def test_unknown_unit(self, aggregator, student_id) -> None:
        with pytest.raises(UnitNotFoundError):
            await aggregator.unit_progress(student_id, UnitRef(UnitKind.PATH, uuid4()))

    @pytest.mark.asyncio
    async def test_streak_from_history(
        self, aggregator, progress_store, student_id
    ) -> None:
        for day in (date(2024, 1, 5), date(2024, 1, 4), date(2024, 1, 2)):
            await complete_on(progress_store, student_id, day)

        assert await aggregator.streak_days(student_id, today=TODAY) == 2

    @pytest.mark.asyncio
    async def test_incomplete_rows_are_not_activity(
        self, aggregator, progress_store, student_id
    ) -> None:
        await progress_store.save(LessonProgress(student_id=student_id, lesson_id=uuid4()))

        histogram = await aggregator.activity_histogram(student_id, today=TODAY)

        assert len(histogram) == 30
        assert all(count == 0 for _, count in histogram)

    @pytest.mark.asyncio
    async def test_activity_window_must_be_positive(
        self, aggregator, student_id
    ) -> None:
        with pytest.raises(ValueError):
            await aggregator.activity_histogram(student_id, window_days=-1)

    @pytest.mark.asyncio
    async def test_summary(
        self, aggregator, cascade, catalog, progress_store, quiz_store, student_id
    ) -> None:
        course = catalog.add_course(lesson_count=2)
        await cascade.enroll(student_id, course.ref)
        for lesson_id in catalog.lesson_ids(course):
            await complete_on(progress_store, student_id, TODAY, lesson_id)
        for score in (70, 85, 90):
            await quiz_store.save(
                QuizAttempt(student_id, uuid4(), uuid4(), answers=[], score=score)
            )

        summary = await aggregator.summary(student_id, today=TODAY)

        assert summary.total_lessons_completed == 2
        assert summary.average_quiz_score == 81.67
        assert summary.total_study_hours == 2
        assert summary.streak_days == 1
        assert len(summary.activity) == 30
        assert [e.ref for e in summary.enrollments] == [course.ref]

    @pytest.mark.asyncio
    async def test_summary_study_hours_round_half_up(
        self, aggregator, progress_store, student_id
    ) -> None:
        for _ in range(6):
            await complete_on(progress_store, student_id, TODAY)

        summary = await aggregator.summary(student_id, today=TODAY)

        assert summary.total_lessons_completed == 6
        assert summary.total_study_hours == 5

    @pytest.mark.asyncio
    async def test_summary_without_attempts(self, aggregator, student_id) -> None:
        summary = await aggregator.summary(student_id, today=TODAY)

        assert summary.average_quiz_score == 0.0
        assert summary.total_lessons_completed == 0


class TestCalendar:
    @pytest.mark.asyncio
    async def test_daily_lessons_in_order_with_progress(
        self, aggregator, catalog, progress_store, student_id
    ) -> None:
        second = catalog.add_scheduled_lesson(student_id, TODAY, lesson_order=2)
        first = catalog.add_scheduled_lesson(student_id, TODAY, lesson_order=1)
        catalog.add_scheduled_lesson(student_id, TODAY + timedelta(days=1))
        await complete_on(progress_store, student_id, TODAY, first.id)

        lessons = await aggregator.daily_lessons(student_id, TODAY)

        assert [entry.lesson.lesson_id for entry in lessons] == [first.id, second.id]
        assert lessons[0].completed is True
        assert lessons[1].progress is None
        assert lessons[1].completed is False

    @pytest.mark.asyncio
    async def test_other_students_lessons_not_listed(
        self, aggregator, catalog, student_id
    ) -> None:
        catalog.add_scheduled_lesson(uuid4(), TODAY)

        assert await aggregator.daily_lessons(student_id, TODAY) == []

    @pytest.mark.asyncio
    async def test_month_has_one_entry_per_day(
        self, aggregator, catalog, student_id
    ) -> None:
        catalog.add_scheduled_lesson(student_id, date(2024, 2, 29))

        days = await aggregator.month_calendar(student_id, 2024, 2)

        assert len(days) == 29
        assert days[0].day == date(2024, 2, 1)
        assert len(days[-1].lessons) == 1
        assert sum(len(day.lessons) for day in days) == 1
