"""Pydantic schemas for analytics and calendar."""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, Field

from learnhub.enrollments.schemas import EnrollmentResponse
from learnhub.progress.schemas import LessonProgressResponse

from .service import AnalyticsSummary, CalendarDay, DailyLesson


# ==============================================================================
# Analytics Schemas
# ==============================================================================


class StreakResponse(BaseModel):
    """Current study streak."""

    streak_days: int


class ActivityDay(BaseModel):
    """Lessons completed on one day."""

    date: date
    count: int


class ActivityResponse(BaseModel):
    """Completions per day over a trailing window, oldest first."""

    window_days: int
    days: list[ActivityDay]

    @classmethod
    def from_histogram(cls, histogram: list[tuple[date, int]]) -> "ActivityResponse":
        """Create response from (date, count) pairs."""
        return cls(
            window_days=len(histogram),
            days=[ActivityDay(date=day, count=count) for day, count in histogram],
        )


class AnalyticsSummaryResponse(BaseModel):
    """Student analytics summary."""

    total_lessons_completed: int
    average_quiz_score: float
    total_study_hours: int = Field(description="Estimated from completed lessons")
    streak_days: int
    activity: list[ActivityDay]
    enrollments: list[EnrollmentResponse]

    @classmethod
    def from_summary(cls, summary: AnalyticsSummary) -> "AnalyticsSummaryResponse":
        """Create response from a computed summary."""
        return cls(
            total_lessons_completed=summary.total_lessons_completed,
            average_quiz_score=summary.average_quiz_score,
            total_study_hours=summary.total_study_hours,
            streak_days=summary.streak_days,
            activity=[ActivityDay(date=day, count=n) for day, n in summary.activity],
            enrollments=[EnrollmentResponse.from_entity(e) for e in summary.enrollments],
        )


# ==============================================================================
# Calendar Schemas
# ==============================================================================


class ScheduledLessonResponse(BaseModel):
    """Scheduled lesson with the student's progress (null = not started)."""

    lesson_id: UUID
    title: str
    scheduled_date: date
    lesson_order: int
    duration: int | None = None
    module_id: UUID | None = None
    module_title: str | None = None
    unit_id: UUID | None = None
    unit_title: str | None = None
    completed: bool
    completed_at: datetime | None = None
    progress: LessonProgressResponse | None = None

    @classmethod
    def from_daily_lesson(cls, entry: DailyLesson) -> "ScheduledLessonResponse":
        """Create response from a lesson joined with its progress."""
        lesson = entry.lesson
        return cls(
            lesson_id=lesson.lesson_id,
            title=lesson.title,
            scheduled_date=lesson.scheduled_date,
            lesson_order=lesson.lesson_order,
            duration=lesson.duration,
            module_id=lesson.module_id,
            module_title=lesson.module_title,
            unit_id=lesson.unit_id,
            unit_title=lesson.unit_title,
            completed=entry.completed,
            completed_at=entry.progress.completed_at if entry.progress else None,
            progress=(
                LessonProgressResponse.from_entity(entry.progress)
                if entry.progress
                else None
            ),
        )


class DailyLessonsResponse(BaseModel):
    """Lessons scheduled on one day."""

    date: date
    lessons: list[ScheduledLessonResponse]

    @classmethod
    def from_day(cls, day: CalendarDay) -> "DailyLessonsResponse":
        """Create response from a calendar day."""
        return cls(
            date=day.day,
            lessons=[ScheduledLessonResponse.from_daily_lesson(e) for e in day.lessons],
        )


class MonthCalendarResponse(BaseModel):
    """One entry per day of the month."""

    year: int
    month: int
    days: list[DailyLessonsResponse]
