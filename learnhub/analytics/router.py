"""Analytics and calendar API endpoints.

Provides routes for:
- Study streak and activity histogram
- Student analytics summary
- Daily and monthly lesson calendar
"""

from datetime import date

from fastapi import APIRouter, HTTPException, Query, status

from learnhub.auth.dependencies import CurrentStudent
from learnhub.config.settings import get_settings
from learnhub.core.exceptions import LearnHubError, handle_error

from .dependencies import ProgressAggregatorDep
from .schemas import (
    ActivityResponse,
    AnalyticsSummaryResponse,
    DailyLessonsResponse,
    MonthCalendarResponse,
    StreakResponse,
)
from .service import CalendarDay


router = APIRouter(prefix="/v1/analytics", tags=["analytics"])
calendar_router = APIRouter(prefix="/v1/calendar", tags=["calendar"])


# ==============================================================================
# Analytics Endpoints
# ==============================================================================


@router.get("/streak", response_model=StreakResponse, summary="Get study streak")
async def get_streak(
    aggregator: ProgressAggregatorDep,
    student: CurrentStudent,
) -> StreakResponse:
    """Consecutive days with at least one completed lesson."""
    try:
        streak = await aggregator.streak_days(student.id)
    except LearnHubError as e:
        raise handle_error(e) from e
    return StreakResponse(streak_days=streak)


@router.get("/activity", response_model=ActivityResponse, summary="Get activity")
async def get_activity(
    aggregator: ProgressAggregatorDep,
    student: CurrentStudent,
    window_days: int | None = Query(None, ge=1, description="Trailing days"),
) -> ActivityResponse:
    """Lessons completed per day, oldest day first, zero-filled."""
    settings = get_settings()
    window = window_days or settings.analytics_default_window_days
    if window > settings.analytics_max_window_days:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"window_days must be at most {settings.analytics_max_window_days}",
        )

    try:
        histogram = await aggregator.activity_histogram(student.id, window)
    except LearnHubError as e:
        raise handle_error(e) from e
    return ActivityResponse.from_histogram(histogram)


@router.get(
    "/summary",
    response_model=AnalyticsSummaryResponse,
    summary="Get analytics summary",
)
async def get_summary(
    aggregator: ProgressAggregatorDep,
    student: CurrentStudent,
) -> AnalyticsSummaryResponse:
    """Totals, quiz average, study hours, streak, activity and enrollments."""
    try:
        summary = await aggregator.summary(student.id)
    except LearnHubError as e:
        raise handle_error(e) from e
    return AnalyticsSummaryResponse.from_summary(summary)


# ==============================================================================
# Calendar Endpoints
# ==============================================================================


@calendar_router.get(
    "/daily",
    response_model=DailyLessonsResponse,
    summary="Get lessons scheduled for a day",
)
async def get_daily_lessons(
    aggregator: ProgressAggregatorDep,
    student: CurrentStudent,
    day: date = Query(..., alias="date", description="Day (YYYY-MM-DD)"),
) -> DailyLessonsResponse:
    """Personal-path lessons scheduled for a day, in lesson order."""
    try:
        lessons = await aggregator.daily_lessons(student.id, day)
    except LearnHubError as e:
        raise handle_error(e) from e
    return DailyLessonsResponse.from_day(CalendarDay(day=day, lessons=lessons))


@calendar_router.get(
    "/month",
    response_model=MonthCalendarResponse,
    summary="Get month calendar",
)
async def get_month_calendar(
    aggregator: ProgressAggregatorDep,
    student: CurrentStudent,
    year: int = Query(..., ge=1, le=9999),
    month: int = Query(..., ge=1, le=12),
) -> MonthCalendarResponse:
    """Every day of the month with the lessons scheduled on it."""
    try:
        days = await aggregator.month_calendar(student.id, year, month)
    except LearnHubError as e:
        raise handle_error(e) from e
    return MonthCalendarResponse(
        year=year,
        month=month,
        days=[DailyLessonsResponse.from_day(day) for day in days],
    )
