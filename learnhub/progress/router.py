"""Student progress tracking API endpoints.

Provides routes for:
- Quiz submission (passing score completes the lesson)
- Manual lesson completion
- Resume check and live unit progress
"""

from uuid import UUID

from fastapi import APIRouter, status

from learnhub.analytics.dependencies import ProgressAggregatorDep
from learnhub.auth.dependencies import CurrentStudent
from learnhub.catalog.models import UnitKind, UnitRef
from learnhub.core.exceptions import LearnHubError, handle_error

from .dependencies import CompletionGateDep
from .schemas import (
    LessonProgressResponse,
    QuizAttemptResponse,
    ResumeCheckResponse,
    SubmitQuizRequest,
    UnitProgressResponse,
    UpdateLessonProgressRequest,
)


router = APIRouter(prefix="/v1/progress", tags=["progress"])


# ==============================================================================
# Lesson Completion Endpoints
# ==============================================================================


@router.post(
    "/quiz-attempts",
    response_model=QuizAttemptResponse,
    status_code=status.HTTP_200_OK,
    summary="Submit quiz attempt",
)
async def submit_quiz_attempt(
    data: SubmitQuizRequest,
    gate: CompletionGateDep,
    student: CurrentStudent,
) -> QuizAttemptResponse:
    """Record a quiz attempt.

    A score of 70 or more completes the lesson. Lower scores never change
    lesson progress.
    """
    try:
        outcome = await gate.submit_quiz(
            student_id=student.id,
            lesson_id=data.lesson_id,
            quiz_id=data.quiz_id,
            answers=data.answers,
            score=data.score,
        )
    except LearnHubError as e:
        raise handle_error(e) from e

    return QuizAttemptResponse(
        lesson_id=outcome.attempt.lesson_id,
        quiz_id=outcome.attempt.quiz_id,
        score=outcome.attempt.score,
        completed_at=outcome.attempt.completed_at,
        passed=outcome.passed,
        progress=(
            LessonProgressResponse.from_entity(outcome.progress)
            if outcome.progress
            else None
        ),
    )


@router.put(
    "/lessons/{lesson_id}",
    response_model=LessonProgressResponse,
    summary="Update lesson progress",
)
async def update_lesson_progress(
    lesson_id: UUID,
    data: UpdateLessonProgressRequest,
    gate: CompletionGateDep,
    student: CurrentStudent,
) -> LessonProgressResponse:
    """Mark a lesson complete or incomplete."""
    try:
        progress = await gate.manual_complete(
            student_id=student.id,
            lesson_id=lesson_id,
            completed=data.completed,
            segment_index=data.segment_index,
        )
    except LearnHubError as e:
        raise handle_error(e) from e

    return LessonProgressResponse.from_entity(progress)


# ==============================================================================
# Progress Query Endpoints
# ==============================================================================


@router.get(
    "/lessons/{lesson_id}",
    response_model=ResumeCheckResponse,
    summary="Get lesson resume position",
)
async def get_lesson_progress(
    lesson_id: UUID,
    gate: CompletionGateDep,
    student: CurrentStudent,
) -> ResumeCheckResponse:
    """Used on lesson load to determine the resume segment."""
    try:
        point = await gate.resume_check(student.id, lesson_id)
    except LearnHubError as e:
        raise handle_error(e) from e

    return ResumeCheckResponse(
        lesson_id=point.lesson_id,
        completed=point.completed,
        resume_segment_index=point.resume_segment_index,
        total_segments=point.total_segments,
    )


@router.get(
    "/units/{unit_kind}/{unit_id}",
    response_model=UnitProgressResponse,
    summary="Get live unit progress",
)
async def get_unit_progress(
    unit_kind: UnitKind,
    unit_id: UUID,
    aggregator: ProgressAggregatorDep,
    student: CurrentStudent,
) -> UnitProgressResponse:
    """Percent of the unit's lessons completed, recomputed on every call."""
    try:
        progress = await aggregator.unit_progress(student.id, UnitRef(unit_kind, unit_id))
    except LearnHubError as e:
        raise handle_error(e) from e

    return UnitProgressResponse(
        unit_kind=progress.unit.kind,
        unit_id=progress.unit.id,
        percent=progress.percent,
        completed_count=progress.completed_count,
        total_count=progress.total_count,
    )
