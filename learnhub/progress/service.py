"""Lesson completion service layer.

Business logic for:
- Quiz submission with score-gated lesson completion
- Manual lesson completion toggle with resume segment
- Resume check for a lesson

Quiz attempts are last-write-wins. A failed quiz never touches progress,
and a passing quiz on an already completed lesson writes nothing.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any
from uuid import UUID

import structlog

from learnhub.catalog.models import Lesson
from learnhub.core.exceptions import NotEnrolledError, NotOwnedError
from learnhub.utils.timeutils import utc_now

from .models import LessonProgress, QuizAttempt
from .segments import count_segments


if TYPE_CHECKING:
    from learnhub.catalog.service import CatalogService
    from learnhub.enrollments.refresh import EnrollmentProgressRefresher
    from learnhub.enrollments.store import EnrollmentStore

    from .store import ProgressStore, QuizAttemptStore

logger = structlog.get_logger(__name__)

# Minimum quiz score that completes the lesson
PASS_THRESHOLD = 70


@dataclass
class QuizOutcome:
    """Stored attempt and the lesson progress after it."""

    attempt: QuizAttempt
    passed: bool
    progress: LessonProgress | None = None


@dataclass
class ResumePoint:
    """Where a student should resume a lesson."""

    lesson_id: UUID
    completed: bool
    resume_segment_index: int
    total_segments: int


class CompletionGate:
    """Applies completion rules and writes lesson progress."""

    def __init__(
        self,
        catalog: "CatalogService",
        enrollments: "EnrollmentStore",
        progress: "ProgressStore",
        quiz_attempts: "QuizAttemptStore",
        refresher: "EnrollmentProgressRefresher | None" = None,
    ):
        self.catalog = catalog
        self.enrollments = enrollments
        self.progress = progress
        self.quiz_attempts = quiz_attempts
        self.refresher = refresher

    # ==========================================================================
    # Quiz
    # ==========================================================================

    async def submit_quiz(
        self,
        student_id: UUID,
        lesson_id: UUID,
        quiz_id: UUID,
        answers: Any,
        score: int,
    ) -> QuizOutcome:
        """Record a quiz attempt and complete the lesson on a pass.

        Args:
            student_id: Acting student
            lesson_id: Lesson the quiz belongs to
            quiz_id: Quiz UUID
            answers: Submitted answers, stored as given
            score: Score from 0 to 100

        Returns:
            QuizOutcome with the stored attempt and resulting progress

        Raises:
            LessonNotFoundError: If the lesson does not exist
            NotEnrolledError: If the student is not enrolled in the lesson's unit
        """
        lesson = await self.catalog.get_lesson(lesson_id)
        if not await self._has_access(student_id, lesson):
            raise NotEnrolledError

        attempt = await self.quiz_attempts.save(
            QuizAttempt(
                student_id=student_id,
                lesson_id=lesson_id,
                quiz_id=quiz_id,
                answers=answers,
                score=score,
                completed_at=utc_now(),
            )
        )
        passed = score >= PASS_THRESHOLD

        logger.info(
            "quiz_attempt_recorded",
            student_id=str(student_id),
            lesson_id=str(lesson_id),
            quiz_id=str(quiz_id),
            score=score,
            passed=passed,
        )

        if not passed:
            return QuizOutcome(attempt=attempt, passed=False)

        existing = await self.progress.get(student_id, lesson_id)
        if existing and existing.completed:
            return QuizOutcome(attempt=attempt, passed=True, progress=existing)

        progress = await self.progress.save(
            LessonProgress(
                student_id=student_id,
                lesson_id=lesson_id,
                completed=True,
                completed_at=utc_now(),
                last_completed_segment_index=count_segments(lesson.lesson_script),
            )
        )

        logger.info(
            "lesson_completed_by_quiz",
            student_id=str(student_id),
            lesson_id=str(lesson_id),
            segments=progress.last_completed_segment_index,
        )

        await self._refresh(student_id, lesson)
        return QuizOutcome(attempt=attempt, passed=True, progress=progress)

    # ==========================================================================
    # Manual completion
    # ==========================================================================

    async def manual_complete(
        self,
        student_id: UUID,
        lesson_id: UUID,
        completed: bool,
        segment_index: int | None = None,
    ) -> LessonProgress:
        """Set the completion flag of a lesson directly.

        Completing without ``segment_index`` puts the resume position at the
        end of the script. Un-completing clears ``completed_at``.

        Raises:
            LessonNotFoundError: If the lesson does not exist
            NotOwnedError: If the student may not mutate this lesson's progress
        """
        lesson = await self.catalog.get_lesson(lesson_id)
        if not await self._has_access(student_id, lesson):
            raise NotOwnedError

        existing = await self.progress.get(student_id, lesson_id)
        was_completed = bool(existing and existing.completed)

        if completed:
            index = (
                segment_index
                if segment_index is not None
                else count_segments(lesson.lesson_script)
            )
            completed_at = (
                existing.completed_at
                if existing and was_completed and existing.completed_at
                else utc_now()
            )
        else:
            index = (
                segment_index
                if segment_index is not None
                else (existing.last_completed_segment_index if existing else 0)
            )
            completed_at = None

        progress = await self.progress.save(
            LessonProgress(
                student_id=student_id,
                lesson_id=lesson_id,
                completed=completed,
                completed_at=completed_at,
                last_completed_segment_index=index,
            )
        )

        logger.info(
            "lesson_progress_updated",
            student_id=str(student_id),
            lesson_id=str(lesson_id),
            completed=completed,
            segment_index=index,
        )

        if completed != was_completed:
            await self._refresh(student_id, lesson)
        return progress

    # ==========================================================================
    # Resume
    # ==========================================================================

    async def resume_check(self, student_id: UUID, lesson_id: UUID) -> ResumePoint:
        """Resume position of a lesson; a missing row reads as not started.

        Raises:
            LessonNotFoundError: If the lesson does not exist
        """
        lesson = await self.catalog.get_lesson(lesson_id)
        progress = await self.progress.get(student_id, lesson_id)
        return ResumePoint(
            lesson_id=lesson_id,
            completed=bool(progress and progress.completed),
            resume_segment_index=progress.last_completed_segment_index if progress else 0,
            total_segments=count_segments(lesson.lesson_script),
        )

    async def _has_access(self, student_id: UUID, lesson: Lesson) -> bool:
        # Personal-path lessons belong to one student
        if lesson.owner_student_id is not None:
            return lesson.owner_student_id == student_id
        return await self.enrollments.get(student_id, lesson.unit) is not None

    async def _refresh(self, student_id: UUID, lesson: Lesson) -> None:
        if self.refresher is not None:
            await self.refresher.refresh_for_lesson(student_id, lesson)
