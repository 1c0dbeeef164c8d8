"""Pydantic schemas for student progress tracking.

Request and response models for:
- Quiz submission
- Manual lesson completion
- Resume check and unit progress
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from learnhub.catalog.models import UnitKind

from .models import LessonProgress


# ==============================================================================
# Lesson Progress Schemas
# ==============================================================================


class LessonProgressResponse(BaseModel):
    """Lesson progress response."""

    model_config = ConfigDict(from_attributes=True)

    lesson_id: UUID
    completed: bool
    completed_at: datetime | None = None
    last_completed_segment_index: int = Field(description="Resume segment")

    @classmethod
    def from_entity(cls, entity: LessonProgress) -> "LessonProgressResponse":
        """Create response from entity."""
        return cls(
            lesson_id=entity.lesson_id,
            completed=entity.completed,
            completed_at=entity.completed_at,
            last_completed_segment_index=entity.last_completed_segment_index,
        )


class UpdateLessonProgressRequest(BaseModel):
    """Request to set a lesson's completion flag."""

    completed: bool = Field(..., description="New completion state")
    segment_index: int | None = Field(
        None, ge=0, description="Resume segment (defaults to end of script on completion)"
    )


class ResumeCheckResponse(BaseModel):
    """Resume position of a lesson."""

    lesson_id: UUID
    completed: bool
    resume_segment_index: int
    total_segments: int


# ==============================================================================
# Quiz Schemas
# ==============================================================================


class SubmitQuizRequest(BaseModel):
    """Quiz attempt submitted by the client."""

    lesson_id: UUID = Field(..., description="Lesson UUID")
    quiz_id: UUID = Field(..., description="Quiz UUID")
    answers: Any = Field(default=None, description="Submitted answers")
    score: int = Field(..., ge=0, le=100, description="Score from 0 to 100")


class QuizAttemptResponse(BaseModel):
    """Stored quiz attempt and the resulting lesson progress."""

    lesson_id: UUID
    quiz_id: UUID
    score: int
    completed_at: datetime
    passed: bool
    progress: LessonProgressResponse | None = None


# ==============================================================================
# Unit Progress Schemas
# ==============================================================================


class UnitProgressResponse(BaseModel):
    """Live progress of a unit."""

    unit_kind: UnitKind
    unit_id: UUID
    percent: int = Field(description="0-100 percentage")
    completed_count: int
    total_count: int
