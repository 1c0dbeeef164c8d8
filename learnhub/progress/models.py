"""Database models for student progress tracking.

Cassandra table definitions for:
- Lesson progress: completion state and resume segment per (student, lesson)
- Quiz attempts: last attempt per (student, lesson, quiz)

Both tables are partitioned by student so every read of a student's
history stays on one partition.
"""

import json
from datetime import datetime
from typing import Any
from uuid import UUID

from learnhub.utils.timeutils import ensure_utc_aware, utc_now


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

# Lesson progress per student
# Partition key: student_id; clustering: lesson_id
LESSON_PROGRESS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.lesson_progress (
    student_id UUID,
    lesson_id UUID,
    completed BOOLEAN,
    completed_at TIMESTAMP,
    last_completed_segment_index INT,
    PRIMARY KEY (student_id, lesson_id)
)
"""

# Quiz attempts: the last write per (student, lesson, quiz) wins
QUIZ_ATTEMPTS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.quiz_attempts (
    student_id UUID,
    lesson_id UUID,
    quiz_id UUID,
    answers TEXT,
    score INT,
    completed_at TIMESTAMP,
    PRIMARY KEY (student_id, lesson_id, quiz_id)
)
"""

# All CQL statements for table setup
PROGRESS_TABLES_CQL = [
    LESSON_PROGRESS_TABLE_CQL,
    QUIZ_ATTEMPTS_TABLE_CQL,
]


# ==============================================================================
# Entity Classes
# ==============================================================================


class LessonProgress:
    """Lesson progress entity for a specific student.

    A missing row means "not started"; rows are created by the enrollment
    cascade and updated in place afterwards.

    Attributes:
        student_id: Student UUID
        lesson_id: Lesson UUID
        completed: Completion flag
        completed_at: Completion timestamp (null if not completed)
        last_completed_segment_index: Resume position, in script segments
    """

    def __init__(
        self,
        student_id: UUID,
        lesson_id: UUID,
        completed: bool = False,
        completed_at: datetime | None = None,
        last_completed_segment_index: int = 0,
    ):
        self.student_id = student_id
        self.lesson_id = lesson_id
        self.completed = completed
        self.completed_at = ensure_utc_aware(completed_at)
        self.last_completed_segment_index = last_completed_segment_index

    @classmethod
    def from_row(cls, row: Any) -> "LessonProgress":
        """Create LessonProgress instance from Cassandra row."""
        return cls(
            student_id=row.student_id,
            lesson_id=row.lesson_id,
            completed=bool(row.completed),
            completed_at=row.completed_at,
            last_completed_segment_index=row.last_completed_segment_index or 0,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "student_id": self.student_id,
            "lesson_id": self.lesson_id,
            "completed": self.completed,
            "completed_at": self.completed_at,
            "last_completed_segment_index": self.last_completed_segment_index,
        }

    def __repr__(self) -> str:
        state = "completed" if self.completed else "open"
        return (
            f"<LessonProgress student={self.student_id} lesson={self.lesson_id} "
            f"{state} segment={self.last_completed_segment_index}>"
        )


class QuizAttempt:
    """Quiz attempt entity.

    Attributes:
        student_id: Student UUID
        lesson_id: Lesson the quiz belongs to
        quiz_id: Quiz UUID
        answers: Submitted answers (stored as JSON text)
        score: Score from 0 to 100
        completed_at: Submission timestamp
    """

    def __init__(
        self,
        student_id: UUID,
        lesson_id: UUID,
        quiz_id: UUID,
        answers: Any = None,
        score: int = 0,
        completed_at: datetime | None = None,
    ):
        self.student_id = student_id
        self.lesson_id = lesson_id
        self.quiz_id = quiz_id
        self.answers = answers
        self.score = score
        self.completed_at = ensure_utc_aware(completed_at) or utc_now()

    @property
    def answers_json(self) -> str:
        return json.dumps(self.answers)

    @classmethod
    def from_row(cls, row: Any) -> "QuizAttempt":
        """Create QuizAttempt instance from Cassandra row."""
        return cls(
            student_id=row.student_id,
            lesson_id=row.lesson_id,
            quiz_id=row.quiz_id,
            answers=json.loads(row.answers) if row.answers else None,
            score=row.score or 0,
            completed_at=row.completed_at,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "student_id": self.student_id,
            "lesson_id": self.lesson_id,
            "quiz_id": self.quiz_id,
            "answers": self.answers,
            "score": self.score,
            "completed_at": self.completed_at,
        }

    def __repr__(self) -> str:
        return (
            f"<QuizAttempt student={self.student_id} lesson={self.lesson_id} "
            f"quiz={self.quiz_id} score={self.score}>"
        )
