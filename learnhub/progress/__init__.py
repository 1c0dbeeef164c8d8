"""Student progress tracking module.

Provides:
- Lesson progress rows with resume segment
- Quiz-gated and manual lesson completion
- Segment counting of lesson scripts
"""

from .models import PROGRESS_TABLES_CQL, LessonProgress, QuizAttempt


__all__ = [
    "PROGRESS_TABLES_CQL",
    "LessonProgress",
    "QuizAttempt",
]
