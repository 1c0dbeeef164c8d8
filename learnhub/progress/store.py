# ruff: noqa: S608 - All CQL queries use keyspace from config, not user input
"""Cassandra stores for lesson progress and quiz attempts.

``lesson_progress`` uses both upsert flavours: initialization is
insert-if-absent (never clobbers existing progress), completion updates
are plain inserts. ``quiz_attempts`` is always last-write-wins.
"""

from uuid import UUID

from learnhub.core.database.store import CassandraStore

from .models import LessonProgress, QuizAttempt


class ProgressStore(CassandraStore):
    """Lesson progress rows keyed by (student, lesson)."""

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient execution."""
        self._initialize = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.lesson_progress
            (student_id, lesson_id, completed, completed_at,
             last_completed_segment_index)
            VALUES (?, ?, false, null, 0)
            IF NOT EXISTS
        """)

        self._upsert = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.lesson_progress
            (student_id, lesson_id, completed, completed_at,
             last_completed_segment_index)
            VALUES (?, ?, ?, ?, ?)
        """)

        self._get = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.lesson_progress
            WHERE student_id = ? AND lesson_id = ?
        """)

        self._get_many = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.lesson_progress
            WHERE student_id = ? AND lesson_id IN ?
        """)

        self._list_for_student = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.lesson_progress WHERE student_id = ?
        """)

    async def initialize(
        self, student_id: UUID, lesson_id: UUID
    ) -> tuple[LessonProgress, bool]:
        """Create a not-started row unless one already exists.

        Returns:
            (stored progress, created). Existing progress is returned as is.
        """
        result = await self._execute(self._initialize, [student_id, lesson_id])
        if result.was_applied:
            return LessonProgress(student_id=student_id, lesson_id=lesson_id), True
        return LessonProgress.from_row(result.one()), False

    async def save(self, progress: LessonProgress) -> LessonProgress:
        """Write ``progress`` over whatever is stored."""
        await self._execute(
            self._upsert,
            [
                progress.student_id,
                progress.lesson_id,
                progress.completed,
                progress.completed_at,
                progress.last_completed_segment_index,
            ],
        )
        return progress

    async def get(self, student_id: UUID, lesson_id: UUID) -> LessonProgress | None:
        """Get progress of a student on a lesson."""
        result = await self._execute(self._get, [student_id, lesson_id])
        row = result.one()
        return LessonProgress.from_row(row) if row else None

    async def get_many(
        self, student_id: UUID, lesson_ids: list[UUID]
    ) -> dict[UUID, LessonProgress]:
        """Progress rows of a student for the given lessons, by lesson id."""
        if not lesson_ids:
            return {}
        rows = await self._execute(self._get_many, [student_id, list(lesson_ids)])
        return {row.lesson_id: LessonProgress.from_row(row) for row in rows}

    async def list_for_student(self, student_id: UUID) -> list[LessonProgress]:
        """Whole progress history of a student."""
        rows = await self._execute(self._list_for_student, [student_id])
        return [LessonProgress.from_row(row) for row in rows]


class QuizAttemptStore(CassandraStore):
    """Quiz attempts keyed by (student, lesson, quiz)."""

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient execution."""
        self._upsert = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.quiz_attempts
            (student_id, lesson_id, quiz_id, answers, score, completed_at)
            VALUES (?, ?, ?, ?, ?, ?)
        """)

        self._list_for_student = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.quiz_attempts WHERE student_id = ?
        """)

    async def save(self, attempt: QuizAttempt) -> QuizAttempt:
        """Write ``attempt``, replacing any previous one under the same key."""
        await self._execute(
            self._upsert,
            [
                attempt.student_id,
                attempt.lesson_id,
                attempt.quiz_id,
                attempt.answers_json,
                attempt.score,
                attempt.completed_at,
            ],
        )
        return attempt

    async def list_for_student(self, student_id: UUID) -> list[QuizAttempt]:
        """All quiz attempts of a student."""
        rows = await self._execute(self._list_for_student, [student_id])
        return [QuizAttempt.from_row(row) for row in rows]
