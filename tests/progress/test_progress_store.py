"""Tests for the Cassandra progress stores against a mocked session."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, Mock
from uuid import uuid4

import pytest
from cassandra import DriverException
from cassandra.cluster import NoHostAvailable, Session

from learnhub.core.exceptions import StorageError
from learnhub.progress.models import LessonProgress, QuizAttempt
from learnhub.progress.store import ProgressStore, QuizAttemptStore


@pytest.fixture
def mock_session():
    """Mock Cassandra session."""
    session = Mock(spec=Session)
    session.prepare = Mock(return_value=Mock())
    # cassandra-asyncio-driver exposes aexecute
    session.aexecute = AsyncMock(return_value=Mock())
    return session


@pytest.fixture
def progress_store(mock_session) -> ProgressStore:
    return ProgressStore(session=mock_session, keyspace="test_keyspace")


@pytest.fixture
def quiz_store(mock_session) -> QuizAttemptStore:
    return QuizAttemptStore(session=mock_session, keyspace="test_keyspace")


def progress_row(student_id, lesson_id, completed=True, segment=3):
    return Mock(
        student_id=student_id,
        lesson_id=lesson_id,
        completed=completed,
        completed_at=datetime(2024, 1, 5, 10, 0) if completed else None,
        last_completed_segment_index=segment,
    )


class TestProgressStoreInitialize:
    @pytest.mark.asyncio
    async def test_applied_insert_creates_blank_row(
        self, progress_store, mock_session
    ) -> None:
        student_id, lesson_id = uuid4(), uuid4()
        mock_session.aexecute.return_value = Mock(was_applied=True)

        progress, created = await progress_store.initialize(student_id, lesson_id)

        assert created is True
        assert progress.completed is False
        assert progress.completed_at is None
        assert progress.last_completed_segment_index == 0
        params = mock_session.aexecute.call_args.args[1]
        assert params == [student_id, lesson_id]

    @pytest.mark.asyncio
    async def test_rejected_insert_returns_existing_row(
        self, progress_store, mock_session
    ) -> None:
        student_id, lesson_id = uuid4(), uuid4()
        result = Mock(was_applied=False)
        result.one.return_value = progress_row(student_id, lesson_id)
        mock_session.aexecute.return_value = result

        progress, created = await progress_store.initialize(student_id, lesson_id)

        assert created is False
        assert progress.completed is True
        assert progress.last_completed_segment_index == 3
        # Naive driver timestamps come back UTC-aware
        assert progress.completed_at == datetime(2024, 1, 5, 10, 0, tzinfo=UTC)


class TestProgressStoreReads:
    @pytest.mark.asyncio
    async def test_get_missing_row(self, progress_store, mock_session) -> None:
        result = Mock()
        result.one.return_value = None
        mock_session.aexecute.return_value = result

        assert await progress_store.get(uuid4(), uuid4()) is None

    @pytest.mark.asyncio
    async def test_get_many_without_lessons_skips_query(
        self, progress_store, mock_session
    ) -> None:
        assert await progress_store.get_many(uuid4(), []) == {}
        mock_session.aexecute.assert_not_called()

    @pytest.mark.asyncio
    async def test_get_many_indexes_by_lesson(
        self, progress_store, mock_session
    ) -> None:
        student_id = uuid4()
        first, second = uuid4(), uuid4()
        mock_session.aexecute.return_value = [
            progress_row(student_id, first),
            progress_row(student_id, second, completed=False, segment=0),
        ]

        rows = await progress_store.get_many(student_id, [first, second])

        assert set(rows) == {first, second}
        assert rows[first].completed is True
        assert rows[second].completed is False


class TestStorageErrors:
    @pytest.mark.asyncio
    async def test_no_host_available_becomes_storage_error(
        self, progress_store, mock_session
    ) -> None:
        mock_session.aexecute.side_effect = NoHostAvailable("down", {})

        with pytest.raises(StorageError):
            await progress_store.get(uuid4(), uuid4())

    @pytest.mark.asyncio
    async def test_driver_exception_becomes_storage_error(
        self, progress_store, mock_session
    ) -> None:
        mock_session.aexecute.side_effect = DriverException("timeout")

        with pytest.raises(StorageError):
            await progress_store.save(
                LessonProgress(student_id=uuid4(), lesson_id=uuid4(), completed=True)
            )


class TestQuizAttemptStore:
    @pytest.mark.asyncio
    async def test_save_stores_answers_as_json(self, quiz_store, mock_session) -> None:
        attempt = QuizAttempt(
            student_id=uuid4(),
            lesson_id=uuid4(),
            quiz_id=uuid4(),
            answers={"q1": "b", "q2": ["a", "c"]},
            score=80,
        )

        await quiz_store.save(attempt)

        params = mock_session.aexecute.call_args.args[1]
        assert params[3] == '{"q1": "b", "q2": ["a", "c"]}'
        assert params[4] == 80

    @pytest.mark.asyncio
    async def test_list_decodes_answers(self, quiz_store, mock_session) -> None:
        student_id = uuid4()
        mock_session.aexecute.return_value = [
            Mock(
                student_id=student_id,
                lesson_id=uuid4(),
                quiz_id=uuid4(),
                answers='["a", "b"]',
                score=90,
                completed_at=datetime(2024, 1, 5),
            )
        ]

        attempts = await quiz_store.list_for_student(student_id)

        assert attempts[0].answers == ["a", "b"]
        assert attempts[0].score == 90
