"""
Test cases for the SessionSweeper
"""

import asyncio
from unittest.mock import MagicMock

import pytest

from vocab_bot.core.scheduler.session_sweeper import SessionSweeper


class TestSessionSweeper:
    """Test cases for SessionSweeper class"""

    @pytest.fixture
    def mock_callback(self):
        return MagicMock(return_value=0)

    @pytest.fixture
    def sweeper(self, mock_callback):
        return SessionSweeper(mock_callback, interval_seconds=0.01)

    def test_initialization(self, mock_callback):
        sweeper = SessionSweeper(mock_callback)

        assert sweeper.sweep_callback == mock_callback
        assert sweeper.is_running is False
        assert sweeper.task is None
        assert sweeper.interval_seconds == 600

    def test_sweep_once(self, sweeper, mock_callback):
        mock_callback.return_value = 3
        assert sweeper.sweep_once() == 3
        mock_callback.assert_called_once()

    @pytest.mark.asyncio
    async def test_start_and_stop(self, sweeper, mock_callback):
        await sweeper.start()
        assert sweeper.is_running is True
        assert sweeper.task is not None

        await asyncio.sleep(0.05)
        await sweeper.stop()

        assert sweeper.is_running is False
        assert mock_callback.call_count >= 1

    @pytest.mark.asyncio
    async def test_start_twice(self, sweeper):
        await sweeper.start()
        first_task = sweeper.task
        await sweeper.start()

        assert sweeper.task is first_task
        await sweeper.stop()

    @pytest.mark.asyncio
    async def test_stop_when_not_running(self, sweeper):
        await sweeper.stop()
        assert sweeper.is_running is False

    @pytest.mark.asyncio
    async def test_errors_do_not_stop_the_loop(self, sweeper, mock_callback):
        mock_callback.side_effect = [RuntimeError("db locked"), 1, 0, 0, 0, 0, 0, 0, 0, 0] + [0] * 100

        await sweeper.start()
        await asyncio.sleep(0.05)
        await sweeper.stop()

        assert mock_callback.call_count >= 2

    def test_sweeps_real_database(self, temp_db):
        from vocab_bot.core.quiz.models import QuestionType, QuizQuestion, QuizSession

        question = QuizQuestion(
            type=QuestionType.MEANING,
            word="cat",
            question_text="?",
            options=["a", "b", "c", "d"],
            correct_index=0,
        )
        temp_db.put_session(QuizSession.start(1, [question], ttl_seconds=1, now=0))

        sweeper = SessionSweeper(temp_db.sweep_expired_sessions)
        assert sweeper.sweep_once() == 1
        assert sweeper.sweep_once() == 0
