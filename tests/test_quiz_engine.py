"""
Tests for the quiz state machine
"""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest
from telegram import ForceReply, InlineKeyboardMarkup
from telegram.error import NetworkError

from vocab_bot.chat_gateway import MockChatGateway
from vocab_bot.config import Settings
from vocab_bot.core.quiz.models import AnswerState, QuestionType, QuizQuestion, QuizSession
from vocab_bot.core.quiz.quiz_engine import QuizEngine, exact_match
from vocab_bot.core.quiz.quiz_generator import QuizGenerator
from vocab_bot.i18n import I18n

NOW = 1_700_000_000_000
CHAT_ID = 555
USER_ID = 321


def choice_question(word, correct_index=0):
    return QuizQuestion(
        type=QuestionType.MEANING,
        word=word,
        question_text=f"What does '{word}' mean?",
        options=["one", "two", "three", "four"],
        correct_index=correct_index,
    )


def input_question(word, answer="The cat sleeps.", question_type=QuestionType.TRANSLATION_CN_TO_EN):
    return QuizQuestion(
        type=question_type,
        word=word,
        question_text="翻译：猫在睡觉。",
        correct_answer=answer,
        is_input_based=True,
    )


class FakeClock:
    def __init__(self, now=NOW):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def settings():
    return Settings(telegram_bot_token="test_token", openai_api_key="test_key")


@pytest.fixture
def transport():
    transport = MagicMock()
    transport.send_text = AsyncMock(return_value=1000)
    transport.edit_text = AsyncMock(return_value=True)
    transport.answer_callback = AsyncMock(return_value=True)
    return transport


@pytest.fixture
def gateway():
    return MockChatGateway()


@pytest.fixture
def generator():
    generator = MagicMock()
    generator.generate = AsyncMock(return_value=[])
    return generator


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def engine(temp_db, transport, generator, gateway, settings, clock):
    return QuizEngine(
        temp_db,
        transport,
        generator=generator,
        gateway_provider=lambda preferred: gateway,
        settings=settings,
        clock=clock,
    )


@pytest.fixture
def i18n():
    return I18n("en")


def add_words(db_manager, count, user_id=USER_ID):
    for index in range(count):
        db_manager.record_word(user_id, f"word{index}")


def store_session(db_manager, questions, answers=None, now=NOW):
    session = QuizSession.start(USER_ID, questions, ttl_seconds=3600, now=now)
    if answers:
        session.answers = list(answers)
    db_manager.put_session(session)
    return session


def sent_texts(transport):
    return [call.args[1] for call in transport.send_text.call_args_list]


class TestStartQuiz:
    """Test quiz creation"""

    @pytest.mark.asyncio
    async def test_not_enough_words(self, engine, temp_db, transport, generator, i18n):
        """Four words is below the minimum of five"""
        add_words(temp_db, 4)

        session = await engine.start_quiz(CHAT_ID, USER_ID, i18n)

        assert session is None
        assert "at least 5 words" in sent_texts(transport)[0]
        generator.generate.assert_not_called()
        assert temp_db.get_session(USER_ID, now_ms=NOW) is None

    @pytest.mark.asyncio
    async def test_session_created_and_first_question_sent(
        self, engine, temp_db, transport, generator, i18n
    ):
        add_words(temp_db, 6)
        questions = [
            choice_question("word0"),
            choice_question("word1"),
            input_question("word2", question_type=QuestionType.TRANSLATION_INPUT),
            choice_question("word3"),
            input_question("word4"),
        ]
        generator.generate.return_value = questions

        session = await engine.start_quiz(CHAT_ID, USER_ID, i18n)

        assert len(session.questions) == 5
        stored = temp_db.get_session(USER_ID, now_ms=NOW)
        assert stored.answers == [AnswerState.UNANSWERED] * 5
        assert stored.expires_at == NOW + 3600 * 1000

        # "generating" notice, then question 0 with an inline keyboard
        assert transport.send_text.await_count == 2
        last_call = transport.send_text.call_args
        markup = last_call.kwargs["reply_markup"]
        assert isinstance(markup, InlineKeyboardMarkup)
        buttons = [row[0] for row in markup.inline_keyboard]
        assert [b.callback_data for b in buttons] == ["quiz:0:0", "quiz:0:1", "quiz:0:2", "quiz:0:3"]
        assert buttons[0].text == "A. one"
        assert "Quiz Question 1/5" in last_call.args[1]

    @pytest.mark.asyncio
    async def test_input_question_uses_force_reply(self, engine, temp_db, transport, generator, i18n):
        add_words(temp_db, 5)
        generator.generate.return_value = [input_question("word0")]

        await engine.start_quiz(CHAT_ID, USER_ID, i18n)

        assert isinstance(transport.send_text.call_args.kwargs["reply_markup"], ForceReply)

    @pytest.mark.asyncio
    async def test_generation_failure(self, engine, temp_db, transport, generator, i18n):
        add_words(temp_db, 5)
        generator.generate.return_value = []

        assert await engine.start_quiz(CHAT_ID, USER_ID, i18n) is None
        assert "Failed to generate a quiz" in sent_texts(transport)[-1]
        assert temp_db.get_session(USER_ID, now_ms=NOW) is None

    @pytest.mark.asyncio
    async def test_new_quiz_replaces_active_one(self, engine, temp_db, generator, i18n):
        add_words(temp_db, 5)
        store_session(temp_db, [choice_question("old")])
        generator.generate.return_value = [choice_question("word0"), choice_question("word1")]

        await engine.start_quiz(CHAT_ID, USER_ID, i18n)

        stored = temp_db.get_session(USER_ID, now_ms=NOW)
        assert [q.word for q in stored.questions] == ["word0", "word1"]

    @pytest.mark.asyncio
    async def test_first_question_send_failure_deletes_session(
        self, engine, temp_db, transport, generator, i18n
    ):
        add_words(temp_db, 5)
        generator.generate.return_value = [choice_question("word0")]
        transport.send_text.side_effect = [1000, NetworkError("down"), 1001]

        await engine.start_quiz(CHAT_ID, USER_ID, i18n)

        assert temp_db.get_session(USER_ID, now_ms=NOW) is None
        assert "Could not send the next question" in sent_texts(transport)[-1]


class TestCallbackAnswers:
    """Test multiple-choice answers"""

    @pytest.mark.asyncio
    async def test_correct_answer_advances(self, engine, temp_db, transport, gateway, i18n):
        """Answering question 0 of 3 sends question 1 and keeps the session"""
        add_words(temp_db, 3)
        store_session(
            temp_db, [choice_question("word0", 2), choice_question("word1"), choice_question("word2")]
        )

        recorded = await engine.handle_callback_answer(CHAT_ID, USER_ID, "cb", 77, "quiz:0:2", i18n)

        assert recorded
        stored = temp_db.get_session(USER_ID, now_ms=NOW)
        assert stored.answers == [AnswerState.CORRECT, AnswerState.UNANSWERED, AnswerState.UNANSWERED]
        assert "Quiz Question 2/3" in transport.send_text.call_args.args[1]
        transport.answer_callback.assert_awaited_once_with("cb", "✅ Correct!")
        transport.edit_text.assert_awaited_once()
        assert transport.edit_text.call_args.args[1] == 77
        assert temp_db.get_vocabulary_entry(USER_ID, "word0")["weight"] == 0.7
        # Button answers are graded locally
        assert gateway.calls == []

    @pytest.mark.asyncio
    async def test_wrong_answer_raises_weight(self, engine, temp_db, transport, i18n):
        add_words(temp_db, 2)
        store_session(temp_db, [choice_question("word0", 0), choice_question("word1")])

        await engine.handle_callback_answer(CHAT_ID, USER_ID, "cb", 77, "quiz:0:3", i18n)

        transport.answer_callback.assert_awaited_once_with("cb", "❌ Wrong!")
        assert temp_db.get_vocabulary_entry(USER_ID, "word0")["weight"] == 1.5
        entry = temp_db.get_vocabulary_entry(USER_ID, "word0")
        assert entry["incorrect_count"] == 1

    @pytest.mark.asyncio
    async def test_grading_updates_the_quizzed_word(self, temp_db, transport, settings, clock, i18n):
        """A reply naming another word form still grades the recorded word"""
        add_words(temp_db, 4)
        temp_db.record_word(USER_ID, "cat")
        reply = json.dumps(
            {
                "type": "word_form",
                "word": "cats",
                "question_text": "Which is the plural of 'cat'?",
                "options": ["cats", "cates", "caties", "cat"],
                "correct_index": 0,
            }
        )
        generator = QuizGenerator(
            pattern_selector=lambda patterns: (QuestionType.WORD_FORM,),
            word_picker=lambda candidates, count: [{"word": "cat", "weight": 1.0}],
        )
        engine = QuizEngine(
            temp_db,
            transport,
            generator=generator,
            gateway_provider=lambda preferred: MockChatGateway(responses=[reply]),
            settings=settings,
            clock=clock,
        )

        await engine.start_quiz(CHAT_ID, USER_ID, i18n)
        await engine.handle_callback_answer(CHAT_ID, USER_ID, "cb", 77, "quiz:0:3", i18n)

        entry = temp_db.get_vocabulary_entry(USER_ID, "cat")
        assert entry["weight"] == 1.5
        assert entry["incorrect_count"] == 1

    @pytest.mark.asyncio
    async def test_last_answer_completes_quiz(self, engine, temp_db, transport, i18n):
        add_words(temp_db, 2)
        store_session(
            temp_db,
            [choice_question("word0"), choice_question("word1", 1)],
            answers=[AnswerState.CORRECT, AnswerState.UNANSWERED],
        )

        await engine.handle_callback_answer(CHAT_ID, USER_ID, "cb", 78, "quiz:1:1", i18n)

        assert "Your score: 2/2 (100%)" in sent_texts(transport)[-1]
        assert temp_db.get_session(USER_ID, now_ms=NOW) is None

    @pytest.mark.asyncio
    async def test_expired_session(self, engine, temp_db, transport, clock, i18n):
        store_session(temp_db, [choice_question("word0")])
        clock.now = NOW + 3600 * 1000

        recorded = await engine.handle_callback_answer(CHAT_ID, USER_ID, "cb", 77, "quiz:0:0", i18n)

        assert not recorded
        transport.answer_callback.assert_awaited_once()
        assert "expired" in transport.answer_callback.call_args.args[1]
        assert transport.answer_callback.call_args.kwargs["show_alert"] is True

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "data,expected",
        [
            ("quiz:9:0", "Question not found"),
            ("quiz:1:0", "needs a typed answer"),
            ("quiz:0:7", "Invalid quiz data"),
            ("garbage", "Invalid quiz data"),
        ],
    )
    async def test_corrections_leave_state_unchanged(
        self, engine, temp_db, transport, i18n, data, expected
    ):
        store_session(temp_db, [choice_question("word0"), input_question("word1")])

        recorded = await engine.handle_callback_answer(CHAT_ID, USER_ID, "cb", 77, data, i18n)

        assert not recorded
        assert expected in transport.answer_callback.call_args.args[1]
        stored = temp_db.get_session(USER_ID, now_ms=NOW)
        assert stored.answers == [AnswerState.UNANSWERED, AnswerState.UNANSWERED]
        transport.send_text.assert_not_called()

    @pytest.mark.asyncio
    async def test_already_answered(self, engine, temp_db, transport, i18n):
        add_words(temp_db, 2)
        store_session(
            temp_db,
            [choice_question("word0"), choice_question("word1")],
            answers=[AnswerState.INCORRECT, AnswerState.UNANSWERED],
        )

        recorded = await engine.handle_callback_answer(CHAT_ID, USER_ID, "cb", 77, "quiz:0:0", i18n)

        assert not recorded
        assert "already answered" in transport.answer_callback.call_args.args[1]
        stored = temp_db.get_session(USER_ID, now_ms=NOW)
        assert stored.answers == [AnswerState.INCORRECT, AnswerState.UNANSWERED]
        assert temp_db.get_vocabulary_entry(USER_ID, "word0")["weight"] == 1.0

    @pytest.mark.asyncio
    async def test_next_question_send_failure_ends_quiz(self, engine, temp_db, transport, i18n):
        add_words(temp_db, 2)
        store_session(temp_db, [choice_question("word0"), choice_question("word1")])
        transport.send_text.side_effect = [NetworkError("down"), 1001]

        await engine.handle_callback_answer(CHAT_ID, USER_ID, "cb", 77, "quiz:0:0", i18n)

        assert temp_db.get_session(USER_ID, now_ms=NOW) is None
        assert "Could not send the next question" in sent_texts(transport)[-1]


class TestTextAnswers:
    """Test typed answers"""

    @pytest.mark.asyncio
    async def test_model_grading(self, engine, temp_db, transport, gateway, i18n):
        add_words(temp_db, 2)
        store_session(temp_db, [input_question("word0"), choice_question("word1")])
        gateway.responses = [json.dumps({"isCorrect": True, "feedback": "Nice wording"})]

        recorded = await engine.handle_text_answer(
            CHAT_ID, USER_ID, 90, "A cat is sleeping.", i18n
        )

        assert recorded
        result_text = sent_texts(transport)[0]
        assert result_text.startswith("🎉 Correct!")
        assert "💬 Nice wording" in result_text
        assert transport.send_text.call_args_list[0].kwargs["reply_to"] == 90
        stored = temp_db.get_session(USER_ID, now_ms=NOW)
        assert stored.answers == [AnswerState.CORRECT, AnswerState.UNANSWERED]
        # The Chinese-to-English grading prompt names the word to use
        assert "word0" in gateway.calls[0].messages[0].content

    @pytest.mark.asyncio
    async def test_grading_falls_back_to_exact_match(self, engine, temp_db, transport, gateway, i18n):
        """No scripted reply makes the gateway raise; the answer is still graded"""
        add_words(temp_db, 1)
        store_session(temp_db, [input_question("word0")])
        gateway.responses = []

        recorded = await engine.handle_text_answer(CHAT_ID, USER_ID, 90, "  the CAT sleeps. ", i18n)

        assert recorded
        assert sent_texts(transport)[0].startswith("🎉 Correct!")
        assert "graded by exact match" in sent_texts(transport)[0]
        assert "Your score: 1/1 (100%)" in sent_texts(transport)[-1]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "reply",
        ["not json", '{"isCorrect": "yes"}', '{"feedback": "ok"}', '{"isCorrect": tru'],
    )
    async def test_unusable_verdict_falls_back(self, engine, gateway, reply):
        gateway.responses = [reply]

        grade = await engine.grade_answer(input_question("word0"), "wrong answer")

        assert grade.used_fallback
        assert grade.is_correct is False

    @pytest.mark.asyncio
    async def test_multiple_choice_pending(self, engine, temp_db, transport, gateway, i18n):
        store_session(temp_db, [choice_question("word0")])

        recorded = await engine.handle_text_answer(CHAT_ID, USER_ID, 90, "one", i18n)

        assert not recorded
        assert "please tap a button" in sent_texts(transport)[0]
        assert gateway.calls == []

    @pytest.mark.asyncio
    async def test_no_session(self, engine, transport, i18n):
        recorded = await engine.handle_text_answer(CHAT_ID, USER_ID, 90, "anything", i18n)

        assert not recorded
        assert "Quiz expired" in sent_texts(transport)[0]

    @pytest.mark.asyncio
    async def test_fully_answered_session_is_removed(self, engine, temp_db, transport, i18n):
        store_session(temp_db, [input_question("word0")], answers=[AnswerState.CORRECT])

        recorded = await engine.handle_text_answer(CHAT_ID, USER_ID, 90, "anything", i18n)

        assert not recorded
        assert temp_db.get_session(USER_ID, now_ms=NOW) is None


class TestExactMatch:
    """Test the fallback comparison"""

    def test_exact_match(self):
        assert exact_match(" Hello ", "hello")
        assert not exact_match("hello there", "hello")
