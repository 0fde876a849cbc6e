"""
Quiz state machine: start, ask, grade, advance, finish
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass

from telegram import ForceReply, InlineKeyboardButton, InlineKeyboardMarkup
from telegram.error import TelegramError

from ...chat_gateway import ChatGateway, get_chat_gateway
from ...config import get_settings
from ...document_parser import DocumentFormat, parse_document
from ...errors import ChatGatewayError, NotEnoughWordsError, QuizGenerationError
from ...formatting import (
    PARSE_MODE,
    format_choice_result,
    format_input_result,
    format_quiz_question,
    format_quiz_summary,
)
from ...i18n import I18n
from ...prompts import grading_prompt
from ...utils import create_quiz_callback_data, option_label, parse_quiz_callback_data, truncate_text
from ..database.database_manager import DatabaseManager
from ..transport.bot_transport import BotTransport
from .models import AnswerState, QuestionType, QuizQuestion, QuizScore, QuizSession, current_millis
from .quiz_generator import QuizGenerator

logger = logging.getLogger(__name__)


@dataclass
class GradeResult:
    """Verdict on a typed answer"""

    is_correct: bool
    feedback: str | None = None
    used_fallback: bool = False


def exact_match(user_answer: str, reference: str) -> bool:
    """Case-insensitive comparison of trimmed answers"""
    return user_answer.strip().casefold() == reference.strip().casefold()


class QuizEngine:
    """Runs quizzes for users; all state lives in the database"""

    def __init__(
        self,
        db_manager: DatabaseManager,
        transport: BotTransport,
        generator: QuizGenerator | None = None,
        gateway_provider: Callable[[str | None], ChatGateway] = get_chat_gateway,
        settings=None,
        clock: Callable[[], int] = current_millis,
    ):
        self.db_manager = db_manager
        self.transport = transport
        self.generator = generator or QuizGenerator()
        self.gateway_provider = gateway_provider
        self.settings = settings or get_settings()
        self.clock = clock

    # Starting

    async def create_session(
        self, user_id: int, locale: str | None = None, preferred_backend: str | None = None
    ) -> QuizSession:
        """
        Generate and persist a new quiz, replacing any active one

        Raises:
            NotEnoughWordsError: vocabulary is below the minimum
            QuizGenerationError: no question could be generated
            ChatGatewayError: no AI backend is available
        """
        required = self.settings.quiz_min_words
        word_count = self.db_manager.count_words(user_id)
        if word_count < required:
            raise NotEnoughWordsError(word_count, required)

        candidates = self.db_manager.list_words_for_quiz(user_id, self.settings.quiz_candidate_words)
        gateway = self.gateway_provider(preferred_backend)
        questions = await self.generator.generate(
            gateway, candidates, self.settings.quiz_questions, locale
        )
        if not questions:
            raise QuizGenerationError(f"no valid questions for user {user_id}")

        session = QuizSession.start(
            user_id, questions, self.settings.quiz_session_ttl, now=self.clock()
        )
        self.db_manager.put_session(session)
        logger.info(f"Started quiz for user {user_id} with {len(questions)} questions")
        return session

    async def start_quiz(
        self,
        chat_id: int,
        user_id: int,
        i18n: I18n,
        preferred_backend: str | None = None,
        reply_to: int | None = None,
    ) -> QuizSession | None:
        """Handle a quiz-start request"""
        word_count = self.db_manager.count_words(user_id)
        if word_count < self.settings.quiz_min_words:
            await self.transport.send_text(
                chat_id,
                i18n.t("quiz.not_enough_words", required=self.settings.quiz_min_words, count=word_count),
                reply_to=reply_to,
            )
            return None

        await self.transport.send_text(
            chat_id, i18n.t("quiz.generating", count=word_count), reply_to=reply_to
        )

        try:
            session = await self.create_session(user_id, i18n.locale, preferred_backend)
        except NotEnoughWordsError as e:
            await self.transport.send_text(
                chat_id, i18n.t("quiz.not_enough_words", required=e.required, count=e.word_count)
            )
            return None
        except (QuizGenerationError, ChatGatewayError) as e:
            logger.error(f"Quiz generation failed for user {user_id}: {e}")
            await self.transport.send_text(chat_id, i18n.t("quiz.generation_failed"))
            return None

        await self._send_or_abort(chat_id, session, 0, i18n)
        return session

    # Asking

    def _keyboard(self, question: QuizQuestion, index: int) -> InlineKeyboardMarkup:
        return InlineKeyboardMarkup(
            [
                [
                    InlineKeyboardButton(
                        f"{option_label(option_index)}. {truncate_text(option, 60)}",
                        callback_data=create_quiz_callback_data(index, option_index),
                    )
                ]
                for option_index, option in enumerate(question.options)
            ]
        )

    async def send_question(self, chat_id: int, session: QuizSession, index: int, i18n: I18n) -> int:
        """Send one question; raises TelegramError if it cannot be sent"""
        question = session.questions[index]
        text = format_quiz_question(question, index, len(session.questions), i18n)
        if question.is_input_based:
            markup = ForceReply(selective=True, input_field_placeholder=i18n.t("quiz.input_placeholder"))
        else:
            markup = self._keyboard(question, index)
        return await self.transport.send_text(chat_id, text, parse_mode=PARSE_MODE, reply_markup=markup)

    async def _send_or_abort(self, chat_id: int, session: QuizSession, index: int, i18n: I18n) -> bool:
        try:
            await self.send_question(chat_id, session, index, i18n)
            return True
        except TelegramError as e:
            logger.error(f"Failed to send quiz question {index} to user {session.user_id}: {e}")
            self.db_manager.delete_session(session.user_id)
            try:
                await self.transport.send_text(chat_id, i18n.t("quiz.advance_failed", error=str(e)))
            except TelegramError as report_error:
                logger.error(f"Could not report quiz failure to chat {chat_id}: {report_error}")
            return False

    # Answering

    async def handle_callback_answer(
        self,
        chat_id: int,
        user_id: int,
        callback_query_id: str,
        message_id: int,
        data: str,
        i18n: I18n,
    ) -> bool:
        """
        Grade a button press

        Returns:
            True if the answer was recorded
        """
        parsed = parse_quiz_callback_data(data)
        if parsed is None:
            await self.transport.answer_callback(callback_query_id, i18n.t("quiz.invalid_data"))
            return False
        question_index, option_index = parsed

        session = self.db_manager.get_session(user_id, now_ms=self.clock())
        if session is None:
            await self.transport.answer_callback(callback_query_id, i18n.t("quiz.expired"), show_alert=True)
            return False

        if question_index >= len(session.questions):
            await self.transport.answer_callback(
                callback_query_id, i18n.t("quiz.question_not_found"), show_alert=True
            )
            return False

        question = session.questions[question_index]
        if question.is_input_based:
            await self.transport.answer_callback(callback_query_id, i18n.t("quiz.use_reply"), show_alert=True)
            return False
        if session.answers[question_index] != AnswerState.UNANSWERED:
            await self.transport.answer_callback(callback_query_id, i18n.t("quiz.already_answered"))
            return False
        if option_index >= len(question.options):
            await self.transport.answer_callback(callback_query_id, i18n.t("quiz.invalid_data"))
            return False

        was_correct = option_index == question.correct_index
        await self.transport.answer_callback(
            callback_query_id,
            i18n.t("quiz.callback_correct") if was_correct else i18n.t("quiz.callback_wrong"),
        )

        self._record_answer(session, question_index, was_correct)
        await self.transport.edit_text(
            chat_id,
            message_id,
            format_choice_result(question, question_index, len(session.questions), option_index, i18n),
            parse_mode=PARSE_MODE,
        )
        await self._advance(chat_id, session, i18n)
        return True

    async def handle_text_answer(
        self,
        chat_id: int,
        user_id: int,
        message_id: int,
        text: str,
        i18n: I18n,
        preferred_backend: str | None = None,
    ) -> bool:
        """
        Grade a typed reply to the pending question

        Returns:
            True if the answer was recorded
        """
        session = self.db_manager.get_session(user_id, now_ms=self.clock())
        if session is None:
            await self.transport.send_text(chat_id, i18n.t("quiz.expired"), reply_to=message_id)
            return False

        index = session.next_unanswered_index()
        if index is None:
            # Finished sessions are deleted, so this one is stale
            self.db_manager.delete_session(user_id)
            await self.transport.send_text(chat_id, i18n.t("quiz.expired"), reply_to=message_id)
            return False

        question = session.questions[index]
        if not question.is_input_based:
            await self.transport.send_text(chat_id, i18n.t("quiz.use_buttons"), reply_to=message_id)
            return False

        grade = await self.grade_answer(question, text, i18n.locale, preferred_backend)
        self._record_answer(session, index, grade.is_correct)
        await self.transport.send_text(
            chat_id,
            format_input_result(
                question, text, grade.is_correct, i18n, grade.feedback, grade.used_fallback
            ),
            reply_to=message_id,
            parse_mode=PARSE_MODE,
        )
        await self._advance(chat_id, session, i18n)
        return True

    async def grade_answer(
        self,
        question: QuizQuestion,
        user_answer: str,
        locale: str | None = None,
        preferred_backend: str | None = None,
    ) -> GradeResult:
        """Ask the model for a verdict; fall back to exact matching on any failure"""
        target_word = question.word if question.type == QuestionType.TRANSLATION_CN_TO_EN else None
        params = grading_prompt(
            question.question_text, question.correct_answer, user_answer, target_word, locale
        )
        try:
            gateway = self.gateway_provider(preferred_backend)
            response = await gateway.chat(params)
        except ChatGatewayError as e:
            logger.warning(f"Grading call failed, using exact match: {e}")
            return self._fallback_grade(question, user_answer)

        result = parse_document(response.content if response else "", DocumentFormat.JSON)
        verdict = result.value if result.ok and not result.partial else None
        if not isinstance(verdict, dict) or not isinstance(verdict.get("isCorrect"), bool):
            logger.warning(f"Unusable grading verdict, using exact match: {result.value or result.error}")
            return self._fallback_grade(question, user_answer)

        feedback = verdict.get("feedback")
        return GradeResult(
            is_correct=verdict["isCorrect"],
            feedback=feedback if isinstance(feedback, str) and feedback.strip() else None,
        )

    def _fallback_grade(self, question: QuizQuestion, user_answer: str) -> GradeResult:
        return GradeResult(
            is_correct=exact_match(user_answer, question.correct_answer), used_fallback=True
        )

    def _record_answer(self, session: QuizSession, index: int, was_correct: bool) -> None:
        question = session.questions[index]
        session.record(index, was_correct)
        self.db_manager.save_answers(session)
        self.db_manager.update_weight(session.user_id, question.word, was_correct)
        logger.info(
            f"User {session.user_id} answered question {index} "
            f"({question.type.value}, '{question.word}'): {'correct' if was_correct else 'incorrect'}"
        )

    # Advancing

    async def _advance(self, chat_id: int, session: QuizSession, i18n: I18n) -> None:
        next_index = session.next_unanswered_index()
        if next_index is not None:
            await self._send_or_abort(chat_id, session, next_index, i18n)
            return

        result = QuizScore(score=session.score, total=len(session.questions))
        self.db_manager.delete_session(session.user_id)
        logger.info(
            f"Quiz complete for user {session.user_id}: {result.score}/{result.total} ({result.percentage}%)"
        )
        await self.transport.send_text(
            chat_id,
            format_quiz_summary(result.score, result.total, result.percentage, i18n),
            parse_mode=PARSE_MODE,
        )
