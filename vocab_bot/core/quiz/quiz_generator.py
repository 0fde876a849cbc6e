"""
Per-slot quiz question generation
"""

import logging
from collections.abc import Callable, Sequence

from pydantic import ValidationError

from ...chat_gateway import ChatGateway
from ...document_parser import DocumentFormat, parse_document
from ...errors import ChatGatewayError
from ...prompts import quiz_question_prompt
from ...spaced_repetition import pick_weighted_words
from ..database.models import VocabularyEntry
from .models import QuestionType, QuizQuestion
from .question_types import PatternSelector, slot_types

logger = logging.getLogger(__name__)

WordPicker = Callable[[Sequence[VocabularyEntry], int], list[VocabularyEntry]]


class QuizGenerator:
    """Builds quiz questions with one gateway call per slot"""

    def __init__(
        self,
        pattern_selector: PatternSelector | None = None,
        word_picker: WordPicker | None = None,
    ):
        self.pattern_selector = pattern_selector
        self.word_picker = word_picker or pick_weighted_words

    async def generate(
        self,
        gateway: ChatGateway,
        candidates: Sequence[VocabularyEntry],
        count: int,
        locale: str | None = None,
    ) -> list[QuizQuestion]:
        """
        Generate up to `count` questions from candidate words

        Slots are generated one after another. A slot whose reply fails or
        does not validate is logged and left out.
        """
        words = self.word_picker(candidates, count)
        types = slot_types(len(words), self.pattern_selector)

        questions = []
        for slot, (entry, question_type) in enumerate(zip(words, types, strict=True)):
            question = await self.generate_slot(gateway, entry["word"], question_type, locale)
            if question is None:
                logger.warning(f"Discarded quiz slot {slot} ({question_type.value} for '{entry['word']}')")
                continue
            questions.append(question)

        logger.info(f"Generated {len(questions)}/{len(words)} quiz questions")
        return questions

    async def generate_slot(
        self,
        gateway: ChatGateway,
        word: str,
        question_type: QuestionType,
        locale: str | None = None,
    ) -> QuizQuestion | None:
        """One question of one type about one word, or None"""
        params = quiz_question_prompt(
            word, question_type.value, question_type.is_input_based, locale
        )
        try:
            response = await gateway.chat(params)
        except ChatGatewayError as e:
            logger.warning(f"Quiz generation call failed for '{word}': {e}")
            return None

        if response is None:
            return None

        result = parse_document(response.content, DocumentFormat.JSON)
        if not result.ok or result.partial or not isinstance(result.value, dict):
            logger.warning(f"Quiz reply for '{word}' is not a JSON object: {response.content[:200]}")
            return None

        data = dict(result.value)
        data.setdefault("type", question_type.value)
        data["word"] = word
        data.setdefault("is_input_based", question_type.is_input_based)
        if data["type"] != question_type.value:
            logger.warning(
                f"Quiz reply for '{word}' has type {data['type']}, expected {question_type.value}"
            )
            return None

        try:
            return QuizQuestion.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Invalid quiz question for '{word}': {e}")
            return None
