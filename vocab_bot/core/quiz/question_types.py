"""
Question type rotation for quiz slots
"""

import random
from collections.abc import Callable, Sequence

from .models import QuestionType

QuestionPattern = tuple[QuestionType, ...]

# Every pattern mixes multiple choice with both translation directions
QUESTION_TYPE_PATTERNS: tuple[QuestionPattern, ...] = (
    (
        QuestionType.MEANING,
        QuestionType.FILL_BLANK,
        QuestionType.TRANSLATION_INPUT,
        QuestionType.SYNONYM,
        QuestionType.TRANSLATION_CN_TO_EN,
    ),
    (
        QuestionType.FILL_BLANK,
        QuestionType.MEANING,
        QuestionType.TRANSLATION_CN_TO_EN,
        QuestionType.WORD_FORM,
        QuestionType.TRANSLATION_INPUT,
    ),
    (
        QuestionType.SYNONYM,
        QuestionType.TRANSLATION_INPUT,
        QuestionType.WORD_FORM,
        QuestionType.MEANING,
        QuestionType.TRANSLATION_CN_TO_EN,
    ),
    (
        QuestionType.WORD_FORM,
        QuestionType.TRANSLATION_CN_TO_EN,
        QuestionType.MEANING,
        QuestionType.TRANSLATION_INPUT,
        QuestionType.FILL_BLANK,
    ),
)

PatternSelector = Callable[[Sequence[QuestionPattern]], QuestionPattern]


def slot_types(
    count: int,
    selector: PatternSelector | None = None,
    patterns: Sequence[QuestionPattern] = QUESTION_TYPE_PATTERNS,
) -> list[QuestionType]:
    """
    Question types for the first `count` slots

    One pattern is picked by the selector (random.choice by default) and
    repeated if the quiz has more slots than the pattern.
    """
    if count <= 0:
        return []
    selector = selector or random.choice
    pattern = selector(patterns)
    return [pattern[index % len(pattern)] for index in range(count)]
