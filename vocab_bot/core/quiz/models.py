"""
Quiz question and session models
"""

import json
import time
from dataclasses import dataclass, field
from enum import Enum

from pydantic import BaseModel, Field, model_validator


class QuestionType(str, Enum):
    """Kinds of quiz questions"""

    MEANING = "meaning"
    FILL_BLANK = "fill_blank"
    SYNONYM = "synonym"
    WORD_FORM = "word_form"
    TRANSLATION_INPUT = "translation_input"
    TRANSLATION_CN_TO_EN = "translation_cn_to_en"

    @property
    def is_input_based(self) -> bool:
        return self in INPUT_BASED_TYPES


INPUT_BASED_TYPES = frozenset(
    {QuestionType.TRANSLATION_INPUT, QuestionType.TRANSLATION_CN_TO_EN}
)


class AnswerState(str, Enum):
    """State of one answer slot"""

    UNANSWERED = "unanswered"
    CORRECT = "correct"
    INCORRECT = "incorrect"


class QuizQuestion(BaseModel):
    """A single quiz question

    Multiple-choice questions carry exactly four options and a correct
    index in [0, 3]. Input-based questions carry no options and a correct
    index of -1.
    """

    type: QuestionType
    word: str = Field(min_length=1)
    question_text: str = Field(min_length=1)
    correct_answer: str = ""
    options: list[str] = Field(default_factory=list)
    correct_index: int = -1
    explanation: str | None = None
    is_input_based: bool = False

    @model_validator(mode="after")
    def check_shape(self) -> "QuizQuestion":
        if self.is_input_based != self.type.is_input_based:
            raise ValueError(
                f"is_input_based={self.is_input_based} does not match type {self.type.value}"
            )
        if self.is_input_based:
            if self.options or self.correct_index != -1:
                raise ValueError("input-based question must have no options and correct_index -1")
            if not self.correct_answer.strip():
                raise ValueError("input-based question needs a reference answer")
        else:
            if len(self.options) != 4:
                raise ValueError(f"expected 4 options, got {len(self.options)}")
            if not 0 <= self.correct_index <= 3:
                raise ValueError(f"correct_index {self.correct_index} out of range")
            if any(not option.strip() for option in self.options):
                raise ValueError("options must not be blank")
            if not self.correct_answer:
                self.correct_answer = self.options[self.correct_index]
        return self


def current_millis() -> int:
    return int(time.time() * 1000)


@dataclass
class QuizSession:
    """One in-progress quiz for one user"""

    user_id: int
    questions: list[QuizQuestion]
    answers: list[AnswerState]
    created_at: int
    expires_at: int

    @classmethod
    def start(cls, user_id: int, questions: list[QuizQuestion], ttl_seconds: int, now: int | None = None) -> "QuizSession":
        created_at = now if now is not None else current_millis()
        return cls(
            user_id=user_id,
            questions=list(questions),
            answers=[AnswerState.UNANSWERED] * len(questions),
            created_at=created_at,
            expires_at=created_at + ttl_seconds * 1000,
        )

    def is_expired(self, now: int | None = None) -> bool:
        now = now if now is not None else current_millis()
        return self.expires_at <= now

    def next_unanswered_index(self) -> int | None:
        for index, answer in enumerate(self.answers):
            if answer == AnswerState.UNANSWERED:
                return index
        return None

    def is_complete(self) -> bool:
        return self.next_unanswered_index() is None

    @property
    def score(self) -> int:
        return sum(1 for answer in self.answers if answer == AnswerState.CORRECT)

    def record(self, index: int, was_correct: bool) -> None:
        self.answers[index] = AnswerState.CORRECT if was_correct else AnswerState.INCORRECT

    def questions_json(self) -> str:
        return json.dumps(
            [question.model_dump(mode="json") for question in self.questions],
            ensure_ascii=False,
        )

    def answers_json(self) -> str:
        return json.dumps([answer.value for answer in self.answers])

    @classmethod
    def from_row(cls, row: dict) -> "QuizSession":
        return cls(
            user_id=row["user_id"],
            questions=[QuizQuestion.model_validate(item) for item in json.loads(row["questions"])],
            answers=[AnswerState(value) for value in json.loads(row["answers"])],
            created_at=row["created_at"],
            expires_at=row["expires_at"],
        )


@dataclass
class QuizScore:
    """Final score of a completed quiz"""

    score: int
    total: int
    percentage: int = field(init=False)

    def __post_init__(self):
        self.percentage = percentage_of(self.score, self.total)


def percentage_of(score: int, total: int) -> int:
    """Whole-number percentage, halves rounded up"""
    if total <= 0:
        return 0
    return (200 * score + total) // (2 * total)
