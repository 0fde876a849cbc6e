"""
Weight-based word prioritisation for quizzes

Every word carries a weight. Wrong answers raise it, right answers lower it
towards a floor, and quiz word selection favours heavier words.
"""

import logging
import random
from collections.abc import Sequence
from dataclasses import dataclass

from .config import get_settings

logger = logging.getLogger(__name__)

DEFAULT_WEIGHT = 1.0


@dataclass
class WeightUpdate:
    """Result of grading one answer"""

    old_weight: float
    new_weight: float
    was_correct: bool


class WeightPolicy:
    """Spaced-repetition-like weight adjustment (not SM-2)"""

    def __init__(
        self,
        floor: float | None = None,
        correct_delta: float | None = None,
        incorrect_delta: float | None = None,
    ):
        if floor is None or correct_delta is None or incorrect_delta is None:
            settings = get_settings()
            floor = settings.weight_floor if floor is None else floor
            if correct_delta is None:
                correct_delta = settings.weight_correct_delta
            if incorrect_delta is None:
                incorrect_delta = settings.weight_incorrect_delta
        self.floor = floor
        self.correct_delta = correct_delta
        self.incorrect_delta = incorrect_delta

    def apply(self, weight: float, was_correct: bool) -> WeightUpdate:
        """
        Calculate the new weight after an answer

        Args:
            weight: Current weight of the word
            was_correct: Whether the answer was graded correct

        Returns:
            WeightUpdate with old and new weight
        """
        if was_correct:
            new_weight = max(self.floor, weight - self.correct_delta)
        else:
            new_weight = weight + self.incorrect_delta

        # Keep stored values free of float noise like 1.2000000000000002
        new_weight = round(new_weight, 6)

        logger.debug(
            f"Weight update: {weight} -> {new_weight} (correct={was_correct})"
        )
        return WeightUpdate(old_weight=weight, new_weight=new_weight, was_correct=was_correct)


def pick_weighted_words(
    candidates: Sequence[dict],
    count: int,
    rng: random.Random | None = None,
) -> list[dict]:
    """
    Weighted sampling without replacement

    Heavier words are more likely to be drawn. The result keeps the draw
    order, so the first slot gets the first drawn word.
    """
    rng = rng or random.Random()
    pool = list(candidates)
    picked: list[dict] = []

    while pool and len(picked) < count:
        weights = [max(float(entry.get("weight") or DEFAULT_WEIGHT), 0.0) for entry in pool]
        if sum(weights) <= 0:
            index = rng.randrange(len(pool))
        else:
            index = rng.choices(range(len(pool)), weights=weights, k=1)[0]
        picked.append(pool.pop(index))

    return picked


# Global policy instance
_weight_policy = None


def get_weight_policy() -> WeightPolicy:
    """Get global weight policy instance"""
    global _weight_policy
    if _weight_policy is None:
        _weight_policy = WeightPolicy()
    return _weight_policy
