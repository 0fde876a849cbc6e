"""
Utility functions for the Vocabulary Bot
"""

import logging
import re
import time
from functools import wraps
from typing import Any

logger = logging.getLogger(__name__)

QUIZ_CALLBACK_PREFIX = "quiz"

# Telegram rejects message texts longer than this
TELEGRAM_MESSAGE_LIMIT = 4096


def strip_bot_mention(text: str, bot_username: str | None) -> str:
    """Remove @botname mentions and collapse whitespace"""
    if not text:
        return ""
    if bot_username:
        text = re.sub(rf"@{re.escape(bot_username)}\b", " ", text, flags=re.IGNORECASE)
    return re.sub(r"\s+", " ", text).strip()


def truncate_text(text: str, max_length: int = 100, suffix: str = "...") -> str:
    """Truncate text to maximum length"""
    if not text or len(text) <= max_length:
        return text

    return text[: max_length - len(suffix)] + suffix


def safe_int(value: Any, default: int = 0) -> int:
    """Safely convert value to integer"""
    try:
        return int(value)
    except (ValueError, TypeError):
        return default


def option_label(index: int) -> str:
    """A, B, C, D for option indexes 0-3"""
    return chr(ord("A") + index)


def create_quiz_callback_data(question_index: int, option_index: int) -> str:
    """Create callback data for a quiz answer button"""
    return f"{QUIZ_CALLBACK_PREFIX}:{question_index}:{option_index}"


def parse_quiz_callback_data(callback_data: str | None) -> tuple[int, int] | None:
    """
    Parse quiz:<question_index>:<option_index> callback data

    Returns:
        (question_index, option_index) or None if the data is not a quiz answer
    """
    if not callback_data:
        return None

    parts = callback_data.split(":")
    if len(parts) != 3 or parts[0] != QUIZ_CALLBACK_PREFIX:
        return None

    question_index = safe_int(parts[1], -1)
    option_index = safe_int(parts[2], -1)
    if question_index < 0 or option_index < 0:
        return None
    return question_index, option_index


class Timer:
    """Simple timer for measuring duration"""

    def __init__(self):
        self.start_time = None
        self.end_time = None

    def start(self):
        """Start the timer"""
        self.start_time = time.time()
        self.end_time = None

    def stop(self):
        """Stop the timer"""
        if self.start_time is not None:
            self.end_time = time.time()

    def elapsed(self) -> float | None:
        """Get elapsed time in seconds"""
        if self.start_time is None:
            return None

        end = self.end_time or time.time()
        return end - self.start_time


def log_execution_time(func):
    """Decorator to log coroutine execution time"""

    @wraps(func)
    async def wrapper(*args, **kwargs):
        timer = Timer()
        timer.start()
        try:
            result = await func(*args, **kwargs)
            timer.stop()
            logger.debug(f"{func.__name__} executed in {timer.elapsed():.3f}s")
            return result
        except Exception as e:
            timer.stop()
            logger.error(f"{func.__name__} failed after {timer.elapsed():.3f}s: {e}")
            raise

    return wrapper
