"""
Database models for the Vocabulary Bot
"""

from enum import Enum
from typing import TypedDict


class VocabularyEntry(TypedDict):
    """Word looked up by a user"""
    id: int
    user_id: int
    word: str
    first_seen_at: int  # epoch milliseconds
    weight: float
    correct_count: int
    incorrect_count: int
    last_reviewed_at: int | None


class UserPreference(TypedDict):
    """Per-user settings"""
    user_id: int
    ai_backend: str | None
    language: str | None
    updated_at: int


class RecordOutcome(Enum):
    """Result of storing a looked-up word"""

    INSERTED = "inserted"
    ALREADY_EXISTS = "already_exists"
    FAILED = "failed"
