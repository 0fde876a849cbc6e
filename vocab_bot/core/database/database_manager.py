"""
Unified database manager that coordinates all repositories
"""

import logging

from ...config import get_database_path
from ...spaced_repetition import WeightPolicy, WeightUpdate
from ..quiz.models import QuizSession
from .connection import DatabaseConnection
from .models import RecordOutcome, UserPreference, VocabularyEntry
from .repositories.preference_repository import PreferenceRepository
from .repositories.quiz_repository import QuizRepository
from .repositories.vocabulary_repository import VocabularyRepository

logger = logging.getLogger(__name__)


class DatabaseManager:
    """Unified database manager that coordinates all repositories"""

    def __init__(
        self,
        db_path: str | None = None,
        weight_policy: WeightPolicy | None = None,
        vocabulary_limit: int | None = None,
    ):
        self.db_connection = DatabaseConnection(db_path)
        self.vocabulary_repo = VocabularyRepository(self.db_connection)
        self.quiz_repo = QuizRepository(self.db_connection)
        self.preference_repo = PreferenceRepository(self.db_connection)
        self.weight_policy = weight_policy or WeightPolicy(
            floor=0.1, correct_delta=0.3, incorrect_delta=0.5
        )
        self.vocabulary_limit = vocabulary_limit

    def init_database(self) -> None:
        """Initialize database tables and indexes"""
        self.db_connection.init_database()

    def get_connection(self):
        """Get database connection for direct SQL access in tests"""
        return self.db_connection.get_connection()

    # Vocabulary methods
    def record_word(self, user_id: int, word: str) -> RecordOutcome:
        """Store a looked-up word for a user"""
        outcome = self.vocabulary_repo.record_word(user_id, word, self.vocabulary_limit)
        logger.info(f"Record word '{word}' for user {user_id}: {outcome.value}")
        return outcome

    def list_words(self, user_id: int) -> list[VocabularyEntry]:
        """Get all words of a user, most recent first"""
        return self.vocabulary_repo.list_words(user_id)

    def count_words(self, user_id: int) -> int:
        """Count words of a user"""
        return self.vocabulary_repo.count_words(user_id)

    def list_words_for_quiz(self, user_id: int, limit: int = 10) -> list[VocabularyEntry]:
        """Get quiz candidates ordered by weight, then recency"""
        return self.vocabulary_repo.list_words_for_quiz(user_id, limit)

    def get_vocabulary_entry(self, user_id: int, word: str) -> VocabularyEntry | None:
        """Get one vocabulary entry"""
        return self.vocabulary_repo.get_entry(user_id, word)

    def update_weight(
        self, user_id: int, word: str, was_correct: bool
    ) -> WeightUpdate | None:
        """Apply a graded answer to the weight and counters of a word"""
        entry = self.vocabulary_repo.get_entry(user_id, word)
        if not entry:
            logger.warning(f"No vocabulary entry '{word}' for user {user_id}, weight unchanged")
            return None

        update = self.weight_policy.apply(entry["weight"], was_correct)
        if not self.vocabulary_repo.save_review(user_id, word, update.new_weight, was_correct):
            return None
        return update

    # Quiz session methods
    def get_session(self, user_id: int, now_ms: int | None = None) -> QuizSession | None:
        """Get the active (unexpired) quiz session of a user"""
        return self.quiz_repo.get_session(user_id, now_ms)

    def put_session(self, session: QuizSession) -> None:
        """Create or overwrite a quiz session"""
        self.quiz_repo.put_session(session)

    def save_answers(self, session: QuizSession) -> None:
        """Persist the answer vector of a session"""
        self.quiz_repo.update_answers(session)

    def delete_session(self, user_id: int) -> None:
        """Delete the quiz session of a user"""
        self.quiz_repo.delete_session(user_id)

    def sweep_expired_sessions(self, now_ms: int | None = None) -> int:
        """Delete expired quiz sessions"""
        return self.quiz_repo.sweep_expired_sessions(now_ms)

    # Preference methods
    def get_preference(self, user_id: int) -> UserPreference | None:
        """Get preferences of a user"""
        return self.preference_repo.get_preference(user_id)

    def set_ai_backend(self, user_id: int, backend: str) -> bool:
        """Set the preferred AI backend of a user"""
        return self.preference_repo.set_ai_backend(user_id, backend)

    def set_language(self, user_id: int, language: str) -> bool:
        """Set the preferred language of a user"""
        return self.preference_repo.set_language(user_id, language)

    def record_interaction(self, user_id: int, day: str | None = None) -> bool:
        """Record a daily interaction, True when it is the first one today"""
        return self.preference_repo.record_interaction(user_id, day)


# Global instance
_db_manager = None


def get_db_manager(db_path: str | None = None) -> DatabaseManager:
    """Get global database manager instance"""
    global _db_manager
    if _db_manager is None:
        from ...config import get_settings
        from ...spaced_repetition import get_weight_policy

        settings = get_settings()
        _db_manager = DatabaseManager(
            db_path or get_database_path(settings.database_url),
            weight_policy=get_weight_policy(),
            vocabulary_limit=settings.vocabulary_limit,
        )
    return _db_manager
