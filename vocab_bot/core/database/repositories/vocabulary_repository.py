"""
Vocabulary repository for database operations
"""

import logging
import sqlite3
import time

from ..connection import DatabaseConnection
from ..models import RecordOutcome, VocabularyEntry

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


class VocabularyRepository:
    """Repository for per-user word history and quiz weights"""

    def __init__(self, db_connection: DatabaseConnection):
        self.db_connection = db_connection

    def record_word(
        self, user_id: int, word: str, limit: int | None = None
    ) -> RecordOutcome:
        """Store a looked-up word, ignoring case-insensitive duplicates"""
        word = word.strip()
        if not word:
            return RecordOutcome.FAILED

        try:
            with self.db_connection.get_connection() as conn:
                try:
                    conn.execute(
                        """
                        INSERT INTO vocabulary (user_id, word, first_seen_at)
                        VALUES (?, ?, ?)
                        """,
                        (user_id, word, _now_ms()),
                    )
                except sqlite3.IntegrityError:
                    logger.debug(f"Word '{word}' already recorded for user {user_id}")
                    return RecordOutcome.ALREADY_EXISTS

                if limit:
                    self._prune(conn, user_id, limit)

                conn.commit()
                return RecordOutcome.INSERTED
        except sqlite3.Error as e:
            logger.error(f"Error recording word '{word}' for user {user_id}: {e}")
            return RecordOutcome.FAILED

    def _prune(self, conn: sqlite3.Connection, user_id: int, limit: int) -> None:
        """Keep only the most recent words of a user"""
        cursor = conn.execute(
            """
            DELETE FROM vocabulary
            WHERE user_id = ?
            AND id NOT IN (
                SELECT id FROM vocabulary
                WHERE user_id = ?
                ORDER BY first_seen_at DESC, id DESC
                LIMIT ?
            )
            """,
            (user_id, user_id, limit),
        )
        if cursor.rowcount:
            logger.info(f"Pruned {cursor.rowcount} old words for user {user_id}")

    def get_entry(self, user_id: int, word: str) -> VocabularyEntry | None:
        """Get a single vocabulary entry (case-insensitive)"""
        try:
            with self.db_connection.get_connection() as conn:
                cursor = conn.execute(
                    "SELECT * FROM vocabulary WHERE user_id = ? AND word = ?",
                    (user_id, word.strip()),
                )
                row = cursor.fetchone()
                return dict(row) if row else None
        except sqlite3.Error as e:
            logger.error(f"Error getting vocabulary entry: {e}")
            return None

    def list_words(self, user_id: int) -> list[VocabularyEntry]:
        """Get all words of a user, most recent first"""
        try:
            with self.db_connection.get_connection() as conn:
                cursor = conn.execute(
                    """
                    SELECT * FROM vocabulary
                    WHERE user_id = ?
                    ORDER BY first_seen_at DESC, id DESC
                    """,
                    (user_id,),
                )
                return [dict(row) for row in cursor.fetchall()]
        except sqlite3.Error as e:
            logger.error(f"Error listing words: {e}")
            return []

    def count_words(self, user_id: int) -> int:
        """Count distinct words of a user"""
        try:
            with self.db_connection.get_connection() as conn:
                cursor = conn.execute(
                    "SELECT COUNT(*) FROM vocabulary WHERE user_id = ?", (user_id,)
                )
                return cursor.fetchone()[0]
        except sqlite3.Error as e:
            logger.error(f"Error counting words: {e}")
            return 0

    def list_words_for_quiz(self, user_id: int, limit: int = 10) -> list[VocabularyEntry]:
        """Get quiz candidates, heaviest first, then most recent"""
        try:
            with self.db_connection.get_connection() as conn:
                cursor = conn.execute(
                    """
                    SELECT * FROM vocabulary
                    WHERE user_id = ?
                    ORDER BY weight DESC, first_seen_at DESC, id DESC
                    LIMIT ?
                    """,
                    (user_id, limit),
                )
                return [dict(row) for row in cursor.fetchall()]
        except sqlite3.Error as e:
            logger.error(f"Error listing quiz words: {e}")
            return []

    def save_review(
        self, user_id: int, word: str, new_weight: float, was_correct: bool
    ) -> bool:
        """Persist a graded answer for a word"""
        counter = "correct_count" if was_correct else "incorrect_count"
        try:
            with self.db_connection.get_connection() as conn:
                cursor = conn.execute(
                    f"""
                    UPDATE vocabulary
                    SET weight = ?, {counter} = {counter} + 1, last_reviewed_at = ?
                    WHERE user_id = ? AND word = ?
                    """,  # noqa: S608  # Safe: counter is one of two column names
                    (new_weight, _now_ms(), user_id, word.strip()),
                )
                conn.commit()
                return cursor.rowcount > 0
        except sqlite3.Error as e:
            logger.error(f"Error saving review for '{word}': {e}")
            return False
