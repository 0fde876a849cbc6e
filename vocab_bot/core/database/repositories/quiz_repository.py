"""
Quiz session repository for database operations
"""

import logging
import sqlite3
import time

from ...quiz.models import QuizSession
from ..connection import DatabaseConnection

logger = logging.getLogger(__name__)


class QuizRepository:
    """Repository for persisted quiz sessions"""

    def __init__(self, db_connection: DatabaseConnection):
        self.db_connection = db_connection

    def put_session(self, session: QuizSession) -> None:
        """Create or overwrite the session of a user"""
        with self.db_connection.get_connection() as conn:
            conn.execute(
                """
                INSERT INTO quiz_state (user_id, questions, answers, created_at, expires_at)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(user_id) DO UPDATE SET
                    questions = excluded.questions,
                    answers = excluded.answers,
                    created_at = excluded.created_at,
                    expires_at = excluded.expires_at
                """,
                (
                    session.user_id,
                    session.questions_json(),
                    session.answers_json(),
                    session.created_at,
                    session.expires_at,
                ),
            )
            conn.commit()

    def update_answers(self, session: QuizSession) -> None:
        """Write back the answer vector of a session"""
        with self.db_connection.get_connection() as conn:
            conn.execute(
                "UPDATE quiz_state SET answers = ? WHERE user_id = ?",
                (session.answers_json(), session.user_id),
            )
            conn.commit()

    def get_session(self, user_id: int, now_ms: int | None = None) -> QuizSession | None:
        """Get the unexpired session of a user"""
        now_ms = now_ms if now_ms is not None else int(time.time() * 1000)
        with self.db_connection.get_connection() as conn:
            cursor = conn.execute(
                """
                SELECT * FROM quiz_state
                WHERE user_id = ? AND expires_at > ?
                """,
                (user_id, now_ms),
            )
            row = cursor.fetchone()

        if not row:
            return None

        try:
            return QuizSession.from_row(dict(row))
        except ValueError as e:
            # pydantic.ValidationError and json.JSONDecodeError are both ValueErrors
            logger.error(f"Discarding unreadable quiz session for user {user_id}: {e}")
            self.delete_session(user_id)
            return None

    def delete_session(self, user_id: int) -> None:
        """Delete the session of a user"""
        with self.db_connection.get_connection() as conn:
            conn.execute("DELETE FROM quiz_state WHERE user_id = ?", (user_id,))
            conn.commit()

    def sweep_expired_sessions(self, now_ms: int | None = None) -> int:
        """Delete all expired sessions, returning how many were removed"""
        now_ms = now_ms if now_ms is not None else int(time.time() * 1000)
        try:
            with self.db_connection.get_connection() as conn:
                cursor = conn.execute(
                    "DELETE FROM quiz_state WHERE expires_at <= ?", (now_ms,)
                )
                conn.commit()
                return cursor.rowcount
        except sqlite3.Error as e:
            logger.error(f"Error sweeping expired quiz sessions: {e}")
            return 0
