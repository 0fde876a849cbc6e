"""
User preference and interaction repository for database operations
"""

import logging
import sqlite3
import time
from datetime import datetime, timezone

from ..connection import DatabaseConnection
from ..models import UserPreference

logger = logging.getLogger(__name__)


def today_utc() -> str:
    """Get today's date in YYYY-MM-DD format (UTC)"""
    return datetime.now(timezone.utc).strftime("%Y-%m-%d")


class PreferenceRepository:
    """Repository for per-user preferences and daily interactions"""

    def __init__(self, db_connection: DatabaseConnection):
        self.db_connection = db_connection

    def get_preference(self, user_id: int) -> UserPreference | None:
        """Get preferences of a user"""
        try:
            with self.db_connection.get_connection() as conn:
                cursor = conn.execute(
                    "SELECT * FROM user_preferences WHERE user_id = ?", (user_id,)
                )
                row = cursor.fetchone()
                return dict(row) if row else None
        except sqlite3.Error as e:
            logger.error(f"Error getting preferences for user {user_id}: {e}")
            return None

    def set_ai_backend(self, user_id: int, backend: str) -> bool:
        """Upsert the preferred AI backend"""
        return self._upsert(user_id, "ai_backend", backend)

    def set_language(self, user_id: int, language: str) -> bool:
        """Upsert the preferred interface language"""
        return self._upsert(user_id, "language", language)

    def _upsert(self, user_id: int, column: str, value: str) -> bool:
        try:
            with self.db_connection.get_connection() as conn:
                conn.execute(
                    f"""
                    INSERT INTO user_preferences (user_id, {column}, updated_at)
                    VALUES (?, ?, ?)
                    ON CONFLICT(user_id) DO UPDATE SET
                        {column} = excluded.{column},
                        updated_at = excluded.updated_at
                    """,  # noqa: S608  # Safe: column comes from the setters above
                    (user_id, value, int(time.time())),
                )
                conn.commit()
                return True
        except sqlite3.Error as e:
            logger.error(f"Error saving {column} for user {user_id}: {e}")
            return False

    def record_interaction(self, user_id: int, day: str | None = None) -> bool:
        """
        Record that a user interacted with the bot on a day

        Returns:
            True if this is the first interaction of that day
        """
        day = day or today_utc()
        try:
            with self.db_connection.get_connection() as conn:
                cursor = conn.execute(
                    """
                    INSERT OR IGNORE INTO user_interactions (user_id, interaction_date)
                    VALUES (?, ?)
                    """,
                    (user_id, day),
                )
                conn.commit()
                return cursor.rowcount > 0
        except sqlite3.Error as e:
            logger.error(f"Error recording interaction for user {user_id}: {e}")
            return False
