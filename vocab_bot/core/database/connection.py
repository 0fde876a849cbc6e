"""
Database connection manager for the Vocabulary Bot
"""

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path

from ...config import get_database_path

logger = logging.getLogger(__name__)


class DatabaseConnection:
    """Manages SQLite database connections and settings"""

    def __init__(self, db_path: str | None = None):
        self.db_path = db_path or get_database_path()
        self._ensure_database_directory()
        self._init_connection_settings()

    def _ensure_database_directory(self) -> None:
        """Ensure the database directory exists"""
        db_dir = Path(self.db_path).parent
        db_dir.mkdir(parents=True, exist_ok=True)

    def _init_connection_settings(self) -> None:
        """Initialize database connection settings"""
        with self.get_connection() as conn:
            # Enable WAL mode for better concurrency
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute("PRAGMA busy_timeout=30000")

    @contextmanager
    def get_connection(self):
        """Get database connection with proper cleanup"""
        conn = None
        try:
            conn = sqlite3.connect(self.db_path)
            conn.row_factory = sqlite3.Row  # Enable dict-like access
            yield conn
        except Exception as e:
            if conn:
                conn.rollback()
            logger.error(f"Database error: {e}")
            raise
        finally:
            if conn:
                conn.close()

    def init_database(self) -> None:
        """Initialize database tables"""
        with self.get_connection() as conn:
            self._create_tables(conn)
            self._run_migrations(conn)
            self._create_indexes(conn)
            conn.commit()

    def _create_tables(self, conn: sqlite3.Connection) -> None:
        """Create database tables"""
        tables = [
            """
            CREATE TABLE IF NOT EXISTS vocabulary (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id INTEGER NOT NULL,
                word TEXT NOT NULL COLLATE NOCASE,
                first_seen_at INTEGER NOT NULL,
                weight REAL NOT NULL DEFAULT 1.0,
                correct_count INTEGER NOT NULL DEFAULT 0,
                incorrect_count INTEGER NOT NULL DEFAULT 0,
                last_reviewed_at INTEGER,
                UNIQUE(user_id, word)
            )
            """,
            """
            CREATE TABLE IF NOT EXISTS quiz_state (
                user_id INTEGER PRIMARY KEY,
                questions TEXT NOT NULL,
                answers TEXT NOT NULL,
                created_at INTEGER NOT NULL,
                expires_at INTEGER NOT NULL
            )
            """,
            """
            CREATE TABLE IF NOT EXISTS user_preferences (
                user_id INTEGER PRIMARY KEY,
                ai_backend TEXT,
                language TEXT,
                updated_at INTEGER NOT NULL
            )
            """,
            """
            CREATE TABLE IF NOT EXISTS user_interactions (
                user_id INTEGER NOT NULL,
                interaction_date TEXT NOT NULL,
                PRIMARY KEY (user_id, interaction_date)
            )
            """,
        ]

        for table_sql in tables:
            conn.execute(table_sql)

    def _create_indexes(self, conn: sqlite3.Connection) -> None:
        """Create database indexes for performance"""
        indexes = [
            "CREATE INDEX IF NOT EXISTS idx_vocabulary_user_id ON vocabulary(user_id)",
            (
                "CREATE INDEX IF NOT EXISTS idx_vocabulary_weight "
                "ON vocabulary(user_id, weight DESC, first_seen_at DESC)"
            ),
            (
                "CREATE INDEX IF NOT EXISTS idx_quiz_state_expires_at "
                "ON quiz_state(expires_at)"
            ),
        ]

        for index_sql in indexes:
            try:
                conn.execute(index_sql)
            except sqlite3.OperationalError as e:
                logger.warning(f"Failed to create index: {index_sql}, error: {e}")

    def _run_migrations(self, conn: sqlite3.Connection) -> None:
        """Run database migrations for schema updates"""
        cursor = conn.execute("PRAGMA table_info(vocabulary)")
        columns = {row[1] for row in cursor.fetchall()}

        # Databases created before quiz weighting only carried the history columns
        missing_columns = {
            "weight": "REAL NOT NULL DEFAULT 1.0",
            "correct_count": "INTEGER NOT NULL DEFAULT 0",
            "incorrect_count": "INTEGER NOT NULL DEFAULT 0",
            "last_reviewed_at": "INTEGER",
        }

        for column, definition in missing_columns.items():
            if column in columns:
                continue
            logger.info(f"Adding missing {column} column to vocabulary table")
            conn.execute(f"ALTER TABLE vocabulary ADD COLUMN {column} {definition}")
