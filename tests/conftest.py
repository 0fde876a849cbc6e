"""
Shared test setup
"""

import os
import tempfile

import pytest

# Settings() needs a token; keep tests away from any real .env values
os.environ.setdefault("TELEGRAM_BOT_TOKEN", "test_token")
os.environ.setdefault("OPENAI_API_KEY", "test_key")
os.environ.setdefault("DATABASE_URL", f"sqlite:///{tempfile.gettempdir()}/vocab_bot_test.db")

from vocab_bot.core.database.database_manager import DatabaseManager  # noqa: E402
from vocab_bot.spaced_repetition import WeightPolicy  # noqa: E402


@pytest.fixture
def temp_db():
    """Create temporary database for testing"""
    temp_file = tempfile.NamedTemporaryFile(delete=False, suffix=".db")
    temp_file.close()

    db_manager = DatabaseManager(
        temp_file.name,
        weight_policy=WeightPolicy(floor=0.1, correct_delta=0.3, incorrect_delta=0.5),
    )
    db_manager.init_database()

    yield db_manager

    # Cleanup
    for suffix in ("", "-wal", "-shm"):
        if os.path.exists(temp_file.name + suffix):
            os.unlink(temp_file.name + suffix)
