"""
Per-user settings resolved for one update
"""

from dataclasses import dataclass

from ...i18n import I18n
from ..database.database_manager import DatabaseManager


@dataclass
class UserContext:
    i18n: I18n
    ai_backend: str | None = None


def load_user_context(db_manager: DatabaseManager, user_id: int, default_language: str) -> UserContext:
    """Language and preferred backend of a user, with defaults for missing values"""
    preference = db_manager.get_preference(user_id) or {}
    return UserContext(
        i18n=I18n(preference.get("language") or default_language),
        ai_backend=preference.get("ai_backend"),
    )
