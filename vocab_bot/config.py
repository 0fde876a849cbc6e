"""
Configuration management for the Vocabulary Bot
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    # Telegram Bot Configuration
    telegram_bot_token: str = Field(...)
    telegram_webhook_url: str | None = Field(default=None)
    telegram_webhook_secret: str | None = Field(default=None)
    telegram_webhook_port: int = Field(default=8443)
    allowed_users: str = Field(default="")

    # AI backend selection (azure, openai, gemini)
    ai_backend: str = Field(default="openai")

    # OpenAI-compatible Configuration
    openai_api_key: str = Field(default="")
    openai_base_url: str | None = Field(default=None)
    openai_model: str = Field(default="gpt-4o-mini")

    # Azure OpenAI Configuration
    azure_api_key: str = Field(default="")
    azure_endpoint: str = Field(default="")
    azure_api_version: str = Field(default="2024-06-01")
    azure_deployment: str = Field(default="gpt-35-turbo")

    # Gemini Configuration
    gemini_api_key: str = Field(default="")
    gemini_model: str = Field(default="gemini-1.5-flash")

    api_timeout: int = Field(default=60)

    # Streaming
    stream_render_cadence: int = Field(default=50)
    stream_idle_timeout: float = Field(default=30.0)
    stream_max_duration: float = Field(default=180.0)

    # Database Configuration
    database_url: str = Field(default="sqlite:///data/bot.db")
    vocabulary_limit: int | None = Field(default=None)

    # Quiz Configuration
    quiz_min_words: int = Field(default=5)
    quiz_candidate_words: int = Field(default=10)
    quiz_questions: int = Field(default=5)
    quiz_session_ttl: int = Field(default=3600)
    weight_floor: float = Field(default=0.1)
    weight_correct_delta: float = Field(default=0.3)
    weight_incorrect_delta: float = Field(default=0.5)
    session_sweep_interval: int = Field(default=600)

    # Text-to-speech
    tts_voice: str = Field(default="en-US-AriaNeural")
    tts_rate: str = Field(default="+0%")

    # Application Configuration
    default_language: str = Field(default="zh-CN")
    daily_tips_enabled: bool = Field(default=True)
    expose_error_details: bool = Field(default=True)
    log_level: str = Field(default="INFO")
    polling_interval: float = Field(default=1.0)

    @property
    def allowed_users_list(self) -> list[int]:
        """Convert allowed_users string to list of integers"""
        if not self.allowed_users.strip():
            return []
        # Parse comma-separated string of user IDs
        return [
            int(user_id.strip())
            for user_id in self.allowed_users.split(",")
            if user_id.strip()
        ]

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_nested_delimiter="__",
        extra="ignore"
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


def get_database_path(database_url: str | None = None) -> str:
    """Get the database file path from URL"""
    url = database_url or get_settings().database_url
    if url.startswith("sqlite:///"):
        return url.replace("sqlite:///", "")
    return "data/bot.db"
