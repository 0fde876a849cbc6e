"""
Unit tests for utility functions
"""

import time

import pytest

from vocab_bot.i18n import DEFAULT_LOCALE, I18n, SUPPORTED_LOCALES, get_i18n
from vocab_bot.utils import (
    Timer,
    create_quiz_callback_data,
    log_execution_time,
    option_label,
    parse_quiz_callback_data,
    safe_int,
    strip_bot_mention,
    truncate_text,
)


class TestTextHelpers:
    """Test text helper functions"""

    def test_strip_bot_mention(self):
        assert strip_bot_mention("@VocabBot  cat", "VocabBot") == "cat"
        assert strip_bot_mention("what is @vocabbot real estate", "VocabBot") == "what is real estate"
        assert strip_bot_mention("@VocabBotX cat", "VocabBot") == "@VocabBotX cat"
        assert strip_bot_mention("@VocabBot", "VocabBot") == ""
        assert strip_bot_mention("", "VocabBot") == ""
        assert strip_bot_mention(" cat ", None) == "cat"

    def test_truncate_text(self):
        assert truncate_text("short", 10) == "short"
        assert truncate_text("a" * 20, 10) == "aaaaaaa..."

    def test_safe_int(self):
        assert safe_int("3") == 3
        assert safe_int("x") == 0
        assert safe_int(None, -1) == -1

    def test_option_label(self):
        assert [option_label(i) for i in range(4)] == ["A", "B", "C", "D"]


class TestQuizCallbackData:
    """Test quiz button payloads"""

    def test_create(self):
        assert create_quiz_callback_data(2, 3) == "quiz:2:3"

    def test_parse(self):
        assert parse_quiz_callback_data("quiz:2:3") == (2, 3)

    @pytest.mark.parametrize(
        "data", [None, "", "quiz", "quiz:1", "quiz:a:1", "quiz:1:-1", "other:1:2", "quiz:1:2:3"]
    )
    def test_parse_invalid(self, data):
        assert parse_quiz_callback_data(data) is None


class TestTimer:
    """Test Timer class"""

    def test_timer(self):
        timer = Timer()
        assert timer.elapsed() is None

        timer.start()
        time.sleep(0.01)
        timer.stop()
        assert timer.elapsed() >= 0.01

    @pytest.mark.asyncio
    async def test_log_execution_time_returns_result(self):
        @log_execution_time
        async def add(a, b):
            return a + b

        assert await add(1, 2) == 3

    @pytest.mark.asyncio
    async def test_log_execution_time_async_reraises(self):
        @log_execution_time
        async def fail():
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            await fail()


class TestI18n:
    """Test message catalogues"""

    def test_catalogues_have_the_same_keys(self):
        keys = [set(I18n(locale).data) for locale in SUPPORTED_LOCALES]
        assert all(k == keys[0] for k in keys)

    def test_unknown_locale_falls_back(self):
        assert get_i18n("fr").locale == DEFAULT_LOCALE
        assert get_i18n(None).locale == DEFAULT_LOCALE

    def test_placeholders(self):
        i18n = I18n("en")
        assert i18n.t("quiz.complete", score=3, total=5, percentage=60).endswith("3/5 (60%)")

    def test_missing_key_returns_key(self):
        assert I18n("en").t("does.not.exist") == "does.not.exist"

    def test_missing_placeholder_returns_template(self):
        assert I18n("en").t("quiz.wrong", other=1) == "❌ Wrong! The correct answer is: {answer}"

    def test_separator(self):
        assert I18n("en").separator == ", "
        assert I18n("zh-CN").separator == "，"
