"""
Tests for user authorization functionality
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from telegram import Update, User
from telegram.ext import ContextTypes

from vocab_bot.bot_handler import BotHandler
from vocab_bot.config import Settings


def make_handler(allowed_users):
    settings = Settings(
        telegram_bot_token="test_token",
        openai_api_key="test_key",
        allowed_users=allowed_users,
    )
    handler = BotHandler(settings)
    handler.db_manager.init_database()
    return handler


def make_update(user_id, callback=False):
    update = MagicMock(spec=Update)
    update.effective_user = User(id=user_id, is_bot=False, first_name="Test")
    update.effective_message = MagicMock()
    update.effective_message.reply_text = AsyncMock()
    if callback:
        update.callback_query = MagicMock()
        update.callback_query.answer = AsyncMock()
    else:
        update.callback_query = None
    return update


class TestUserAuthorization:
    """Test user authorization functionality"""

    def test_is_user_authorized_empty_list(self):
        """Test authorization when no users are configured - everyone may use the bot"""
        handler = make_handler("")

        assert handler._is_user_authorized(321)
        assert handler._is_user_authorized(123)

    def test_is_user_authorized_with_allowed_users(self):
        """Test authorization with specific allowed users"""
        handler = make_handler("321, 123")

        assert handler._is_user_authorized(321)
        assert handler._is_user_authorized(123)
        assert not handler._is_user_authorized(111)

    @pytest.mark.asyncio
    async def test_check_authorization_allowed_user(self):
        handler = make_handler("321")
        update = make_update(321)
        context = MagicMock(spec=ContextTypes.DEFAULT_TYPE)

        assert await handler._check_authorization(update, context)
        update.effective_message.reply_text.assert_not_called()

    @pytest.mark.asyncio
    async def test_check_authorization_denied_user(self):
        handler = make_handler("321")
        update = make_update(999)
        context = MagicMock(spec=ContextTypes.DEFAULT_TYPE)

        assert not await handler._check_authorization(update, context)
        update.effective_message.reply_text.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_denied_callback_gets_alert(self):
        handler = make_handler("321")
        update = make_update(999, callback=True)
        context = MagicMock(spec=ContextTypes.DEFAULT_TYPE)

        assert not await handler._check_authorization(update, context)
        update.callback_query.answer.assert_awaited_once()
        assert update.callback_query.answer.call_args.kwargs["show_alert"] is True

    @pytest.mark.asyncio
    async def test_check_authorization_no_user(self):
        handler = make_handler("321")
        update = MagicMock(spec=Update)
        update.effective_user = None

        assert not await handler._check_authorization(update, MagicMock())

    @pytest.mark.asyncio
    async def test_require_authorization_decorator(self):
        handler = make_handler("321")
        callback = AsyncMock(return_value="handled")
        wrapped = handler.require_authorization(callback)

        assert await wrapped(make_update(321), MagicMock()) == "handled"
        callback.reset_mock()

        assert await wrapped(make_update(999), MagicMock()) is None
        callback.assert_not_called()
