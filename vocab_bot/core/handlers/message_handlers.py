"""
Message handlers for the Vocabulary Bot
"""

import logging

from telegram import Chat, Update
from telegram.ext import ContextTypes

from ..database.database_manager import DatabaseManager
from ..lookup.lookup_service import LookupService
from ..quiz.quiz_engine import QuizEngine
from .interaction_matchers import is_quiz_callback, mentions_bot, replies_to_bot
from .user_context import load_user_context

logger = logging.getLogger(__name__)


class MessageHandlers:
    """Handles text messages and callback queries"""

    def __init__(
        self,
        db_manager: DatabaseManager,
        lookup_service: LookupService,
        quiz_engine: QuizEngine,
        settings,
    ):
        self.db_manager = db_manager
        self.lookup_service = lookup_service
        self.quiz_engine = quiz_engine
        self.settings = settings

    async def handle_message(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """
        Route a text message

        A reply to one of the bot's messages that does not mention the bot is
        a quiz answer. A message that mentions the bot (or any text in a
        private chat) is a lookup.
        Everything else is ignored.
        """
        message = update.effective_message
        if not message or not message.text or not update.effective_user:
            return

        user_id = update.effective_user.id
        user_context = load_user_context(self.db_manager, user_id, self.settings.default_language)

        mentioned = mentions_bot(update, context.bot.username)
        if replies_to_bot(update, context.bot.id) and not mentioned:
            logger.info(f"Quiz answer from user {user_id}")
            await self.quiz_engine.handle_text_answer(
                message.chat_id,
                user_id,
                message.message_id,
                message.text,
                user_context.i18n,
                preferred_backend=user_context.ai_backend,
            )
            return

        is_private = message.chat.type == Chat.PRIVATE
        if not is_private and not mentioned:
            return

        await self.lookup_service.lookup(
            message.chat_id,
            user_id,
            message.message_id,
            message.text,
            user_context.i18n,
            bot_username=context.bot.username,
            preferred_backend=user_context.ai_backend,
        )

    async def handle_callback_query(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Handle inline keyboard callbacks"""
        query = update.callback_query
        if not query or not update.effective_user:
            return

        user_context = load_user_context(
            self.db_manager, update.effective_user.id, self.settings.default_language
        )

        if not is_quiz_callback(update) or not query.message:
            await query.answer(user_context.i18n.t("quiz.invalid_data"))
            return

        await self.quiz_engine.handle_callback_answer(
            query.message.chat.id,
            update.effective_user.id,
            query.id,
            query.message.message_id,
            query.data,
            user_context.i18n,
        )
