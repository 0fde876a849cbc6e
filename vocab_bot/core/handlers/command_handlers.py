"""
Command handlers for the Vocabulary Bot
"""

import logging

from telegram import Update
from telegram.ext import ContextTypes

from ...chat_gateway import available_backends, resolve_backend
from ...formatting import PARSE_MODE, md
from ...i18n import SUPPORTED_LOCALES
from ..database.database_manager import DatabaseManager
from ..quiz.quiz_engine import QuizEngine
from ..transport.bot_transport import BotTransport
from .user_context import load_user_context

logger = logging.getLogger(__name__)


class CommandHandlers:
    """Handles all bot commands"""

    def __init__(
        self,
        db_manager: DatabaseManager,
        transport: BotTransport,
        quiz_engine: QuizEngine,
        settings,
    ):
        self.db_manager = db_manager
        self.transport = transport
        self.quiz_engine = quiz_engine
        self.settings = settings

    def _user_context(self, user_id: int):
        return load_user_context(self.db_manager, user_id, self.settings.default_language)

    async def start_command(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Handle /start command"""
        await self.help_command(update, context)

    async def help_command(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Handle /help command"""
        if not update.effective_user or not update.effective_message:
            return

        user_context = self._user_context(update.effective_user.id)
        message = update.effective_message
        await self.transport.send_text(
            message.chat_id,
            user_context.i18n.t("help", bot=context.bot.username or "bot"),
            reply_to=message.message_id,
            parse_mode=PARSE_MODE,
        )

    async def quiz_command(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Handle /quiz command"""
        if not update.effective_user or not update.effective_message:
            return

        user_id = update.effective_user.id
        user_context = self._user_context(user_id)
        message = update.effective_message
        logger.info(f"Quiz requested by user {user_id}")
        await self.quiz_engine.start_quiz(
            message.chat_id,
            user_id,
            user_context.i18n,
            preferred_backend=user_context.ai_backend,
            reply_to=message.message_id,
        )

    async def model_command(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Handle /model [backend]: show or switch the AI backend"""
        if not update.effective_user or not update.effective_message:
            return

        user_id = update.effective_user.id
        user_context = self._user_context(user_id)
        i18n = user_context.i18n
        message = update.effective_message
        available = available_backends(self.settings)

        if not available:
            await self.transport.send_text(message.chat_id, i18n.t("model.not_configured"))
            return

        if context.args:
            requested = context.args[0].strip().lower()
            if requested not in [backend.value for backend in available]:
                await self.transport.send_text(
                    message.chat_id,
                    i18n.t("model.unavailable", backend=md(requested)),
                    parse_mode=PARSE_MODE,
                )
                return
            self.db_manager.set_ai_backend(user_id, requested)
            logger.info(f"User {user_id} switched AI backend to {requested}")
            await self.transport.send_text(
                message.chat_id, i18n.t("model.switched", backend=requested), parse_mode=PARSE_MODE
            )
            return

        current = resolve_backend(user_context.ai_backend, self.settings)
        text = i18n.t("model.current", backend=current.value if current else "-")
        text += i18n.t("model.available")
        for backend in available:
            marker = i18n.t("model.default_marker") if backend.value == self.settings.ai_backend else ""
            text += f"• `{backend.value}`{marker}\n"
        text += i18n.t("model.switch_hint")
        await self.transport.send_text(message.chat_id, text, parse_mode=PARSE_MODE)

    async def language_command(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Handle /language [code]: show or switch the interface language"""
        if not update.effective_user or not update.effective_message:
            return

        user_id = update.effective_user.id
        i18n = self._user_context(user_id).i18n
        message = update.effective_message

        if not context.args:
            await self.transport.send_text(
                message.chat_id,
                i18n.t(
                    "language.current",
                    language=i18n.locale,
                    available=", ".join(SUPPORTED_LOCALES),
                ),
                parse_mode=PARSE_MODE,
            )
            return

        requested = context.args[0].strip()
        locale = next((code for code in SUPPORTED_LOCALES if code.lower() == requested.lower()), None)
        if locale is None:
            await self.transport.send_text(
                message.chat_id, i18n.t("language.unsupported", language=md(requested))
            )
            return

        self.db_manager.set_language(user_id, locale)
        logger.info(f"User {user_id} switched language to {locale}")
        # Confirm in the new language
        confirmation = self._user_context(user_id).i18n.t("language.switched", language=locale)
        await self.transport.send_text(message.chat_id, confirmation)
