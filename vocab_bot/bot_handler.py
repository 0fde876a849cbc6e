"""
Telegram bot handler wiring the lookup and quiz features together
"""

import asyncio
import contextlib
import logging
import signal
from functools import wraps
from urllib.parse import urlparse

from telegram import BotCommand, Update
from telegram.error import TelegramError
from telegram.ext import (
    Application,
    CallbackQueryHandler,
    CommandHandler,
    ContextTypes,
    MessageHandler,
    TypeHandler,
    filters,
)

from .config import get_settings
from .core.database.database_manager import get_db_manager
from .core.handlers.command_handlers import CommandHandlers
from .core.handlers.interaction_matchers import build_interaction_matchers, is_user_interaction
from .core.handlers.message_handlers import MessageHandlers
from .core.handlers.user_context import load_user_context
from .core.lookup.lookup_service import LookupService
from .core.quiz.quiz_engine import QuizEngine
from .core.scheduler.session_sweeper import SessionSweeper
from .core.transport.bot_transport import BotTransport
from .formatting import PARSE_MODE
from .i18n import I18n
from .tts import get_tts_service

logger = logging.getLogger(__name__)


class BotHandler:
    """Main Telegram bot handler"""

    def __init__(self, settings=None):
        self.settings = settings or get_settings()
        self.db_manager = get_db_manager()
        self.tts_service = get_tts_service()
        self.session_sweeper = SessionSweeper(
            self.db_manager.sweep_expired_sessions,
            interval_seconds=self.settings.session_sweep_interval,
        )
        self.interaction_matchers = build_interaction_matchers(None)
        self.stop_event = asyncio.Event()

        self.application = None
        self.transport = None
        self.lookup_service = None
        self.quiz_engine = None
        self.command_handlers = None
        self.message_handlers = None

    def _build_components(self, application: Application):
        self.transport = BotTransport(application.bot)
        self.lookup_service = LookupService(
            self.db_manager, self.transport, self.tts_service, settings=self.settings
        )
        self.quiz_engine = QuizEngine(self.db_manager, self.transport, settings=self.settings)
        self.command_handlers = CommandHandlers(
            self.db_manager, self.transport, self.quiz_engine, self.settings
        )
        self.message_handlers = MessageHandlers(
            self.db_manager, self.lookup_service, self.quiz_engine, self.settings
        )

    def _is_user_authorized(self, user_id: int) -> bool:
        """Check if user is authorized to use the bot (no list means everyone)"""
        allowed = self.settings.allowed_users_list
        if not allowed:
            return True
        return user_id in allowed

    def _i18n_for(self, user_id: int) -> I18n:
        return load_user_context(self.db_manager, user_id, self.settings.default_language).i18n

    async def _check_authorization(
        self, update: Update, context: ContextTypes.DEFAULT_TYPE
    ) -> bool:
        """Check if user is authorized and tell them if not"""
        user = update.effective_user
        if user is None:
            return False

        if not self._is_user_authorized(user.id):
            logger.warning(f"Unauthorized access attempt from user {user.id}")
            i18n = self._i18n_for(user.id)
            if update.callback_query:
                with contextlib.suppress(TelegramError):
                    await update.callback_query.answer(i18n.t("unauthorized"), show_alert=True)
            elif update.effective_message:
                with contextlib.suppress(TelegramError):
                    await update.effective_message.reply_text(i18n.t("unauthorized"))
            return False

        return True

    def require_authorization(self, func):
        """Decorator to require authorization for handler functions"""

        @wraps(func)
        async def wrapper(update: Update, context: ContextTypes.DEFAULT_TYPE):
            if not await self._check_authorization(update, context):
                return
            return await func(update, context)

        return wrapper

    def build_application(self) -> Application:
        """Create the application and register handlers"""
        application = (
            Application.builder()
            .token(self.settings.telegram_bot_token)
            .read_timeout(30)
            .write_timeout(30)
            .connect_timeout(30)
            .pool_timeout(30)
            .concurrent_updates(True)
            .post_init(self.post_init)
            .build()
        )
        self.application = application
        self._build_components(application)
        self._add_handlers()
        return application

    def _add_handlers(self):
        """Add command and message handlers"""
        app = self.application

        # Runs before the feature handlers and never stops propagation
        app.add_handler(TypeHandler(Update, self.track_interaction), group=-1)

        commands = {
            "start": self.command_handlers.start_command,
            "help": self.command_handlers.help_command,
            "quiz": self.command_handlers.quiz_command,
            "model": self.command_handlers.model_command,
            "language": self.command_handlers.language_command,
        }
        for name, callback in commands.items():
            app.add_handler(CommandHandler(name, self.require_authorization(callback)))

        app.add_handler(
            MessageHandler(
                filters.TEXT & ~filters.COMMAND,
                self.require_authorization(self.message_handlers.handle_message),
            )
        )
        app.add_handler(
            CallbackQueryHandler(
                self.require_authorization(self.message_handlers.handle_callback_query)
            )
        )

        app.add_error_handler(self.error_handler)

    async def post_init(self, application: Application):
        """Finish setup once the bot identity is known"""
        self.interaction_matchers = build_interaction_matchers(
            application.bot.username, application.bot.id
        )
        await self.setup_bot_menu(application)

    async def setup_bot_menu(self, application: Application):
        """Setup bot menu with commands for better UX"""
        commands = [
            BotCommand("quiz", "📝 Start a vocabulary quiz"),
            BotCommand("model", "🤖 Show or switch the AI model"),
            BotCommand("language", "🌐 Switch interface language"),
            BotCommand("help", "❓ Usage guide"),
        ]

        try:
            await application.bot.set_my_commands(commands)
            logger.info("Bot menu commands set successfully")
        except TelegramError as e:
            logger.error(f"Failed to set bot menu commands: {e}")

    async def track_interaction(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Send the usage tips on a user's first interaction of the day"""
        if not self.settings.daily_tips_enabled:
            return
        if not is_user_interaction(update, self.interaction_matchers):
            return

        user = update.effective_user
        if not self._is_user_authorized(user.id):
            return
        if not self.db_manager.record_interaction(user.id):
            return

        chat = update.effective_chat
        if chat is None:
            return
        logger.info(f"First interaction today for user {user.id}, sending tips")
        try:
            await self.transport.send_text(
                chat.id, self._i18n_for(user.id).t("tips"), parse_mode=PARSE_MODE
            )
        except TelegramError as e:
            logger.error(f"Failed to send daily tips to user {user.id}: {e}")

    async def error_handler(self, update: object, context: ContextTypes.DEFAULT_TYPE):
        """Log the error and tell the user something went wrong"""
        logger.error(f"Update {update} caused error {context.error}", exc_info=context.error)

        if not isinstance(update, Update) or update.effective_chat is None:
            return

        user_id = update.effective_user.id if update.effective_user else None
        i18n = self._i18n_for(user_id) if user_id is not None else I18n(self.settings.default_language)
        text = i18n.t("error.generic")
        if self.settings.expose_error_details and context.error is not None:
            text += "\n" + i18n.t("error.details", error=str(context.error))

        try:
            await context.bot.send_message(chat_id=update.effective_chat.id, text=text)
        except TelegramError as e:
            logger.error(f"Failed to report error to chat {update.effective_chat.id}: {e}")

    def stop(self):
        """Ask a running bot to shut down"""
        self.stop_event.set()

    async def start(self):
        """Start the bot and run until stopped"""
        logger.info("Starting Vocabulary Bot...")

        # Initialize database
        self.db_manager.init_database()
        application = self.build_application()

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            with contextlib.suppress(NotImplementedError):
                loop.add_signal_handler(sig, self.stop)

        async with application:
            await application.start()
            if self.settings.telegram_webhook_url:
                url = self.settings.telegram_webhook_url
                await application.updater.start_webhook(
                    listen="0.0.0.0",
                    port=self.settings.telegram_webhook_port,
                    url_path=urlparse(url).path.lstrip("/"),
                    webhook_url=url,
                    secret_token=self.settings.telegram_webhook_secret,
                )
                logger.info(f"Bot started with webhook {url}")
            else:
                await application.updater.start_polling(
                    poll_interval=self.settings.polling_interval,
                    timeout=10,
                    bootstrap_retries=3,
                )
                logger.info("Bot started with polling")

            await self.session_sweeper.start()
            try:
                await self.stop_event.wait()
            finally:
                await self.session_sweeper.stop()
                await application.updater.stop()
                await application.stop()
