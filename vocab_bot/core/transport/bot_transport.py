"""
Thin wrapper around the Telegram Bot API calls the bot makes
"""

import logging

from telegram import Bot, ReplyParameters
from telegram.error import BadRequest, TelegramError

from ...utils import TELEGRAM_MESSAGE_LIMIT, truncate_text

logger = logging.getLogger(__name__)


def _is_not_modified(error: TelegramError) -> bool:
    return "message is not modified" in str(error).lower()


def _is_parse_error(error: TelegramError) -> bool:
    return "can't parse entities" in str(error).lower()


class BotTransport:
    """Send, edit, voice and callback-answer operations on one bot"""

    def __init__(self, bot: Bot):
        self.bot = bot

    @staticmethod
    def _reply_parameters(reply_to: int | None) -> ReplyParameters | None:
        if reply_to is None:
            return None
        return ReplyParameters(message_id=reply_to, allow_sending_without_reply=True)

    async def send_text(
        self,
        chat_id: int,
        text: str,
        reply_to: int | None = None,
        parse_mode: str | None = None,
        reply_markup=None,
    ) -> int:
        """
        Send a message and return its id

        A Markdown parse failure is retried once as plain text; any other
        TelegramError propagates to the caller.
        """
        text = truncate_text(text, TELEGRAM_MESSAGE_LIMIT)
        try:
            message = await self.bot.send_message(
                chat_id=chat_id,
                text=text,
                parse_mode=parse_mode,
                reply_markup=reply_markup,
                reply_parameters=self._reply_parameters(reply_to),
            )
        except BadRequest as e:
            if not parse_mode or not _is_parse_error(e):
                raise
            logger.warning(f"Send with {parse_mode} failed ({e}), retrying as plain text")
            message = await self.bot.send_message(
                chat_id=chat_id,
                text=text,
                reply_markup=reply_markup,
                reply_parameters=self._reply_parameters(reply_to),
            )

        logger.debug(f"Sent message {message.message_id} to chat {chat_id}")
        return message.message_id

    async def edit_text(
        self,
        chat_id: int,
        message_id: int,
        text: str,
        parse_mode: str | None = None,
        reply_markup=None,
    ) -> bool:
        """
        Safely edit a message

        "Message is not modified" counts as success. A Markdown parse
        failure is retried as plain text. Other errors are logged and
        reported as False.
        """
        text = truncate_text(text, TELEGRAM_MESSAGE_LIMIT)
        try:
            await self.bot.edit_message_text(
                text=text,
                chat_id=chat_id,
                message_id=message_id,
                parse_mode=parse_mode,
                reply_markup=reply_markup,
            )
            return True
        except BadRequest as e:
            if _is_not_modified(e):
                logger.debug(f"Message {message_id} content is identical, skipping edit")
                return True
            if not parse_mode or not _is_parse_error(e):
                logger.error(f"Message edit failed for {message_id}: {e}")
                return False
            logger.warning(f"Edit with {parse_mode} failed ({e}), retrying as plain text")
        except TelegramError as e:
            logger.error(f"Message edit failed for {message_id}: {e}")
            return False

        try:
            await self.bot.edit_message_text(
                text=text,
                chat_id=chat_id,
                message_id=message_id,
                reply_markup=reply_markup,
            )
            return True
        except TelegramError as e:
            if _is_not_modified(e):
                return True
            logger.error(f"Plain text edit also failed for {message_id}: {e}")
            return False

    async def send_voice(
        self,
        chat_id: int,
        audio: bytes,
        caption: str | None = None,
        reply_to: int | None = None,
    ) -> int:
        """Send an audio clip as a voice message"""
        message = await self.bot.send_voice(
            chat_id=chat_id,
            voice=audio,
            caption=truncate_text(caption, 1024) if caption else None,
            reply_parameters=self._reply_parameters(reply_to),
        )
        return message.message_id

    async def answer_callback(
        self, callback_query_id: str, text: str | None = None, show_alert: bool = False
    ) -> bool:
        """Answer a callback query; failures are logged, not raised"""
        try:
            return await self.bot.answer_callback_query(
                callback_query_id=callback_query_id, text=text, show_alert=show_alert
            )
        except TelegramError as e:
            logger.error(f"Error answering callback query {callback_query_id}: {e}")
            return False
