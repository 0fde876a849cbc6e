"""
Predicates deciding whether an update counts as a user interaction

The matcher tuple is built once at startup and handed to whatever needs it
(the daily tips tracker), so there is no module-level registry.
"""

import logging
from collections.abc import Callable, Sequence

from telegram import MessageEntity, Update

from ...utils import QUIZ_CALLBACK_PREFIX

logger = logging.getLogger(__name__)

InteractionMatcher = Callable[[Update], bool]


def mentions_bot(update: Update, bot_username: str | None) -> bool:
    """Message text contains an @mention of this bot"""
    message = update.effective_message
    if not message or not message.text or not bot_username:
        return False
    wanted = f"@{bot_username}".lower()
    mentions = message.parse_entities([MessageEntity.MENTION])
    return any(text.lower() == wanted for text in mentions.values())


def is_command(update: Update) -> bool:
    message = update.effective_message
    return bool(message and message.text and message.text.startswith("/"))


def is_quiz_callback(update: Update) -> bool:
    query = update.callback_query
    return bool(query and query.data and query.data.startswith(f"{QUIZ_CALLBACK_PREFIX}:"))


def replies_to_bot(update: Update, bot_id: int | None = None) -> bool:
    """Message is a reply to one of the bot's own messages"""
    message = update.effective_message
    if not message or not message.reply_to_message:
        return False
    author = message.reply_to_message.from_user
    if author is None:
        return False
    if bot_id is not None:
        return author.id == bot_id
    return author.is_bot


def build_interaction_matchers(
    bot_username: str | None, bot_id: int | None = None
) -> tuple[InteractionMatcher, ...]:
    """Ordered matchers for mentions, commands, quiz buttons and quiz replies"""
    return (
        lambda update: mentions_bot(update, bot_username),
        is_command,
        is_quiz_callback,
        lambda update: replies_to_bot(update, bot_id),
    )


def is_user_interaction(update: Update, matchers: Sequence[InteractionMatcher]) -> bool:
    """True if any matcher accepts the update"""
    if update.effective_user is None or update.effective_user.is_bot:
        return False
    return any(matcher(update) for matcher in matchers)
