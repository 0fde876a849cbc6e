"""
Tests for interaction matching
"""

from datetime import datetime, timezone

from telegram import CallbackQuery, Chat, Message, MessageEntity, Update, User

from vocab_bot.core.handlers.interaction_matchers import (
    build_interaction_matchers,
    is_command,
    is_quiz_callback,
    is_user_interaction,
    mentions_bot,
    replies_to_bot,
)

BOT_ID = 999
BOT = User(id=BOT_ID, is_bot=True, first_name="Vocab", username="VocabBot")
USER = User(id=321, is_bot=False, first_name="Test")
GROUP = Chat(id=-100, type=Chat.GROUP)


def message(text, entities=None, reply_to=None, from_user=USER):
    return Message(
        message_id=1,
        date=datetime.now(timezone.utc),
        chat=GROUP,
        from_user=from_user,
        text=text,
        entities=entities,
        reply_to_message=reply_to,
    )


def mention_update(text="@VocabBot cat", username_length=9):
    entity = MessageEntity(type=MessageEntity.MENTION, offset=0, length=username_length)
    return Update(update_id=1, message=message(text, entities=[entity]))


def callback_update(data):
    query = CallbackQuery(id="1", from_user=USER, chat_instance="x", data=data)
    return Update(update_id=1, callback_query=query)


class TestMatchers:
    """Test individual predicates"""

    def test_mentions_bot(self):
        assert mentions_bot(mention_update(), "VocabBot")
        assert mentions_bot(mention_update("@vocabbot cat"), "VocabBot")
        assert not mentions_bot(mention_update("@OtherBot cat"), "VocabBot")
        assert not mentions_bot(mention_update(), None)

    def test_plain_text_is_not_a_mention(self):
        update = Update(update_id=1, message=message("VocabBot cat"))
        assert not mentions_bot(update, "VocabBot")

    def test_is_command(self):
        assert is_command(Update(update_id=1, message=message("/quiz")))
        assert not is_command(Update(update_id=1, message=message("quiz")))

    def test_is_quiz_callback(self):
        assert is_quiz_callback(callback_update("quiz:0:1"))
        assert not is_quiz_callback(callback_update("other"))

    def test_replies_to_bot(self):
        bot_message = message("Question 1/5", from_user=BOT)
        update = Update(update_id=1, message=message("answer", reply_to=bot_message))
        assert replies_to_bot(update, BOT_ID)
        assert replies_to_bot(update)
        assert not replies_to_bot(update, 12345)

    def test_reply_to_user_is_not_a_bot_reply(self):
        user_message = message("hello")
        update = Update(update_id=1, message=message("answer", reply_to=user_message))
        assert not replies_to_bot(update, BOT_ID)


class TestIsUserInteraction:
    """Test the combined check"""

    def test_matching_updates(self):
        matchers = build_interaction_matchers("VocabBot", BOT_ID)
        assert is_user_interaction(mention_update(), matchers)
        assert is_user_interaction(Update(update_id=1, message=message("/help")), matchers)
        assert is_user_interaction(callback_update("quiz:1:2"), matchers)

    def test_ordinary_chatter_is_ignored(self):
        matchers = build_interaction_matchers("VocabBot", BOT_ID)
        assert not is_user_interaction(Update(update_id=1, message=message("lunch?")), matchers)

    def test_bots_are_ignored(self):
        matchers = build_interaction_matchers("VocabBot", BOT_ID)
        update = Update(update_id=1, message=message("/help", from_user=BOT))
        assert not is_user_interaction(update, matchers)
