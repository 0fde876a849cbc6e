"""
Exception hierarchy for the Vocabulary Bot
"""


class VocabBotError(Exception):
    """Base class for all bot errors"""


class ChatGatewayError(VocabBotError):
    """Chat completion backend failed or returned nothing usable"""


class StreamTimeoutError(ChatGatewayError):
    """Streamed completion stalled or ran past its deadline"""


class TTSError(VocabBotError):
    """Speech synthesis produced no audio"""


class NotEnoughWordsError(VocabBotError):
    """User vocabulary is too small to build a quiz"""

    def __init__(self, word_count: int, required: int):
        super().__init__(f"need at least {required} words, have {word_count}")
        self.word_count = word_count
        self.required = required


class QuizGenerationError(VocabBotError):
    """No valid quiz question could be generated"""
