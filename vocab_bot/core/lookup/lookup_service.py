"""
Vocabulary lookup flow: classify, stream the explanation, speak, remember
"""

import logging
from collections.abc import Callable
from functools import partial

from telegram.error import TelegramError

from ...chat_gateway import ChatGateway, get_chat_gateway
from ...config import get_settings
from ...errors import ChatGatewayError, StreamTimeoutError, TTSError
from ...formatting import analysis_word, render_analysis, render_translation, voice_caption
from ...i18n import I18n
from ...prompts import InputKind, analyze_prompt, classify_prompt, parse_classification, translate_prompt
from ...tts import EdgeTTSService
from ...utils import strip_bot_mention
from ..database.database_manager import DatabaseManager
from ..transport.bot_transport import BotTransport
from .reconciler import StreamReconciler, plan_analysis_speech, plan_translation_speech

logger = logging.getLogger(__name__)


class LookupService:
    """Handles one lookup request end to end"""

    def __init__(
        self,
        db_manager: DatabaseManager,
        transport: BotTransport,
        tts_service: EdgeTTSService,
        gateway_provider: Callable[[str | None], ChatGateway] = get_chat_gateway,
        settings=None,
    ):
        self.db_manager = db_manager
        self.transport = transport
        self.tts_service = tts_service
        self.gateway_provider = gateway_provider
        self.settings = settings or get_settings()

    async def classify(self, gateway: ChatGateway, text: str) -> InputKind:
        """Word, phrase or sentence"""
        response = await gateway.chat(classify_prompt(text))
        kind = parse_classification(response.content if response else None)
        logger.debug(f"Classified '{text[:50]}' as {kind.value}")
        return kind

    async def lookup(
        self,
        chat_id: int,
        user_id: int,
        message_id: int,
        raw_text: str,
        i18n: I18n,
        bot_username: str | None = None,
        preferred_backend: str | None = None,
    ) -> StreamReconciler | None:
        """
        Look up the text of a mention and stream the answer into a reply

        Returns:
            The reconciler that drove the reply, or None if nothing was looked up
        """
        text = strip_bot_mention(raw_text, bot_username)
        if not text:
            await self.transport.send_text(chat_id, i18n.t("lookup.empty"), reply_to=message_id)
            return None

        logger.info(f"Lookup for user {user_id}: '{text[:50]}'")
        placeholder_id = await self.transport.send_text(
            chat_id, i18n.t("lookup.pending"), reply_to=message_id
        )

        async def edit_sink(rendered: str, parse_mode: str | None) -> bool:
            return await self.transport.edit_text(
                chat_id, placeholder_id, rendered, parse_mode=parse_mode
            )

        try:
            gateway = self.gateway_provider(preferred_backend)
            kind = await self.classify(gateway, text)
        except ChatGatewayError as e:
            logger.error(f"Lookup failed before streaming for user {user_id}: {e}")
            await self.transport.edit_text(chat_id, placeholder_id, self._failure_text(i18n, e))
            return None

        if kind == InputKind.SENTENCE:
            params = translate_prompt(text, i18n.locale)
            reconciler = StreamReconciler(
                edit_sink,
                partial(render_translation, i18n=i18n),
                cadence=self.settings.stream_render_cadence,
                speech_planner=plan_translation_speech,
            )
        else:
            params = analyze_prompt(text, i18n.locale)
            reconciler = StreamReconciler(
                edit_sink,
                partial(render_analysis, i18n=i18n),
                cadence=self.settings.stream_render_cadence,
                speech_planner=plan_analysis_speech,
            )

        try:
            await gateway.chat(params, reconciler.on_chunk)
        except StreamTimeoutError as e:
            logger.warning(f"Lookup stream for user {user_id} cut short: {e}")
            await reconciler.finalize()
            await self.transport.send_text(chat_id, i18n.t("lookup.truncated"), reply_to=message_id)
        except ChatGatewayError as e:
            logger.error(f"Lookup stream failed for user {user_id}: {e}")
            await reconciler.finalize()
            if reconciler.has_output:
                await self.transport.send_text(
                    chat_id, self._failure_text(i18n, e), reply_to=message_id
                )
            else:
                await self.transport.edit_text(chat_id, placeholder_id, self._failure_text(i18n, e))
            return reconciler

        if not reconciler.has_output:
            await self.transport.edit_text(chat_id, placeholder_id, i18n.t("lookup.failed"))
            return reconciler

        if kind != InputKind.SENTENCE:
            word = analysis_word(reconciler.last_parsed) or text
            self.db_manager.record_word(user_id, word)

        await self.send_speech(chat_id, message_id, reconciler.speech_items(text))
        return reconciler

    async def send_speech(
        self, chat_id: int, reply_to: int, items: list[tuple[str, str | None]]
    ) -> int:
        """Send one voice clip per item, in order; returns how many were sent"""
        sent = 0
        for sentence, translation in items:
            try:
                audio = await self.tts_service.synthesize(sentence)
                await self.transport.send_voice(
                    chat_id, audio, caption=voice_caption(sentence, translation), reply_to=reply_to
                )
                sent += 1
            except TTSError as e:
                logger.warning(f"Skipping voice clip for '{sentence[:50]}': {e}")
            except TelegramError as e:
                logger.error(f"Failed to send voice clip for '{sentence[:50]}': {e}")
        return sent

    def _failure_text(self, i18n: I18n, error: Exception) -> str:
        text = i18n.t("lookup.failed")
        if self.settings.expose_error_details:
            text += "\n" + i18n.t("error.details", error=str(error))
        return text
