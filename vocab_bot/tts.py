"""
Text-to-speech through Microsoft Edge's online voices
"""

import asyncio
import logging

import aiohttp
import edge_tts
from edge_tts.exceptions import EdgeTTSException

from .config import get_settings
from .errors import TTSError
from .utils import log_execution_time

logger = logging.getLogger(__name__)


class EdgeTTSService:
    """Synthesizes speech with edge-tts and returns the audio bytes"""

    def __init__(self, voice: str | None = None, rate: str | None = None):
        settings = get_settings()
        self.voice = voice or settings.tts_voice
        self.rate = rate or settings.tts_rate

    @log_execution_time
    async def synthesize(self, text: str) -> bytes:
        """
        Synthesize text to MP3 audio

        Raises:
            TTSError: if the text is blank, the service fails or no audio came back
        """
        if not text or not text.strip():
            raise TTSError("nothing to synthesize")

        communicate = edge_tts.Communicate(text, self.voice, rate=self.rate)
        audio = bytearray()
        try:
            async for chunk in communicate.stream():
                if chunk["type"] == "audio":
                    audio.extend(chunk["data"])
        except (EdgeTTSException, aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
            raise TTSError(f"speech synthesis failed: {e}") from e

        if not audio:
            raise TTSError(f"no audio received for '{text[:50]}'")

        logger.debug(f"Synthesized {len(audio)} bytes of audio with {self.voice}")
        return bytes(audio)


# Global service instance
_tts_service = None


def get_tts_service() -> EdgeTTSService:
    """Get global TTS service instance"""
    global _tts_service
    if _tts_service is None:
        _tts_service = EdgeTTSService()
    return _tts_service
