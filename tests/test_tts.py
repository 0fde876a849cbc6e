"""
Tests for speech synthesis
"""

import asyncio
from unittest.mock import MagicMock, patch

import aiohttp
import pytest
from edge_tts.exceptions import NoAudioReceived

from vocab_bot.errors import TTSError
from vocab_bot.tts import EdgeTTSService


def fake_communicate(chunks=None, error=None):
    async def stream():
        for chunk in chunks or []:
            yield chunk
        if error is not None:
            raise error

    communicate = MagicMock()
    communicate.stream = stream
    return communicate


class TestEdgeTTSService:
    """Test EdgeTTSService class"""

    @pytest.fixture
    def service(self):
        return EdgeTTSService(voice="en-US-AriaNeural", rate="+0%")

    @pytest.mark.asyncio
    async def test_collects_audio_chunks(self, service):
        chunks = [
            {"type": "audio", "data": b"ab"},
            {"type": "WordBoundary", "offset": 0},
            {"type": "audio", "data": b"cd"},
        ]
        with patch("vocab_bot.tts.edge_tts.Communicate", return_value=fake_communicate(chunks)) as cls:
            audio = await service.synthesize("The cat sleeps.")

        assert audio == b"abcd"
        cls.assert_called_once_with("The cat sleeps.", "en-US-AriaNeural", rate="+0%")

    @pytest.mark.asyncio
    async def test_blank_text(self, service):
        with pytest.raises(TTSError):
            await service.synthesize("   ")

    @pytest.mark.asyncio
    async def test_no_audio(self, service):
        with patch("vocab_bot.tts.edge_tts.Communicate", return_value=fake_communicate([])):
            with pytest.raises(TTSError):
                await service.synthesize("cat")

    @pytest.mark.asyncio
    async def test_library_error_is_wrapped(self, service):
        communicate = fake_communicate(error=NoAudioReceived("nothing"))
        with patch("vocab_bot.tts.edge_tts.Communicate", return_value=communicate):
            with pytest.raises(TTSError):
                await service.synthesize("cat")

    @pytest.mark.asyncio
    async def test_network_error_is_wrapped(self, service):
        communicate = fake_communicate([{"type": "audio", "data": b"ab"}], error=OSError("reset"))
        with patch("vocab_bot.tts.edge_tts.Communicate", return_value=communicate):
            with pytest.raises(TTSError):
                await service.synthesize("cat")

    @pytest.mark.asyncio
    async def test_rejected_handshake_is_wrapped(self, service):
        error = aiohttp.WSServerHandshakeError(
            MagicMock(), (), status=403, message="Invalid response status"
        )
        with patch("vocab_bot.tts.edge_tts.Communicate", return_value=fake_communicate(error=error)):
            with pytest.raises(TTSError) as exc_info:
                await service.synthesize("cat")

        assert isinstance(exc_info.value.__cause__, aiohttp.WSServerHandshakeError)

    @pytest.mark.asyncio
    async def test_timeout_is_wrapped(self, service):
        communicate = fake_communicate(error=asyncio.TimeoutError())
        with patch("vocab_bot.tts.edge_tts.Communicate", return_value=communicate):
            with pytest.raises(TTSError):
                await service.synthesize("cat")

    def test_defaults_from_settings(self):
        service = EdgeTTSService()
        assert service.voice == "en-US-AriaNeural"
        assert service.rate == "+0%"
