"""
Incremental rendering of a streamed structured document

The reconciler collects text deltas from a streaming completion, tries to
parse the incomplete buffer at a fixed character cadence, and pushes every
new rendering of the parsed document into one live-edited message.
"""

import logging
from collections.abc import Awaitable, Callable
from typing import Any

from ...chat_gateway import ChatChunk
from ...document_parser import DocumentFormat, ParseResult, parse_document, strip_code_fences
from ...formatting import PARSE_MODE, analysis_examples, analysis_word, translation_origin

logger = logging.getLogger(__name__)

# (text, parse_mode) -> whether the message now shows text
EditSink = Callable[[str, str | None], Awaitable[bool]]
Renderer = Callable[[Any], str]
# (parsed document or None, fallback text) -> [(text to speak, caption)]
SpeechPlanner = Callable[[Any, str], list[tuple[str, str | None]]]


def plan_analysis_speech(parsed: Any, fallback_text: str) -> list[tuple[str, str | None]]:
    """Corrected word (or the user's input) first, then every example sentence"""
    word = analysis_word(parsed) or fallback_text
    items: list[tuple[str, str | None]] = [(word, None)]
    items.extend(analysis_examples(parsed))
    return items


def plan_translation_speech(parsed: Any, fallback_text: str) -> list[tuple[str, str | None]]:
    """The corrected sentence, or the user's input"""
    return [(translation_origin(parsed) or fallback_text, None)]


class StreamReconciler:
    """Buffers stream deltas and keeps a message in sync with the parsed buffer"""

    def __init__(
        self,
        edit_sink: EditSink,
        renderer: Renderer,
        fmt: DocumentFormat = DocumentFormat.TOML,
        cadence: int = 50,
        speech_planner: SpeechPlanner = plan_analysis_speech,
    ):
        if cadence <= 0:
            raise ValueError("cadence must be positive")
        self.edit_sink = edit_sink
        self.renderer = renderer
        self.fmt = fmt
        self.cadence = cadence
        self.speech_planner = speech_planner

        self.buffer = ""
        self.done = False
        self.last_parsed: Any = None
        self.last_rendered: str | None = None
        self.render_attempts = 0
        self.edits = 0
        self.showed_raw = False

    def should_render(self, done: bool) -> bool:
        """Render at done, or whenever the buffer length hits a cadence multiple"""
        if done:
            return True
        return len(self.buffer) > 0 and len(self.buffer) % self.cadence == 0

    async def on_chunk(self, chunk: ChatChunk | None, done: bool) -> None:
        """Stream callback for ChatGateway.chat"""
        if self.done:
            logger.warning("Ignoring stream chunk received after done")
            return

        if chunk is not None and chunk.content:
            self.buffer += chunk.content

        if done:
            await self.finalize()
        elif self.should_render(done):
            await self.render()

    async def feed(self, text: str) -> None:
        """Append text as if it arrived as one stream delta"""
        await self.on_chunk(ChatChunk(content=text), False)

    def parse(self) -> ParseResult:
        return parse_document(self.buffer, self.fmt)

    async def render(self) -> bool:
        """
        Try to parse the buffer and push its rendering

        Returns:
            True if the message shows the rendering of the current buffer
        """
        self.render_attempts += 1
        result = self.parse()
        if not result.ok:
            return False

        self.last_parsed = result.value
        text = self.renderer(result.value)
        if not text or not text.strip():
            logger.debug("Parsed document has nothing to show yet")
            return False

        return await self._push(text, PARSE_MODE)

    async def _push(self, text: str, parse_mode: str | None) -> bool:
        if text == self.last_rendered:
            return True

        if not await self.edit_sink(text, parse_mode):
            return False

        self.last_rendered = text
        self.edits += 1
        return True

    async def finalize(self) -> None:
        """
        Final render once the stream is over (or was cut short)

        If the buffer never produced a rendering, the raw text is shown
        instead so the user is not left with the placeholder.
        """
        if self.done:
            return
        self.done = True

        if not self.buffer.strip():
            logger.warning("Stream finished without any content")
            return

        await self.render()

        if self.last_rendered is None:
            logger.warning(
                f"Stream of {len(self.buffer)} chars never parsed, showing raw text"
            )
            raw = strip_code_fences(self.buffer).strip() or self.buffer
            self.showed_raw = await self._push(raw, None)

    @property
    def has_output(self) -> bool:
        return self.last_rendered is not None

    def speech_items(self, fallback_text: str) -> list[tuple[str, str | None]]:
        """What to synthesize once the stream is done"""
        return self.speech_planner(self.last_parsed, fallback_text)
