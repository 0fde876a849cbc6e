"""
Chat completion gateway over the supported LLM backends
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import aclosing
from dataclasses import dataclass, field
from enum import Enum

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions
from openai import AsyncAzureOpenAI, AsyncOpenAI, OpenAIError

from .config import Settings, get_settings
from .errors import ChatGatewayError, StreamTimeoutError
from .utils import log_execution_time

logger = logging.getLogger(__name__)


class AIBackend(str, Enum):
    """Supported chat completion backends"""

    AZURE = "azure"
    OPENAI = "openai"
    GEMINI = "gemini"


@dataclass
class ChatMessage:
    role: str  # system, user or assistant
    content: str


@dataclass
class ChatParams:
    messages: list[ChatMessage] = field(default_factory=list)
    temperature: float = 0.7


@dataclass
class ChatResponse:
    content: str
    finish_reason: str | None = None


@dataclass
class ChatChunk:
    content: str


# Called once per delta with (chunk, False), then once with (None, True)
StreamCallback = Callable[[ChatChunk | None, bool], Awaitable[None]]


class ChatGateway(ABC):
    """
    Uniform chat interface over one backend

    Without a callback, chat() returns the whole response. With a callback,
    every text delta is passed to it in arrival order, followed by a single
    done call, and chat() returns None.
    """

    backend: AIBackend

    def __init__(self, idle_timeout: float = 30.0, max_duration: float = 180.0):
        self.idle_timeout = idle_timeout
        self.max_duration = max_duration

    @log_execution_time
    async def chat(
        self, params: ChatParams, on_stream_chunk: StreamCallback | None = None
    ) -> ChatResponse | None:
        if on_stream_chunk is None:
            return await self._complete(params)

        await self._stream(params, on_stream_chunk)
        return None

    async def _stream(self, params: ChatParams, on_stream_chunk: StreamCallback) -> None:
        chunks = 0
        try:
            async with asyncio.timeout(self.max_duration):
                async with aclosing(self._iter_deltas(params)) as deltas:
                    iterator = aiter(deltas)
                    while True:
                        try:
                            delta = await asyncio.wait_for(anext(iterator), self.idle_timeout)
                        except StopAsyncIteration:
                            break
                        if delta:
                            chunks += 1
                            await on_stream_chunk(ChatChunk(content=delta), False)
        except TimeoutError as e:
            logger.warning(
                f"{self.backend.value} stream timed out after {chunks} chunks "
                f"(idle {self.idle_timeout}s, max {self.max_duration}s)"
            )
            raise StreamTimeoutError(f"{self.backend.value} stream timed out") from e

        logger.debug(f"{self.backend.value} stream finished after {chunks} chunks")
        await on_stream_chunk(None, True)

    @abstractmethod
    async def _complete(self, params: ChatParams) -> ChatResponse:
        """Run a non-streaming completion"""

    @abstractmethod
    def _iter_deltas(self, params: ChatParams) -> AsyncIterator[str]:
        """Yield text deltas of a streaming completion"""


class OpenAIChatGateway(ChatGateway):
    """OpenAI-compatible and Azure OpenAI chat completions"""

    def __init__(
        self,
        client: AsyncOpenAI,
        model: str,
        backend: AIBackend = AIBackend.OPENAI,
        idle_timeout: float = 30.0,
        max_duration: float = 180.0,
    ):
        super().__init__(idle_timeout, max_duration)
        self.client = client
        self.model = model
        self.backend = backend

    def _messages(self, params: ChatParams) -> list[dict]:
        return [{"role": m.role, "content": m.content} for m in params.messages]

    async def _complete(self, params: ChatParams) -> ChatResponse:
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=self._messages(params),
                temperature=params.temperature,
            )
        except OpenAIError as e:
            raise ChatGatewayError(f"{self.backend.value} request failed: {e}") from e

        if not response.choices:
            logger.error(f"No response choices from {self.backend.value}")
            raise ChatGatewayError(f"{self.backend.value} returned no choices")

        choice = response.choices[0]
        content = choice.message.content
        if not content:
            logger.error(f"Empty response content, finish reason: {choice.finish_reason}")
            raise ChatGatewayError(f"{self.backend.value} returned an empty response")

        return ChatResponse(content=content, finish_reason=choice.finish_reason)

    async def _iter_deltas(self, params: ChatParams) -> AsyncIterator[str]:
        try:
            stream = await self.client.chat.completions.create(
                model=self.model,
                messages=self._messages(params),
                temperature=params.temperature,
                stream=True,
            )
            async for chunk in stream:
                if not chunk.choices:
                    continue
                content = chunk.choices[0].delta.content
                if content:
                    yield content
        except OpenAIError as e:
            raise ChatGatewayError(f"{self.backend.value} stream failed: {e}") from e


class GeminiChatGateway(ChatGateway):
    """Google Gemini chat completions"""

    backend = AIBackend.GEMINI

    def __init__(
        self,
        api_key: str,
        model: str,
        timeout: float = 60,
        idle_timeout: float = 30.0,
        max_duration: float = 180.0,
    ):
        super().__init__(idle_timeout, max_duration)
        genai.configure(api_key=api_key)
        self.model_name = model
        self.timeout = timeout

    def _build(self, params: ChatParams) -> tuple["genai.GenerativeModel", list[dict]]:
        system = "\n\n".join(m.content for m in params.messages if m.role == "system")
        contents = [
            {"role": "model" if m.role == "assistant" else "user", "parts": [m.content]}
            for m in params.messages
            if m.role != "system"
        ]
        model = genai.GenerativeModel(
            model_name=self.model_name, system_instruction=system or None
        )
        return model, contents

    async def _complete(self, params: ChatParams) -> ChatResponse:
        model, contents = self._build(params)
        try:
            response = await model.generate_content_async(
                contents,
                generation_config={"temperature": params.temperature},
                request_options={"timeout": self.timeout},
            )
            text = response.text
        except google_exceptions.GoogleAPIError as e:
            raise ChatGatewayError(f"gemini request failed: {e}") from e
        except ValueError as e:
            # .text raises when the candidate was blocked or has no parts
            raise ChatGatewayError(f"gemini returned no text: {e}") from e

        if not text:
            raise ChatGatewayError("gemini returned an empty response")
        return ChatResponse(content=text)

    async def _iter_deltas(self, params: ChatParams) -> AsyncIterator[str]:
        model, contents = self._build(params)
        try:
            response = await model.generate_content_async(
                contents,
                generation_config={"temperature": params.temperature},
                request_options={"timeout": self.timeout},
                stream=True,
            )
            async for chunk in response:
                try:
                    text = chunk.text
                except ValueError:
                    logger.debug("Skipping gemini chunk without text")
                    continue
                if text:
                    yield text
        except google_exceptions.GoogleAPIError as e:
            raise ChatGatewayError(f"gemini stream failed: {e}") from e


class MockChatGateway(ChatGateway):
    """Scripted gateway for testing"""

    backend = AIBackend.OPENAI

    def __init__(self, responses: list[str] | None = None, chunks: list[str] | None = None):
        super().__init__(idle_timeout=5.0, max_duration=10.0)
        self.responses = list(responses or [])
        self.chunks = list(chunks or [])
        self.calls: list[ChatParams] = []

    async def _complete(self, params: ChatParams) -> ChatResponse:
        self.calls.append(params)
        if not self.responses:
            raise ChatGatewayError("no scripted response left")
        return ChatResponse(content=self.responses.pop(0), finish_reason="stop")

    async def _iter_deltas(self, params: ChatParams) -> AsyncIterator[str]:
        self.calls.append(params)
        for chunk in self.chunks:
            yield chunk


def available_backends(settings: Settings | None = None) -> list[AIBackend]:
    """Backends that have credentials configured"""
    settings = settings or get_settings()
    backends = []
    if settings.azure_api_key and settings.azure_endpoint:
        backends.append(AIBackend.AZURE)
    if settings.openai_api_key:
        backends.append(AIBackend.OPENAI)
    if settings.gemini_api_key:
        backends.append(AIBackend.GEMINI)
    return backends


def resolve_backend(
    preferred: str | None = None, settings: Settings | None = None
) -> AIBackend | None:
    """
    Choose the backend for a request

    The user's preference wins when it is configured, then the configured
    default, then whichever backend is available.
    """
    settings = settings or get_settings()
    available = available_backends(settings)
    for candidate in (preferred, settings.ai_backend):
        if candidate and candidate in [b.value for b in available]:
            return AIBackend(candidate)
    return available[0] if available else None


def create_chat_gateway(backend: AIBackend | str, settings: Settings | None = None) -> ChatGateway:
    """Build a gateway for a backend"""
    settings = settings or get_settings()
    backend = AIBackend(backend)
    stream_limits = {
        "idle_timeout": settings.stream_idle_timeout,
        "max_duration": settings.stream_max_duration,
    }

    if backend not in available_backends(settings):
        raise ChatGatewayError(f"backend {backend.value} is not configured")

    if backend == AIBackend.AZURE:
        client = AsyncAzureOpenAI(
            api_key=settings.azure_api_key,
            azure_endpoint=settings.azure_endpoint,
            api_version=settings.azure_api_version,
            timeout=settings.api_timeout,
        )
        return OpenAIChatGateway(client, settings.azure_deployment, AIBackend.AZURE, **stream_limits)

    if backend == AIBackend.OPENAI:
        client = AsyncOpenAI(
            api_key=settings.openai_api_key,
            base_url=settings.openai_base_url,
            timeout=settings.api_timeout,
        )
        return OpenAIChatGateway(client, settings.openai_model, AIBackend.OPENAI, **stream_limits)

    return GeminiChatGateway(
        settings.gemini_api_key, settings.gemini_model, settings.api_timeout, **stream_limits
    )


# Gateway instances per backend
_gateways: dict[AIBackend, ChatGateway] = {}


def get_chat_gateway(preferred: str | None = None) -> ChatGateway:
    """Get the shared gateway for a user's preferred backend"""
    backend = resolve_backend(preferred)
    if backend is None:
        raise ChatGatewayError("no AI backend is configured")
    if backend not in _gateways:
        _gateways[backend] = create_chat_gateway(backend)
    return _gateways[backend]
