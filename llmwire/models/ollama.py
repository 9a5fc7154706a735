"""Ollama daemon client: generate, chat and embeddings over HTTP (httpx).

Streaming endpoints answer with newline-delimited JSON; each line is one
fragment and the last one carries ``"done": true``.
"""

from __future__ import annotations

import logging
from contextlib import aclosing
from typing import Any, AsyncIterator, Optional, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from llmwire.config.loader import OllamaSettings
from llmwire.core.errors import ApiError, TransportError, UnexpectedResponseError
from llmwire.core.streaming import StreamBridge, decode_json_lines
from llmwire.schemas.ollama import (
    ChatRequest,
    ChatResponse,
    EmbeddingsRequest,
    EmbeddingsResponse,
    GenerateRequest,
    GenerateResponse,
)

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:11434"
DEFAULT_MODEL = "mistral"

R = TypeVar("R", bound=BaseModel)


class OllamaClient:
    """Client for a local Ollama server. One httpx.AsyncClient per call."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        default_model: str = DEFAULT_MODEL,
        *,
        timeout: Optional[float] = 120.0,
        final_field: Optional[str] = "done",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or DEFAULT_BASE_URL).rstrip("/")
        self.default_model = default_model
        self._timeout = timeout
        self._final_field = final_field
        self._transport = transport

    @classmethod
    def from_settings(
        cls, settings: OllamaSettings, *, transport: httpx.AsyncBaseTransport | None = None
    ) -> "OllamaClient":
        return cls(
            settings.base_url,
            settings.default_model,
            timeout=settings.timeout,
            final_field=settings.final_field,
            transport=transport,
        )

    def _http(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self._timeout, transport=self._transport)

    def _with_model(self, request: R, stream: bool) -> R:
        update: dict[str, Any] = {"stream": stream}
        if not request.model:
            update["model"] = self.default_model
        return request.model_copy(update=update)

    async def _post(self, path: str, payload: dict[str, Any], response_model: type[R]) -> R:
        url = f"{self.base_url}{path}"
        try:
            async with self._http() as client:
                r = await client.post(url, json=payload)
        except httpx.HTTPError as e:
            raise TransportError(f"POST {path} failed: {e}") from e
        if r.is_error:
            raise ApiError(r.status_code, r.text)
        try:
            return response_model.model_validate_json(r.content)
        except ValidationError as e:
            raise UnexpectedResponseError(
                f"unexpected {path} response: {e.error_count()} validation errors",
                status_code=r.status_code,
                body=r.text,
            ) from e

    async def _iter_bytes(self, path: str, payload: dict[str, Any]) -> AsyncIterator[bytes]:
        url = f"{self.base_url}{path}"
        try:
            async with self._http() as client:
                async with client.stream("POST", url, json=payload) as resp:
                    if resp.is_error:
                        body = await resp.aread()
                        raise ApiError(resp.status_code, body.decode("utf-8", errors="replace"))
                    async for chunk in resp.aiter_bytes():
                        yield chunk
        except httpx.HTTPError as e:
            raise TransportError(f"stream {path} failed: {e}") from e

    async def _decode_stream(
        self, path: str, payload: dict[str, Any], fragment_model: type[R]
    ) -> AsyncIterator[R]:
        async with aclosing(self._iter_bytes(path, payload)) as chunks:
            async for fragment in decode_json_lines(
                chunks, fragment_model, final_field=self._final_field
            ):
                yield fragment

    async def generate(self, request: GenerateRequest) -> GenerateResponse:
        """Single (non-streamed) completion."""
        request = self._with_model(request, stream=False)
        return await self._post("/api/generate", request.to_payload(), GenerateResponse)

    async def generate_stream(self, request: GenerateRequest) -> StreamBridge[GenerateResponse]:
        request = self._with_model(request, stream=True)
        logger.debug("ollama generate stream", extra={"model": request.model})
        return StreamBridge.spawn(
            self._decode_stream("/api/generate", request.to_payload(), GenerateResponse),
            name="ollama-generate",
        )

    async def chat(self, request: ChatRequest) -> ChatResponse:
        request = self._with_model(request, stream=False)
        return await self._post("/api/chat", request.to_payload(), ChatResponse)

    async def chat_stream(self, request: ChatRequest) -> StreamBridge[ChatResponse]:
        request = self._with_model(request, stream=True)
        logger.debug("ollama chat stream", extra={"model": request.model})
        return StreamBridge.spawn(
            self._decode_stream("/api/chat", request.to_payload(), ChatResponse),
            name="ollama-chat",
        )

    async def embeddings(self, request: EmbeddingsRequest) -> EmbeddingsResponse:
        if not request.model:
            request = request.model_copy(update={"model": self.default_model})
        return await self._post("/api/embeddings", request.to_payload(), EmbeddingsResponse)
