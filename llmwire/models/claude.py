"""Claude on Bedrock: messages API (chat, streamed chat) and legacy text completion."""

from __future__ import annotations

import logging
from typing import Any, Iterator

from pydantic import BaseModel, ValidationError

from llmwire.core.envelope import EnvelopeDecoder
from llmwire.core.errors import UnexpectedResponseError
from llmwire.core.streaming import StreamBridge
from llmwire.models.bedrock import BedrockClient
from llmwire.schemas.claude import (
    STREAM_EVENT_TYPES,
    ChatOptions,
    ClaudeStreamEvent,
    CompletionOptions,
    CompletionRequest,
    CompletionResponse,
    ConversationRequest,
    ConversationResponse,
)

logger = logging.getLogger(__name__)

stream_decoder: EnvelopeDecoder[Any] = EnvelopeDecoder(STREAM_EVENT_TYPES)


def _parse(model: type[BaseModel], data: Any, what: str) -> Any:
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise UnexpectedResponseError(f"invalid {what} response: {e}", body=str(data)) from e


class ClaudeClient:
    def __init__(self, bedrock: BedrockClient) -> None:
        self._bedrock = bedrock

    @classmethod
    def create(cls, profile_name: str = "default", region: str = "us-west-2") -> "ClaudeClient":
        return cls(BedrockClient(profile_name, region))

    async def complete(
        self, prompt: str, options: CompletionOptions = CompletionOptions()
    ) -> CompletionResponse:
        payload = CompletionRequest.from_options(prompt, options).to_payload()
        data = await self._bedrock.generate_raw(options.model_id, payload)
        return _parse(CompletionResponse, data, "completion")

    async def chat(
        self, request: ConversationRequest, options: ChatOptions = ChatOptions()
    ) -> ConversationResponse:
        data = await self._bedrock.generate_raw(options.model_id, request.to_payload(options))
        return _parse(ConversationResponse, data, "chat")

    def _events(self, model_id: str, payload: dict[str, Any]) -> Iterator[ClaudeStreamEvent]:
        for value in self._bedrock.iter_raw_stream(model_id, payload):
            yield stream_decoder.decode(value)

    async def chat_stream(
        self, request: ConversationRequest, options: ChatOptions = ChatOptions()
    ) -> StreamBridge[ClaudeStreamEvent]:
        """Typed stream events in arrival order. An undecodable event ends the stream with DeserializationError."""
        payload = request.to_payload(options)
        logger.debug("claude chat stream", extra={"model_id": options.model_id})
        return StreamBridge.spawn_blocking(
            lambda: self._events(options.model_id, payload), name="claude-chat"
        )
