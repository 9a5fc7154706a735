"""Mistral / Mixtral instruct models on Bedrock."""

from __future__ import annotations

from typing import Any, Iterator

from pydantic import ValidationError

from llmwire.core.errors import DeserializationError, UnexpectedResponseError
from llmwire.core.streaming import StreamBridge
from llmwire.models.bedrock import BedrockClient
from llmwire.schemas.mistral import MistralRequest, MistralResponse


class MistralClient:
    def __init__(self, bedrock: BedrockClient) -> None:
        self._bedrock = bedrock

    async def generate(self, model_id: str, request: MistralRequest) -> MistralResponse:
        data = await self._bedrock.generate_raw(model_id, request.to_payload())
        try:
            return MistralResponse.model_validate(data)
        except ValidationError as e:
            raise UnexpectedResponseError(f"invalid mistral response: {e}", body=str(data)) from e

    def _chunks(self, model_id: str, payload: dict[str, Any]) -> Iterator[MistralResponse]:
        for value in self._bedrock.iter_raw_stream(model_id, payload):
            try:
                yield MistralResponse.model_validate(value)
            except ValidationError as e:
                raise DeserializationError(f"malformed mistral stream chunk: {e}") from e

    async def generate_stream(
        self, model_id: str, request: MistralRequest
    ) -> StreamBridge[MistralResponse]:
        payload = request.to_payload()
        return StreamBridge.spawn_blocking(
            lambda: self._chunks(model_id, payload), name="mistral-generate"
        )
