"""AWS Bedrock runtime transport (boto3). Raw JSON in, raw JSON out.

boto3 is blocking, so single invocations run through ``asyncio.to_thread`` and
response streams are drained on a worker thread behind a StreamBridge. Profile
and region are passed to the boto3 session explicitly.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Iterator, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from llmwire.config.loader import BedrockSettings
from llmwire.core.errors import (
    ApiError,
    DeserializationError,
    SerializationError,
    TransportError,
    UnexpectedResponseError,
)
from llmwire.core.streaming import StreamBridge

logger = logging.getLogger(__name__)

DEFAULT_PROFILE = "default"
DEFAULT_REGION = "us-west-2"


def _encode_payload(payload: Any) -> bytes:
    try:
        return json.dumps(payload).encode("utf-8")
    except (TypeError, ValueError) as e:
        raise SerializationError(f"request payload is not JSON serializable: {e}") from e


def _client_error(e: ClientError) -> ApiError:
    status = e.response.get("ResponseMetadata", {}).get("HTTPStatusCode") or 0
    err = e.response.get("Error", {})
    return ApiError(status, f"{err.get('Code', '')}: {err.get('Message', str(e))}")


class BedrockClient:
    def __init__(
        self,
        profile_name: Optional[str] = DEFAULT_PROFILE,
        region: str = DEFAULT_REGION,
        *,
        client: Any = None,
    ) -> None:
        self.profile_name = profile_name
        self.region = region
        self._client = client

    @classmethod
    def from_settings(cls, settings: BedrockSettings, *, client: Any = None) -> "BedrockClient":
        return cls(settings.profile_name, settings.region, client=client)

    def _runtime(self) -> Any:
        if self._client is None:
            session = boto3.Session(profile_name=self.profile_name, region_name=self.region)
            self._client = session.client("bedrock-runtime")
        return self._client

    def invoke(self, model_id: str, payload: Any) -> dict[str, Any]:
        """Blocking single invocation."""
        body = _encode_payload(payload)
        try:
            resp = self._runtime().invoke_model(
                modelId=model_id,
                contentType="application/json",
                accept="application/json",
                body=body,
            )
            raw = resp["body"].read()
        except ClientError as e:
            raise _client_error(e) from e
        except BotoCoreError as e:
            raise TransportError(f"invoke_model failed: {e}") from e
        try:
            return json.loads(raw)
        except ValueError as e:
            text = raw.decode("utf-8", errors="replace") if isinstance(raw, bytes) else str(raw)
            raise UnexpectedResponseError(
                f"{model_id} returned a non-JSON body", body=text
            ) from e

    async def generate_raw(self, model_id: str, payload: Any) -> dict[str, Any]:
        return await asyncio.to_thread(self.invoke, model_id, payload)

    def iter_raw_stream(self, model_id: str, payload: Any) -> Iterator[Any]:
        """Blocking iterator of one decoded JSON value per ``chunk`` event."""
        body = _encode_payload(payload)
        try:
            resp = self._runtime().invoke_model_with_response_stream(
                modelId=model_id,
                contentType="application/json",
                accept="application/json",
                body=body,
            )
            for event in resp["body"]:
                chunk = event.get("chunk")
                if chunk is None:
                    logger.debug("ignoring non-chunk stream event", extra={"keys": sorted(event)})
                    continue
                data = chunk.get("bytes")
                if not data:
                    continue
                try:
                    yield json.loads(data)
                except ValueError as e:
                    raise DeserializationError(f"stream chunk is not valid JSON: {e}") from e
        except ClientError as e:
            raise _client_error(e) from e
        except BotoCoreError as e:
            raise TransportError(f"response stream failed: {e}") from e

    async def generate_raw_stream(self, model_id: str, payload: Any) -> StreamBridge[Any]:
        # Fail fast on payloads that can't be sent.
        _encode_payload(payload)
        return StreamBridge.spawn_blocking(
            lambda: self.iter_raw_stream(model_id, payload), name=f"bedrock-{model_id}"
        )
