"""llmwire: one client surface over Ollama and AWS Bedrock (Claude, Mistral).

Streaming calls return a StreamBridge: iterate it with ``async for`` to get typed
fragments in arrival order; a transport or decode failure is raised from the loop.
"""

from llmwire.core.errors import (
    ApiError,
    DeserializationError,
    LLMError,
    SerializationError,
    TransportError,
    UnexpectedResponseError,
)
from llmwire.core.streaming import StreamBridge
from llmwire.models.bedrock import BedrockClient
from llmwire.models.claude import ClaudeClient
from llmwire.models.gateway import ModelGateway
from llmwire.models.mistral import MistralClient
from llmwire.models.ollama import OllamaClient

__all__ = [
    "ApiError",
    "BedrockClient",
    "ClaudeClient",
    "DeserializationError",
    "LLMError",
    "MistralClient",
    "ModelGateway",
    "OllamaClient",
    "SerializationError",
    "StreamBridge",
    "TransportError",
    "UnexpectedResponseError",
]
