"""Model Gateway: single entrypoint generate(prompt, stream) over every provider.

Providers return typed fragments; the gateway reduces them to plain text so
callers can switch provider without touching their consumption loop.
"""

from __future__ import annotations

import logging
from typing import AsyncIterator, Optional

from llmwire.config.loader import Config
from llmwire.models.bedrock import BedrockClient
from llmwire.models.claude import ClaudeClient
from llmwire.models.mistral import MistralClient
from llmwire.models.model_info import ModelName
from llmwire.models.ollama import OllamaClient
from llmwire.schemas.claude import ChatOptions, ContentBlockDelta, ConversationRequest, Message
from llmwire.schemas.mistral import MistralRequest, format_instruct_prompt
from llmwire.schemas.ollama import GenerateRequest

logger = logging.getLogger(__name__)

PROVIDERS = ("ollama", "claude", "mistral")


class ModelGateway:
    """Unified gateway over Ollama (local) and Claude/Mistral (Bedrock)."""

    def __init__(
        self,
        provider: str = "ollama",
        *,
        model_name: Optional[str] = None,
        ollama: Optional[OllamaClient] = None,
        bedrock: Optional[BedrockClient] = None,
    ) -> None:
        provider = provider.lower().strip()
        if provider not in PROVIDERS:
            raise ValueError(f"Unknown provider: {provider}")
        self._provider = provider
        self._model_name = model_name
        self._ollama = ollama or OllamaClient()
        bedrock = bedrock or BedrockClient()
        self._claude = ClaudeClient(bedrock)
        self._mistral = MistralClient(bedrock)

    @classmethod
    def from_config(cls, config: Config, provider: str = "ollama") -> "ModelGateway":
        model_name = {
            "ollama": config.ollama.default_model,
            "claude": config.bedrock.claude_model_id,
            "mistral": config.bedrock.mistral_model_id,
        }.get(provider.lower().strip())
        return cls(
            provider,
            model_name=model_name,
            ollama=OllamaClient.from_settings(config.ollama),
            bedrock=BedrockClient.from_settings(config.bedrock),
        )

    @property
    def provider(self) -> str:
        return self._provider

    async def generate(
        self,
        prompt: str,
        *,
        stream: bool = False,
        system: Optional[str] = None,
    ) -> str | AsyncIterator[str]:
        """Completion text, or an async iterator of text deltas when stream=True."""
        logger.debug("gateway generate", extra={"provider": self._provider, "stream": stream})
        if self._provider == "ollama":
            request = GenerateRequest(model=self._model_name or "", prompt=prompt, system=system)
            if stream:
                fragments = await self._ollama.generate_stream(request)
                return (f.response async for f in fragments)
            return (await self._ollama.generate(request)).response
        if self._provider == "claude":
            request = ConversationRequest(system=system, messages=[Message.user(prompt)])
            options = ChatOptions(model_id=self._model_name) if self._model_name else ChatOptions()
            if stream:
                events = await self._claude.chat_stream(request, options)
                return (e.delta_text async for e in events if isinstance(e, ContentBlockDelta))
            return (await self._claude.chat(request, options)).text
        text = f"{system}\n\n{prompt}" if system else prompt
        request = MistralRequest.with_default_options(format_instruct_prompt(text))
        model_id = self._model_name or ModelName.MIXTRAL_8X7B_INSTRUCT.value
        if stream:
            chunks = await self._mistral.generate_stream(model_id, request)
            return (c.text async for c in chunks)
        return (await self._mistral.generate(model_id, request)).text
