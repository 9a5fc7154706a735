"""Known Bedrock model identifiers."""

from __future__ import annotations

from enum import Enum


class ModelName(str, Enum):
    AMAZON_TITAN_TEXT_EXPRESS = "amazon.titan-text-express-v1"
    AMAZON_TITAN_TEXT_LITE = "amazon.titan-text-lite-v1"
    AMAZON_TITAN_EMBED_TEXT = "amazon.titan-embed-text-v1"
    AMAZON_TITAN_EMBED_IMAGE = "amazon.titan-embed-image-v1"
    AMAZON_TITAN_IMAGE_GENERATOR = "amazon.titan-image-generator-v1"
    ANTHROPIC_CLAUDE_V2 = "anthropic.claude-v2"
    ANTHROPIC_CLAUDE_3_SONNET = "anthropic.claude-3-sonnet-20240229-v1:0"
    ANTHROPIC_CLAUDE_3_HAIKU = "anthropic.claude-3-haiku-20240307-v1:0"
    ANTHROPIC_CLAUDE_INSTANT = "anthropic.claude-instant-v1"
    AI21_JURASSIC_MID = "ai21.j2-mid-v1"
    AI21_JURASSIC_ULTRA = "ai21.j2-ultra-v1"
    COHERE_COMMAND_TEXT = "cohere.command-text-v14"
    COHERE_COMMAND_LIGHT_TEXT = "cohere.command-light-text-v14"
    COHERE_EMBED_ENGLISH = "cohere.embed-english-v3"
    COHERE_EMBED_MULTILINGUAL = "cohere.embed-multilingual-v3"
    META_LLAMA2_CHAT_13B = "meta.llama2-13b-chat-v1"
    META_LLAMA2_CHAT_70B = "meta.llama2-70b-chat-v1"
    MISTRAL_7B_INSTRUCT = "mistral.mistral-7b-instruct-v0:2"
    MIXTRAL_8X7B_INSTRUCT = "mistral.mixtral-8x7b-instruct-v0:1"
    MISTRAL_LARGE = "mistral.mistral-large-2402-v1:0"
    STABILITY_SDXL_V0 = "stability.stable-diffusion-xl-v0"
    STABILITY_SDXL_V1 = "stability.stable-diffusion-xl-v1"


def model_id(name: ModelName | str) -> str:
    """Bedrock modelId for an enum member or its name (``"MISTRAL_LARGE"``)."""
    if isinstance(name, ModelName):
        return name.value
    try:
        return ModelName[name].value
    except KeyError:
        raise ValueError(f"Unknown model name: {name}") from None
