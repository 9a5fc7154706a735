"""Tests for ModelGateway: provider switch and text reduction."""

import json

import pytest

from llmwire.config import Config
from llmwire.models.bedrock import BedrockClient
from llmwire.models.gateway import ModelGateway
from llmwire.models.ollama import OllamaClient
from llmwire.tests.fakes import (
    FakeBedrockRuntime,
    chunk_event,
    json_transport,
    ndjson,
    streaming_transport,
)


def _gen(text, done=False):
    return {"model": "mistral", "created_at": "2024-03-01T10:00:00Z", "response": text, "done": done}


def test_unknown_provider():
    with pytest.raises(ValueError, match="Unknown provider"):
        ModelGateway("openai")


def test_provider_normalized():
    assert ModelGateway(" Claude ").provider == "claude"


@pytest.mark.asyncio
async def test_ollama_generate():
    gateway = ModelGateway(
        "ollama", ollama=OllamaClient(transport=json_transport(_gen("Paris", done=True)))
    )
    assert await gateway.generate("Capital?") == "Paris"


@pytest.mark.asyncio
async def test_ollama_stream():
    body = ndjson(_gen("Par"), _gen("is"), _gen("", done=True))
    gateway = ModelGateway("ollama", ollama=OllamaClient(transport=streaming_transport([body])))
    parts = [p async for p in await gateway.generate("Capital?", stream=True)]
    assert "".join(parts) == "Paris"


@pytest.mark.asyncio
async def test_claude_stream(claude_stream_documents):
    runtime = FakeBedrockRuntime(stream_events=[chunk_event(d) for d in claude_stream_documents])
    gateway = ModelGateway("claude", bedrock=BedrockClient(client=runtime))

    parts = [p async for p in await gateway.generate("Capital of France?", stream=True)]

    assert "".join(parts) == "The capital of France is Paris."
    assert len(parts) == 7


@pytest.mark.asyncio
async def test_claude_generate_with_system_and_model():
    runtime = FakeBedrockRuntime(
        response={
            "id": "msg_1",
            "model": "claude-3-sonnet",
            "type": "message",
            "role": "assistant",
            "content": [{"type": "text", "text": "Paris."}],
            "stop_reason": "end_turn",
            "usage": {"input_tokens": 5, "output_tokens": 2},
        }
    )
    gateway = ModelGateway(
        "claude", model_name="anthropic.claude-3-sonnet-20240229-v1:0", bedrock=BedrockClient(client=runtime)
    )

    assert await gateway.generate("Capital?", system="Be brief.") == "Paris."
    _, kwargs = runtime.calls[0]
    assert kwargs["modelId"] == "anthropic.claude-3-sonnet-20240229-v1:0"
    assert json.loads(kwargs["body"])["system"] == "Be brief."


@pytest.mark.asyncio
async def test_mistral_generate_wraps_prompt():
    runtime = FakeBedrockRuntime(response={"outputs": [{"text": " Paris.", "stop_reason": "stop"}]})
    gateway = ModelGateway("mistral", bedrock=BedrockClient(client=runtime))

    assert await gateway.generate("Capital?") == " Paris."
    _, kwargs = runtime.calls[0]
    assert kwargs["modelId"] == "mistral.mixtral-8x7b-instruct-v0:1"
    assert json.loads(kwargs["body"])["prompt"] == "<s>[INST] Capital? [/INST]"


@pytest.mark.asyncio
async def test_mistral_stream():
    events = [
        chunk_event({"outputs": [{"text": "Pa"}]}),
        chunk_event({"outputs": [{"text": "ris", "stop_reason": "stop"}]}),
    ]
    gateway = ModelGateway("mistral", bedrock=BedrockClient(client=FakeBedrockRuntime(stream_events=events)))
    parts = [p async for p in await gateway.generate("Capital?", stream=True)]
    assert parts == ["Pa", "ris"]


def test_from_config_picks_model_per_provider():
    config = Config(ollama={"default_model": "llama3"}, bedrock={"mistral_model_id": "mistral.mistral-large-2402-v1:0"})
    assert ModelGateway.from_config(config, "ollama")._model_name == "llama3"
    assert ModelGateway.from_config(config, "mistral")._model_name == "mistral.mistral-large-2402-v1:0"
    assert ModelGateway.from_config(config, "claude")._model_name == "anthropic.claude-3-haiku-20240307-v1:0"
