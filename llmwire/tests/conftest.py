"""Pytest fixtures and config."""

import pytest

from llmwire.tests.fakes import CLAUDE_STREAM_DOCUMENTS


@pytest.fixture(autouse=True)
def env_cleanup(monkeypatch):
    """Keep the developer's provider environment out of tests."""
    for name in (
        "OLLAMA_HOST",
        "OLLAMA_BASE_URL",
        "AWS_PROFILE",
        "AWS_REGION",
        "AWS_DEFAULT_REGION",
        "LOG_LEVEL",
        "LLMWIRE_ENV",
    ):
        monkeypatch.delenv(name, raising=False)
    yield


@pytest.fixture
def claude_stream_documents():
    return list(CLAUDE_STREAM_DOCUMENTS)
