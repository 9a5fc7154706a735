"""Request and response records for the Ollama HTTP API. All records are frozen pydantic models."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class _Record(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")


class Options(_Record):
    """Runtime model options (``options`` object of generate/chat/embeddings)."""

    num_keep: Optional[int] = None
    seed: Optional[int] = None
    num_predict: Optional[int] = None
    top_k: Optional[int] = None
    top_p: Optional[float] = None
    tfs_z: Optional[float] = None
    typical_p: Optional[float] = None
    repeat_last_n: Optional[int] = None
    temperature: Optional[float] = None
    repeat_penalty: Optional[float] = None
    presence_penalty: Optional[float] = None
    frequency_penalty: Optional[float] = None
    mirostat: Optional[int] = None
    mirostat_tau: Optional[float] = None
    mirostat_eta: Optional[float] = None
    penalize_newline: Optional[bool] = None
    stop: Optional[list[str]] = None
    numa: Optional[bool] = None
    num_ctx: Optional[int] = None
    num_batch: Optional[int] = None
    num_gqa: Optional[int] = None
    num_gpu: Optional[int] = None
    main_gpu: Optional[int] = None
    low_vram: Optional[bool] = None
    f16_kv: Optional[bool] = None
    vocab_only: Optional[bool] = None
    use_mmap: Optional[bool] = None
    use_mlock: Optional[bool] = None
    rope_frequency_base: Optional[float] = None
    rope_frequency_scale: Optional[float] = None
    num_thread: Optional[int] = None

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


def merge_options(
    options: Optional[dict[str, Any]], overrides: Optional[dict[str, Any]]
) -> dict[str, Any]:
    """Merge a raw options dict with typed overrides. Override keys win; both missing gives {}."""
    merged = dict(options or {})
    merged.update(overrides or {})
    return merged


class _OptionsMixin(_Record):
    options: Optional[dict[str, Any]] = None
    typed_options: Optional[Options] = None

    def _merged_options(self) -> dict[str, Any]:
        typed = self.typed_options.to_dict() if self.typed_options else None
        return merge_options(self.options, typed)


class GenerateRequest(_OptionsMixin):
    model: str = ""
    prompt: Optional[str] = None
    images: list[str] = Field(default_factory=list, description="Base64 encoded images")
    format: Optional[str] = None
    system: Optional[str] = None
    template: Optional[str] = None
    context: Optional[list[int]] = None
    stream: Optional[bool] = None
    raw: Optional[bool] = None
    keep_alive: Optional[str] = None

    def to_payload(self) -> dict[str, Any]:
        payload = self.model_dump(exclude_none=True, exclude={"options", "typed_options"})
        if not self.images:
            payload.pop("images", None)
        payload["options"] = self._merged_options()
        return payload


class ChatMessage(_Record):
    role: str
    content: str
    images: list[str] = Field(default_factory=list)

    @classmethod
    def user(cls, content: str, images: Optional[list[str]] = None) -> "ChatMessage":
        return cls(role="user", content=content, images=images or [])

    @classmethod
    def assistant(cls, content: str) -> "ChatMessage":
        return cls(role="assistant", content=content)

    @classmethod
    def system(cls, content: str) -> "ChatMessage":
        return cls(role="system", content=content)


class ChatRequest(_OptionsMixin):
    model: str = ""
    messages: list[ChatMessage] = Field(default_factory=list)
    format: Optional[str] = None
    template: Optional[str] = None
    stream: Optional[bool] = None
    keep_alive: Optional[str] = None

    def to_payload(self) -> dict[str, Any]:
        payload = self.model_dump(
            exclude_none=True, exclude={"options", "typed_options", "messages"}
        )
        messages = []
        for m in self.messages:
            item = {"role": m.role, "content": m.content}
            if m.images:
                item["images"] = list(m.images)
            messages.append(item)
        payload["messages"] = messages
        payload["options"] = self._merged_options()
        return payload


class EmbeddingsRequest(_Record):
    model: str = ""
    prompt: str
    options: Optional[dict[str, Any]] = None
    keep_alive: Optional[str] = None

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class _Timings(_Record):
    """Performance counters; nanosecond durations and token counts, passed through as-is."""

    total_duration: Optional[int] = None
    load_duration: Optional[int] = None
    prompt_eval_count: Optional[int] = None
    prompt_eval_duration: Optional[int] = None
    eval_count: Optional[int] = None
    eval_duration: Optional[int] = None


class GenerateResponse(_Timings):
    model: str
    created_at: Optional[datetime] = None
    response: str
    done: bool
    done_reason: Optional[str] = None
    context: Optional[list[int]] = None


class ChatResponse(_Timings):
    model: str
    created_at: Optional[datetime] = None
    message: ChatMessage
    done: bool
    done_reason: Optional[str] = None


class EmbeddingsResponse(_Record):
    embedding: list[float]
