"""Claude (Anthropic on Bedrock) records: chat/completion requests, responses and stream events."""

from __future__ import annotations

from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

CLAUDE_3_HAIKU = "anthropic.claude-3-haiku-20240307-v1:0"
CLAUDE_V2 = "anthropic.claude-v2"
BEDROCK_ANTHROPIC_VERSION = "bedrock-2023-05-31"

Role = Literal["user", "assistant"]


class _Record(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


# ---- requests ----


class ChatOptions(_Record):
    model_id: str = CLAUDE_3_HAIKU
    temperature: Optional[float] = 0.5
    top_p: Optional[float] = 1.0
    top_k: Optional[int] = 50
    max_tokens: Optional[int] = None  # None: the request's max_tokens
    stop_sequences: list[str] = Field(default_factory=list)

    def add_stop_sequence(self, sequence: str) -> "ChatOptions":
        return self.model_copy(update={"stop_sequences": [*self.stop_sequences, sequence]})


class CompletionOptions(_Record):
    model_id: str = CLAUDE_V2
    max_tokens: int = 300
    temperature: Optional[float] = None
    top_p: Optional[float] = None
    top_k: Optional[int] = None
    stop_sequences: list[str] = Field(default_factory=list)


class CompletionRequest(_Record):
    """Legacy text-completion body."""

    prompt: str
    max_tokens_to_sample: int
    temperature: Optional[float] = None
    top_p: Optional[float] = None
    top_k: Optional[int] = None
    stop_sequences: Optional[list[str]] = None

    @classmethod
    def from_options(cls, prompt: str, options: CompletionOptions) -> "CompletionRequest":
        return cls(
            prompt=prompt,
            max_tokens_to_sample=options.max_tokens,
            temperature=options.temperature,
            top_p=options.top_p,
            top_k=options.top_k,
            stop_sequences=options.stop_sequences or None,
        )

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class ImageSource(_Record):
    type: Literal["base64"] = "base64"
    media_type: str
    data: str


class TextBlock(_Record):
    type: Literal["text"] = "text"
    text: str


class ImageBlock(_Record):
    type: Literal["image"] = "image"
    source: ImageSource


ContentBlock = Union[TextBlock, ImageBlock]


class Message(_Record):
    role: Role
    content: Union[str, list[Union[TextBlock, ImageBlock]]]

    @classmethod
    def user(cls, content: Union[str, list[ContentBlock]]) -> "Message":
        return cls(role="user", content=content)

    @classmethod
    def assistant(cls, content: Union[str, list[ContentBlock]]) -> "Message":
        return cls(role="assistant", content=content)

    @classmethod
    def user_with_image(cls, text: str, image_b64: str, media_type: str) -> "Message":
        return cls(
            role="user",
            content=[
                TextBlock(text=text),
                ImageBlock(source=ImageSource(media_type=media_type, data=image_b64)),
            ],
        )


class ConversationRequest(_Record):
    system: Optional[str] = "You are a useful assistant."
    messages: list[Message] = Field(default_factory=list)
    max_tokens: int = 1024
    anthropic_version: str = BEDROCK_ANTHROPIC_VERSION

    def with_message(self, message: Message) -> "ConversationRequest":
        return self.model_copy(update={"messages": [*self.messages, message]})

    def to_payload(self, options: ChatOptions) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "anthropic_version": self.anthropic_version,
            "max_tokens": options.max_tokens if options.max_tokens is not None else self.max_tokens,
            "messages": [m.model_dump(mode="json") for m in self.messages],
        }
        if self.system:
            payload["system"] = self.system
        for key in ("temperature", "top_p", "top_k"):
            value = getattr(options, key)
            if value is not None:
                payload[key] = value
        if options.stop_sequences:
            payload["stop_sequences"] = list(options.stop_sequences)
        return payload


# ---- non-streaming responses ----


class Usage(_Record):
    input_tokens: int
    output_tokens: int


class ConversationResponse(_Record):
    id: str
    model: str
    type: Literal["message"]
    role: Literal["assistant"]
    content: list[TextBlock]
    stop_reason: Literal["end_turn", "max_tokens", "stop_sequence"]
    stop_sequence: Optional[str] = None
    usage: Usage

    @property
    def text(self) -> str:
        return "".join(block.text for block in self.content)


class CompletionResponse(_Record):
    completion: str
    stop_reason: str
    stop: Optional[str] = None

    @property
    def is_complete(self) -> bool:
        """Model stopped on a stop sequence."""
        return self.stop_reason == "stop_sequence"

    @property
    def is_truncated(self) -> bool:
        """Model ran out of max_tokens."""
        return self.stop_reason == "max_tokens"


# ---- stream events ----


class StreamMessage(_Record):
    id: str
    model: str
    role: str
    type: str = "message"
    content: list[Any] = Field(default_factory=list)
    stop_reason: Optional[str] = None
    stop_sequence: Optional[str] = None
    usage: Usage


class TextDelta(_Record):
    type: str
    text: str


class MessageDeltaBody(_Record):
    stop_reason: Optional[str] = None
    stop_sequence: Optional[str] = None


class MessageDeltaUsage(_Record):
    output_tokens: int


class InvocationMetrics(_Record):
    first_byte_latency: int = Field(alias="firstByteLatency")
    input_token_count: int = Field(alias="inputTokenCount")
    invocation_latency: int = Field(alias="invocationLatency")
    output_token_count: int = Field(alias="outputTokenCount")


class MessageStart(_Record):
    type: Literal["message_start"] = "message_start"
    message: StreamMessage


class ContentBlockStart(_Record):
    type: Literal["content_block_start"] = "content_block_start"
    index: int
    content_block: TextBlock


class ContentBlockDelta(_Record):
    type: Literal["content_block_delta"] = "content_block_delta"
    index: int
    delta: TextDelta

    @property
    def delta_text(self) -> str:
        return self.delta.text


class ContentBlockStop(_Record):
    type: Literal["content_block_stop"] = "content_block_stop"
    index: int


class MessageDelta(_Record):
    type: Literal["message_delta"] = "message_delta"
    delta: MessageDeltaBody
    usage: MessageDeltaUsage

    @property
    def stop_reason(self) -> Optional[str]:
        return self.delta.stop_reason

    @property
    def stop_sequence(self) -> Optional[str]:
        return self.delta.stop_sequence

    @property
    def output_token_delta(self) -> int:
        return self.usage.output_tokens


class MessageStop(_Record):
    type: Literal["message_stop"] = "message_stop"
    invocation_metrics: Optional[InvocationMetrics] = Field(
        default=None, alias="amazon-bedrock-invocationMetrics"
    )


ClaudeStreamEvent = Union[
    MessageStart,
    ContentBlockStart,
    ContentBlockDelta,
    ContentBlockStop,
    MessageDelta,
    MessageStop,
]

STREAM_EVENT_TYPES: dict[str, type[BaseModel]] = {
    "message_start": MessageStart,
    "content_block_start": ContentBlockStart,
    "content_block_delta": ContentBlockDelta,
    "content_block_stop": ContentBlockStop,
    "message_delta": MessageDelta,
    "message_stop": MessageStop,
}
