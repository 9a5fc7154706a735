"""Mistral / Mixtral instruct records on Bedrock."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict


def format_instruct_prompt(text: str) -> str:
    """Wrap a user turn in the instruct template the Mistral models expect."""
    return f"<s>[INST] {text} [/INST]"


class MistralRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    prompt: str
    max_tokens: Optional[int] = None
    temperature: Optional[float] = None
    top_p: Optional[float] = None
    top_k: Optional[int] = None
    stop: Optional[list[str]] = None

    @classmethod
    def with_default_options(cls, prompt: str, **overrides: Any) -> "MistralRequest":
        values: dict[str, Any] = {"max_tokens": 400, "temperature": 0.7, "top_p": 0.7, "top_k": 50}
        values.update(overrides)
        return cls(prompt=prompt, **values)

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class MistralOutput(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str
    stop_reason: Optional[str] = None


class MistralResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    outputs: list[MistralOutput]

    @property
    def text(self) -> str:
        return "".join(o.text for o in self.outputs)

    @property
    def stop_reason(self) -> Optional[str]:
        for o in reversed(self.outputs):
            if o.stop_reason:
                return o.stop_reason
        return None
