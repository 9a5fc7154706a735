"""Dispatch of self-describing stream events onto typed schemas.

Each SDK event is one complete JSON object carrying a discriminator field. The
decoder looks the discriminator up in an explicit table and validates the whole
object against the matching model. Anything it cannot place is an error; there
is no fallback variant.
"""

from __future__ import annotations

import json
from typing import Any, Generic, Mapping, TypeVar

from pydantic import BaseModel, ValidationError

from llmwire.core.errors import DeserializationError

E = TypeVar("E", bound=BaseModel)


class EnvelopeDecoder(Generic[E]):
    def __init__(self, variants: Mapping[str, type[E]], discriminator: str = "type") -> None:
        self._variants = dict(variants)
        self._discriminator = discriminator

    @property
    def event_types(self) -> tuple[str, ...]:
        return tuple(self._variants)

    def decode(self, value: Any) -> E:
        if not isinstance(value, Mapping):
            raise DeserializationError(
                f"expected a JSON object event, got {type(value).__name__}"
            )
        kind = value.get(self._discriminator)
        if not isinstance(kind, str):
            raise DeserializationError(
                f"event has no string {self._discriminator!r} field: {sorted(value)}"
            )
        model = self._variants.get(kind)
        if model is None:
            raise DeserializationError(f"unknown event type: {kind!r}", event_type=kind)
        try:
            return model.model_validate(value)
        except ValidationError as e:
            raise DeserializationError(f"malformed {kind} event: {e}", event_type=kind) from e

    def decode_bytes(self, raw: bytes | str) -> E:
        try:
            value = json.loads(raw)
        except ValueError as e:
            raise DeserializationError(f"event payload is not valid JSON: {e}") from e
        return self.decode(value)
