"""Error taxonomy shared by every provider client."""

from __future__ import annotations

from typing import Optional

_BODY_LIMIT = 500

_STATUS_LABELS = {
    400: "Bad Request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not Found",
    429: "Too Many Requests",
    500: "Internal Server Error",
}


def _clip(body: Optional[str]) -> Optional[str]:
    if body is None:
        return None
    return body if len(body) <= _BODY_LIMIT else body[:_BODY_LIMIT] + "..."


class LLMError(RuntimeError):
    pass


class TransportError(LLMError):
    """The HTTP/SDK call failed before or while the response was delivered."""


class ApiError(TransportError):
    """Provider answered with a non-2xx status."""

    def __init__(self, status_code: int, body: str = "") -> None:
        self.status_code = status_code
        self.body = _clip(body) or ""
        self.label = _STATUS_LABELS.get(status_code, "Unknown API Error")
        super().__init__(f"{self.label} ({status_code}): {self.body}")


class DeserializationError(LLMError):
    """A streamed event could not be mapped onto a known schema. Ends the stream."""

    def __init__(self, message: str, *, event_type: Optional[str] = None) -> None:
        self.event_type = event_type
        super().__init__(message)


class SerializationError(LLMError):
    """Outbound request payload could not be encoded as JSON."""


class UnexpectedResponseError(LLMError):
    """Response shape not covered by the schemas; keeps whatever context is available."""

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
    ) -> None:
        self.status_code = status_code
        self.body = _clip(body)
        detail = message
        if status_code is not None:
            detail += f" | status={status_code}"
        if self.body:
            detail += f" | body={self.body}"
        super().__init__(detail)
