"""Load images for multimodal prompts as base64 text."""

from __future__ import annotations

import base64
import logging
import mimetypes
from pathlib import Path
from urllib.parse import urlparse

import httpx

from llmwire.core.errors import ApiError, TransportError

logger = logging.getLogger(__name__)


def _is_url(path: str) -> bool:
    return urlparse(path).scheme in ("http", "https")


def guess_media_type(path: str, default: str = "image/jpeg") -> str:
    media_type, _ = mimetypes.guess_type(urlparse(path).path if _is_url(path) else path)
    return media_type or default


async def fetch_and_base64_encode_image(
    path: str,
    *,
    timeout: float = 30.0,
    transport: httpx.AsyncBaseTransport | None = None,
) -> str:
    """Return base64 of a local file or of the body at an http(s) URL."""
    if not _is_url(path):
        return base64.b64encode(Path(path).read_bytes()).decode("ascii")
    try:
        async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
            r = await client.get(path, follow_redirects=True)
    except httpx.HTTPError as e:
        raise TransportError(f"image download failed: {e}") from e
    if r.is_error:
        raise ApiError(r.status_code, r.text)
    logger.debug("downloaded image", extra={"url": path, "size": len(r.content)})
    return base64.b64encode(r.content).decode("ascii")
