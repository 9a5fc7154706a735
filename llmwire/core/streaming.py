"""Streaming primitives: newline-delimited JSON decoding and the worker/consumer bridge.

Every streaming call in llmwire goes through the same shape:

- a worker owns the transport call and a decoder,
- decoded fragments are pushed onto an unbounded asyncio.Queue,
- the caller pulls them with ``async for`` from a StreamBridge.

Line-delimited decoding (Ollama) tolerates partial chunks, several documents in
one read and junk lines between documents. A malformed line is logged and
skipped; a transport failure ends the stream with that exception.
"""

from __future__ import annotations

import asyncio
import logging
from typing import (
    Any,
    AsyncIterable,
    AsyncIterator,
    Callable,
    Generic,
    Iterable,
    Optional,
    TypeVar,
)

from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)

# Worker tasks are referenced here until done so the loop does not drop them.
_workers: set[asyncio.Future] = set()


class LineBuffer:
    """Byte accumulator that hands back complete newline-terminated lines.

    Bytes before ``_scan`` are known to hold no newline, so each feed only scans
    what arrived since the last boundary. After a feed only the unterminated tail
    is kept.
    """

    def __init__(self) -> None:
        self._buf = bytearray()
        self._scan = 0

    def feed(self, chunk: bytes) -> list[bytes]:
        self._buf += chunk
        lines: list[bytes] = []
        start = 0
        while True:
            end = self._buf.find(b"\n", self._scan)
            if end < 0:
                break
            lines.append(bytes(self._buf[start:end]))
            start = end + 1
            self._scan = start
        if start:
            del self._buf[:start]
        self._scan = len(self._buf)
        return lines

    @property
    def pending(self) -> bytes:
        """Unterminated tail waiting for its newline."""
        return bytes(self._buf)


def _parse_line(line: bytes, model: type[M]) -> Optional[M]:
    if not line.strip():
        return None
    try:
        text = line.decode("utf-8")
    except UnicodeDecodeError as e:
        logger.warning("skipping non utf-8 line", extra={"error": str(e), "size": len(line)})
        return None
    try:
        return model.model_validate_json(text)
    except ValidationError as e:
        logger.warning(
            "skipping line that is not a valid %s",
            model.__name__,
            extra={"error": str(e), "line": text[:200]},
        )
        return None


async def decode_json_lines(
    chunks: AsyncIterable[bytes],
    model: type[M],
    *,
    final_field: Optional[str] = "done",
) -> AsyncIterator[M]:
    """Yield one ``model`` per newline-terminated JSON document in ``chunks``.

    Stops as soon as a fragment has a truthy ``final_field`` attribute, without
    reading the rest of the source. Pass ``final_field=None`` to read until the
    source is exhausted. A trailing document with no newline is never emitted.
    """
    buffer = LineBuffer()
    async for chunk in chunks:
        for line in buffer.feed(chunk):
            fragment = _parse_line(line, model)
            if fragment is None:
                continue
            yield fragment
            if final_field and getattr(fragment, final_field, False):
                return
    if buffer.pending.strip():
        logger.debug("stream ended with an unterminated document", extra={"size": len(buffer.pending)})


class _Failure:
    __slots__ = ("error",)

    def __init__(self, error: BaseException) -> None:
        self.error = error


_END = object()


class StreamBridge(Generic[T]):
    """Pull-style view over items pushed by a background worker.

    The queue is unbounded: the worker never waits for the consumer. If the
    consumer stops early the worker still runs to completion and whatever it
    pushes afterwards is dropped with the queue.
    """

    def __init__(self) -> None:
        self._queue: asyncio.Queue[Any] = asyncio.Queue()
        self._finished = False

    @classmethod
    def spawn(cls, source: AsyncIterable[T], *, name: Optional[str] = None) -> "StreamBridge[T]":
        """Drive an async iterable on its own task."""
        bridge: StreamBridge[T] = cls()
        task = asyncio.get_running_loop().create_task(bridge._pump(source), name=name)
        _workers.add(task)
        task.add_done_callback(_workers.discard)
        return bridge

    @classmethod
    def spawn_blocking(
        cls, source: Callable[[], Iterable[T]], *, name: Optional[str] = None
    ) -> "StreamBridge[T]":
        """Drive a blocking iterator (e.g. a boto3 event stream) on a worker thread."""
        bridge: StreamBridge[T] = cls()
        loop = asyncio.get_running_loop()
        task = loop.create_task(
            asyncio.to_thread(bridge._pump_blocking, loop, source), name=name
        )
        _workers.add(task)
        task.add_done_callback(_workers.discard)
        return bridge

    async def _pump(self, source: AsyncIterable[T]) -> None:
        try:
            async for item in source:
                self._queue.put_nowait(item)
        except Exception as e:
            logger.debug("stream worker stopped on error: %s", e)
            self._queue.put_nowait(_Failure(e))
        finally:
            self._queue.put_nowait(_END)

    def _pump_blocking(
        self, loop: asyncio.AbstractEventLoop, source: Callable[[], Iterable[T]]
    ) -> None:
        def put(item: Any) -> None:
            loop.call_soon_threadsafe(self._queue.put_nowait, item)

        try:
            for item in source():
                put(item)
        except Exception as e:
            logger.debug("blocking stream worker stopped on error: %s", e)
            put(_Failure(e))
        finally:
            put(_END)

    def __aiter__(self) -> "StreamBridge[T]":
        return self

    async def __anext__(self) -> T:
        if self._finished:
            raise StopAsyncIteration
        item = await self._queue.get()
        if item is _END:
            self._finished = True
            raise StopAsyncIteration
        if isinstance(item, _Failure):
            self._finished = True
            raise item.error
        return item

    def close(self) -> None:
        """Stop delivering items. The worker is not interrupted."""
        self._finished = True

    async def collect(self) -> list[T]:
        return [item async for item in self]
