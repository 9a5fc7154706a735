"""Tests for core/streaming: LineBuffer, decode_json_lines, StreamBridge."""

import asyncio
import logging
import threading

import pytest
from pydantic import BaseModel

from llmwire.core.errors import TransportError
from llmwire.core.streaming import LineBuffer, StreamBridge, _workers, decode_json_lines
from llmwire.schemas.ollama import GenerateResponse
from llmwire.tests.fakes import aiter_chunks, ndjson


class Tick(BaseModel):
    n: int
    done: bool = False


async def _decode(chunks, model=Tick, **kwargs):
    return [f async for f in decode_json_lines(aiter_chunks(chunks), model, **kwargs)]


def test_line_buffer_keeps_only_unterminated_tail():
    buf = LineBuffer()
    assert buf.feed(b'{"n": 1}\n{"n"') == [b'{"n": 1}']
    assert buf.pending == b'{"n"'
    assert buf.feed(b": 2}") == []
    assert buf.feed(b"\n\n") == [b'{"n": 2}', b""]
    assert buf.pending == b""


def test_line_buffer_many_lines_in_one_feed():
    buf = LineBuffer()
    assert buf.feed(b"a\nb\nc\nd") == [b"a", b"b", b"c"]
    assert buf.pending == b"d"


@pytest.mark.asyncio
async def test_single_chunk_two_documents():
    data = (
        b'{"model":"m","created_at":"2024-03-01T10:00:00Z","response":"Hello","done":false}\n'
        b'{"model":"m","created_at":"2024-03-01T10:00:01Z","response":" world","done":true}\n'
    )
    out = await _decode([data], GenerateResponse)
    assert [(f.response, f.done) for f in out] == [("Hello", False), (" world", True)]


@pytest.mark.asyncio
async def test_fragments_without_timestamp():
    data = b'{"model":"m","response":"Hello","done":false}\n{"model":"m","response":" world","done":true}\n'
    out = await _decode([data], GenerateResponse)
    assert [(f.response, f.done) for f in out] == [("Hello", False), (" world", True)]
    assert out[0].created_at is None


@pytest.mark.asyncio
async def test_every_two_way_split_yields_same_fragments():
    data = ndjson({"n": 1}, {"n": 2}, {"n": 3, "done": True})
    for cut in range(len(data) + 1):
        out = await _decode([data[:cut], data[cut:]])
        assert [f.n for f in out] == [1, 2, 3], cut


@pytest.mark.asyncio
async def test_byte_at_a_time():
    data = ndjson(*({"n": i} for i in range(20)))
    out = await _decode([data[i : i + 1] for i in range(len(data))])
    assert [f.n for f in out] == list(range(20))


@pytest.mark.asyncio
async def test_partial_trailing_document_not_emitted():
    data = ndjson({"n": 1}) + b'{"n": 2'
    out = await _decode([data])
    assert [f.n for f in out] == [1]


@pytest.mark.asyncio
async def test_trailing_document_without_newline_not_emitted():
    out = await _decode([ndjson({"n": 1}), b'{"n": 2}'])
    assert [f.n for f in out] == [1]


@pytest.mark.asyncio
async def test_malformed_lines_skipped_and_logged(caplog):
    data = (
        ndjson({"n": 1})
        + b"keep-alive\n"
        + b'{"unexpected": true}\n'
        + b"\xff\xfe\n"
        + b"\n"
        + ndjson({"n": 2})
    )
    with caplog.at_level(logging.WARNING, logger="llmwire.core.streaming"):
        out = await _decode([data])
    assert [f.n for f in out] == [1, 2]
    assert len([r for r in caplog.records if "skipping" in r.getMessage()]) == 3


@pytest.mark.asyncio
async def test_final_flag_stops_before_remaining_lines():
    data = ndjson({"n": 1}, {"n": 2, "done": True}, {"n": 3})
    out = await _decode([data])
    assert [f.n for f in out] == [1, 2]


@pytest.mark.asyncio
async def test_final_flag_stops_pulling_source():
    pulled = []

    async def source():
        for i, chunk in enumerate([ndjson({"n": 1, "done": True}), ndjson({"n": 2})]):
            pulled.append(i)
            yield chunk

    out = [f async for f in decode_json_lines(source(), Tick)]
    assert [f.n for f in out] == [1]
    assert pulled == [0]


@pytest.mark.asyncio
async def test_final_field_is_configurable():
    class Part(BaseModel):
        n: int
        finished: bool = False

    data = ndjson({"n": 1, "finished": True}, {"n": 2})
    assert [f.n for f in await _decode([data], Part, final_field="finished")] == [1]
    assert [f.n for f in await _decode([data], Part, final_field=None)] == [1, 2]


@pytest.mark.asyncio
async def test_transport_error_is_terminal():
    out = []
    with pytest.raises(TransportError, match="reset"):
        source = aiter_chunks([ndjson({"n": 1})], TransportError("connection reset"))
        async for f in decode_json_lines(source, Tick):
            out.append(f.n)
    assert out == [1]


@pytest.mark.asyncio
async def test_order_preserved_across_small_chunks():
    data = ndjson(*({"n": i} for i in range(200)))
    chunks = [data[i : i + 7] for i in range(0, len(data), 7)]
    out = await _decode(chunks)
    assert [f.n for f in out] == list(range(200))


# ---- StreamBridge ----


@pytest.mark.asyncio
async def test_bridge_delivers_in_order():
    bridge = StreamBridge.spawn(aiter_chunks(list(range(50))))
    assert await bridge.collect() == list(range(50))


@pytest.mark.asyncio
async def test_bridge_raises_error_after_items():
    bridge = StreamBridge.spawn(aiter_chunks([1, 2], TransportError("down")))
    got = []
    with pytest.raises(TransportError, match="down"):
        async for item in bridge:
            got.append(item)
    assert got == [1, 2]
    # Finished: further pulls end iteration.
    assert [i async for i in bridge] == []


@pytest.mark.asyncio
async def test_bridge_worker_does_not_wait_for_consumer():
    finished = asyncio.Event()

    async def source():
        for i in range(1000):
            yield i
        finished.set()

    bridge = StreamBridge.spawn(source())
    await asyncio.wait_for(finished.wait(), timeout=5)
    assert len(await bridge.collect()) == 1000


@pytest.mark.asyncio
async def test_bridge_consumer_stop_leaves_worker_running():
    finished = asyncio.Event()

    async def source():
        for i in range(10):
            await asyncio.sleep(0)
            yield i
        finished.set()

    bridge = StreamBridge.spawn(source())
    async for item in bridge:
        if item == 2:
            break
    bridge.close()
    await asyncio.wait_for(finished.wait(), timeout=5)
    assert [i async for i in bridge] == []


@pytest.mark.asyncio
async def test_bridge_blocking_source_runs_off_loop():
    loop_thread = threading.get_ident()
    threads = set()

    def source():
        for i in range(5):
            threads.add(threading.get_ident())
            yield i

    bridge = StreamBridge.spawn_blocking(source)
    assert await bridge.collect() == [0, 1, 2, 3, 4]
    assert loop_thread not in threads


@pytest.mark.asyncio
async def test_bridge_blocking_source_error():
    def source():
        yield "a"
        raise TransportError("sdk failure")

    bridge = StreamBridge.spawn_blocking(source)
    assert await bridge.__anext__() == "a"
    with pytest.raises(TransportError, match="sdk failure"):
        await bridge.__anext__()


@pytest.mark.asyncio
async def test_bridge_keeps_worker_reference_until_done():
    gate = asyncio.Event()

    async def source():
        await gate.wait()
        yield 1

    bridge = StreamBridge.spawn(source())
    assert len(_workers) >= 1
    gate.set()
    assert await bridge.collect() == [1]
    await asyncio.sleep(0)
    assert all(t.done() for t in _workers) or not _workers
