from __future__ import annotations

import asyncio
import json
from collections.abc import AsyncIterator

from duochat.dispatch.normalizer import (
    SSEFrameDecoder,
    extract_delta,
    normalize_buffered,
    normalize_stream,
)
from duochat.models.events import AppendText, Complete, NormalizedEvent

STREAM = b'data: {"delta":"Hel"}\ndata: {"delta":"lo"}\ndata: [DONE]\n'


async def _chunks(parts: list[bytes]) -> AsyncIterator[bytes]:
    for part in parts:
        yield part


async def _collect(parts: list[bytes]) -> list[NormalizedEvent]:
    return [e async for e in normalize_stream("m1", _chunks(parts))]


def _text(events: list[NormalizedEvent]) -> str:
    return "".join(e.text for e in events if isinstance(e, AppendText))


def test_reassembly_does_not_depend_on_chunking() -> None:
    whole = asyncio.run(_collect([STREAM]))
    byte_by_byte = asyncio.run(_collect([STREAM[i : i + 1] for i in range(len(STREAM))]))

    assert _text(whole) == "Hello"
    assert _text(byte_by_byte) == "Hello"
    assert whole[-1] == Complete(message_id="m1")
    assert byte_by_byte[-1] == Complete(message_id="m1")


def test_openai_delta_chunks_and_split_utf8() -> None:
    frames = [
        {"choices": [{"delta": {"role": "assistant"}}]},
        {"choices": [{"delta": {"content": "Zażółć"}}]},
        {"choices": [{"delta": {"content": " gęślą"}}]},
    ]
    body = "".join(f"data: {json.dumps(f, ensure_ascii=False)}\n\n" for f in frames)
    body += "data: [DONE]\n\n"
    raw = body.encode("utf-8")

    events = asyncio.run(_collect([raw[i : i + 3] for i in range(0, len(raw), 3)]))
    assert _text(events) == "Zażółć gęślą"


def test_malformed_frame_is_skipped() -> None:
    raw = b'data: {"delta":"a"}\ndata: {not json\ndata: {"delta":"b"}\ndata: [DONE]\n'
    events = asyncio.run(_collect([raw]))
    assert _text(events) == "ab"
    assert isinstance(events[-1], Complete)


def test_frames_after_done_are_ignored() -> None:
    raw = b'data: {"delta":"a"}\ndata: [DONE]\ndata: {"delta":"zzz"}\n'
    events = asyncio.run(_collect([raw]))
    assert _text(events) == "a"


def test_trailing_line_without_newline_is_flushed() -> None:
    events = asyncio.run(_collect([b'data: {"delta":"x"}']))
    assert _text(events) == "x"


def test_decoder_carries_partial_lines() -> None:
    decoder = SSEFrameDecoder()
    assert decoder.feed(b'data: {"del') == []
    assert decoder.feed(b'ta":"x"}\n') == ['{"delta":"x"}']
    assert decoder.feed(b"data: [DONE]\n") == []
    assert decoder.done


def test_extract_delta_shapes() -> None:
    assert extract_delta({"delta": "x"}) == "x"
    assert extract_delta({"choices": [{"delta": {"content": "y"}}]}) == "y"
    assert extract_delta({"choices": [{"delta": {}}]}) is None
    assert extract_delta(["x"]) is None


def test_buffered_mode_emits_one_append_then_complete() -> None:
    async def collect() -> list[NormalizedEvent]:
        return [e async for e in normalize_buffered("m2", "full text")]

    events = asyncio.run(collect())
    assert events == [AppendText(message_id="m2", text="full text"), Complete(message_id="m2")]
