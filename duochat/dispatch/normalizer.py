"""Turn provider responses into ``AppendText``/``Complete`` events."""

from __future__ import annotations

import codecs
import json
import logging
from collections.abc import AsyncIterable, AsyncIterator
from typing import Any

from duochat.models.events import AppendText, Complete, NormalizedEvent

logger = logging.getLogger(__name__)

DATA_PREFIX = "data: "
DONE_SENTINEL = "[DONE]"


class SSEFrameDecoder:
    """Incremental ``data:`` line splitter.

    Bytes may be cut anywhere, including inside a UTF-8 sequence; incomplete
    lines are kept until the next ``feed``.
    """

    def __init__(self) -> None:
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""
        self.done = False

    def feed(self, chunk: bytes) -> list[str]:
        if self.done:
            return []
        self._buffer += self._decoder.decode(chunk)
        lines = self._buffer.split("\n")
        self._buffer = lines.pop()
        return self._payloads(lines)

    def flush(self) -> list[str]:
        if self.done:
            return []
        self._buffer += self._decoder.decode(b"", final=True)
        lines, self._buffer = [self._buffer], ""
        return self._payloads(lines)

    def _payloads(self, lines: list[str]) -> list[str]:
        out: list[str] = []
        for line in lines:
            line = line.rstrip("\r")
            if not line.startswith(DATA_PREFIX):
                continue
            data = line[len(DATA_PREFIX) :].strip()
            if data == DONE_SENTINEL:
                self.done = True
                break
            if data:
                out.append(data)
        return out


def extract_delta(payload: Any) -> str | None:
    if not isinstance(payload, dict):
        return None
    delta = payload.get("delta")
    if isinstance(delta, str):
        return delta or None
    choices = payload.get("choices")
    if isinstance(choices, list) and choices and isinstance(choices[0], dict):
        delta_obj = choices[0].get("delta")
        if isinstance(delta_obj, dict):
            content = delta_obj.get("content")
            if isinstance(content, str) and content:
                return content
    return None


def _events_for(message_id: str, payloads: list[str]) -> list[NormalizedEvent]:
    events: list[NormalizedEvent] = []
    for data in payloads:
        try:
            parsed = json.loads(data)
        except json.JSONDecodeError:
            logger.warning("Skipping malformed stream frame: %.100s", data)
            continue
        text = extract_delta(parsed)
        if text:
            events.append(AppendText(message_id=message_id, text=text))
    return events


async def normalize_stream(
    message_id: str, chunks: AsyncIterable[bytes]
) -> AsyncIterator[NormalizedEvent]:
    decoder = SSEFrameDecoder()
    async for chunk in chunks:
        for event in _events_for(message_id, decoder.feed(chunk)):
            yield event
        if decoder.done:
            break
    for event in _events_for(message_id, decoder.flush()):
        yield event
    yield Complete(message_id=message_id)


async def normalize_buffered(message_id: str, text: str) -> AsyncIterator[NormalizedEvent]:
    yield AppendText(message_id=message_id, text=text)
    yield Complete(message_id=message_id)
