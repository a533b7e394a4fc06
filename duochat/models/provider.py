from __future__ import annotations

from typing import Any, Protocol

import httpx


class StreamingChatModel(Protocol):
    async def open_stream(self, body: dict[str, Any]) -> httpx.Response: ...


class DocumentModel(Protocol):
    async def generate(self, body: dict[str, Any]) -> str: ...
