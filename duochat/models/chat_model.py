from __future__ import annotations

import logging
from typing import Any

import httpx

from duochat.config.schema import CONVERSATIONAL_KEY_ENV_NAMES, ConversationalProviderSettings
from duochat.dispatch.errors import MissingApiKeyError, UpstreamError

logger = logging.getLogger(__name__)


class OpenAIChatModel:
    """Streaming chat-completions client; the response body is left unread."""

    provider = "OpenAI"

    def __init__(self, settings: ConversationalProviderSettings, client: httpx.AsyncClient) -> None:
        if not settings.api_key:
            raise MissingApiKeyError(self.provider, CONVERSATIONAL_KEY_ENV_NAMES)
        self._settings = settings
        self._client = client

    async def open_stream(self, body: dict[str, Any]) -> httpx.Response:
        url = f"{self._settings.base_url.rstrip('/')}/chat/completions"
        request = self._client.build_request(
            "POST",
            url,
            json=body,
            headers={"Authorization": f"Bearer {self._settings.api_key}"},
            timeout=self._settings.timeout,
        )
        response = await self._client.send(request, stream=True)
        if response.is_success:
            return response
        try:
            detail = (await response.aread()).decode("utf-8", errors="replace")
        finally:
            await response.aclose()
        logger.error("%s API error: %s %s", self.provider, response.status_code, detail)
        raise UpstreamError(self.provider, response.status_code, detail)
