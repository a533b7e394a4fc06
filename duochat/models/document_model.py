from __future__ import annotations

import logging
from typing import Any

import httpx

from duochat.config.schema import DOCUMENT_KEY_ENV_NAMES, DocumentProviderSettings
from duochat.dispatch.adapters import extract_document_text
from duochat.dispatch.errors import MissingApiKeyError, UpstreamError

logger = logging.getLogger(__name__)


class GeminiDocumentModel:
    provider = "Google"

    def __init__(self, settings: DocumentProviderSettings, client: httpx.AsyncClient) -> None:
        if not settings.api_key:
            raise MissingApiKeyError("Google AI", DOCUMENT_KEY_ENV_NAMES)
        self._settings = settings
        self._client = client

    async def generate(self, body: dict[str, Any]) -> str:
        url = (
            f"{self._settings.base_url.rstrip('/')}/models/"
            f"{self._settings.model}:generateContent"
        )
        response = await self._client.post(
            url,
            params={"key": self._settings.api_key},
            json=body,
            timeout=self._settings.timeout,
        )
        if not response.is_success:
            logger.error("%s API error: %s %s", self.provider, response.status_code, response.text)
            raise UpstreamError(self.provider, response.status_code, response.text)
        return extract_document_text(response.json())
