from __future__ import annotations

from collections.abc import Callable

import httpx

from duochat.agent.document_handler import DocumentAnalysisService
from duochat.config.loader import get_app_config
from duochat.config.schema import AppConfig
from duochat.dispatch.retry import RetryPolicy
from duochat.models.chat_model import OpenAIChatModel
from duochat.models.document_model import GeminiDocumentModel
from duochat.models.provider import StreamingChatModel

_http_client: httpx.AsyncClient | None = None


def get_config() -> AppConfig:
    return get_app_config()


def get_http_client() -> httpx.AsyncClient:
    global _http_client
    if _http_client is None or _http_client.is_closed:
        _http_client = httpx.AsyncClient()
    return _http_client


async def close_http_client() -> None:
    global _http_client
    if _http_client is not None:
        await _http_client.aclose()
        _http_client = None


def get_retry_policy() -> RetryPolicy:
    return RetryPolicy.from_settings(get_config().retry)


def get_document_service() -> DocumentAnalysisService:
    settings = get_config().providers.document
    client = get_http_client()
    return DocumentAnalysisService(
        settings=settings,
        model_factory=lambda: GeminiDocumentModel(settings, client),
        retry=get_retry_policy(),
    )


def get_chat_model_factory() -> Callable[[], StreamingChatModel]:
    settings = get_config().providers.conversational
    client = get_http_client()
    return lambda: OpenAIChatModel(settings, client)
