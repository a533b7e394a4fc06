from __future__ import annotations

import logging
from collections.abc import Callable

import httpx
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, PlainTextResponse, Response, StreamingResponse
from starlette.background import BackgroundTask

from duochat.agent.document_handler import DocumentAnalysisService
from duochat.api.deps import get_chat_model_factory, get_config, get_document_service
from duochat.config.schema import AppConfig
from duochat.dispatch.adapters import build_conversational_body
from duochat.dispatch.errors import CHAT_ERROR_MESSAGE, MissingApiKeyError, UpstreamError
from duochat.dispatch.router import OutboundAttachment, analysis_type_for, route_request
from duochat.models.enums import Role, Route
from duochat.models.provider import StreamingChatModel
from duochat.models.wire import ChatRequestBody, WireFile
from duochat.utils.attachment_encoder import decoded_size

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


@router.post("/chat")
async def chat(
    body: ChatRequestBody,
    config: AppConfig = Depends(get_config),
    documents: DocumentAnalysisService = Depends(get_document_service),
    chat_model_factory: Callable[[], StreamingChatModel] = Depends(get_chat_model_factory),
) -> Response:
    """Answer a chat turn.

    PDFs go to document analysis and come back as plain text; everything
    else is proxied to the chat provider as an event stream.
    """

    attachments = [
        OutboundAttachment(name=a.name, mime_type=a.type, data=a.data or "", size=a.size)
        for a in body.attachments
    ]
    decision = route_request(attachments)
    logger.info(
        "Chat request: %d message(s), %d attachment(s), route=%s",
        len(body.messages),
        len(attachments),
        decision.route.value,
    )

    if decision.route == Route.document and decision.document is not None:
        document = decision.document
        question = next(
            (m.content for m in reversed(body.messages) if m.role == Role.user),
            None,
        )
        pdf = WireFile(
            name=document.name,
            type=document.mime_type,
            size=document.size if document.size is not None else decoded_size(document.data),
            data=document.data,
        )
        text = await documents.analyze([pdf], question, analysis_type_for(question))
        return PlainTextResponse(text)

    try:
        model = chat_model_factory()
    except MissingApiKeyError as e:
        logger.error("%s", e)
        return JSONResponse(status_code=400, content={"error": str(e)})

    request_body = build_conversational_body(
        body.messages, decision, config.providers.conversational
    )
    try:
        upstream = await model.open_stream(request_body)
    except (UpstreamError, httpx.HTTPError) as e:
        logger.error("Chat API error: %s", e)
        return PlainTextResponse(CHAT_ERROR_MESSAGE, status_code=500)

    return StreamingResponse(
        upstream.aiter_bytes(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
        background=BackgroundTask(upstream.aclose),
    )
