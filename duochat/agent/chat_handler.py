from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import Any

import httpx

from duochat.agent.session_state import ChatSession, PendingAttachments
from duochat.dispatch.errors import SessionBusyError
from duochat.dispatch.normalizer import normalize_buffered, normalize_stream
from duochat.dispatch.router import OutboundAttachment, RouteDecision, analysis_type_for, route_request
from duochat.models.entities import Attachment, Message
from duochat.models.enums import Route

logger = logging.getLogger(__name__)

CHAT_FAILURE_PREFIX = "Przepraszam, wystąpił błąd podczas przetwarzania Twojej wiadomości"
PDF_FAILURE_MESSAGE = "Przepraszam, wystąpił błąd podczas analizy PDF."
UNKNOWN_SERVER_ERROR = "Nieznany błąd serwera"


class GatewayError(Exception):
    pass


def _to_outbound(attachment: Attachment) -> OutboundAttachment:
    return OutboundAttachment(
        name=attachment.display_name,
        mime_type=attachment.mime_type,
        data=attachment.encoded_payload or "",
        size=attachment.size,
    )


class ChatService:
    """Client side of a chat: session state plus calls to the gateway."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        session: ChatSession | None = None,
        pending: PendingAttachments | None = None,
        on_update: Callable[[], None] | None = None,
    ) -> None:
        self._client = client
        self.session = session or ChatSession()
        self.pending = pending or PendingAttachments()
        self._on_update = on_update
        self._busy = False

    @property
    def busy(self) -> bool:
        return self._busy

    async def add_attachments(self, attachments: Iterable[Attachment]) -> list[Attachment]:
        return await self.pending.add(attachments)

    def remove_attachment(self, index: int) -> Attachment:
        return self.pending.remove(index)

    def clear_history(self) -> None:
        self.session.clear()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def submit(self, text: str) -> Message | None:
        """Send ``text`` with the pending attachments.

        Returns the last assistant message added, or ``None`` when there was
        nothing to send. Raises ``SessionBusyError`` while a submit runs.
        """

        if self._busy:
            raise SessionBusyError("a message is already being processed")
        if not text.strip() and len(self.pending) == 0:
            return None

        self._busy = True
        attachments = self.pending.take_all()
        try:
            user_message = self.session.add_user_message(text, attachments)
            ready = [a for a in attachments if a.is_ready]
            if len(ready) != len(attachments):
                logger.warning(
                    "Skipping %d attachment(s) that are not encoded", len(attachments) - len(ready)
                )
            decision = route_request([_to_outbound(a) for a in ready])
            logger.info("Submitting message %s via %s route", user_message.id, decision.route.value)
            if decision.route == Route.document:
                return await self._analyze_document(user_message, decision)
            return await self._chat(decision)
        finally:
            self._busy = False

    async def _analyze_document(self, user_message: Message, decision: RouteDecision) -> Message:
        document = decision.document
        if document is None:
            raise ValueError("document route without a document")
        question = user_message.content if user_message.content.strip() else None
        body = {
            "files": [
                {
                    "name": document.name,
                    "type": document.mime_type,
                    "size": document.size or 0,
                    "data": document.data,
                }
            ],
            "question": question,
            "analysisType": analysis_type_for(question).value,
        }
        try:
            response = await self._client.post("/api/analyze-pdf", json=body)
        except httpx.HTTPError as e:
            logger.error("PDF analysis request failed: %s", e)
            return self.session.add_assistant_message(f"{PDF_FAILURE_MESSAGE} {e}")

        if not response.is_success:
            error = self._error_from_json(response)
            logger.error("PDF analysis failed: %s", error)
            return self.session.add_assistant_message(error or PDF_FAILURE_MESSAGE)

        handle = self.session.begin_assistant_message()
        async for event in normalize_buffered(handle.id, response.text):
            self.session.apply(handle, event)
            self._notify()
        return handle

    async def _chat(self, decision: RouteDecision) -> Message:
        history = [
            {"role": m.role.value, "content": m.content} for m in self.session.messages
        ]
        attachments = [
            {"name": a.name, "type": a.mime_type, "data": a.data}
            for a in (*decision.images, *decision.notes)
        ]
        handle: Message | None = None
        try:
            async with self._client.stream(
                "POST", "/api/chat", json={"messages": history, "attachments": attachments}
            ) as response:
                if not response.is_success:
                    detail = (await response.aread()).decode("utf-8", errors="replace")
                    raise GatewayError(f"HTTP {response.status_code}: {detail or UNKNOWN_SERVER_ERROR}")
                handle = self.session.begin_assistant_message()
                if response.headers.get("content-type", "").startswith("text/event-stream"):
                    events = normalize_stream(handle.id, response.aiter_bytes())
                else:
                    text = (await response.aread()).decode("utf-8", errors="replace")
                    events = normalize_buffered(handle.id, text)
                async for event in events:
                    self.session.apply(handle, event)
                    self._notify()
            return handle
        except (httpx.HTTPError, GatewayError) as e:
            logger.error("Chat error: %s", e)
            if handle is not None and not handle.completed:
                handle.complete()
            return self.session.add_assistant_message(f"{CHAT_FAILURE_PREFIX}: {e}")

    @staticmethod
    def _error_from_json(response: httpx.Response) -> str | None:
        try:
            data: Any = response.json()
        except ValueError:
            return f"HTTP {response.status_code}: Błąd podczas analizy PDF"
        if isinstance(data, dict) and isinstance(data.get("error"), str):
            return data["error"]
        return UNKNOWN_SERVER_ERROR

    def _notify(self) -> None:
        if self._on_update is not None:
            self._on_update()
