from __future__ import annotations

import asyncio
import io
import json

import httpx
import pytest

from duochat.agent.chat_handler import CHAT_FAILURE_PREFIX, ChatService
from duochat.dispatch.errors import SessionBusyError
from duochat.models.enums import Role
from duochat.utils.attachment_encoder import create_attachment

SSE_BODY = (
    b'data: {"choices":[{"delta":{"content":"Hel"}}]}\n\n'
    b'data: {"choices":[{"delta":{"content":"lo"}}]}\n\n'
    b"data: [DONE]\n\n"
)


class _Gateway:
    def __init__(self) -> None:
        self.requests: list[tuple[str, dict]] = []
        self.chat_status = 200
        self.pdf_response = httpx.Response(200, text="Dokument opisuje umowę.")

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(0)
        body = json.loads(request.content)
        self.requests.append((request.url.path, body))
        if request.url.path == "/api/analyze-pdf":
            return self.pdf_response
        if self.chat_status != 200:
            return httpx.Response(self.chat_status, text="Wystąpił błąd")
        return httpx.Response(
            200, content=SSE_BODY, headers={"content-type": "text/event-stream"}
        )


def _service(gateway: _Gateway) -> ChatService:
    client = httpx.AsyncClient(transport=httpx.MockTransport(gateway), base_url="http://gateway")
    return ChatService(client)


def test_text_message_streams_into_assistant_message() -> None:
    gateway = _Gateway()
    service = _service(gateway)

    reply = asyncio.run(service.submit("hi"))

    assert reply is not None and reply.content == "Hello"
    assert reply.completed
    assert [m.role for m in service.session.messages] == [Role.user, Role.assistant]
    path, body = gateway.requests[0]
    assert path == "/api/chat"
    assert body["messages"] == [{"role": "user", "content": "hi"}]
    assert body["attachments"] == []
    assert not service.busy


def test_pdf_goes_to_document_endpoint_and_pending_is_cleared() -> None:
    gateway = _Gateway()
    service = _service(gateway)

    async def run() -> None:
        await service.add_attachments(
            [
                create_attachment("a.pdf", "application/pdf", source_file=io.BytesIO(b"%PDF-1.4")),
                create_attachment("b.pdf", "application/pdf", source_file=io.BytesIO(b"%PDF-1.5")),
                create_attachment("c.png", "image/png", source_file=io.BytesIO(b"png")),
            ]
        )
        await service.submit("")

    asyncio.run(run())

    path, body = gateway.requests[0]
    assert path == "/api/analyze-pdf"
    assert [f["name"] for f in body["files"]] == ["a.pdf"]
    assert body["files"][0]["size"] == 8
    assert body["analysisType"] == "detailed"
    assert len(service.pending) == 0
    assert service.session.messages[0].attachments is not None
    assert service.session.messages[-1].content == "Dokument opisuje umowę."


def test_pdf_question_uses_qa_mode() -> None:
    gateway = _Gateway()
    service = _service(gateway)

    async def run() -> None:
        await service.add_attachments(
            [create_attachment("a.pdf", "application/pdf", source_file=io.BytesIO(b"%PDF"))]
        )
        await service.submit("Kto podpisał?")

    asyncio.run(run())
    _, body = gateway.requests[0]
    assert body["analysisType"] == "qa"
    assert body["question"] == "Kto podpisał?"


def test_document_failure_shows_server_message() -> None:
    gateway = _Gateway()
    gateway.pdf_response = httpx.Response(
        500, json={"success": False, "error": "Serwer przeciążony", "originalError": "503"}
    )
    service = _service(gateway)

    async def run() -> None:
        await service.add_attachments(
            [create_attachment("a.pdf", "application/pdf", source_file=io.BytesIO(b"%PDF"))]
        )
        await service.submit("")

    asyncio.run(run())
    assert service.session.messages[-1].content == "Serwer przeciążony"
    assert len(service.pending) == 0


def test_chat_failure_is_appended_as_assistant_message() -> None:
    gateway = _Gateway()
    gateway.chat_status = 500
    service = _service(gateway)

    reply = asyncio.run(service.submit("hi"))

    assert reply is not None
    assert reply.role == Role.assistant
    assert reply.content.startswith(CHAT_FAILURE_PREFIX)
    assert "HTTP 500" in reply.content


def test_connection_failure_is_reported() -> None:
    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    client = httpx.AsyncClient(transport=httpx.MockTransport(refuse), base_url="http://gateway")
    service = ChatService(client)

    reply = asyncio.run(service.submit("hi"))
    assert reply is not None and reply.content.startswith(CHAT_FAILURE_PREFIX)
    assert not service.busy


def test_empty_submit_does_nothing() -> None:
    gateway = _Gateway()
    service = _service(gateway)
    assert asyncio.run(service.submit("   ")) is None
    assert gateway.requests == []
    assert len(service.session) == 0


def test_concurrent_submit_is_rejected() -> None:
    gateway = _Gateway()
    service = _service(gateway)

    async def run() -> None:
        first = asyncio.create_task(service.submit("one"))
        await asyncio.sleep(0)
        assert service.busy
        with pytest.raises(SessionBusyError):
            await service.submit("two")
        await first

    asyncio.run(run())
    assert [m.content for m in service.session.messages] == ["one", "Hello"]


def test_clear_history_then_submit_behaves_like_fresh_session() -> None:
    gateway = _Gateway()
    service = _service(gateway)

    async def run() -> None:
        await service.submit("one")
        await service.submit("two")
        service.clear_history()
        assert len(service.session) == 0
        await service.submit("hi")

    asyncio.run(run())
    assert gateway.requests[-1][1]["messages"] == [{"role": "user", "content": "hi"}]
    assert len(service.session) == 2


def test_undecodable_plain_reply_is_shown_with_replacement_chars() -> None:
    async def plain(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"ok \xff", headers={"content-type": "text/plain"})

    client = httpx.AsyncClient(transport=httpx.MockTransport(plain), base_url="http://gateway")
    service = ChatService(client)

    reply = asyncio.run(service.submit("hi"))

    assert reply is not None
    assert reply.content == "ok \ufffd"
    assert reply.completed
    assert not service.busy


def test_aclose_closes_gateway_client() -> None:
    client = httpx.AsyncClient(transport=httpx.MockTransport(_Gateway()), base_url="http://gateway")
    service = ChatService(client)

    asyncio.run(service.aclose())

    assert client.is_closed
