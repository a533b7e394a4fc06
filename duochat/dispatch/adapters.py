from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from duochat.config.schema import ConversationalProviderSettings, DocumentProviderSettings
from duochat.dispatch.router import OutboundAttachment, RouteDecision
from duochat.models.enums import AnalysisType, Role
from duochat.models.wire import WireMessage
from duochat.prompt.registry import ATTACHMENT_NOTE, DEFAULT_QUESTIONS, get_prompt_text
from duochat.utils.attachment_encoder import ensure_data_url, strip_data_url_prefix

IMAGE_DETAIL = "high"
NO_ANSWER_TEXT = "Nie udało się wygenerować odpowiedzi"


def _message_text(text: str, notes: Sequence[OutboundAttachment]) -> str:
    for note in notes:
        text += "\n\n" + ATTACHMENT_NOTE.format(name=note.name)
    return text


def build_conversational_body(
    messages: Sequence[WireMessage],
    decision: RouteDecision,
    settings: ConversationalProviderSettings,
) -> dict[str, Any]:
    """Build an OpenAI chat-completions body for the routed request.

    Only the latest message, and only when it is a user message, is touched:
    notes are appended to its text, and with images its content becomes a
    parts list.
    """

    out: list[dict[str, Any]] = [{"role": m.role.value, "content": m.content} for m in messages]
    if out and out[-1]["role"] == Role.user.value:
        last = out[-1]
        text = _message_text(last["content"], decision.notes)
        if decision.images:
            parts: list[dict[str, Any]] = [{"type": "text", "text": text}]
            for image in decision.images:
                parts.append(
                    {
                        "type": "image_url",
                        "image_url": {
                            "url": ensure_data_url(image.mime_type, image.data),
                            "detail": IMAGE_DETAIL,
                        },
                    }
                )
            last["content"] = parts
        else:
            last["content"] = text

    return {
        "model": settings.model,
        "messages": out,
        "temperature": settings.temperature,
        "max_tokens": settings.max_tokens,
        "stream": True,
    }


def build_document_body(
    document: OutboundAttachment,
    question: str | None,
    analysis_type: AnalysisType,
    settings: DocumentProviderSettings,
) -> dict[str, Any]:
    system_prompt = get_prompt_text(analysis_type)
    if analysis_type == AnalysisType.qa and question and question.strip():
        user_prompt = question
    else:
        user_prompt = DEFAULT_QUESTIONS[analysis_type]
    return {
        "contents": [
            {
                "role": "user",
                "parts": [
                    {"text": f"{system_prompt}\n\n{user_prompt}"},
                    {
                        "inline_data": {
                            "mime_type": document.mime_type,
                            "data": strip_data_url_prefix(document.data),
                        }
                    },
                ],
            }
        ],
        "generationConfig": {
            "temperature": settings.temperature,
            "maxOutputTokens": settings.max_output_tokens,
        },
    }


def extract_document_text(payload: Any) -> str:
    try:
        text = payload["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        return NO_ANSWER_TEXT
    if not isinstance(text, str) or not text:
        return NO_ANSWER_TEXT
    return text
