"""Provider routing shared by the HTTP endpoints and the chat client."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from duochat.models.entities import PDF_MIME_TYPE, category_for
from duochat.models.enums import AnalysisType, AttachmentCategory, Route


@dataclass(frozen=True)
class OutboundAttachment:
    name: str
    mime_type: str
    data: str = ""
    size: int | None = None

    @property
    def category(self) -> AttachmentCategory:
        return category_for(self.mime_type)

    @property
    def is_pdf(self) -> bool:
        return self.mime_type == PDF_MIME_TYPE


@dataclass(frozen=True)
class RouteDecision:
    route: Route
    document: OutboundAttachment | None = None
    images: tuple[OutboundAttachment, ...] = field(default_factory=tuple)
    notes: tuple[OutboundAttachment, ...] = field(default_factory=tuple)


def route_request(attachments: Sequence[OutboundAttachment]) -> RouteDecision:
    """Pick exactly one provider for a message and its attachments.

    The first PDF wins the document route and every other attachment is
    dropped. Without a PDF, images travel inline to the conversational
    provider and any other attachment is only mentioned by name.
    """

    for attachment in attachments:
        if attachment.is_pdf:
            return RouteDecision(route=Route.document, document=attachment)

    images: list[OutboundAttachment] = []
    notes: list[OutboundAttachment] = []
    for attachment in attachments:
        if attachment.category == AttachmentCategory.image:
            if attachment.data:
                images.append(attachment)
        else:
            notes.append(attachment)
    return RouteDecision(
        route=Route.conversational,
        images=tuple(images),
        notes=tuple(notes),
    )


def analysis_type_for(text: str | None) -> AnalysisType:
    if text and text.strip():
        return AnalysisType.qa
    return AnalysisType.detailed
