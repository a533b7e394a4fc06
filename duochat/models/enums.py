from __future__ import annotations

from enum import StrEnum


class Role(StrEnum):
    user = "user"
    assistant = "assistant"


class AttachmentCategory(StrEnum):
    image = "image"
    document = "document"


class AttachmentStatus(StrEnum):
    pending = "pending"
    ready = "ready"
    failed = "failed"


class AnalysisType(StrEnum):
    detailed = "detailed"
    qa = "qa"


class Route(StrEnum):
    conversational = "conversational"
    document = "document"
