from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

from duochat.models.enums import AttachmentCategory, AttachmentStatus, Role

PDF_MIME_TYPE = "application/pdf"


def category_for(mime_type: str) -> AttachmentCategory:
    if mime_type.startswith("image/"):
        return AttachmentCategory.image
    return AttachmentCategory.document


class Attachment(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    display_name: str
    mime_type: str
    category: AttachmentCategory
    size: int | None = None
    source_file: Any = Field(default=None, exclude=True, repr=False)
    encoded_payload: str | None = Field(default=None, repr=False)
    status: AttachmentStatus = AttachmentStatus.pending
    error: str | None = None
    selection_index: int = 0

    @property
    def is_pdf(self) -> bool:
        return self.mime_type == PDF_MIME_TYPE

    @property
    def is_ready(self) -> bool:
        return self.status == AttachmentStatus.ready and bool(self.encoded_payload)


class Message(BaseModel):
    id: str
    role: Role
    content: str = ""
    attachments: list[Attachment] | None = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    _completed: bool = PrivateAttr(default=False)

    @property
    def completed(self) -> bool:
        return self._completed or self.role == Role.user

    def append(self, fragment: str) -> None:
        if self.completed:
            raise ValueError(f"message {self.id} is frozen")
        self.content += fragment

    def complete(self) -> None:
        self._completed = True


class User(BaseModel):
    email: str
    name: str | None = None
    avatar: str | None = None
