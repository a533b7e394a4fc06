from __future__ import annotations

import asyncio
import uuid
from collections.abc import Iterable

from duochat.models.entities import Attachment, Message
from duochat.models.enums import AttachmentStatus, Role
from duochat.models.events import AppendText, Complete, NormalizedEvent
from duochat.utils.attachment_encoder import encode_attachment

ENCODING_CANCELLED = "Wczytywanie pliku zostało przerwane"


def new_message_id() -> str:
    return uuid.uuid4().hex


class ChatSession:
    """Ordered, in-memory message history of one page load."""

    def __init__(self) -> None:
        self._messages: list[Message] = []

    @property
    def messages(self) -> list[Message]:
        return list(self._messages)

    def __len__(self) -> int:
        return len(self._messages)

    def add_user_message(self, content: str, attachments: list[Attachment] | None = None) -> Message:
        message = Message(
            id=new_message_id(),
            role=Role.user,
            content=content,
            attachments=attachments or None,
        )
        self._messages.append(message)
        return message

    def begin_assistant_message(self) -> Message:
        message = Message(id=new_message_id(), role=Role.assistant)
        self._messages.append(message)
        return message

    def add_assistant_message(self, content: str) -> Message:
        message = self.begin_assistant_message()
        message.append(content)
        message.complete()
        return message

    def apply(self, handle: Message, event: NormalizedEvent) -> None:
        if event.message_id != handle.id:
            raise ValueError(f"event for {event.message_id} applied to {handle.id}")
        if isinstance(event, AppendText):
            handle.append(event.text)
        elif isinstance(event, Complete):
            handle.complete()

    def clear(self) -> None:
        self._messages.clear()


class PendingAttachments:
    """Attachments selected since the last submit, kept in selection order."""

    def __init__(self) -> None:
        self._items: list[Attachment] = []
        self._next_index = 0

    @property
    def items(self) -> list[Attachment]:
        return sorted(self._items, key=lambda a: a.selection_index)

    def __len__(self) -> int:
        return len(self._items)

    async def add(self, attachments: Iterable[Attachment]) -> list[Attachment]:
        """Encode a batch concurrently.

        The batch is listed as pending before encoding starts; failed reads and
        cancelled encodes stay listed as failed.
        """

        batch = list(attachments)
        for attachment in batch:
            attachment.selection_index = self._next_index
            self._next_index += 1
        self._items.extend(batch)
        try:
            await asyncio.gather(*(encode_attachment(a) for a in batch))
        except asyncio.CancelledError:
            for attachment in batch:
                if attachment.status == AttachmentStatus.pending:
                    attachment.status = AttachmentStatus.failed
                    attachment.error = ENCODING_CANCELLED
            raise
        return self.items

    def remove(self, index: int) -> Attachment:
        attachment = self.items[index]
        self._items = [a for a in self._items if a is not attachment]
        return attachment

    def take_all(self) -> list[Attachment]:
        items = self.items
        self._items.clear()
        return items
