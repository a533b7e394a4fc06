from __future__ import annotations

import asyncio
import base64
import binascii
import logging
import mimetypes
from pathlib import Path
from typing import Any

from duochat.models.entities import Attachment, category_for
from duochat.models.enums import AttachmentStatus

logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "application/octet-stream"


def guess_mime_type(filename: str) -> str:
    content_type, _ = mimetypes.guess_type(filename)
    return content_type or DEFAULT_MIME_TYPE


def create_attachment(
    display_name: str,
    mime_type: str | None = None,
    *,
    source_file: Any = None,
    size: int | None = None,
    selection_index: int = 0,
) -> Attachment:
    """Create a pending attachment; the category is fixed here, once."""

    mime = mime_type or guess_mime_type(display_name)
    return Attachment(
        display_name=display_name,
        mime_type=mime,
        category=category_for(mime),
        size=size,
        source_file=source_file,
        selection_index=selection_index,
    )


def to_data_url(mime_type: str, raw: bytes) -> str:
    return f"data:{mime_type};base64,{base64.b64encode(raw).decode('ascii')}"


def strip_data_url_prefix(payload: str) -> str:
    if "," in payload:
        return payload.split(",", 1)[1]
    return payload


def ensure_data_url(mime_type: str, payload: str) -> str:
    if payload.startswith("data:"):
        return payload
    return f"data:{mime_type};base64,{payload}"


def decode_payload(payload: str) -> bytes:
    try:
        return base64.b64decode(strip_data_url_prefix(payload), validate=True)
    except binascii.Error as e:
        raise ValueError(f"invalid base64 payload: {e}") from e


def decoded_size(payload: str) -> int:
    raw = strip_data_url_prefix(payload).strip()
    if not raw:
        return 0
    padding = len(raw) - len(raw.rstrip("="))
    return len(raw) * 3 // 4 - padding


def _read_source(source: Any) -> bytes:
    if isinstance(source, bytes | bytearray):
        return bytes(source)
    if isinstance(source, str | Path):
        return Path(source).read_bytes()
    read = getattr(source, "read", None)
    if not callable(read):
        raise ValueError(f"unreadable source: {type(source).__name__}")
    try:
        source.seek(0)
    except (AttributeError, OSError):
        pass
    data = read()
    if isinstance(data, str):
        return data.encode("utf-8")
    return bytes(data)


async def encode_attachment(attachment: Attachment) -> Attachment:
    """Read the attachment's source and store it as a data URL.

    A failed read leaves the attachment in the ``failed`` state with the
    reason in ``error``.
    """

    try:
        raw = await asyncio.to_thread(_read_source, attachment.source_file)
    except Exception as e:
        logger.warning("Reading %s failed: %s", attachment.display_name, e)
        attachment.status = AttachmentStatus.failed
        attachment.error = str(e) or type(e).__name__
        return attachment

    attachment.encoded_payload = to_data_url(attachment.mime_type, raw)
    if attachment.size is None:
        attachment.size = len(raw)
    attachment.status = AttachmentStatus.ready
    logger.debug("Encoded %s (%d bytes)", attachment.display_name, len(raw))
    return attachment
