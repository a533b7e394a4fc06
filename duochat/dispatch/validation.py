from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, ValidationError

from duochat.dispatch.errors import PdfValidationError
from duochat.models.wire import WireFile

MAX_PDF_SIZE = 5 * 1024 * 1024

NO_FILES_MESSAGE = "Brak plików PDF do analizy"

_FIELD_MESSAGES = {
    "name": "Nazwa pliku jest wymagana",
    "type": "Plik musi być w formacie PDF",
    "size": "Plik PDF nie może być większy niż 5MB",
    "data": "Dane pliku są wymagane",
}


class PdfFile(BaseModel):
    name: str = Field(min_length=1)
    type: Literal["application/pdf"]
    size: int = Field(le=MAX_PDF_SIZE)
    data: str = Field(min_length=1)


def validate_pdf_file(file: WireFile) -> PdfFile:
    try:
        return PdfFile.model_validate(file.model_dump())
    except ValidationError as e:
        messages: list[str] = []
        for err in e.errors():
            loc = err.get("loc") or ("",)
            msg = _FIELD_MESSAGES.get(str(loc[0]), err.get("msg", ""))
            if msg not in messages:
                messages.append(msg)
        raise PdfValidationError(f"Nieprawidłowy plik PDF: {', '.join(messages)}") from e
