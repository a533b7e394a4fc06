from __future__ import annotations

OVERLOADED_STATUS = 503

_DOCUMENT_ERROR_MESSAGES: dict[int, str] = {
    503: "Serwer Google AI jest obecnie przeciążony. Spróbuj ponownie za chwilę.",
    429: "Przekroczono limit zapytań do Google AI. Spróbuj ponownie za kilka minut.",
    400: "Nieprawidłowe żądanie do Google AI. Sprawdź czy plik PDF jest poprawny.",
    401: "Błąd autoryzacji Google AI. Sprawdź klucz API.",
    403: "Brak uprawnień do Google AI. Sprawdź konfigurację API.",
}
_DOCUMENT_ERROR_DEFAULT = "Wystąpił błąd podczas analizy PDF. Spróbuj ponownie."

CHAT_ERROR_MESSAGE = "Wystąpił błąd podczas przetwarzania żądania"


class UpstreamError(Exception):
    """Non-2xx answer from one of the upstream providers."""

    def __init__(self, provider: str, status: int, detail: str = "") -> None:
        self.provider = provider
        self.status = status
        self.detail = detail
        message = f"{provider} API error: {status}"
        if detail:
            message = f"{message} - {detail}"
        super().__init__(message)

    @property
    def is_overloaded(self) -> bool:
        return self.status == OVERLOADED_STATUS


class PdfValidationError(ValueError):
    pass


class MissingApiKeyError(RuntimeError):
    def __init__(self, provider: str, env_names: tuple[str, ...]) -> None:
        self.provider = provider
        self.env_names = env_names
        names = ", ".join(env_names)
        super().__init__(f"Brak klucza {provider} API. Ustaw jedną ze zmiennych: {names}")


class SessionBusyError(RuntimeError):
    pass


def translate_document_error(error: BaseException) -> str:
    """Map a document-path failure to the message shown to the user."""

    if isinstance(error, UpstreamError):
        return _DOCUMENT_ERROR_MESSAGES.get(error.status, _DOCUMENT_ERROR_DEFAULT)
    return _DOCUMENT_ERROR_DEFAULT
