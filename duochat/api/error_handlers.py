from __future__ import annotations

import logging

import httpx
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.requests import Request

from duochat.dispatch.errors import (
    MissingApiKeyError,
    PdfValidationError,
    UpstreamError,
    translate_document_error,
)

logger = logging.getLogger(__name__)


def document_failure_response(exc: Exception) -> JSONResponse:
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": translate_document_error(exc),
            "originalError": str(exc) or type(exc).__name__,
        },
    )


def install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ValueError)
    async def _value_error_handler(_request: Request, exc: ValueError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"error": str(exc)})

    @app.exception_handler(PdfValidationError)
    async def _pdf_validation_handler(_request: Request, exc: PdfValidationError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"success": False, "error": str(exc)})

    @app.exception_handler(RequestValidationError)
    async def _request_validation_handler(
        _request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        fields = ", ".join(".".join(str(p) for p in e.get("loc", ())) for e in exc.errors())
        return JSONResponse(
            status_code=400,
            content={"success": False, "error": f"Nieprawidłowe dane żądania: {fields}"},
        )

    @app.exception_handler(MissingApiKeyError)
    async def _missing_key_handler(_request: Request, exc: MissingApiKeyError) -> JSONResponse:
        logger.error("%s", exc)
        return JSONResponse(status_code=500, content={"success": False, "error": str(exc)})

    @app.exception_handler(UpstreamError)
    async def _upstream_handler(_request: Request, exc: UpstreamError) -> JSONResponse:
        logger.error("Document analysis failed: %s", exc)
        return document_failure_response(exc)

    @app.exception_handler(httpx.HTTPError)
    async def _transport_handler(_request: Request, exc: httpx.HTTPError) -> JSONResponse:
        logger.error("Document analysis transport error: %s", exc)
        return document_failure_response(exc)
