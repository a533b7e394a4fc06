from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse

from duochat.agent.document_handler import DocumentAnalysisService
from duochat.api.deps import get_document_service
from duochat.models.wire import AnalyzePdfBody

router = APIRouter(prefix="/api")


@router.post("/analyze-pdf", response_class=PlainTextResponse)
async def analyze_pdf(
    body: AnalyzePdfBody,
    service: DocumentAnalysisService = Depends(get_document_service),
) -> PlainTextResponse:
    """Analyze the first PDF of the request.

    Args:
        body: Files, optional question and analysis type.

    Returns:
        The analysis as plain text.
    """

    text = await service.analyze(body.files, body.question, body.analysis_type)
    return PlainTextResponse(text)
