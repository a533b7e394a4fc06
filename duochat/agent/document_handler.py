from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from duochat.config.schema import DocumentProviderSettings
from duochat.dispatch.adapters import build_document_body
from duochat.dispatch.errors import PdfValidationError
from duochat.dispatch.retry import RetryPolicy
from duochat.dispatch.router import OutboundAttachment
from duochat.dispatch.validation import NO_FILES_MESSAGE, validate_pdf_file
from duochat.models.enums import AnalysisType
from duochat.models.provider import DocumentModel
from duochat.models.wire import WireFile

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DocumentAnalysisService:
    settings: DocumentProviderSettings
    model_factory: Callable[[], DocumentModel]
    retry: RetryPolicy

    async def analyze(
        self,
        files: Sequence[WireFile] | None,
        question: str | None,
        analysis_type: AnalysisType,
    ) -> str:
        """Analyze the first PDF in ``files``.

        Validation runs before the model is built, so a bad file never
        reaches the provider, even when no API key is configured.
        """

        if not files:
            raise PdfValidationError(NO_FILES_MESSAGE)
        pdf = validate_pdf_file(files[0])
        if len(files) > 1:
            logger.info("Ignoring %d extra file(s), only the first is analyzed", len(files) - 1)
        model = self.model_factory()

        document = OutboundAttachment(name=pdf.name, mime_type=pdf.type, data=pdf.data, size=pdf.size)
        body = build_document_body(document, question, analysis_type, self.settings)
        logger.info(
            "PDF analysis: name=%s size=%d type=%s", pdf.name, pdf.size, analysis_type.value
        )
        text = await self.retry.run(lambda: model.generate(body))
        logger.info("PDF analysis completed")
        return text
