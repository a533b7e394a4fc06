from __future__ import annotations

import asyncio
from typing import Any

import pytest

from duochat.agent.document_handler import DocumentAnalysisService
from duochat.config.schema import DocumentProviderSettings
from duochat.dispatch.errors import MissingApiKeyError, PdfValidationError, UpstreamError
from duochat.dispatch.retry import RetryPolicy
from duochat.models.enums import AnalysisType
from duochat.models.wire import WireFile

PDF = WireFile(name="a.pdf", type="application/pdf", size=8, data="JVBERi0xLjQ=")


class _FakeDocumentModel:
    def __init__(self, failures: list[Exception] | None = None) -> None:
        self.failures = list(failures or [])
        self.bodies: list[dict[str, Any]] = []

    async def generate(self, body: dict[str, Any]) -> str:
        self.bodies.append(body)
        if self.failures:
            raise self.failures.pop(0)
        return "analysis"


async def _no_sleep(_delay: float) -> None:
    return


def _service(model: _FakeDocumentModel) -> DocumentAnalysisService:
    return DocumentAnalysisService(
        settings=DocumentProviderSettings(api_key="k"),
        model_factory=lambda: model,
        retry=RetryPolicy(sleep=_no_sleep),
    )


def test_analyze_returns_model_text_for_first_file_only() -> None:
    model = _FakeDocumentModel()
    other = WireFile(name="b.pdf", type="application/pdf", size=8, data="JVBERi0xLjU=")

    out = asyncio.run(_service(model).analyze([PDF, other], "Pytanie?", AnalysisType.qa))

    assert out == "analysis"
    assert len(model.bodies) == 1
    parts = model.bodies[0]["contents"][0]["parts"]
    assert parts[1]["inline_data"]["data"] == "JVBERi0xLjQ="


def test_overloaded_upstream_is_retried() -> None:
    model = _FakeDocumentModel([UpstreamError("Google", 503)] * 2)
    out = asyncio.run(_service(model).analyze([PDF], None, AnalysisType.detailed))
    assert out == "analysis"
    assert len(model.bodies) == 3


def test_validation_happens_before_model_is_built() -> None:
    built: list[bool] = []

    def factory() -> _FakeDocumentModel:
        built.append(True)
        raise MissingApiKeyError("Google AI", ("GOOGLE_API_KEY",))

    service = DocumentAnalysisService(
        settings=DocumentProviderSettings(),
        model_factory=factory,
        retry=RetryPolicy(sleep=_no_sleep),
    )
    big = WireFile(name="a.pdf", type="application/pdf", size=6 * 1024 * 1024, data="x")

    with pytest.raises(PdfValidationError):
        asyncio.run(service.analyze([big], None, AnalysisType.detailed))
    with pytest.raises(PdfValidationError):
        asyncio.run(service.analyze([], None, AnalysisType.detailed))
    assert built == []

    with pytest.raises(MissingApiKeyError):
        asyncio.run(service.analyze([PDF], None, AnalysisType.detailed))
