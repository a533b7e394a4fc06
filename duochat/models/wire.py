"""Request bodies accepted by the gateway endpoints."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from duochat.models.enums import AnalysisType, Role


class WireMessage(BaseModel):
    role: Role
    content: str = ""


class WireAttachment(BaseModel):
    name: str = ""
    type: str = ""
    data: str | None = None
    size: int | None = None


class ChatRequestBody(BaseModel):
    messages: list[WireMessage] = Field(default_factory=list)
    attachments: list[WireAttachment] = Field(default_factory=list)


class WireFile(BaseModel):
    name: str = ""
    type: str = ""
    size: int = 0
    data: str = ""


class AnalyzePdfBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    files: list[WireFile] | None = None
    question: str | None = None
    analysis_type: AnalysisType = Field(default=AnalysisType.detailed, alias="analysisType")
