from __future__ import annotations

from pydantic import BaseModel, Field

DOCUMENT_KEY_ENV_NAMES = (
    "GOOGLE_GENERATIVE_AI_API_KEY",
    "GOOGLE_API_KEY",
    "GEMINI_API_KEY",
)
CONVERSATIONAL_KEY_ENV_NAMES = ("OPENAI_API_KEY",)


class ConversationalProviderSettings(BaseModel):
    model: str = "gpt-4o"
    api_key: str | None = None
    base_url: str = "https://api.openai.com/v1"
    temperature: float = 0.7
    max_tokens: int = 1000
    timeout: float = 60.0


class DocumentProviderSettings(BaseModel):
    model: str = "gemini-1.5-flash"
    api_key: str | None = None
    base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    temperature: float = 0.7
    max_output_tokens: int = 2000
    timeout: float = 60.0


class ProvidersConfig(BaseModel):
    conversational: ConversationalProviderSettings = Field(
        default_factory=ConversationalProviderSettings
    )
    document: DocumentProviderSettings = Field(default_factory=DocumentProviderSettings)


class RetrySettings(BaseModel):
    max_attempts: int = Field(default=4, ge=1)
    base_delay: float = Field(default=1.0, ge=0)
    max_jitter: float = Field(default=1.0, ge=0)


class GatewaySettings(BaseModel):
    base_url: str = "http://127.0.0.1:8000"
    timeout: float = 120.0


class LoggingSettings(BaseModel):
    level: str = "INFO"


class AppConfig(BaseModel):
    providers: ProvidersConfig = Field(default_factory=ProvidersConfig)
    retry: RetrySettings = Field(default_factory=RetrySettings)
    gateway: GatewaySettings = Field(default_factory=GatewaySettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
