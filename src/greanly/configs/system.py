"""System-level configuration sections for Greanly."""

import logging
from datetime import timedelta

from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)

# Admission threshold range recommended for production deployments.
RECOMMENDED_THRESHOLD_MIN = 0.65
RECOMMENDED_THRESHOLD_MAX = 0.80


class LLMConfig(BaseModel):
    """Hosted chat model settings (OpenAI-compatible)."""

    endpoint: str | None = Field(
        default=None,
        description="Base URL of an OpenAI-compatible server; None for api.openai.com",
    )
    api_key: str = Field(default="", description="API key for the model provider")
    model_name: str = Field(default="gpt-5.1", description="Model identifier")
    use_responses_api: bool = Field(
        default=True,
        description="Use the Responses API (required for reasoning summaries)",
    )
    model_timeout: timedelta = Field(
        default=timedelta(seconds=25),
        description="Timeout of a single model HTTP call",
    )
    max_retries: int = Field(
        default=0,
        description="Retries performed by the provider client; the chat core never retries",
    )


class ModerationConfig(BaseModel):
    """Content moderation classifier settings."""

    enabled: bool = Field(default=True, description="Run the moderation gate")
    model_name: str = Field(
        default="omni-moderation-latest", description="Moderation model identifier"
    )
    timeout: timedelta = Field(
        default=timedelta(seconds=5), description="Moderation call timeout"
    )


class RetrievalConfig(BaseModel):
    """Vector index settings and the grounding admission threshold."""

    index_host: str = Field(
        default="",
        description="Pinecone index host, e.g. https://my-ai-xxxx.svc.pinecone.io",
    )
    index_name: str = Field(default="my-ai", description="Pinecone index name")
    namespace: str = Field(default="default", description="Index namespace")
    api_key: str = Field(default="", description="Pinecone API key")
    api_version: str = Field(
        default="2025-04", description="Value of the X-Pinecone-API-Version header"
    )
    text_field: str = Field(
        default="text", description="Record field holding the passage text"
    )
    top_k: int = Field(default=3, ge=1, description="Candidates requested per query")
    admission_threshold: float = Field(
        default=0.70,
        ge=0.0,
        le=1.0,
        description="Minimum top-candidate score for a grounded answer (inclusive)",
    )
    timeout: timedelta = Field(
        default=timedelta(seconds=5), description="Retrieval call timeout"
    )

    @field_validator("admission_threshold")
    @classmethod
    def _warn_outside_recommended(cls, value: float) -> float:
        if not RECOMMENDED_THRESHOLD_MIN <= value <= RECOMMENDED_THRESHOLD_MAX:
            logger.warning(
                "admission_threshold=%.2f is outside the recommended range %.2f-%.2f",
                value,
                RECOMMENDED_THRESHOLD_MIN,
                RECOMMENDED_THRESHOLD_MAX,
            )
        return value


class SearchConfig(BaseModel):
    """Google Custom Search settings backing the web search tool."""

    endpoint: str = Field(
        default="https://www.googleapis.com/customsearch/v1",
        description="Custom Search JSON API endpoint",
    )
    api_key: str = Field(default="", description="Google API key")
    engine_id: str = Field(default="", description="Programmable search engine id (cx)")
    num_results: int = Field(default=5, ge=1, le=10, description="Results per search")
    timeout: timedelta = Field(
        default=timedelta(seconds=10), description="Search call timeout"
    )


class ChatConfig(BaseModel):
    """Chat orchestration settings."""

    step_limit: int = Field(
        default=10, ge=1, description="Maximum tool-call rounds in the general branch"
    )
    request_timeout: timedelta = Field(
        default=timedelta(seconds=30),
        description="Wall-clock bound for a whole streamed response",
    )
    reasoning_effort: str = Field(
        default="low", description="Reasoning effort requested in the general branch"
    )
    reasoning_summary: str = Field(
        default="auto", description="Reasoning summary mode in the general branch"
    )


class LoggingConfig(BaseModel):
    """Root logger settings."""

    level: str = Field(default="INFO", description="Root log level")
    json_output: bool = Field(
        default=False, description="Emit JSON lines instead of coloured text"
    )
    logger_levels: dict[str, str] = Field(
        default_factory=lambda: {
            "httpx": "WARNING",
            "httpcore": "WARNING",
            "openai": "WARNING",
            "opentelemetry": "WARNING",
            "langgraph": "WARNING",
        },
        description="Per-logger level overrides for noisy third-party clients",
    )


class TracingConfig(BaseModel):
    """OpenTelemetry tracing settings."""

    enabled: bool = Field(default=False, description="Enable OTLP span export")
    endpoint: str = Field(default="", description="OTLP HTTP traces endpoint")
    username: str = Field(default="", description="Basic-auth user for the collector")
    password: str = Field(default="", description="Basic-auth password")
    service_name: str = Field(default="greanly", description="OTEL service.name")
    sample_rate: float = Field(default=1.0, ge=0.0, le=1.0)
    excluded_urls: list[str] = Field(
        default_factory=lambda: ["/health", "/metrics"],
        description="Paths excluded from HTTP instrumentation",
    )
