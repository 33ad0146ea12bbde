"""OpenTelemetry bootstrap: tracing initialisation and span names.

When ``TracingConfig.enabled`` is false (local dev, tests) the module is a
graceful no-op and ``tracer`` produces non-recording spans.

Usage::

    from greanly.infra.telemetry import SPAN_CHAT_RETRIEVE, tracer

    with tracer.start_as_current_span(SPAN_CHAT_RETRIEVE) as span:
        ...
"""

from __future__ import annotations

import base64
import logging

from opentelemetry import trace

from greanly.configs.system import TracingConfig

logger = logging.getLogger(__name__)

tracer = trace.get_tracer("greanly")

# ---------------------------------------------------------------------------
# Span names
# ---------------------------------------------------------------------------

SPAN_CHAT_REQUEST = "chat.request"
SPAN_CHAT_MODERATE = "chat.moderate"
SPAN_CHAT_RETRIEVE = "chat.retrieve"
SPAN_CHAT_GENERATE = "chat.generate"
SPAN_TOOL_WEB_SEARCH = "tool.web_search"
SPAN_SSE_STREAM = "sse.stream"

# ---------------------------------------------------------------------------
# Span attribute keys
# ---------------------------------------------------------------------------

ATTR_CHAT_STATE = "chat.state"
ATTR_CHAT_MESSAGE_COUNT = "chat.message_count"
ATTR_CHAT_BRANCH = "chat.branch"
ATTR_MODERATION_FLAGGED = "moderation.flagged"
ATTR_RETRIEVAL_TOP_SCORE = "retrieval.top_score"
ATTR_RETRIEVAL_RESULT_COUNT = "retrieval.result_count"
ATTR_RETRIEVAL_THRESHOLD = "retrieval.threshold"
ATTR_TOOL_QUERY_LEN = "tool.query_len"
ATTR_TOOL_RESULT_COUNT = "tool.result_count"
ATTR_SSE_OUTCOME = "sse.outcome"


def init_telemetry(
    app: object | None = None,
    settings: TracingConfig | None = None,
) -> bool:
    """Initialise the OTEL ``TracerProvider`` and auto-instrumentations.

    Returns ``True`` when tracing was switched on.
    """
    if settings is None or not settings.enabled:
        logger.info("OpenTelemetry tracing disabled.")
        return False

    if not settings.endpoint:
        logger.warning(
            "Tracing enabled but no endpoint configured; skipping OpenTelemetry setup."
        )
        return False

    from opentelemetry.exporter.otlp.proto.http.trace_exporter import (
        OTLPSpanExporter,
    )
    from opentelemetry.sdk.resources import Resource
    from opentelemetry.sdk.trace import TracerProvider
    from opentelemetry.sdk.trace.export import BatchSpanProcessor
    from opentelemetry.sdk.trace.sampling import ParentBased, TraceIdRatioBased

    resource = Resource.create({"service.name": settings.service_name})
    sampler = ParentBased(root=TraceIdRatioBased(settings.sample_rate))
    provider = TracerProvider(resource=resource, sampler=sampler)

    headers: dict[str, str] = {}
    if settings.username and settings.password:
        credentials = f"{settings.username}:{settings.password}"
        encoded = base64.b64encode(credentials.encode()).decode()
        headers["Authorization"] = f"Basic {encoded}"

    exporter = OTLPSpanExporter(endpoint=settings.endpoint, headers=headers)
    provider.add_span_processor(BatchSpanProcessor(exporter))
    trace.set_tracer_provider(provider)

    if app is not None:
        from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor

        excluded = ",".join(settings.excluded_urls) if settings.excluded_urls else ""
        FastAPIInstrumentor.instrument_app(app, excluded_urls=excluded)

    from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor

    HTTPXClientInstrumentor().instrument()

    logger.info(
        "OpenTelemetry tracing initialised (service=%s).", settings.service_name
    )
    return True
