"""Prometheus metrics for the Greanly application.

Custom business metrics that complement the auto-instrumented HTTP
metrics provided by ``prometheus-fastapi-instrumentator``.  Branch and
score information lives here and in logs only, never in the stream.

All metrics use the ``greanly_`` prefix.
"""

import asyncio
import functools
import logging
import time
from collections.abc import AsyncGenerator, Callable
from typing import Any

from fastapi import FastAPI
from prometheus_client import Counter, Gauge, Histogram
from prometheus_fastapi_instrumentator import Instrumentator

from greanly.configs.system import TracingConfig

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Chat session metrics
# ---------------------------------------------------------------------------

CHAT_SESSIONS_ACTIVE = Gauge(
    "greanly_chat_sessions_active",
    "Number of streaming chat sessions currently in progress",
)

CHAT_SESSIONS_TOTAL = Counter(
    "greanly_chat_sessions_total",
    "Total number of chat sessions by terminal state",
    ["state"],  # "done" | "denied" | "faulted" | "cancelled"
)

CHAT_SESSION_DURATION_SECONDS = Histogram(
    "greanly_chat_session_duration_seconds",
    "End-to-end duration of a chat streaming session",
    buckets=(0.5, 1, 2, 5, 10, 20, 30, 60),
)

STREAM_EVENTS_TOTAL = Counter(
    "greanly_stream_events_total",
    "Total stream events emitted, by event type",
    ["event_type"],
)

SSE_STREAM_OUTCOMES_TOTAL = Counter(
    "greanly_sse_stream_outcomes_total",
    "Transport-level outcome of each streamed response",
    ["outcome"],  # "ok" | "timeout" | "cancelled"
)

# ---------------------------------------------------------------------------
# Pipeline stage metrics
# ---------------------------------------------------------------------------

MODERATION_CHECKS_TOTAL = Counter(
    "greanly_moderation_checks_total",
    "Moderation gate outcomes",
    ["result"],  # "clear" | "flagged" | "skipped" | "unavailable"
)

RETRIEVAL_LATENCY_SECONDS = Histogram(
    "greanly_retrieval_latency_seconds",
    "Latency of context retrieval",
    buckets=(0.05, 0.1, 0.25, 0.5, 1, 2, 5),
)

RETRIEVAL_CANDIDATES_RETURNED = Histogram(
    "greanly_retrieval_candidates_returned",
    "Number of candidates returned per retrieval",
    buckets=(0, 1, 2, 3, 5, 10),
)

RETRIEVAL_FAILURES_TOTAL = Counter(
    "greanly_retrieval_failures_total",
    "Retrieval calls that failed and degraded to the general branch",
)

BRANCH_DECISIONS_TOTAL = Counter(
    "greanly_branch_decisions_total",
    "Response composer decisions",
    ["branch"],  # "grounded" | "general"
)

TOOL_CALLS_TOTAL = Counter(
    "greanly_tool_calls_total",
    "Total tool invocations, by tool name and outcome",
    ["tool_name", "status"],
)

GENERATION_FAILURES_TOTAL = Counter(
    "greanly_generation_failures_total",
    "Generation failures replaced by the fallback message",
)

STEP_LIMIT_REACHED_TOTAL = Counter(
    "greanly_step_limit_reached_total",
    "General answers truncated at the tool step limit",
)


# ---------------------------------------------------------------------------
# Decorator
# ---------------------------------------------------------------------------


def observe_stream_events(
    fn: Callable[..., AsyncGenerator],
) -> Callable[..., AsyncGenerator]:
    """Decorator for a stream method that records per-event metrics.

    Tracks the active session gauge, session duration, per-event counters
    and cancellations.  Terminal state counters are recorded by the
    orchestrator itself because only it knows the state.
    """

    @functools.wraps(fn)
    async def wrapper(*args: Any, **kwargs: Any) -> AsyncGenerator:
        CHAT_SESSIONS_ACTIVE.inc()
        start = time.monotonic()
        try:
            async for event in fn(*args, **kwargs):
                STREAM_EVENTS_TOTAL.labels(event_type=event.type).inc()
                yield event
        except asyncio.CancelledError:
            CHAT_SESSIONS_TOTAL.labels(state="cancelled").inc()
            raise
        finally:
            CHAT_SESSIONS_ACTIVE.dec()
            CHAT_SESSION_DURATION_SECONDS.observe(time.monotonic() - start)

    return wrapper


def setup_metrics(app: FastAPI, tracing: TracingConfig) -> None:
    """Attach HTTP instrumentation middleware and the ``/metrics`` endpoint."""
    Instrumentator(
        should_instrument_requests_inprogress=True,
        excluded_handlers=tracing.excluded_urls,
    ).instrument(app).expose(app, endpoint="/metrics", include_in_schema=False)
    logger.info("Prometheus metrics initialised")
