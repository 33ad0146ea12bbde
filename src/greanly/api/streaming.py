"""Reusable SSE streaming infrastructure.

Wraps an async generator of ``StreamEvent`` objects into SSE frames with
timeout enforcement, an error boundary, and transport metrics.  The
business generators stay free of SSE formatting; this module makes sure a
client always sees a closed envelope followed by ``[DONE]`` unless it
went away.
"""

import asyncio
import json
import logging
from collections import Counter as EventCounter
from collections.abc import AsyncGenerator
from datetime import timedelta

from greanly.core.service.adapter import StreamEnvelope
from greanly.core.service.metrics import SSE_STREAM_OUTCOMES_TOTAL
from greanly.core.service.models import FALLBACK_MESSAGE, StreamEvent
from greanly.infra.telemetry import ATTR_SSE_OUTCOME, SPAN_SSE_STREAM, tracer

from .models import SSE_DONE, format_sse

logger = logging.getLogger(__name__)

OUTCOME_OK = "ok"
OUTCOME_TIMEOUT = "timeout"
OUTCOME_CANCELLED = "cancelled"
OUTCOME_ERROR = "error"


async def sse_stream(
    events: AsyncGenerator[StreamEvent, None],
    *,
    request_timeout: timedelta,
) -> AsyncGenerator[str, None]:
    """Format stream events as SSE with a wall-clock timeout.

    Parameters
    ----------
    events:
        Async generator of ``StreamEvent`` instances (business logic).
    request_timeout:
        Wall-clock timeout for the entire streaming lifecycle.

    Yields
    ------
    SSE-formatted strings (``data: {...}\\n\\n``), ending with ``[DONE]``.
    """
    with tracer.start_as_current_span(SPAN_SSE_STREAM) as span:
        outcome = OUTCOME_OK
        envelope = StreamEnvelope()
        event_counts: EventCounter[str] = EventCounter()
        try:
            async with asyncio.timeout(request_timeout.total_seconds()):
                async for event in events:
                    envelope.observe(event)
                    event_counts[event.type] += 1
                    yield format_sse(event)

        except TimeoutError:
            outcome = OUTCOME_TIMEOUT
            logger.warning("Chat stream timed out after %s.", request_timeout)
            await events.aclose()
            for event in envelope.terminate(FALLBACK_MESSAGE):
                yield format_sse(event)
        except asyncio.CancelledError:
            outcome = OUTCOME_CANCELLED
            logger.debug("Client went away; abandoning chat stream.")
            raise
        except Exception as e:
            # The orchestrator owns faults; this only guards the transport.
            outcome = OUTCOME_ERROR
            span.record_exception(e)
            logger.error("Unexpected error in SSE stream", exc_info=True)
            for event in envelope.terminate(FALLBACK_MESSAGE):
                yield format_sse(event)
        finally:
            span.set_attribute(ATTR_SSE_OUTCOME, outcome)
            span.set_attribute("sse.event_counts", json.dumps(event_counts))
            SSE_STREAM_OUTCOMES_TOTAL.labels(outcome=outcome).inc()

        yield SSE_DONE
