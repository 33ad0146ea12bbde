"""Generation stream adapter: generation events -> client stream events.

Owns the envelope.  Every stream it produces starts with ``start`` and
ends with exactly one ``finish``, every ``text-start`` is matched by a
``text-end``, and a failure after ``start`` is replaced by the fallback
text in a fresh text block.  Grounded requests never emit reasoning or
tool events.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import aclosing

from greanly.core.errors import StepLimitExceeded
from greanly.infra.id_utils import generate_id
from greanly.infra.telemetry import ATTR_CHAT_BRANCH, SPAN_CHAT_GENERATE, tracer

from .composer import BRANCH_GENERAL, BRANCH_GROUNDED
from .metrics import (
    GENERATION_FAILURES_TOTAL,
    STEP_LIMIT_REACHED_TOTAL,
    TOOL_CALLS_TOTAL,
)
from .models import (
    FALLBACK_MESSAGE,
    ID_PREFIX_REASONING,
    ID_PREFIX_TEXT,
    ID_PREFIX_TOOL_CALL,
    TOOL_STATUS_ERROR,
    TOOL_STATUS_STARTED,
    ContentEvent,
    FinishEvent,
    GenerationRequest,
    ReasoningDeltaEvent,
    StartEvent,
    StreamEvent,
    TextDeltaEvent,
    TextEndEvent,
    TextStartEvent,
    ThinkingEvent,
    ToolCallEvent,
    ToolCallStreamEvent,
    ToolResultStreamEvent,
)

logger = logging.getLogger(__name__)


class StreamEnvelope:
    """Tracks the envelope state of one response stream."""

    def __init__(self) -> None:
        self.started = False
        self.finished = False
        self._text_id: str | None = None

    @property
    def text_open(self) -> bool:
        return self._text_id is not None

    def observe(self, event: StreamEvent) -> None:
        """Update state from an event produced by another envelope."""
        if isinstance(event, StartEvent):
            self.started = True
        elif isinstance(event, TextStartEvent):
            self._text_id = event.id
        elif isinstance(event, TextEndEvent):
            self._text_id = None
        elif isinstance(event, FinishEvent):
            self.finished = True

    def start(self) -> list[StreamEvent]:
        if self.started:
            return []
        self.started = True
        return [StartEvent()]

    def text(self, delta: str) -> list[StreamEvent]:
        events: list[StreamEvent] = []
        if self._text_id is None:
            self._text_id = generate_id(ID_PREFIX_TEXT)
            events.append(TextStartEvent(id=self._text_id))
        events.append(TextDeltaEvent(id=self._text_id, delta=delta))
        return events

    def close_text(self) -> list[StreamEvent]:
        if self._text_id is None:
            return []
        text_id, self._text_id = self._text_id, None
        return [TextEndEvent(id=text_id)]

    def finish(self) -> list[StreamEvent]:
        if self.finished:
            return []
        events = self.start() + self.close_text()
        self.finished = True
        events.append(FinishEvent())
        return events

    def terminate(self, message: str = FALLBACK_MESSAGE) -> list[StreamEvent]:
        """Close whatever is open, add *message* as its own block and finish."""
        if self.finished:
            return []
        events = self.start() + self.close_text()
        events.extend(self.text(message))
        events.extend(self.finish())
        return events


async def single_message_stream(text: str) -> AsyncGenerator[StreamEvent, None]:
    """A complete stream carrying one text block."""
    for event in StreamEnvelope().terminate(text):
        yield event


class GenerationStreamAdapter:
    """Runs a generator and translates its output to client stream events."""

    def __init__(self, generator) -> None:
        self._generator = generator

    async def stream(
        self, request: GenerationRequest
    ) -> AsyncGenerator[StreamEvent, None]:
        envelope = StreamEnvelope()
        for event in envelope.start():
            yield event

        reasoning_id = generate_id(ID_PREFIX_REASONING)
        branch = BRANCH_GROUNDED if request.grounded else BRANCH_GENERAL

        with tracer.start_as_current_span(SPAN_CHAT_GENERATE) as span:
            span.set_attribute(ATTR_CHAT_BRANCH, branch)
            try:
                async with aclosing(self._generator.stream(request)) as events:
                    async for event in events:
                        for out in self._translate(
                            event, request, envelope, reasoning_id
                        ):
                            yield out
            except StepLimitExceeded as e:
                STEP_LIMIT_REACHED_TOTAL.inc()
                logger.info("Finishing general answer early: %s", e)
            except Exception:
                GENERATION_FAILURES_TOTAL.inc()
                logger.error("Generation failed (%s branch)", branch, exc_info=True)
                for out in envelope.terminate(FALLBACK_MESSAGE):
                    yield out
                return

        for out in envelope.finish():
            yield out

    def _translate(
        self,
        event,
        request: GenerationRequest,
        envelope: StreamEnvelope,
        reasoning_id: str,
    ) -> list[StreamEvent]:
        if isinstance(event, ContentEvent):
            if not event.content:
                return []
            return envelope.text(event.content)

        if request.grounded:
            return []

        if isinstance(event, ThinkingEvent):
            if not event.content:
                return []
            return [ReasoningDeltaEvent(id=reasoning_id, delta=event.content)]

        if isinstance(event, ToolCallEvent):
            TOOL_CALLS_TOTAL.labels(tool_name=event.name, status=event.status).inc()
            call_id = event.call_id or generate_id(ID_PREFIX_TOOL_CALL)
            events = envelope.close_text()
            if event.status == TOOL_STATUS_STARTED:
                events.append(
                    ToolCallStreamEvent(
                        tool_call_id=call_id,
                        tool_name=event.name,
                        input=event.arguments,
                    )
                )
            else:
                events.append(
                    ToolResultStreamEvent(
                        tool_call_id=call_id,
                        tool_name=event.name,
                        output=event.result,
                        is_error=event.status == TOOL_STATUS_ERROR,
                    )
                )
            return events

        logger.debug("Ignoring unknown generation event %r", event)
        return []
