"""Chat orchestrator: one request, one pass through the pipeline.

::

    RECEIVED -> MODERATING --(flagged)--> DENIED
                           \\-> RETRIEVING -> COMPOSING -> STREAMING -> DONE

``FAULTED`` is reachable from every state.  This is the single place
where an unexpected exception is turned into the fallback message; every
stream it returns is a complete ``start ... finish`` envelope.
"""

import logging
import time
from collections.abc import AsyncGenerator
from contextlib import aclosing
from typing import Any

from pydantic import ValidationError

from greanly.core.errors import MalformedRequest
from greanly.core.moderation import ModerationGate
from greanly.core.retrieval import ContextRetriever
from greanly.infra.telemetry import (
    ATTR_CHAT_MESSAGE_COUNT,
    ATTR_CHAT_STATE,
    ATTR_RETRIEVAL_RESULT_COUNT,
    ATTR_RETRIEVAL_THRESHOLD,
    ATTR_RETRIEVAL_TOP_SCORE,
    SPAN_CHAT_REQUEST,
    SPAN_CHAT_RETRIEVE,
    tracer,
)

from .adapter import GenerationStreamAdapter, StreamEnvelope, single_message_stream
from .composer import ResponseComposer
from .metrics import (
    CHAT_SESSIONS_TOTAL,
    RETRIEVAL_FAILURES_TOTAL,
    observe_stream_events,
)
from .models import (
    DEFAULT_DENIAL_MESSAGE,
    EVENT_TYPE_TEXT_DELTA,
    FALLBACK_MESSAGE,
    ChatRequest,
    ChatState,
    RetrievalCandidate,
    StreamEvent,
    latest_user_text,
)

logger = logging.getLogger(__name__)


def parse_chat_request(body: bytes | str | dict[str, Any]) -> ChatRequest:
    """Validate a raw request body; raise ``MalformedRequest`` on any problem."""
    try:
        if isinstance(body, dict):
            return ChatRequest.model_validate(body)
        return ChatRequest.model_validate_json(body)
    except (ValidationError, ValueError) as e:
        raise MalformedRequest(str(e)) from e


class ChatOrchestrator:
    """Sequences moderation, retrieval, composition and streaming."""

    def __init__(
        self,
        moderation: ModerationGate,
        retriever: ContextRetriever,
        composer: ResponseComposer,
        adapter: GenerationStreamAdapter,
    ) -> None:
        self._moderation = moderation
        self._retriever = retriever
        self._composer = composer
        self._adapter = adapter

    @observe_stream_events
    async def stream_response(
        self, body: bytes | str | dict[str, Any]
    ) -> AsyncGenerator[StreamEvent, None]:
        """Stream the answer for a raw request body.

        A body that does not parse yields the fallback stream.
        """
        try:
            request = parse_chat_request(body)
        except MalformedRequest:
            logger.warning("Malformed chat request body", exc_info=True)
            CHAT_SESSIONS_TOTAL.labels(state=ChatState.FAULTED.value).inc()
            async for event in single_message_stream(FALLBACK_MESSAGE):
                yield event
            return

        async with aclosing(self._run(request)) as events:
            async for event in events:
                yield event

    async def reply(self, request: ChatRequest) -> str:
        """Collect the whole answer as plain text (non-streaming variant)."""
        parts: list[str] = []
        async with aclosing(self._run(request)) as events:
            async for event in events:
                if event.type == EVENT_TYPE_TEXT_DELTA:
                    parts.append(event.delta)
        return "".join(parts)

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    async def _run(self, request: ChatRequest) -> AsyncGenerator[StreamEvent, None]:
        envelope = StreamEnvelope()
        state = ChatState.RECEIVED
        start = time.monotonic()

        with tracer.start_as_current_span(SPAN_CHAT_REQUEST) as span:
            try:
                messages = request.to_messages()
                span.set_attribute(ATTR_CHAT_MESSAGE_COUNT, len(messages))
                text = latest_user_text(messages)

                state = self._transition(state, ChatState.MODERATING)
                verdict = await self._moderation.check(text)
                if verdict.flagged:
                    state = self._transition(state, ChatState.DENIED)
                    async for event in single_message_stream(
                        verdict.denial_message or DEFAULT_DENIAL_MESSAGE
                    ):
                        envelope.observe(event)
                        yield event
                    return

                state = self._transition(state, ChatState.RETRIEVING)
                candidates = await self._retrieve(text)

                state = self._transition(state, ChatState.COMPOSING)
                generation = self._composer.compose(candidates, messages)

                state = self._transition(state, ChatState.STREAMING)
                async with aclosing(self._adapter.stream(generation)) as events:
                    async for event in events:
                        envelope.observe(event)
                        yield event

                state = self._transition(state, ChatState.DONE)

            except Exception:
                logger.error(
                    "Chat request faulted in state %s", state.value, exc_info=True
                )
                state = self._transition(state, ChatState.FAULTED)
                for event in envelope.terminate(FALLBACK_MESSAGE):
                    yield event

            finally:
                span.set_attribute(ATTR_CHAT_STATE, state.value)
                if state in (ChatState.DONE, ChatState.DENIED, ChatState.FAULTED):
                    CHAT_SESSIONS_TOTAL.labels(state=state.value).inc()
                logger.debug(
                    "Chat request ended in %s after %.2fs",
                    state.value,
                    time.monotonic() - start,
                )

    async def _retrieve(self, text: str) -> list[RetrievalCandidate]:
        """Retrieval failures degrade to no candidates."""
        if not text.strip():
            return []

        with tracer.start_as_current_span(SPAN_CHAT_RETRIEVE) as span:
            span.set_attribute(ATTR_RETRIEVAL_THRESHOLD, self._composer.threshold)
            try:
                candidates = await self._retriever.retrieve(text)
            except Exception:
                RETRIEVAL_FAILURES_TOTAL.inc()
                logger.warning(
                    "Retrieval unavailable; answering without context.",
                    exc_info=True,
                )
                return []

            span.set_attribute(ATTR_RETRIEVAL_RESULT_COUNT, len(candidates))
            if candidates:
                span.set_attribute(ATTR_RETRIEVAL_TOP_SCORE, candidates[0].score)
            return candidates

    @staticmethod
    def _transition(current: ChatState, target: ChatState) -> ChatState:
        logger.debug("Chat state %s -> %s", current.value, target.value)
        return target

