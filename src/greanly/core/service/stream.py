"""Async stream mappers: LangChain / LangGraph output -> generation events.

Two sources are handled:

* a plain ``BaseChatModel.astream`` of ``AIMessageChunk`` (grounded path);
* a compiled agent graph streamed with ``stream_mode=["messages",
  "updates"]`` (general path).  ``"messages"`` delivers model tokens,
  ``"updates"`` delivers complete tool calls and tool results.

Reasoning can arrive three ways depending on the provider: the Responses
API ``reasoning`` summary, a ``reasoning_content`` delta field from
OpenAI-compatible servers, or inline ``<think>...</think>`` tags.  All
three become ``ThinkingEvent``; the adapter decides whether to forward it.
"""

from collections.abc import AsyncGenerator, AsyncIterator
from typing import Any

from langchain_core.messages import AIMessage, AIMessageChunk, ToolMessage

from greanly.core.errors import StepLimitExceeded

from .models import (
    TOOL_STATUS_COMPLETED,
    TOOL_STATUS_ERROR,
    TOOL_STATUS_STARTED,
    ContentEvent,
    GenerationEvent,
    ThinkingEvent,
    ToolCallEvent,
)

_THINK_OPEN = "<think>"
_THINK_CLOSE = "</think>"

# Agent graph vocabulary shared with the generator.
NODE_MODEL = "model"
NODE_TOOLS = "tools"
KEY_MESSAGES = "messages"
KEY_TRUNCATED = "truncated"

STREAM_MODE_MESSAGES = "messages"
STREAM_MODE_UPDATES = "updates"

_KEY_REASONING_CONTENT = "reasoning_content"
_KEY_REASONING = "reasoning"
_KEY_SUMMARY = "summary"
_KEY_TEXT = "text"
_KEY_TYPE = "type"
_BLOCK_TEXT = "text"
_BLOCK_REASONING = "reasoning"


class ThinkTagSplitter:
    """Reclassifies inline ``<think>`` blocks as reasoning.

    Keeps state across chunks because tags can open in one chunk and close
    several chunks later.
    """

    def __init__(self) -> None:
        self.in_thinking = False
        self._strip_leading_newlines = False

    def feed(self, text: str) -> list[ContentEvent | ThinkingEvent]:
        was_thinking = self.in_thinking
        events, self.in_thinking = _split_thinking(text, self.in_thinking)
        if was_thinking and not self.in_thinking:
            self._strip_leading_newlines = True

        out: list[ContentEvent | ThinkingEvent] = []
        for event in events:
            if self._strip_leading_newlines and isinstance(event, ContentEvent):
                stripped = event.content.lstrip("\n")
                if not stripped:
                    continue
                event = ContentEvent(content=stripped)
                self._strip_leading_newlines = False
            out.append(event)
        return out


def _split_thinking(
    text: str, in_thinking: bool
) -> tuple[list[ContentEvent | ThinkingEvent], bool]:
    """Split *text* at ``<think>`` / ``</think>`` boundaries.

    Returns the fragments (tags stripped, empty fragments dropped) and the
    resulting ``in_thinking`` state.
    """
    events: list[ContentEvent | ThinkingEvent] = []
    while text:
        if in_thinking:
            idx = text.find(_THINK_CLOSE)
            if idx == -1:
                events.append(ThinkingEvent(content=text))
                return events, True
            before = text[:idx]
            if before:
                events.append(ThinkingEvent(content=before))
            text = text[idx + len(_THINK_CLOSE) :].lstrip("\n")
            in_thinking = False
        else:
            idx = text.find(_THINK_OPEN)
            if idx == -1:
                events.append(ContentEvent(content=text))
                return events, False
            before = text[:idx]
            if before:
                events.append(ContentEvent(content=before))
            text = text[idx + len(_THINK_OPEN) :]
            in_thinking = True
    return events, in_thinking


def _summary_text(summary: Any) -> str:
    if isinstance(summary, str):
        return summary
    if isinstance(summary, list):
        return "".join(
            part.get(_KEY_TEXT, "") for part in summary if isinstance(part, dict)
        )
    return ""


def reasoning_from_chunk(chunk: AIMessageChunk) -> str:
    """Collect reasoning text carried by *chunk*, in any provider format."""
    parts: list[str] = []

    kwargs = chunk.additional_kwargs or {}
    reasoning_content = kwargs.get(_KEY_REASONING_CONTENT)
    if isinstance(reasoning_content, str):
        parts.append(reasoning_content)
    reasoning = kwargs.get(_KEY_REASONING)
    if isinstance(reasoning, dict):
        parts.append(_summary_text(reasoning.get(_KEY_SUMMARY)))

    if isinstance(chunk.content, list):
        for block in chunk.content:
            if isinstance(block, dict) and block.get(_KEY_TYPE) == _BLOCK_REASONING:
                parts.append(_summary_text(block.get(_KEY_SUMMARY)))
                if isinstance(block.get(_KEY_REASONING), str):
                    parts.append(block[_KEY_REASONING])

    return "".join(parts)


def text_from_chunk(chunk: AIMessageChunk) -> str:
    """Collect user-facing text carried by *chunk*."""
    content = chunk.content
    if isinstance(content, str):
        return content
    parts: list[str] = []
    for block in content or []:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get(_KEY_TYPE) == _BLOCK_TEXT:
            parts.append(block.get(_KEY_TEXT, ""))
    return "".join(parts)


def map_chunk(
    chunk: AIMessageChunk, splitter: ThinkTagSplitter
) -> list[GenerationEvent]:
    """Map one model chunk to reasoning and content events, in that order."""
    events: list[GenerationEvent] = []
    reasoning = reasoning_from_chunk(chunk)
    if reasoning:
        events.append(ThinkingEvent(content=reasoning))
    text = text_from_chunk(chunk)
    if text:
        events.extend(splitter.feed(text))
    return events


async def map_model_stream(
    raw_stream: AsyncIterator[AIMessageChunk],
) -> AsyncGenerator[GenerationEvent, None]:
    """Map a plain ``astream`` of model chunks to generation events."""
    splitter = ThinkTagSplitter()
    async for chunk in raw_stream:
        if not isinstance(chunk, AIMessageChunk):
            continue
        for event in map_chunk(chunk, splitter):
            yield event


async def map_agent_stream(
    raw_stream: AsyncIterator[tuple[str, Any]],
    step_limit: int,
) -> AsyncGenerator[GenerationEvent, None]:
    """Map the agent graph's dual-mode stream to generation events.

    Raises ``StepLimitExceeded`` once the graph reports it stopped at the
    step limit; everything produced before that has been yielded.
    """
    splitter = ThinkTagSplitter()
    async for mode, data in raw_stream:
        if mode == STREAM_MODE_MESSAGES:
            chunk, metadata = data
            if not isinstance(chunk, AIMessageChunk):
                continue
            if metadata.get("langgraph_node") != NODE_MODEL:
                continue
            for event in map_chunk(chunk, splitter):
                yield event

        elif mode == STREAM_MODE_UPDATES:
            if not isinstance(data, dict):
                continue
            model_update = data.get(NODE_MODEL)
            if model_update:
                if model_update.get(KEY_TRUNCATED):
                    raise StepLimitExceeded(step_limit)
                for event in _tool_calls_started(model_update):
                    yield event
            tools_update = data.get(NODE_TOOLS)
            if tools_update:
                for event in _tool_results(tools_update):
                    yield event


def _tool_calls_started(update: dict) -> list[ToolCallEvent]:
    events: list[ToolCallEvent] = []
    for message in update.get(KEY_MESSAGES) or []:
        if not isinstance(message, AIMessage):
            continue
        for call in message.tool_calls:
            events.append(
                ToolCallEvent(
                    name=call.get("name") or "unknown",
                    status=TOOL_STATUS_STARTED,
                    call_id=call.get("id"),
                    arguments=call.get("args") or None,
                )
            )
    return events


def _tool_results(update: dict) -> list[ToolCallEvent]:
    events: list[ToolCallEvent] = []
    for message in update.get(KEY_MESSAGES) or []:
        if not isinstance(message, ToolMessage):
            continue
        is_error = getattr(message, "status", None) == TOOL_STATUS_ERROR
        events.append(
            ToolCallEvent(
                name=message.name or "unknown",
                status=TOOL_STATUS_ERROR if is_error else TOOL_STATUS_COMPLETED,
                call_id=message.tool_call_id,
                result=str(message.content) if message.content else None,
            )
        )
    return events
