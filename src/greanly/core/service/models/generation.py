"""Events produced by the model generator, before wire translation."""

from typing import Any, Literal

from pydantic import BaseModel, Field

__all__ = [
    "ContentEvent",
    "ThinkingEvent",
    "ToolCallEvent",
    "GenerationEvent",
]


class ContentEvent(BaseModel):
    """User-facing text tokens."""

    type: Literal["content"] = "content"
    content: str = Field(description="Text token content")


class ThinkingEvent(BaseModel):
    """Model reasoning (summaries, think blocks)."""

    type: Literal["thinking"] = "thinking"
    content: str = Field(description="Reasoning content")


class ToolCallEvent(BaseModel):
    """Tool invocation lifecycle event."""

    type: Literal["tool_call"] = "tool_call"
    name: str = Field(description="Tool name, e.g. 'web_search'")
    status: Literal["started", "completed", "error"]
    call_id: str | None = Field(default=None, description="Provider tool call ID")
    arguments: dict[str, Any] | None = Field(
        default=None, description="Tool arguments (present when started)"
    )
    result: str | None = Field(
        default=None, description="Tool result (present when completed or error)"
    )


GenerationEvent = ContentEvent | ThinkingEvent | ToolCallEvent
