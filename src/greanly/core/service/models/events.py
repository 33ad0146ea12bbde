"""Client-facing stream events.

Every response is bracketed ``start ... finish``; text arrives as
``text-start / text-delta* / text-end`` blocks keyed by ``id``.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

__all__ = [
    "StartEvent",
    "TextStartEvent",
    "TextDeltaEvent",
    "TextEndEvent",
    "ReasoningDeltaEvent",
    "ToolCallStreamEvent",
    "ToolResultStreamEvent",
    "FinishEvent",
    "StreamEvent",
]


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)


class StartEvent(_WireModel):
    type: Literal["start"] = "start"


class TextStartEvent(_WireModel):
    type: Literal["text-start"] = "text-start"
    id: str


class TextDeltaEvent(_WireModel):
    type: Literal["text-delta"] = "text-delta"
    id: str
    delta: str


class TextEndEvent(_WireModel):
    type: Literal["text-end"] = "text-end"
    id: str


class ReasoningDeltaEvent(_WireModel):
    """Reasoning summary fragment, only ever sent for general answers."""

    type: Literal["reasoning-delta"] = "reasoning-delta"
    id: str
    delta: str


class ToolCallStreamEvent(_WireModel):
    type: Literal["tool-call"] = "tool-call"
    tool_call_id: str = Field(alias="toolCallId")
    tool_name: str = Field(alias="toolName")
    input: dict[str, Any] | None = None


class ToolResultStreamEvent(_WireModel):
    type: Literal["tool-result"] = "tool-result"
    tool_call_id: str = Field(alias="toolCallId")
    tool_name: str = Field(alias="toolName")
    output: str | None = None
    is_error: bool = Field(default=False, alias="isError")


class FinishEvent(_WireModel):
    type: Literal["finish"] = "finish"


StreamEvent = (
    StartEvent
    | TextStartEvent
    | TextDeltaEvent
    | TextEndEvent
    | ReasoningDeltaEvent
    | ToolCallStreamEvent
    | ToolResultStreamEvent
    | FinishEvent
)
