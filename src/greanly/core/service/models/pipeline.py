"""Per-request values passed between the orchestration stages."""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from .messages import ChatMessage

__all__ = [
    "ChatState",
    "ModerationVerdict",
    "RetrievalCandidate",
    "ToolKind",
    "ProviderOptions",
    "GenerationRequest",
]


class ChatState(StrEnum):
    """States of a single chat request."""

    RECEIVED = "received"
    MODERATING = "moderating"
    DENIED = "denied"
    RETRIEVING = "retrieving"
    COMPOSING = "composing"
    STREAMING = "streaming"
    DONE = "done"
    FAULTED = "faulted"


class ModerationVerdict(BaseModel):
    """Outcome of the moderation gate."""

    model_config = ConfigDict(frozen=True)

    flagged: bool = False
    denial_message: str | None = None
    categories: tuple[str, ...] = ()


class RetrievalCandidate(BaseModel):
    """A ranked passage returned by the context retriever."""

    model_config = ConfigDict(frozen=True)

    content: str
    score: float = Field(ge=0.0, le=1.0)


class ToolKind(StrEnum):
    """Capabilities that can be attached to a generation request."""

    WEB_SEARCH = "web_search"


class ProviderOptions(BaseModel):
    """Provider-level directives for the model call."""

    model_config = ConfigDict(frozen=True)

    parallel_tool_calls: bool | None = None
    reasoning_effort: str | None = None
    reasoning_summary: str | None = None


class GenerationRequest(BaseModel):
    """Everything the stream adapter needs to run one model call.

    Built by the response composer, consumed once by the adapter.
    """

    model_config = ConfigDict(frozen=True)

    system_prompt: str
    messages: tuple[ChatMessage, ...] = ()
    tools: frozenset[ToolKind] = frozenset()
    step_limit: int = Field(default=0, ge=0)
    grounded: bool = False
    provider_options: ProviderOptions = Field(default_factory=ProviderOptions)
