"""Conversation messages as sent by the browser client."""

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from greanly.infra.id_utils import generate_id

from .constants import ID_PREFIX_MESSAGE, PART_TYPE_TEXT, ROLE_USER

__all__ = [
    "TextPart",
    "UnknownPart",
    "ContentPart",
    "ChatMessage",
    "ChatRequest",
    "latest_user_text",
]


class TextPart(BaseModel):
    """Plain text content."""

    type: Literal["text"] = PART_TYPE_TEXT
    text: str = ""


class UnknownPart(BaseModel):
    """Any part kind the backend does not consume (files, tool parts, ...).

    Kept so the message still validates; ignored everywhere text is read.
    """

    model_config = ConfigDict(extra="allow")

    type: str


# Tried left to right: anything that is not a text part falls through to
# ``UnknownPart``.
ContentPart = Annotated[
    TextPart | UnknownPart, Field(union_mode="left_to_right")
]


class ChatMessage(BaseModel):
    """One message of the conversation, owned by the client."""

    id: str = Field(default_factory=lambda: generate_id(ID_PREFIX_MESSAGE))
    role: Literal["user", "assistant", "system"]
    parts: list[ContentPart] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _content_shorthand(cls, data: Any) -> Any:
        """Accept ``{"role", "content": str}`` as a single text part."""
        if isinstance(data, dict) and "parts" not in data:
            content = data.get("content")
            if isinstance(content, str):
                data = {k: v for k, v in data.items() if k != "content"}
                data["parts"] = [{"type": PART_TYPE_TEXT, "text": content}]
        return data

    @property
    def text(self) -> str:
        """Concatenation of all text parts in display order."""
        return "".join(p.text for p in self.parts if isinstance(p, TextPart))


class ChatRequest(BaseModel):
    """Inbound chat body: ``{messages: [...]}`` or degraded ``{message: str}``."""

    messages: list[ChatMessage] | None = None
    message: str | None = None

    @model_validator(mode="after")
    def _require_messages_or_message(self) -> "ChatRequest":
        if self.messages is None and self.message is None:
            raise ValueError("Request needs either 'messages' or 'message'.")
        return self

    def to_messages(self) -> list[ChatMessage]:
        """Return the conversation, wrapping ``message`` as a user turn."""
        if self.messages is not None:
            return list(self.messages)
        return [
            ChatMessage(role=ROLE_USER, parts=[TextPart(text=self.message or "")])
        ]


def latest_user_text(messages: list[ChatMessage]) -> str:
    """Text of the most recent user message, or ``""`` when there is none."""
    for message in reversed(messages):
        if message.role == ROLE_USER:
            return message.text
    return ""
