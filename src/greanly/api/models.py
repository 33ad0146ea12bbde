"""Pydantic models and SSE framing for the chat API."""

from pydantic import BaseModel, Field

from greanly.core.service.models import StreamEvent

SSE_DONE = "data: [DONE]\n\n"


class ReplyResponse(BaseModel):
    """Non-streaming chat answer."""

    reply: str = Field(description="Complete assistant text")


class ErrorResponse(BaseModel):
    error: str = Field(description="What went wrong")


class WelcomeResponse(BaseModel):
    """Greeting shown before the first user message."""

    name: str = Field(description="Assistant display name")
    message: str = Field(description="Onboarding message")


class HealthResponse(BaseModel):
    status: str = "ok"


def format_sse(event: StreamEvent) -> str:
    """One ``data: {json}`` frame, wire field names applied."""
    return f"data: {event.model_dump_json(by_alias=True, exclude_none=True)}\n\n"
