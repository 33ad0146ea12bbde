"""Chat API endpoints."""

import logging

from fastapi import APIRouter, Request
from fastapi.responses import StreamingResponse

from greanly.core.service.orchestrator import parse_chat_request

from .deps import AppConfigDep, ChatConfigDep, ChatOrchestratorDep
from .models import ErrorResponse, HealthResponse, ReplyResponse, WelcomeResponse
from .streaming import sse_stream

logger = logging.getLogger(__name__)

STREAMING_RESPONSE_MEDIA_TYPE = "text/event-stream"
STREAMING_RESPONSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
    "x-vercel-ai-ui-message-stream": "v1",
}

router = APIRouter(tags=["chat"])


@router.post("/chat")
async def chat(
    request: Request,
    orchestrator: ChatOrchestratorDep,
    chat_config: ChatConfigDep,
) -> StreamingResponse:
    """Stream the assistant's answer for a conversation.

    The body is ``{"messages": [...]}`` (or ``{"message": "..."}``) and is
    parsed by the orchestrator itself, so even a malformed body gets an
    HTTP 200 stream carrying the fallback text.  Each frame is
    ``data: {json}``; the stream ends with ``data: [DONE]``.
    """
    body = await request.body()
    return StreamingResponse(
        sse_stream(
            orchestrator.stream_response(body),
            request_timeout=chat_config.request_timeout,
        ),
        media_type=STREAMING_RESPONSE_MEDIA_TYPE,
        headers=STREAMING_RESPONSE_HEADERS,
    )


@router.post(
    "/chat/reply",
    response_model=ReplyResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def chat_reply(
    request: Request,
    orchestrator: ChatOrchestratorDep,
) -> ReplyResponse:
    """Non-streaming variant: the whole answer as one JSON body.

    Malformed bodies are rejected with 400 by the exception handler.
    """
    chat_request = parse_chat_request(await request.body())
    return ReplyResponse(reply=await orchestrator.reply(chat_request))


@router.get("/welcome", response_model=WelcomeResponse)
async def welcome(config: AppConfigDep) -> WelcomeResponse:
    persona = config.persona
    return WelcomeResponse(name=persona.name, message=persona.welcome_message)


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    return HealthResponse()
