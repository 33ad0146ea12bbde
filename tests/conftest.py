"""Shared fixtures and fakes for the chat pipeline tests."""

from collections.abc import AsyncGenerator, Iterable
from datetime import datetime, timezone

import pytest

from greanly.configs.persona import PersonaConfig
from greanly.configs.system import ChatConfig, RetrievalConfig
from greanly.core.service.models import (
    ChatMessage,
    GenerationEvent,
    GenerationRequest,
    ModerationVerdict,
    RetrievalCandidate,
    TextPart,
)

FIXED_NOW = datetime(2025, 3, 14, 9, 30, tzinfo=timezone.utc)


def user(text: str) -> ChatMessage:
    return ChatMessage(role="user", parts=[TextPart(text=text)])


def assistant(text: str) -> ChatMessage:
    return ChatMessage(role="assistant", parts=[TextPart(text=text)])


async def collect(stream) -> list:
    return [item async for item in stream]


class FakeGenerator:
    """Replays a fixed list of generation events, optionally raising after."""

    def __init__(
        self,
        events: Iterable[GenerationEvent] = (),
        error: BaseException | None = None,
    ) -> None:
        self.events = list(events)
        self.error = error
        self.requests: list[GenerationRequest] = []

    async def stream(
        self, request: GenerationRequest
    ) -> AsyncGenerator[GenerationEvent, None]:
        self.requests.append(request)
        for event in self.events:
            yield event
        if self.error is not None:
            raise self.error


class FakeModerationGate:
    def __init__(self, verdict: ModerationVerdict | None = None) -> None:
        self.verdict = verdict or ModerationVerdict(flagged=False)
        self.calls: list[str] = []

    async def check(self, text: str) -> ModerationVerdict:
        self.calls.append(text)
        return self.verdict


class FakeRetriever:
    def __init__(
        self,
        candidates: list[RetrievalCandidate] | None = None,
        error: Exception | None = None,
    ) -> None:
        self.candidates = candidates or []
        self.error = error
        self.calls: list[str] = []

    async def retrieve(self, query: str) -> list[RetrievalCandidate]:
        self.calls.append(query)
        if self.error is not None:
            raise self.error
        return self.candidates


@pytest.fixture
def persona() -> PersonaConfig:
    return PersonaConfig(timezone="Asia/Kolkata")


@pytest.fixture
def retrieval_config() -> RetrievalConfig:
    return RetrievalConfig(
        index_host="https://my-ai-test.svc.pinecone.io",
        api_key="pc-test",
        admission_threshold=0.70,
    )


@pytest.fixture
def chat_config() -> ChatConfig:
    return ChatConfig()
