"""Unit tests for the chat orchestrator state machine."""

import json

import pytest
from conftest import (
    FIXED_NOW,
    FakeGenerator,
    FakeModerationGate,
    FakeRetriever,
    assistant,
    collect,
    user,
)

from greanly.core.errors import MalformedRequest, RetrievalUnavailable
from greanly.core.service.adapter import GenerationStreamAdapter
from greanly.core.service.composer import ResponseComposer
from greanly.core.service.models import (
    FALLBACK_MESSAGE,
    ChatRequest,
    ContentEvent,
    ModerationVerdict,
    RetrievalCandidate,
    ToolKind,
)
from greanly.core.service.orchestrator import ChatOrchestrator, parse_chat_request

DENIAL = "I can't discuss violent content. Please ask something else."


def _text(events) -> str:
    return "".join(e.delta for e in events if e.type == "text-delta")


def _types(events) -> list[str]:
    return [e.type for e in events]


@pytest.fixture
def build(persona, retrieval_config, chat_config):
    def _build(
        moderation=None,
        retriever=None,
        generator=None,
        composer=None,
    ) -> ChatOrchestrator:
        return ChatOrchestrator(
            moderation=moderation or FakeModerationGate(),
            retriever=retriever or FakeRetriever(),
            composer=composer
            or ResponseComposer(persona, retrieval_config, chat_config, now=FIXED_NOW),
            adapter=GenerationStreamAdapter(
                generator or FakeGenerator([ContentEvent(content="Hello!")])
            ),
        )

    return _build


def _body(*texts: str) -> bytes:
    return json.dumps(
        {"messages": [{"role": "user", "parts": [{"type": "text", "text": t}]} for t in texts]}
    ).encode()


class TestDenied:
    @pytest.mark.asyncio
    async def test_flagged_request_gets_only_the_denial(self, build):
        retriever = FakeRetriever()
        generator = FakeGenerator([ContentEvent(content="never")])
        orchestrator = build(
            moderation=FakeModerationGate(
                ModerationVerdict(flagged=True, denial_message=DENIAL)
            ),
            retriever=retriever,
            generator=generator,
        )

        events = await collect(orchestrator.stream_response(_body("something violent")))

        assert _types(events) == ["start", "text-start", "text-delta", "text-end", "finish"]
        assert _text(events) == DENIAL
        assert retriever.calls == []
        assert generator.requests == []


class TestBranches:
    @pytest.mark.asyncio
    async def test_grounded_answer_when_top_score_admitted(self, build):
        retriever = FakeRetriever(
            [RetrievalCandidate(content="Bagasse is sugarcane fibre.", score=0.82)]
        )
        generator = FakeGenerator([ContentEvent(content="It is sugarcane fibre.")])
        orchestrator = build(retriever=retriever, generator=generator)

        events = await collect(orchestrator.stream_response(_body("What is bagasse?")))

        assert retriever.calls == ["What is bagasse?"]
        [request] = generator.requests
        assert request.grounded is True
        assert request.tools == frozenset()
        assert "Bagasse is sugarcane fibre." in request.system_prompt
        assert _text(events) == "It is sugarcane fibre."

    @pytest.mark.asyncio
    async def test_general_answer_when_top_score_low(self, build):
        retriever = FakeRetriever([RetrievalCandidate(content="unrelated", score=0.41)])
        generator = FakeGenerator()
        orchestrator = build(retriever=retriever, generator=generator)

        await collect(orchestrator.stream_response(_body("Cheapest rPET suppliers?")))

        [request] = generator.requests
        assert request.grounded is False
        assert request.tools == frozenset({ToolKind.WEB_SEARCH})
        assert "unrelated" not in request.system_prompt

    @pytest.mark.asyncio
    async def test_retrieval_failure_degrades_to_general(self, build):
        generator = FakeGenerator([ContentEvent(content="General answer")])
        orchestrator = build(
            retriever=FakeRetriever(error=RetrievalUnavailable("index down")),
            generator=generator,
        )

        events = await collect(orchestrator.stream_response(_body("hi")))

        assert generator.requests[0].grounded is False
        assert _text(events) == "General answer"

    @pytest.mark.asyncio
    async def test_moderates_and_retrieves_latest_user_text(self, build):
        moderation = FakeModerationGate()
        retriever = FakeRetriever()
        orchestrator = build(moderation=moderation, retriever=retriever)
        body = ChatRequest(
            messages=[user("first"), assistant("reply"), user("second")]
        ).model_dump_json()

        await collect(orchestrator.stream_response(body))

        assert moderation.calls == ["second"]
        assert retriever.calls == ["second"]

    @pytest.mark.asyncio
    async def test_empty_text_skips_retrieval(self, build):
        retriever = FakeRetriever()
        generator = FakeGenerator()
        orchestrator = build(retriever=retriever, generator=generator)

        await collect(orchestrator.stream_response({"messages": []}))

        assert retriever.calls == []
        assert generator.requests[0].grounded is False


class TestFaults:
    @pytest.mark.asyncio
    async def test_malformed_json_yields_fallback_stream(self, build):
        generator = FakeGenerator()
        orchestrator = build(generator=generator)

        events = await collect(orchestrator.stream_response(b"{not json"))

        assert _types(events)[0] == "start"
        assert _types(events)[-1] == "finish"
        assert _text(events) == FALLBACK_MESSAGE
        assert generator.requests == []

    @pytest.mark.asyncio
    async def test_missing_fields_yield_fallback_stream(self, build):
        events = await collect(build().stream_response(b'{"foo": 1}'))
        assert _text(events) == FALLBACK_MESSAGE

    @pytest.mark.asyncio
    async def test_composer_crash_becomes_fallback(self, build):
        class BrokenComposer:
            threshold = 0.7

            def compose(self, candidates, messages):
                raise RuntimeError("bug")

        events = await collect(
            build(composer=BrokenComposer()).stream_response(_body("hi"))
        )
        assert _types(events) == ["start", "text-start", "text-delta", "text-end", "finish"]
        assert _text(events) == FALLBACK_MESSAGE

    @pytest.mark.asyncio
    async def test_generation_failure_mid_stream(self, build):
        generator = FakeGenerator(
            [ContentEvent(content="Partial ")], error=RuntimeError("provider died")
        )
        events = await collect(build(generator=generator).stream_response(_body("hi")))

        assert _types(events).count("finish") == 1
        assert _text(events) == "Partial " + FALLBACK_MESSAGE


class TestReply:
    @pytest.mark.asyncio
    async def test_reply_collects_text(self, build):
        generator = FakeGenerator(
            [ContentEvent(content="Reduce, "), ContentEvent(content="reuse.")]
        )
        reply = await build(generator=generator).reply(ChatRequest(message="tips?"))
        assert reply == "Reduce, reuse."

    @pytest.mark.asyncio
    async def test_reply_for_denied_request(self, build):
        orchestrator = build(
            moderation=FakeModerationGate(
                ModerationVerdict(flagged=True, denial_message=DENIAL)
            )
        )
        assert await orchestrator.reply(ChatRequest(message="x")) == DENIAL


class TestParseChatRequest:
    def test_bytes(self):
        request = parse_chat_request(b'{"message": "hi"}')
        assert request.message == "hi"

    def test_invalid(self):
        with pytest.raises(MalformedRequest):
            parse_chat_request("[]")
