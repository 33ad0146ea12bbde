"""Unit tests for the CLI stream parsing and formatting."""

import io
import json

import pytest

from cli.__main__ import build_parser, config_from_args
from cli.client import parse_sse_block
from cli.config import CLIConfig
from cli.formatter import ResponseFormatter
from cli.greanly_cli import GreanlyCLI
from cli.history import ConversationHistory


class TestParseSSEBlock:
    def test_json_event(self):
        assert parse_sse_block('data: {"type": "start"}') == [{"type": "start"}]

    def test_done_marker(self):
        assert parse_sse_block("data: [DONE]") == [{"type": "done"}]

    def test_garbage_is_skipped(self):
        assert parse_sse_block("data: {oops\n: comment") == []


class TestResponseFormatter:
    def test_text_and_tools(self):
        out = io.StringIO()
        formatter = ResponseFormatter(out)
        for event in [
            {"type": "start"},
            {
                "type": "tool-call",
                "toolCallId": "c",
                "toolName": "web_search",
                "input": {"query": "rPET"},
            },
            {"type": "tool-result", "toolCallId": "c", "toolName": "web_search", "output": "[]"},
            {"type": "text-start", "id": "txt_1"},
            {"type": "text-delta", "id": "txt_1", "delta": "Hello"},
            {"type": "text-end", "id": "txt_1"},
            {"type": "finish"},
        ]:
            formatter.handle_event(event)

        printed = out.getvalue()
        assert "Tool: web_search(query=rPET)" in printed
        assert "Tool web_search completed: []" in printed
        assert "Hello" in printed
        assert formatter.text == "Hello"

    def test_reasoning_hidden_by_default(self):
        out = io.StringIO()
        ResponseFormatter(out).handle_event(
            {"type": "reasoning-delta", "id": "r", "delta": "secret"}
        )
        assert "secret" not in out.getvalue()

    def test_reasoning_shown_when_enabled(self):
        out = io.StringIO()
        ResponseFormatter(out, show_thinking=True).handle_event(
            {"type": "reasoning-delta", "id": "r", "delta": "plan"}
        )
        assert "plan" in out.getvalue()


class TestCLIConfig:
    def test_urls(self):
        config = CLIConfig(host="example", port=9000)
        assert config.chat_url == "http://example:9000/chat"
        assert config.welcome_url == "http://example:9000/welcome"


class TestArgs:
    def test_defaults(self):
        config = config_from_args(build_parser().parse_args([]))
        assert config.fetch_welcome is True
        assert config.history_file is None
        assert config.reset_history is False

    def test_conversation_switches(self, tmp_path):
        path = tmp_path / "chat.json"
        args = build_parser().parse_args(
            ["--no-welcome", "--history-file", str(path), "--reset", "--show-thinking"]
        )
        config = config_from_args(args)
        assert config.fetch_welcome is False
        assert config.history_file == path
        assert config.reset_history is True
        assert config.show_thinking is True


class TestConversationHistory:
    def test_save_and_load_round_trip(self, tmp_path):
        path = tmp_path / "nested" / "chat.json"
        history = ConversationHistory(path)
        history.add_user("Where can I buy rPET?")
        history.add_assistant("Try regional recyclers.")
        history.save()

        restored = ConversationHistory(path)
        restored.load()
        assert restored.messages == history.messages
        assert restored.messages[0]["parts"][0]["text"] == "Where can I buy rPET?"

    def test_corrupt_file_starts_empty(self, tmp_path):
        path = tmp_path / "chat.json"
        path.write_text("{not json", encoding="utf-8")
        history = ConversationHistory(path)
        history.load()
        assert len(history) == 0

    def test_reset_deletes_file(self, tmp_path):
        path = tmp_path / "chat.json"
        history = ConversationHistory(path)
        history.add_user("hi")
        history.save()

        history.reset()

        assert len(history) == 0
        assert not path.exists()


class _FakeClient:
    def __init__(self, reply: str = "Use bagasse trays.") -> None:
        self.reply = reply
        self.sent: list[list[dict]] = []
        self.welcome_calls = 0
        self.closed = False

    async def welcome(self):
        self.welcome_calls += 1
        return "Tell me about your business."

    async def chat(self, messages):
        self.sent.append(list(messages))
        for event in [
            {"type": "start"},
            {"type": "text-start", "id": "txt_1"},
            {"type": "text-delta", "id": "txt_1", "delta": self.reply},
            {"type": "text-end", "id": "txt_1"},
            {"type": "finish"},
            {"type": "done"},
        ]:
            yield event

    async def close(self):
        self.closed = True


class TestGreanlyCLI:
    @pytest.mark.asyncio
    async def test_resends_whole_conversation_and_saves_it(self, tmp_path):
        path = tmp_path / "chat.json"
        client = _FakeClient()
        cli = GreanlyCLI(
            CLIConfig(history_file=path),
            input_stream=io.StringIO("Packaging ideas?\nAnd cups?\nexit\n"),
            output_stream=io.StringIO(),
            client=client,
        )

        await cli.run()

        assert client.welcome_calls == 1
        assert [len(sent) for sent in client.sent] == [1, 3]
        assert client.closed
        saved = json.loads(path.read_text(encoding="utf-8"))
        assert [m["role"] for m in saved] == ["user", "assistant", "user", "assistant"]

    @pytest.mark.asyncio
    async def test_resumed_history_skips_welcome(self, tmp_path):
        path = tmp_path / "chat.json"
        seeded = ConversationHistory(path)
        seeded.add_user("Hi")
        seeded.add_assistant("Hello!")
        seeded.save()
        client = _FakeClient()
        out = io.StringIO()

        await GreanlyCLI(
            CLIConfig(history_file=path),
            input_stream=io.StringIO("Next step?\n"),
            output_stream=out,
            client=client,
        ).run()

        assert client.welcome_calls == 0
        assert len(client.sent[0]) == 3
        assert "Resumed 2 earlier messages" in out.getvalue()

    @pytest.mark.asyncio
    async def test_reset_flag_and_command(self, tmp_path):
        path = tmp_path / "chat.json"
        seeded = ConversationHistory(path)
        seeded.add_user("old")
        seeded.save()
        client = _FakeClient()

        await GreanlyCLI(
            CLIConfig(history_file=path, reset_history=True, fetch_welcome=False),
            input_stream=io.StringIO("first\n/reset\nsecond\n"),
            output_stream=io.StringIO(),
            client=client,
        ).run()

        assert client.welcome_calls == 0
        assert [len(sent) for sent in client.sent] == [1, 1]
