"""Response formatter for displaying stream events by type."""

import logging
from typing import TextIO

logger = logging.getLogger(__name__)


class ResponseFormatter:
    """Formats and displays chat events organized by type."""

    def __init__(self, output: TextIO, show_thinking: bool = False):
        """Initialize the formatter.

        Parameters
        ----------
        output
            File-like object to write output to.
        show_thinking
            Whether to display reasoning deltas.
        """
        self.output = output
        self.show_thinking = show_thinking
        self.content_buffer: list[str] = []
        self.content_started = False
        self.thinking_started = False

    @property
    def text(self) -> str:
        """Assistant text received so far."""
        return "".join(self.content_buffer)

    def handle_event(self, event: dict) -> None:
        """Handle a single event and display it appropriately."""
        event_type = event.get("type")

        if event_type == "reasoning-delta":
            if self.show_thinking:
                if not self.thinking_started:
                    self._print("\nThinking: ")
                    self.thinking_started = True
                self._print(event.get("delta", ""))

        elif event_type == "text-start":
            if not self.content_started:
                self._print("\nResponse:\n")
                self.content_started = True

        elif event_type == "text-delta":
            delta = event.get("delta", "")
            self.content_buffer.append(delta)
            self._print(delta)

        elif event_type == "tool-call":
            name = event.get("toolName", "unknown")
            args_str = self._format_arguments(event.get("input"))
            self._print(f"\n🔧 Tool: {name}{args_str}\n")

        elif event_type == "tool-result":
            name = event.get("toolName", "unknown")
            result_str = self._format_result(event.get("output"))
            if event.get("isError"):
                self._print(f"❌ Tool {name} failed{result_str}\n")
            else:
                self._print(f"✅ Tool {name} completed{result_str}\n")

        elif event_type == "error":
            message = event.get("message", "Unknown error")
            code = event.get("code", "UNKNOWN")
            self._print(f"\n❌ Error [{code}]: {message}\n")

        elif event_type in ("start", "text-end", "finish", "done"):
            pass

        else:
            logger.debug(f"Unknown event type: {event_type}, event: {event}")

    def _format_arguments(self, arguments: dict | None) -> str:
        """Format tool arguments for display."""
        if not arguments:
            return ""
        args_str = ", ".join(f"{k}={v}" for k, v in list(arguments.items())[:3])
        if len(arguments) > 3:
            args_str += "..."
        return f"({args_str})"

    def _format_result(self, result: str | None) -> str:
        """Format tool result for display."""
        if not result:
            return ""
        max_len = 100
        if len(result) > max_len:
            return f": {result[:max_len]}..."
        return f": {result}"

    def finish_response(self) -> None:
        """Finish displaying a response."""
        if self.content_buffer:
            self._print("\n")
        self.content_started = False
        self.thinking_started = False

    def _print(self, text: str) -> None:
        """Print text to output."""
        self.output.write(text)
        self.output.flush()
