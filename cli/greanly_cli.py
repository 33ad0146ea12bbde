"""Main CLI loop for interactive chat."""

import logging
import sys
from typing import TextIO

from .client import ChatAPIClient
from .config import CLIConfig
from .formatter import ResponseFormatter
from .history import ConversationHistory

logger = logging.getLogger(__name__)

EXIT_COMMANDS = ("exit", "quit", "q")
RESET_COMMAND = "/reset"


class GreanlyCLI:
    """Interactive CLI for the Greanly API.

    The server is stateless, so the CLI keeps the conversation and sends
    all of it with every turn.
    """

    def __init__(
        self,
        config: CLIConfig,
        input_stream: TextIO = sys.stdin,
        output_stream: TextIO = sys.stdout,
        client: ChatAPIClient | None = None,
    ):
        self.config = config
        self.input_stream = input_stream
        self.output_stream = output_stream
        self.client = client or ChatAPIClient(config)
        self.history = ConversationHistory(config.history_file)

    async def run(self) -> None:
        """Run the interactive CLI loop."""
        try:
            self._restore_history()
            await self._print_welcome()
            while True:
                try:
                    query = self._get_user_input()
                    if not query:
                        continue

                    command = query.strip().lower()
                    if command in EXIT_COMMANDS:
                        self._print("Goodbye!\n")
                        break
                    if command == RESET_COMMAND:
                        self.history.reset()
                        self._print("Conversation cleared.\n\n")
                        continue

                    await self._process_query(query)

                except KeyboardInterrupt:
                    self._print("\n\nInterrupted. Use 'exit' or 'quit' to exit.\n")
                except EOFError:
                    self._print("\nGoodbye!\n")
                    break
        finally:
            await self.client.close()

    def _restore_history(self) -> None:
        if self.config.reset_history:
            self.history.reset()
            return
        self.history.load()
        if len(self.history):
            self._print(f"Resumed {len(self.history)} earlier messages.\n")

    async def _process_query(self, query: str) -> None:
        """Send one user turn and print the streamed answer."""
        formatter = ResponseFormatter(self.output_stream, self.config.show_thinking)
        self.history.add_user(query)

        async for event in self.client.chat(self.history.messages):
            formatter.handle_event(event)

        if formatter.text:
            self.history.add_assistant(formatter.text)
        self.history.save()
        formatter.finish_response()
        self._print("\n")

    def _get_user_input(self) -> str:
        """Get user input from the input stream."""
        self._print("> ")
        line = self.input_stream.readline()
        if not line:
            raise EOFError
        return line.rstrip("\n\r")

    async def _print_welcome(self) -> None:
        self._print("Greanly CLI - Interactive Chat Interface\n")
        self._print(f"Connected to: {self.config.chat_url}\n")
        self._print(
            "Type your message and press Enter. "
            f"'{RESET_COMMAND}' starts over, 'exit' or 'quit' leaves.\n\n"
        )
        if not self.config.fetch_welcome or len(self.history):
            return
        message = await self.client.welcome()
        if message:
            self._print(f"{message}\n")

    def _print(self, text: str) -> None:
        """Print text to output stream."""
        self.output_stream.write(text)
        self.output_stream.flush()


async def main(config: CLIConfig, debug: bool = False) -> None:
    """Configure logging and run the interactive loop."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )
    await GreanlyCLI(config).run()
