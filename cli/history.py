"""Conversation history kept by the CLI.

The server does not remember anything between requests, so the client
sends the whole conversation every turn.  With a history file the
conversation also survives between CLI sessions.
"""

import json
import logging
from pathlib import Path

logger = logging.getLogger(__name__)

ROLE_USER = "user"
ROLE_ASSISTANT = "assistant"


def text_message(role: str, text: str) -> dict:
    return {"role": role, "parts": [{"type": "text", "text": text}]}


class ConversationHistory:
    """Ordered chat turns in the request wire shape, optionally on disk."""

    def __init__(self, path: Path | None = None) -> None:
        self.path = path
        self.messages: list[dict] = []

    def load(self) -> None:
        """Read turns from the history file; a missing or corrupt file starts empty."""
        if self.path is None or not self.path.is_file():
            return
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable history file {self.path}: {e}")
            return
        if not isinstance(data, list):
            logger.warning(f"Ignoring history file {self.path}: not a list of messages")
            return
        self.messages = [m for m in data if isinstance(m, dict) and "role" in m]

    def save(self) -> None:
        if self.path is None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(
            json.dumps(self.messages, ensure_ascii=False, indent=2), encoding="utf-8"
        )

    def add_user(self, text: str) -> None:
        self.messages.append(text_message(ROLE_USER, text))

    def add_assistant(self, text: str) -> None:
        self.messages.append(text_message(ROLE_ASSISTANT, text))

    def reset(self) -> None:
        """Forget every turn, including the copy on disk."""
        self.messages = []
        if self.path is not None and self.path.exists():
            self.path.unlink()

    def __len__(self) -> int:
        return len(self.messages)
