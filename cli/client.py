"""API client for the Greanly API with SSE stream parsing."""

import json
import logging
from typing import AsyncIterator

import httpx

from .config import CLIConfig

logger = logging.getLogger(__name__)

SSE_DATA_PREFIX = "data: "
SSE_DONE = "[DONE]"


def parse_sse_block(block: str) -> list[dict]:
    """Parse one ``\\n\\n``-terminated SSE block into JSON events.

    The ``[DONE]`` sentinel is returned as ``{"type": "done"}``.
    """
    events: list[dict] = []
    for line in block.split("\n"):
        line = line.strip()
        if not line.startswith(SSE_DATA_PREFIX):
            continue
        data_str = line[len(SSE_DATA_PREFIX) :]
        if data_str == SSE_DONE:
            events.append({"type": "done"})
            continue
        try:
            events.append(json.loads(data_str))
        except json.JSONDecodeError as e:
            logger.warning(f"Failed to parse SSE data: {data_str}, error: {e}")
    return events


class ChatAPIClient:
    """Client for interacting with the Greanly chat API."""

    def __init__(self, config: CLIConfig):
        """Initialize the API client."""
        self.config = config
        self.client = httpx.AsyncClient(timeout=120.0)

    async def welcome(self) -> str | None:
        """Fetch the onboarding message, or None when the server is unreachable."""
        try:
            response = await self.client.get(self.config.welcome_url)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.debug(f"Could not fetch welcome message: {e}")
            return None
        return response.json().get("message")

    async def chat(self, messages: list[dict]) -> AsyncIterator[dict]:
        """Send the conversation and stream events.

        Yields
        ------
        dict
            Parsed JSON event from the SSE stream.
        """
        url = self.config.chat_url
        payload = {"messages": messages}

        logger.debug(f"Making request to {url} with {len(messages)} messages")

        try:
            async with self.client.stream(
                "POST", url, json=payload, headers={"Accept": "text/event-stream"}
            ) as response:
                logger.debug(f"Response status: {response.status_code}")
                logger.debug(f"Response headers: {dict(response.headers)}")

                if response.status_code != 200:
                    error_text = await response.aread()
                    yield {
                        "type": "error",
                        "message": f"HTTP {response.status_code}: {error_text.decode()}",
                        "code": "HTTP_ERROR",
                    }
                    return

                buffer = ""
                async for chunk in response.aiter_text():
                    buffer += chunk
                    while "\n\n" in buffer:
                        event_block, buffer = buffer.split("\n\n", 1)
                        for event in parse_sse_block(event_block):
                            yield event

        except httpx.TimeoutException:
            yield {
                "type": "error",
                "message": "Request timed out.",
                "code": "TIMEOUT",
            }
        except httpx.ConnectError as e:
            yield {
                "type": "error",
                "message": f"Connection error: {str(e)}",
                "code": "CONNECTION_ERROR",
            }

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()
