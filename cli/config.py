"""Configuration management for the CLI tool."""

from pathlib import Path

from pydantic import BaseModel, Field


class CLIConfig(BaseModel):
    """CLI configuration settings."""

    host: str = Field(
        default="localhost",
        description="Server host",
    )
    port: int = Field(
        default=8000,
        description="Server port",
    )
    api_path: str = Field(
        default="/chat",
        description="API path for the streaming chat endpoint",
    )
    fetch_welcome: bool = Field(
        default=True,
        description="Print the server's onboarding message on start",
    )
    history_file: Path | None = Field(
        default=None,
        description="JSON file the conversation is loaded from and saved to",
    )
    reset_history: bool = Field(
        default=False,
        description="Discard the saved conversation before the first turn",
    )
    show_thinking: bool = Field(
        default=False,
        description="Print reasoning summaries",
    )

    @property
    def base_url(self) -> str:
        """Get the base URL for the API."""
        return f"http://{self.host}:{self.port}"

    @property
    def chat_url(self) -> str:
        """Get the full URL for the chat endpoint."""
        return f"{self.base_url}{self.api_path}"

    @property
    def welcome_url(self) -> str:
        return f"{self.base_url}/welcome"
