"""Chat model factory."""

import logging
from typing import Annotated

import httpx
from fastapi import Depends

from greanly.configs.config import get_llm_config
from greanly.configs.system import LLMConfig
from greanly.infra.http_client import get_http_client

from .reasoning import ReasoningChatOpenAI

logger = logging.getLogger(__name__)


def build_chat_model(
    config: LLMConfig, http_client: httpx.AsyncClient | None = None
) -> ReasoningChatOpenAI:
    """Create a streaming ChatOpenAI that preserves reasoning output."""
    return ReasoningChatOpenAI(
        base_url=config.endpoint,
        api_key=config.api_key or "unset",
        model=config.model_name,
        timeout=config.model_timeout.total_seconds(),
        max_retries=config.max_retries,
        use_responses_api=config.use_responses_api,
        http_async_client=http_client,
        streaming=True,
    )


def get_llm(
    config: Annotated[LLMConfig, Depends(get_llm_config)],
    http_client: Annotated[httpx.AsyncClient, Depends(get_http_client)],
) -> ReasoningChatOpenAI:
    return build_chat_model(config, http_client)
