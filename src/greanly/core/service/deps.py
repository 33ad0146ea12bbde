"""FastAPI dependency factories for the chat pipeline.

``get_http_client`` reads from ``app.state`` (created in lifespan).
Everything else is built per request from a freshly read ``AppConfig``
through an explicit ``Depends`` chain, so a changed threshold or model
applies to the next request.
"""

import logging
from typing import Annotated

import httpx
from fastapi import Depends
from langchain_core.language_models import BaseChatModel

from greanly.configs.config import AppConfig, get_app_config
from greanly.core.llm import LangGraphGenerator, get_llm
from greanly.core.moderation import ModerationGate, OpenAIModerator
from greanly.core.retrieval import ContextRetriever, PineconeRetriever
from greanly.core.tools import ToolRegistry, WebSearchTool
from greanly.infra.http_client import get_http_client

from .adapter import GenerationStreamAdapter
from .composer import ResponseComposer
from .orchestrator import ChatOrchestrator

logger = logging.getLogger(__name__)


def get_moderation_gate(
    config: Annotated[AppConfig, Depends(get_app_config)],
    http_client: Annotated[httpx.AsyncClient, Depends(get_http_client)],
) -> ModerationGate:
    if not config.moderation.enabled:
        return ModerationGate(None, enabled=False)
    if not config.llm.api_key:
        logger.warning("No API key configured; moderation gate is disabled.")
        return ModerationGate(None, enabled=False)
    moderator = OpenAIModerator(config.moderation, config.llm, http_client)
    return ModerationGate(moderator)


def get_context_retriever(
    config: Annotated[AppConfig, Depends(get_app_config)],
    http_client: Annotated[httpx.AsyncClient, Depends(get_http_client)],
) -> ContextRetriever:
    return PineconeRetriever(config.retrieval, http_client)


def get_tool_registry(
    config: Annotated[AppConfig, Depends(get_app_config)],
    http_client: Annotated[httpx.AsyncClient, Depends(get_http_client)],
) -> ToolRegistry:
    return ToolRegistry(web_search=WebSearchTool(config.search, http_client))


def get_generator(
    config: Annotated[AppConfig, Depends(get_app_config)],
    llm: Annotated[BaseChatModel, Depends(get_llm)],
    tool_registry: Annotated[ToolRegistry, Depends(get_tool_registry)],
) -> LangGraphGenerator:
    return LangGraphGenerator(
        llm, tool_registry, use_responses_api=config.llm.use_responses_api
    )


def get_chat_orchestrator(
    config: Annotated[AppConfig, Depends(get_app_config)],
    moderation: Annotated[ModerationGate, Depends(get_moderation_gate)],
    retriever: Annotated[ContextRetriever, Depends(get_context_retriever)],
    generator: Annotated[LangGraphGenerator, Depends(get_generator)],
) -> ChatOrchestrator:
    """Create the orchestrator for one request.

    All collaborators are injected explicitly via ``Depends()``.
    """
    composer = ResponseComposer(config.persona, config.retrieval, config.chat)
    return ChatOrchestrator(
        moderation=moderation,
        retriever=retriever,
        composer=composer,
        adapter=GenerationStreamAdapter(generator),
    )
