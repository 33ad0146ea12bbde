"""Web search tool backed by the Google Custom Search JSON API.

The model sees a single ``web_search`` tool taking a free-text query.
Results come back as compact JSON (title, link, snippet) so the model
can cite them as markdown links.  Failures are reported to the model as
an empty result list with an ``error`` note instead of raising, so one
bad search does not end the answer.
"""

from __future__ import annotations

import json
import logging

import httpx
from langchain_core.tools import BaseTool, StructuredTool
from pydantic import BaseModel, Field

from greanly.configs.system import SearchConfig
from greanly.core.service.models import TOOL_WEB_SEARCH
from greanly.infra.telemetry import (
    ATTR_TOOL_QUERY_LEN,
    ATTR_TOOL_RESULT_COUNT,
    SPAN_TOOL_WEB_SEARCH,
    tracer,
)

logger = logging.getLogger(__name__)

WEB_SEARCH_DESCRIPTION = (
    "Search the web for current, factual information: sustainable suppliers, "
    "materials, certifications, regulations, prices or recent news. "
    "Use a short, specific query."
)

_ERR_SEARCH_FAILED = "Could not fetch search results."
_ERR_NOT_CONFIGURED = "Web search is not configured."


class WebSearchInput(BaseModel):
    query: str = Field(description="What to search the web for")


class SearchResult(BaseModel):
    title: str = ""
    link: str = ""
    snippet: str = ""


class SearchResponse(BaseModel):
    results: list[SearchResult] = Field(default_factory=list)
    error: str | None = None


class WebSearchTool:
    """Runs searches and exposes itself as a LangChain tool."""

    name = TOOL_WEB_SEARCH

    def __init__(self, config: SearchConfig, http_client: httpx.AsyncClient) -> None:
        self._config = config
        self._http = http_client

    async def search(self, query: str) -> SearchResponse:
        if not self._config.api_key or not self._config.engine_id:
            return SearchResponse(error=_ERR_NOT_CONFIGURED)

        with tracer.start_as_current_span(SPAN_TOOL_WEB_SEARCH) as span:
            span.set_attribute(ATTR_TOOL_QUERY_LEN, len(query))
            params = {
                "q": query,
                "num": str(self._config.num_results),
                "key": self._config.api_key,
                "cx": self._config.engine_id,
            }
            try:
                response = await self._http.get(
                    self._config.endpoint,
                    params=params,
                    timeout=self._config.timeout.total_seconds(),
                )
                response.raise_for_status()
                items = response.json().get("items") or []
            except (httpx.HTTPError, ValueError, AttributeError):
                logger.warning("Web search failed for query %r", query, exc_info=True)
                return SearchResponse(error=_ERR_SEARCH_FAILED)

            results = [
                SearchResult(
                    title=item.get("title", ""),
                    link=item.get("link", ""),
                    snippet=item.get("snippet", ""),
                )
                for item in items
                if isinstance(item, dict)
            ]
            span.set_attribute(ATTR_TOOL_RESULT_COUNT, len(results))
            return SearchResponse(results=results)

    async def execute(self, query: str) -> str:
        """Search and return the JSON text handed back to the model."""
        response = await self.search(query)
        return json.dumps(response.model_dump(exclude_none=True), ensure_ascii=False)

    def to_langchain_tool(self) -> BaseTool:
        return StructuredTool.from_function(
            coroutine=self.execute,
            name=self.name,
            description=WEB_SEARCH_DESCRIPTION,
            args_schema=WebSearchInput,
        )
