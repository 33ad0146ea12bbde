"""Tool registry: resolves requested tool kinds to LangChain tools."""

from collections.abc import Iterable

from langchain_core.tools import BaseTool

from greanly.core.service.models import ToolKind

from .web_search import WebSearchTool


class ToolRegistry:
    """Holds the tool instances available to the general branch."""

    def __init__(self, web_search: WebSearchTool) -> None:
        self._tools: dict[ToolKind, BaseTool] = {
            ToolKind.WEB_SEARCH: web_search.to_langchain_tool(),
        }

    def get_tools(self, kinds: Iterable[ToolKind]) -> list[BaseTool]:
        """Return tools for *kinds* in a stable order."""
        tools: list[BaseTool] = []
        for kind in sorted(set(kinds)):
            tool = self._tools.get(kind)
            if tool is None:
                raise ValueError(f"Tool '{kind}' is not registered.")
            tools.append(tool)
        return tools
