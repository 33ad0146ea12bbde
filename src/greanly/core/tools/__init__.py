from .registry import ToolRegistry  # noqa: F401
from .web_search import SearchResponse, SearchResult, WebSearchTool  # noqa: F401
