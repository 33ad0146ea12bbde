"""Model generator: runs a ``GenerationRequest`` against the chat model.

Grounded requests are a single streamed model call with no tools.
General requests run a small LangGraph agent loop::

    START -> model --(tool calls, rounds < limit)--> tools -> model
                   \\-(no tool calls / truncated)--> END

A round is one model turn that asked for tools.  When the model asks for
another round after ``step_limit`` rounds the ``model`` node marks its
update as truncated and the graph ends.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator, Sequence
from typing import Annotated, Any, Protocol, TypedDict

import httpx
import openai
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import (
    AIMessage,
    BaseMessage,
    HumanMessage,
    SystemMessage,
)
from langchain_core.runnables import RunnableConfig
from langgraph.errors import GraphRecursionError
from langgraph.graph import END, START, StateGraph
from langgraph.graph.message import add_messages
from langgraph.prebuilt import ToolNode

from greanly.core.errors import GenerationUnavailable, StepLimitExceeded
from greanly.core.service.models import (
    ROLE_ASSISTANT,
    ROLE_USER,
    ChatMessage,
    GenerationEvent,
    GenerationRequest,
    ProviderOptions,
)
from greanly.core.service.stream import (
    KEY_MESSAGES,
    KEY_TRUNCATED,
    NODE_MODEL,
    NODE_TOOLS,
    STREAM_MODE_MESSAGES,
    STREAM_MODE_UPDATES,
    map_agent_stream,
    map_model_stream,
)
from greanly.core.tools import ToolRegistry

logger = logging.getLogger(__name__)

ROUTE_TOOLS = "tools"
ROUTE_END = "end"


class Generator(Protocol):
    """Produces generation events for one request."""

    def stream(
        self, request: GenerationRequest
    ) -> AsyncGenerator[GenerationEvent, None]: ...


class AgentState(TypedDict, total=False):
    messages: Annotated[list[BaseMessage], add_messages]
    truncated: bool


def to_langchain_messages(
    system_prompt: str, messages: Sequence[ChatMessage]
) -> list[BaseMessage]:
    """System prompt followed by the text of each conversation turn.

    Client-supplied system turns are dropped; turns without text are
    skipped.
    """
    converted: list[BaseMessage] = [SystemMessage(content=system_prompt)]
    for message in messages:
        text = message.text
        if not text.strip():
            continue
        if message.role == ROLE_USER:
            converted.append(HumanMessage(content=text))
        elif message.role == ROLE_ASSISTANT:
            converted.append(AIMessage(content=text))
    return converted


def tool_rounds(messages: Sequence[BaseMessage]) -> int:
    """Number of model turns so far that requested tools."""
    return sum(1 for m in messages if isinstance(m, AIMessage) and m.tool_calls)


def provider_kwargs(options: ProviderOptions, use_responses_api: bool) -> dict[str, Any]:
    """Translate provider options to ChatOpenAI call kwargs."""
    kwargs: dict[str, Any] = {}
    if options.reasoning_effort is None:
        return kwargs
    if use_responses_api:
        reasoning: dict[str, str] = {"effort": options.reasoning_effort}
        if options.reasoning_summary:
            reasoning["summary"] = options.reasoning_summary
        kwargs["reasoning"] = reasoning
    else:
        kwargs["reasoning_effort"] = options.reasoning_effort
    return kwargs


class LangGraphGenerator:
    """Streams model output for grounded and general requests."""

    def __init__(
        self,
        llm: BaseChatModel,
        tool_registry: ToolRegistry,
        use_responses_api: bool = True,
    ) -> None:
        self._llm = llm
        self._tool_registry = tool_registry
        self._use_responses_api = use_responses_api

    async def stream(
        self, request: GenerationRequest
    ) -> AsyncGenerator[GenerationEvent, None]:
        messages = to_langchain_messages(request.system_prompt, request.messages)

        try:
            if not request.tools:
                async for event in map_model_stream(self._llm.astream(messages)):
                    yield event
                return

            graph = self._build_graph(request)
            raw = graph.astream(
                {KEY_MESSAGES: messages},
                stream_mode=[STREAM_MODE_MESSAGES, STREAM_MODE_UPDATES],
                config={"recursion_limit": 2 * request.step_limit + 3},
            )
            async for event in map_agent_stream(raw, request.step_limit):
                yield event
        except GraphRecursionError as exc:
            raise StepLimitExceeded(request.step_limit) from exc
        except (openai.OpenAIError, httpx.HTTPError) as exc:
            raise GenerationUnavailable(str(exc)) from exc

    # ------------------------------------------------------------------
    # Graph construction
    # ------------------------------------------------------------------

    def _build_graph(self, request: GenerationRequest):
        tools = self._tool_registry.get_tools(request.tools)
        options = request.provider_options
        model = self._llm.bind_tools(
            tools,
            parallel_tool_calls=options.parallel_tool_calls,
            **provider_kwargs(options, self._use_responses_api),
        )
        tool_node = ToolNode(tools, handle_tool_errors=True)
        step_limit = request.step_limit

        async def model_node(state: AgentState, config: RunnableConfig) -> dict:
            response = await model.ainvoke(state[KEY_MESSAGES], config)
            update: dict[str, Any] = {KEY_MESSAGES: [response]}
            wants_tools = bool(getattr(response, "tool_calls", None))
            if wants_tools and tool_rounds(state[KEY_MESSAGES]) >= step_limit:
                logger.info("Step limit of %d tool rounds reached", step_limit)
                update[KEY_TRUNCATED] = True
            return update

        def route_after_model(state: AgentState) -> str:
            if state.get(KEY_TRUNCATED):
                return ROUTE_END
            last = state[KEY_MESSAGES][-1]
            if isinstance(last, AIMessage) and last.tool_calls:
                return ROUTE_TOOLS
            return ROUTE_END

        builder: StateGraph = StateGraph(AgentState)
        builder.add_node(NODE_MODEL, model_node)
        builder.add_node(NODE_TOOLS, tool_node)
        builder.add_edge(START, NODE_MODEL)
        builder.add_conditional_edges(
            NODE_MODEL,
            route_after_model,
            {ROUTE_TOOLS: NODE_TOOLS, ROUTE_END: END},
        )
        builder.add_edge(NODE_TOOLS, NODE_MODEL)
        return builder.compile()
