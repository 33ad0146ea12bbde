"""Event type, role and tool constants."""

# ---------------------------------------------------------------------------
# Wire event types (client-facing stream protocol)
# ---------------------------------------------------------------------------

EVENT_TYPE_START = "start"
EVENT_TYPE_TEXT_START = "text-start"
EVENT_TYPE_TEXT_DELTA = "text-delta"
EVENT_TYPE_TEXT_END = "text-end"
EVENT_TYPE_REASONING_DELTA = "reasoning-delta"
EVENT_TYPE_TOOL_CALL = "tool-call"
EVENT_TYPE_TOOL_RESULT = "tool-result"
EVENT_TYPE_FINISH = "finish"

VALID_EVENT_TYPES = frozenset(
    {
        EVENT_TYPE_START,
        EVENT_TYPE_TEXT_START,
        EVENT_TYPE_TEXT_DELTA,
        EVENT_TYPE_TEXT_END,
        EVENT_TYPE_REASONING_DELTA,
        EVENT_TYPE_TOOL_CALL,
        EVENT_TYPE_TOOL_RESULT,
        EVENT_TYPE_FINISH,
    }
)

# ---------------------------------------------------------------------------
# Message roles and content part kinds
# ---------------------------------------------------------------------------

ROLE_USER = "user"
ROLE_ASSISTANT = "assistant"
ROLE_SYSTEM = "system"

PART_TYPE_TEXT = "text"

# ---------------------------------------------------------------------------
# Tools and tool call lifecycle
# ---------------------------------------------------------------------------

TOOL_WEB_SEARCH = "web_search"

TOOL_STATUS_STARTED = "started"
TOOL_STATUS_COMPLETED = "completed"
TOOL_STATUS_ERROR = "error"

# ---------------------------------------------------------------------------
# Fixed user-facing texts
# ---------------------------------------------------------------------------

FALLBACK_MESSAGE = "Sorry — something went wrong. Please try again in a moment."
DEFAULT_DENIAL_MESSAGE = "Your message violates our guidelines. I can't answer that."

# ID prefixes for stream parts
ID_PREFIX_TEXT = "txt"
ID_PREFIX_REASONING = "rsn"
ID_PREFIX_MESSAGE = "msg"
ID_PREFIX_TOOL_CALL = "call"
