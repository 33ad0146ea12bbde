from .deps import build_chat_model, get_llm  # noqa: F401
from .generator import Generator, LangGraphGenerator  # noqa: F401
from .reasoning import ReasoningChatOpenAI  # noqa: F401
