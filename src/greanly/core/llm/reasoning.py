"""ReasoningChatOpenAI: ChatOpenAI subclass that keeps ``reasoning_content``.

OpenAI-compatible servers (vLLM, llama.cpp, DeepSeek and friends) stream
reasoning in a non-standard ``delta.reasoning_content`` field::

    data: {"choices": [{"delta": {"reasoning_content": "Let me think..."}}]}

``langchain-openai`` drops that field when converting Chat Completions
deltas.  This subclass copies it into
``AIMessageChunk.additional_kwargs["reasoning_content"]`` where the stream
mapper looks for it.  Against api.openai.com, or with the Responses API,
the override is a no-op.
"""

from __future__ import annotations

from typing import Any

from langchain_core.messages import AIMessageChunk
from langchain_openai import ChatOpenAI

_KEY_CHOICES = "choices"
_KEY_DELTA = "delta"
_KEY_REASONING_CONTENT = "reasoning_content"


class ReasoningChatOpenAI(ChatOpenAI):
    """``ChatOpenAI`` that propagates ``delta.reasoning_content``."""

    def _convert_chunk_to_generation_chunk(
        self,
        chunk: dict,
        default_chunk_class: type,
        base_generation_info: dict | None,
    ) -> Any:
        generation_chunk = super()._convert_chunk_to_generation_chunk(
            chunk, default_chunk_class, base_generation_info
        )
        if generation_chunk is None:
            return None

        choices = chunk.get(_KEY_CHOICES) or []
        if choices:
            delta = choices[0].get(_KEY_DELTA) or {}
            reasoning = delta.get(_KEY_REASONING_CONTENT)
            if reasoning and isinstance(generation_chunk.message, AIMessageChunk):
                generation_chunk.message.additional_kwargs[_KEY_REASONING_CONTENT] = (
                    reasoning
                )

        return generation_chunk
