"""Response composer: pick the grounded or the general answer path.

The decision is a pure function of the retrieved candidates and the
admission threshold.  Only the top candidate is inspected; the retriever's
ordering is trusted.  The chosen path is committed for the whole request.
"""

import logging
from collections.abc import Sequence
from datetime import datetime

from greanly.configs.persona import PersonaConfig
from greanly.configs.system import ChatConfig, RetrievalConfig

from .metrics import BRANCH_DECISIONS_TOTAL
from .models import (
    ChatMessage,
    GenerationRequest,
    ProviderOptions,
    RetrievalCandidate,
    ToolKind,
)
from .prompt import build_grounded_prompt, build_system_prompt

logger = logging.getLogger(__name__)

BRANCH_GROUNDED = "grounded"
BRANCH_GENERAL = "general"


def is_admitted(candidates: Sequence[RetrievalCandidate], threshold: float) -> bool:
    """True when the top candidate reaches *threshold* (inclusive)."""
    return bool(candidates) and candidates[0].score >= threshold


class ResponseComposer:
    """Builds the ``GenerationRequest`` for one chat turn."""

    def __init__(
        self,
        persona: PersonaConfig,
        retrieval: RetrievalConfig,
        chat: ChatConfig,
        now: datetime | None = None,
    ) -> None:
        self._persona = persona
        self._threshold = retrieval.admission_threshold
        self._chat = chat
        self._now = now

    @property
    def threshold(self) -> float:
        return self._threshold

    def compose(
        self,
        candidates: Sequence[RetrievalCandidate],
        messages: Sequence[ChatMessage],
    ) -> GenerationRequest:
        if is_admitted(candidates, self._threshold):
            request = self._grounded(candidates[0], messages)
            branch = BRANCH_GROUNDED
        else:
            request = self._general(messages)
            branch = BRANCH_GENERAL

        BRANCH_DECISIONS_TOTAL.labels(branch=branch).inc()
        logger.info(
            "Composed %s request (top_score=%s, threshold=%.2f, candidates=%d)",
            branch,
            f"{candidates[0].score:.3f}" if candidates else "n/a",
            self._threshold,
            len(candidates),
        )
        return request

    def _grounded(
        self,
        top: RetrievalCandidate,
        messages: Sequence[ChatMessage],
    ) -> GenerationRequest:
        return GenerationRequest(
            system_prompt=build_grounded_prompt(self._persona, top.content),
            messages=tuple(messages),
            tools=frozenset(),
            step_limit=0,
            grounded=True,
        )

    def _general(self, messages: Sequence[ChatMessage]) -> GenerationRequest:
        return GenerationRequest(
            system_prompt=build_system_prompt(self._persona, self._now),
            messages=tuple(messages),
            tools=frozenset({ToolKind.WEB_SEARCH}),
            step_limit=self._chat.step_limit,
            grounded=False,
            provider_options=ProviderOptions(
                parallel_tool_calls=False,
                reasoning_effort=self._chat.reasoning_effort,
                reasoning_summary=self._chat.reasoning_summary,
            ),
        )
