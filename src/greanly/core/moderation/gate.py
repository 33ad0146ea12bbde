"""Moderation gate: classify the latest user text before anything else runs.

The gate fails open.  A classifier that errors or times out lets the
request through and is logged at WARNING, so moderation infrastructure
can never take the assistant down.
"""

from __future__ import annotations

import logging
from typing import Protocol

import httpx
import openai

from greanly.configs.system import LLMConfig, ModerationConfig
from greanly.core.errors import ModerationUnavailable
from greanly.core.service.metrics import MODERATION_CHECKS_TOTAL
from greanly.core.service.models import DEFAULT_DENIAL_MESSAGE, ModerationVerdict
from greanly.infra.telemetry import (
    ATTR_MODERATION_FLAGGED,
    SPAN_CHAT_MODERATE,
    tracer,
)

logger = logging.getLogger(__name__)

# Ordered most specific first; the first flagged category picks the denial.
CATEGORY_DENIAL_MESSAGES: dict[str, str] = {
    "sexual/minors": "I can't discuss content involving minors in a sexual context. Please ask something else.",  # noqa: E501
    "self-harm/instructions": "I can't provide instructions related to self-harm. If you're struggling, please reach out to a mental health professional or crisis helpline.",  # noqa: E501
    "self-harm/intent": "I can't discuss self-harm intentions. If you're struggling, please reach out to a mental health professional or crisis helpline.",  # noqa: E501
    "self-harm": "I can't discuss self-harm. If you're struggling, please reach out to a mental health professional or crisis helpline.",  # noqa: E501
    "harassment/threatening": "I can't engage with threatening or harassing content. Please be respectful.",  # noqa: E501
    "hate/threatening": "I can't engage with threatening hate speech. Please be respectful.",
    "illicit/violent": "I can't discuss violent illegal activities. Please ask something else.",
    "violence/graphic": "I can't discuss graphic violent content. Please ask something else.",
    "sexual": "I can't discuss explicit sexual content. Please ask something else.",
    "harassment": "I can't engage with harassing content. Please be respectful.",
    "hate": "I can't engage with hateful content. Please be respectful.",
    "illicit": "I can't discuss illegal activities. Please ask something else.",
    "violence": "I can't discuss violent content. Please ask something else.",
}

_RESULT_CLEAR = "clear"
_RESULT_FLAGGED = "flagged"
_RESULT_SKIPPED = "skipped"
_RESULT_UNAVAILABLE = "unavailable"


def denial_for_categories(categories: list[str] | tuple[str, ...]) -> str:
    """Pick the denial message for the most specific flagged category."""
    flagged = set(categories)
    for category, message in CATEGORY_DENIAL_MESSAGES.items():
        if category in flagged:
            return message
    return DEFAULT_DENIAL_MESSAGE


class Moderator(Protocol):
    """Opaque classifier behind the gate."""

    async def classify(self, text: str) -> ModerationVerdict:
        """Classify *text*; raise ``ModerationUnavailable`` on failure."""
        ...


class OpenAIModerator:
    """Classifier backed by the OpenAI moderation endpoint."""

    def __init__(
        self,
        config: ModerationConfig,
        llm_config: LLMConfig,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config
        self._client = openai.AsyncOpenAI(
            api_key=llm_config.api_key or None,
            base_url=llm_config.endpoint,
            timeout=config.timeout.total_seconds(),
            max_retries=0,
            http_client=http_client,
        )

    async def classify(self, text: str) -> ModerationVerdict:
        try:
            response = await self._client.moderations.create(
                model=self._config.model_name,
                input=text,
            )
        except openai.OpenAIError as e:
            raise ModerationUnavailable(str(e)) from e

        if not response.results:
            raise ModerationUnavailable("Moderation response carried no results.")

        result = response.results[0]
        if not result.flagged:
            return ModerationVerdict(flagged=False)

        categories = tuple(
            name
            for name, hit in result.categories.model_dump(by_alias=True).items()
            if hit
        )
        return ModerationVerdict(
            flagged=True,
            denial_message=denial_for_categories(categories),
            categories=categories,
        )


class ModerationGate:
    """Runs the classifier once per request and applies the fail-open policy."""

    def __init__(self, moderator: Moderator | None, enabled: bool = True) -> None:
        self._moderator = moderator
        self._enabled = enabled and moderator is not None

    async def check(self, text: str) -> ModerationVerdict:
        """Return the verdict for *text*.

        Empty text, or a disabled gate, skips the classifier entirely.
        """
        if not self._enabled or not text.strip():
            MODERATION_CHECKS_TOTAL.labels(result=_RESULT_SKIPPED).inc()
            return ModerationVerdict(flagged=False)

        with tracer.start_as_current_span(SPAN_CHAT_MODERATE) as span:
            try:
                verdict = await self._moderator.classify(text)  # type: ignore[union-attr]
            except Exception:
                # Any classifier failure fails open.
                MODERATION_CHECKS_TOTAL.labels(result=_RESULT_UNAVAILABLE).inc()
                logger.warning(
                    "Moderation unavailable; letting the request through.",
                    exc_info=True,
                )
                return ModerationVerdict(flagged=False)

            span.set_attribute(ATTR_MODERATION_FLAGGED, verdict.flagged)

        if verdict.flagged:
            MODERATION_CHECKS_TOTAL.labels(result=_RESULT_FLAGGED).inc()
            logger.info("Moderation flagged request: %s", ", ".join(verdict.categories))
            if not verdict.denial_message:
                return verdict.model_copy(
                    update={"denial_message": DEFAULT_DENIAL_MESSAGE}
                )
        else:
            MODERATION_CHECKS_TOTAL.labels(result=_RESULT_CLEAR).inc()
        return verdict
