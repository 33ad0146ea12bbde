"""Unit tests for the moderation gate and the OpenAI moderator."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import openai
import pytest

from greanly.configs.system import LLMConfig, ModerationConfig
from greanly.core.errors import ModerationUnavailable
from greanly.core.moderation import (
    CATEGORY_DENIAL_MESSAGES,
    ModerationGate,
    OpenAIModerator,
    denial_for_categories,
)
from greanly.core.service.models import DEFAULT_DENIAL_MESSAGE, ModerationVerdict


class TestDenialForCategories:
    def test_most_specific_category_wins(self):
        message = denial_for_categories(["self-harm", "self-harm/instructions"])
        assert message == CATEGORY_DENIAL_MESSAGES["self-harm/instructions"]

    def test_unknown_category_gets_default(self):
        assert denial_for_categories(["something-new"]) == DEFAULT_DENIAL_MESSAGE

    def test_no_categories_gets_default(self):
        assert denial_for_categories([]) == DEFAULT_DENIAL_MESSAGE


class TestModerationGate:
    @pytest.mark.asyncio
    async def test_clear_text_passes(self):
        moderator = AsyncMock()
        moderator.classify.return_value = ModerationVerdict(flagged=False)
        verdict = await ModerationGate(moderator).check("How do I reduce waste?")
        assert verdict.flagged is False
        moderator.classify.assert_awaited_once_with("How do I reduce waste?")

    @pytest.mark.asyncio
    async def test_flagged_text_carries_denial(self):
        moderator = AsyncMock()
        moderator.classify.return_value = ModerationVerdict(
            flagged=True,
            denial_message=CATEGORY_DENIAL_MESSAGES["violence"],
            categories=("violence",),
        )
        verdict = await ModerationGate(moderator).check("...")
        assert verdict.flagged is True
        assert verdict.denial_message == CATEGORY_DENIAL_MESSAGES["violence"]

    @pytest.mark.asyncio
    async def test_flagged_without_message_gets_default(self):
        moderator = AsyncMock()
        moderator.classify.return_value = ModerationVerdict(flagged=True)
        verdict = await ModerationGate(moderator).check("...")
        assert verdict.denial_message == DEFAULT_DENIAL_MESSAGE

    @pytest.mark.asyncio
    async def test_classifier_failure_fails_open(self):
        moderator = AsyncMock()
        moderator.classify.side_effect = ModerationUnavailable("down")
        verdict = await ModerationGate(moderator).check("hello")
        assert verdict.flagged is False

    @pytest.mark.asyncio
    async def test_unexpected_error_fails_open(self):
        moderator = AsyncMock()
        moderator.classify.side_effect = RuntimeError("bug")
        verdict = await ModerationGate(moderator).check("hello")
        assert verdict.flagged is False

    @pytest.mark.asyncio
    async def test_empty_text_skips_classifier(self):
        moderator = AsyncMock()
        verdict = await ModerationGate(moderator).check("   ")
        assert verdict.flagged is False
        moderator.classify.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_disabled_gate_skips_classifier(self):
        moderator = AsyncMock()
        verdict = await ModerationGate(moderator, enabled=False).check("hello")
        assert verdict.flagged is False
        moderator.classify.assert_not_awaited()


def _moderation_response(flagged: bool, categories: dict[str, bool]):
    result = SimpleNamespace(
        flagged=flagged,
        categories=MagicMock(model_dump=MagicMock(return_value=categories)),
    )
    return SimpleNamespace(results=[result])


class TestOpenAIModerator:
    def _moderator(self) -> OpenAIModerator:
        return OpenAIModerator(ModerationConfig(), LLMConfig(api_key="sk-test"))

    @pytest.mark.asyncio
    async def test_flagged_categories_are_collected(self):
        moderator = self._moderator()
        create = AsyncMock(
            return_value=_moderation_response(
                True, {"hate": True, "hate/threatening": True, "sexual": False}
            )
        )
        moderator._client.moderations.create = create  # type: ignore[method-assign]

        verdict = await moderator.classify("...")

        assert verdict.flagged is True
        assert set(verdict.categories) == {"hate", "hate/threatening"}
        assert verdict.denial_message == CATEGORY_DENIAL_MESSAGES["hate/threatening"]
        assert create.await_args.kwargs["model"] == "omni-moderation-latest"

    @pytest.mark.asyncio
    async def test_clear_result(self):
        moderator = self._moderator()
        moderator._client.moderations.create = AsyncMock(  # type: ignore[method-assign]
            return_value=_moderation_response(False, {})
        )
        verdict = await moderator.classify("hi")
        assert verdict == ModerationVerdict(flagged=False)

    @pytest.mark.asyncio
    async def test_provider_error_is_typed(self):
        moderator = self._moderator()
        moderator._client.moderations.create = AsyncMock(  # type: ignore[method-assign]
            side_effect=openai.OpenAIError("nope")
        )
        with pytest.raises(ModerationUnavailable):
            await moderator.classify("hi")
