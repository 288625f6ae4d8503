"""Tests for AIService: prompt construction and parsing around a fake client."""

from __future__ import annotations

import json

import pytest

from constellation.ai.results import ParseFailure, ParseSuccess
from constellation.core.config import ExtractionConfig
from constellation.models import LGA, OpportunityType, SectorDevelopmentStrategy
from constellation.prompts.strategy import MAX_STRATEGY_CHARS
from constellation.services.ai_service import AIService, ICompletionClient
from tests.fakes.fake_llm import FakeLLMClient


class TestExtractStrategy:
    @pytest.mark.asyncio
    async def test_success(self) -> None:
        fake = FakeLLMClient(responses=[json.dumps({"title": "Hydrogen Strategy", "components": {}})])
        parsed = await AIService(fake).extract_strategy("strategy text")

        assert isinstance(parsed, ParseSuccess)
        assert parsed.result.title == "Hydrogen Strategy"
        call = fake.calls[0]
        assert "strategy text" in call.prompt
        assert call.system_prompt
        assert call.max_tokens == ExtractionConfig().strategy_max_tokens

    @pytest.mark.asyncio
    async def test_input_truncated(self) -> None:
        fake = FakeLLMClient()
        await AIService(fake).extract_strategy("x" * (MAX_STRATEGY_CHARS + 500))
        assert "x" * (MAX_STRATEGY_CHARS + 1) not in fake.calls[0].prompt

    @pytest.mark.asyncio
    async def test_empty_response_is_treated_as_empty_object(self) -> None:
        parsed = await AIService(FakeLLMClient(responses=[""])).extract_strategy("text")
        assert isinstance(parsed, ParseSuccess)
        assert parsed.result.warnings

    @pytest.mark.asyncio
    async def test_prose_response_fails(self) -> None:
        parsed = await AIService(FakeLLMClient(responses=["I cannot help with that."])).extract_strategy("text")
        assert isinstance(parsed, ParseFailure)
        assert parsed.kind == "unparseable"

    @pytest.mark.asyncio
    async def test_client_errors_propagate(self) -> None:
        fake = FakeLLMClient(error=RuntimeError("down"))
        with pytest.raises(RuntimeError):
            await AIService(fake).extract_strategy("text")


class TestGradeStrategy:
    @pytest.mark.asyncio
    async def test_uses_grade_budget(self) -> None:
        fake = FakeLLMClient(responses=[json.dumps({"grade_letter": "B", "grade_rationale_short": "Solid."})])
        strategy = SectorDevelopmentStrategy(id="s1", title="Bioenergy Roadmap", components={"1": "Context"})
        parsed = await AIService(fake, ExtractionConfig(grade_max_tokens=1234)).grade_strategy(strategy)

        assert isinstance(parsed, ParseSuccess)
        assert parsed.result.grade_letter.value == "B"
        assert fake.calls[0].max_tokens == 1234
        assert "Bioenergy Roadmap" in fake.calls[0].prompt


class TestAnalyseMemo:
    @pytest.mark.asyncio
    async def test_catalogues_reach_prompt_and_parser(self) -> None:
        fake = FakeLLMClient(responses=[json.dumps({"name": "Pioneer Mill SAF", "suggestedLgaIds": ["mackay", "cairns"]})])
        parsed = await AIService(fake).analyse_memo(
            "memo body",
            memo_label="Memo 12",
            opportunity_types=[OpportunityType(id="bioenergy", name="Bioenergy")],
            lgas=[LGA(id="mackay", name="Mackay")],
        )

        assert isinstance(parsed, ParseSuccess)
        assert parsed.result.suggested_lga_ids == ["mackay"]
        assert "bioenergy" in fake.calls[0].system_prompt
        assert "Mackay" in fake.calls[0].system_prompt


class TestProtocol:
    def test_fake_satisfies_completion_protocol(self) -> None:
        assert isinstance(FakeLLMClient(), ICompletionClient)
