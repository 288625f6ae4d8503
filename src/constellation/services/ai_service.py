"""AI service: prompt -> completion -> parse for each AI-assisted feature."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from constellation.ai.memo_analysis import parse_memo_analysis_response
from constellation.ai.results import ParseResult
from constellation.ai.strategy_extract import parse_strategy_extract_response
from constellation.ai.strategy_grade import parse_strategy_grade_response
from constellation.ai.types import MemoAnalysisResult, StrategyExtractionResult, StrategyGradeAssessment
from constellation.core.config import ExtractionConfig
from constellation.models import LGA, OpportunityType, SectorDevelopmentStrategy
from constellation.prompts import (
    build_memo_analysis_system_prompt,
    build_memo_analysis_user_prompt,
    build_strategy_extract_system_prompt,
    build_strategy_extract_user_prompt,
    build_strategy_grade_system_prompt,
    build_strategy_grade_user_prompt,
    truncate_memo_text,
    truncate_strategy_text,
)

log = logging.getLogger(__name__)


@runtime_checkable
class ICompletionClient(Protocol):
    """Anything that can turn a system + user prompt into completion text."""

    async def complete(
        self,
        prompt: str,
        *,
        system_prompt: str | None = None,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> str:
        ...


class AIService:
    """Runs the three AI features against a completion client."""

    def __init__(self, client: ICompletionClient, config: ExtractionConfig | None = None) -> None:
        self._client = client
        self._config = config or ExtractionConfig()

    async def extract_strategy(self, extracted_text: str) -> ParseResult[StrategyExtractionResult]:
        text = truncate_strategy_text(extracted_text)
        response = await self._client.complete(
            build_strategy_extract_user_prompt(text),
            system_prompt=build_strategy_extract_system_prompt(),
            max_tokens=self._config.strategy_max_tokens,
        )
        log.info(
            "Strategy extraction completed",
            extra={"input_chars": len(extracted_text), "response_chars": len(response)},
        )
        return parse_strategy_extract_response(response or "{}")

    async def grade_strategy(self, strategy: SectorDevelopmentStrategy) -> ParseResult[StrategyGradeAssessment]:
        response = await self._client.complete(
            build_strategy_grade_user_prompt(strategy),
            system_prompt=build_strategy_grade_system_prompt(),
            max_tokens=self._config.grade_max_tokens,
        )
        log.info("Strategy grading completed", extra={"strategy_id": strategy.id})
        return parse_strategy_grade_response(response or "{}")

    async def analyse_memo(
        self,
        memo_text: str,
        *,
        memo_label: str | None = None,
        opportunity_types: Sequence[OpportunityType] = (),
        lgas: Sequence[LGA] = (),
    ) -> ParseResult[MemoAnalysisResult]:
        response = await self._client.complete(
            build_memo_analysis_user_prompt(truncate_memo_text(memo_text)),
            system_prompt=build_memo_analysis_system_prompt(opportunity_types, lgas),
            max_tokens=self._config.memo_max_tokens,
        )
        log.info("Memo analysis completed", extra={"memo_label": memo_label, "input_chars": len(memo_text)})
        return parse_memo_analysis_response(
            response or "{}",
            memo_label=memo_label,
            opportunity_type_ids=[ot.id for ot in opportunity_types],
            lga_ids=[lga.id for lga in lgas],
        )
