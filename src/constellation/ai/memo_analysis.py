"""Parse the model's investment-memo analysis into proposed deal fields."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Optional

from pydantic import BaseModel, ConfigDict, StrictStr, ValidationError
from pydantic.alias_generators import to_camel

from constellation.ai.json_payload import load_json_payload
from constellation.ai.results import ParseFailure, ParseResult, ParseSuccess
from constellation.ai.types import MemoAnalysisResult, MemoReference, SuggestedOpportunityType
from constellation.exceptions import JSONParseError
from constellation.models import (
    Constraint,
    DealStage,
    GovernmentProgram,
    ReadinessState,
    TimelineMilestone,
)

log = logging.getLogger(__name__)

PARSE_ERROR = "Failed to parse AI response. Please try again."
SHAPE_ERROR = "Invalid AI response shape. Please try again."

DEFAULT_LGA_ID = "mackay"
DEFAULT_MEMO_LABEL = "Investment Memo"

# ── Payload schema ───────────────────────────────────────────────────


class _Payload(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")


class _ProgramPayload(_Payload):
    name: StrictStr
    description: Optional[StrictStr] = None


class _MilestonePayload(_Payload):
    label: StrictStr
    date: Optional[StrictStr] = None


class _SuggestedTypePayload(_Payload):
    existing_id: Optional[StrictStr] = None
    proposed_name: Optional[StrictStr] = None
    proposed_definition: Optional[StrictStr] = None
    closest_existing_id: Optional[StrictStr] = None
    closest_existing_reasoning: Optional[StrictStr] = None
    confidence: Optional[StrictStr] = None
    reasoning: Optional[StrictStr] = None


class _MemoPayload(_Payload):
    name: Optional[StrictStr] = None
    stage: Optional[StrictStr] = None
    readiness_state: Optional[StrictStr] = None
    dominant_constraint: Optional[StrictStr] = None
    summary: Optional[StrictStr] = None
    description: Optional[StrictStr] = None
    next_step: Optional[StrictStr] = None
    investment_value: Optional[StrictStr] = None
    economic_impact: Optional[StrictStr] = None
    suggested_location_text: Optional[StrictStr] = None
    suggested_lga_ids: Optional[list[StrictStr]] = None
    key_stakeholders: Optional[list[StrictStr]] = None
    risks: Optional[list[StrictStr]] = None
    strategic_actions: Optional[list[StrictStr]] = None
    infrastructure_needs: Optional[list[StrictStr]] = None
    skills_implications: Optional[StrictStr] = None
    market_drivers: Optional[StrictStr] = None
    government_programs: Optional[list[_ProgramPayload]] = None
    timeline: Optional[list[_MilestonePayload]] = None
    suggested_opportunity_type: Optional[_SuggestedTypePayload] = None


# ── Field repair ─────────────────────────────────────────────────────


def _stripped(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return value.strip() or None


def _suggested_type(
    payload: Optional[_SuggestedTypePayload],
    known_ids: Sequence[str],
) -> SuggestedOpportunityType:
    fallback = SuggestedOpportunityType(
        confidence="low",
        reasoning="Could not determine opportunity type from the document.",
    )
    if payload is None:
        return fallback

    confidence = payload.confidence if payload.confidence in ("high", "medium", "low") else "low"
    reasoning = _stripped(payload.reasoning) or "No reasoning provided."

    existing_id = _stripped(payload.existing_id)
    if existing_id and existing_id in known_ids:
        return SuggestedOpportunityType(existing_id=existing_id, confidence=confidence, reasoning=reasoning)

    proposed_name = _stripped(payload.proposed_name)
    if proposed_name:
        closest = _stripped(payload.closest_existing_id)
        return SuggestedOpportunityType(
            proposed_name=proposed_name,
            proposed_definition=payload.proposed_definition.strip() if payload.proposed_definition is not None else None,
            closest_existing_id=closest if closest in known_ids else None,
            closest_existing_reasoning=_stripped(payload.closest_existing_reasoning),
            confidence=confidence,
            reasoning=reasoning,
        )
    return fallback


def _suggested_lgas(requested: Optional[list[str]], known_ids: Sequence[str]) -> list[str]:
    chosen = [lga_id for lga_id in (requested or []) if lga_id in known_ids]
    if chosen:
        return chosen
    if DEFAULT_LGA_ID in known_ids:
        return [DEFAULT_LGA_ID]
    return list(known_ids[:1])


def _enum_or_default(enum_cls, value: Optional[str], default):
    try:
        return enum_cls(value)
    except ValueError:
        return default


def parse_memo_analysis_response(
    response_text: str,
    *,
    memo_label: str | None = None,
    opportunity_type_ids: Sequence[str] = (),
    lga_ids: Sequence[str] = (),
) -> ParseResult[MemoAnalysisResult]:
    """Parse memo analysis output, restricting ids to the known catalogues.

    Unknown stage, readiness and constraint values fall back to the
    earliest plausible position (``definition``, ``conceptual-interest``,
    ``coordination-failure``). LGA suggestions outside ``lga_ids`` are
    dropped; if none survive, ``mackay`` (or the first known LGA) is used.
    """
    try:
        raw = load_json_payload(response_text)
    except JSONParseError:
        return ParseFailure(error=PARSE_ERROR, kind="unparseable")
    if not isinstance(raw, dict):
        return ParseFailure(error=SHAPE_ERROR, kind="malformed")
    try:
        payload = _MemoPayload.model_validate(raw)
    except ValidationError as e:
        log.warning("Memo analysis payload failed shape check", extra={"errors": e.error_count()})
        return ParseFailure(error=SHAPE_ERROR, kind="malformed")

    programs = None
    if payload.government_programs is not None:
        programs = [
            GovernmentProgram(name=p.name, description=p.description)
            for p in payload.government_programs
            if p.name.strip()
        ]
    timeline = None
    if payload.timeline is not None:
        timeline = [TimelineMilestone(label=m.label, date=m.date) for m in payload.timeline if m.label.strip()]

    result = MemoAnalysisResult(
        name=_stripped(payload.name) or "Untitled Deal",
        stage=_enum_or_default(DealStage, payload.stage, DealStage.DEFINITION),
        readiness_state=_enum_or_default(ReadinessState, payload.readiness_state, ReadinessState.CONCEPTUAL_INTEREST),
        dominant_constraint=_enum_or_default(
            Constraint, payload.dominant_constraint, Constraint.COORDINATION_FAILURE
        ),
        summary=payload.summary if payload.summary is not None else "No summary extracted.",
        description=payload.description or "",
        next_step=payload.next_step or "",
        investment_value=payload.investment_value,
        economic_impact=payload.economic_impact,
        key_stakeholders=payload.key_stakeholders,
        risks=payload.risks,
        strategic_actions=payload.strategic_actions,
        infrastructure_needs=payload.infrastructure_needs,
        skills_implications=payload.skills_implications,
        market_drivers=payload.market_drivers,
        government_programs=programs,
        timeline=timeline,
        memo_reference=MemoReference(label=f"Investment Memo: {memo_label or DEFAULT_MEMO_LABEL}"),
        suggested_location_text=_stripped(payload.suggested_location_text),
        suggested_lga_ids=_suggested_lgas(payload.suggested_lga_ids, lga_ids),
        suggested_opportunity_type=_suggested_type(payload.suggested_opportunity_type, opportunity_type_ids),
    )
    return ParseSuccess(result=result)
