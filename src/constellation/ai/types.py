"""Result models produced by the AI response parsers."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import Field

from constellation.models import (
    CamelModel,
    Constraint,
    DealStage,
    GovernmentProgram,
    GradeLetter,
    ReadinessState,
    StrategyGradeMissingElement,
    TimelineMilestone,
)

# ── Strategy extraction ──────────────────────────────────────────────


class ComponentExtraction(CamelModel):
    content: str = ""
    confidence: float = 0
    source_excerpt: str = ""


class SelectionLogic(CamelModel):
    adjacent_definition: Optional[str] = None
    growth_definition: Optional[str] = None
    criteria: list[str] = Field(default_factory=list)


class StrategyExtractionResult(CamelModel):
    """Blueprint fields extracted from a strategy document.

    ``components`` always holds all six ids. An empty ``warnings`` list
    means the model response needed no defaulting.
    """

    title: str
    summary: str
    components: dict[str, ComponentExtraction]
    selection_logic: SelectionLogic
    cross_cutting_themes: list[str] = Field(default_factory=list)
    stakeholder_categories: list[str] = Field(default_factory=list)
    priority_sector_names: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


# ── Strategy grading ─────────────────────────────────────────────────


class StrategyGradeAssessment(CamelModel):
    grade_letter: GradeLetter
    grade_rationale_short: str
    evidence_notes_by_component: dict[str, str]
    missing_elements: list[StrategyGradeMissingElement] = Field(default_factory=list)
    scope_discipline_notes: str = ""
    warnings: list[str] = Field(default_factory=list)


# ── Investment memo analysis ─────────────────────────────────────────


class MemoReference(CamelModel):
    label: str
    page_ref: Optional[str] = None


class SuggestedOpportunityType(CamelModel):
    existing_id: Optional[str] = None
    proposed_name: Optional[str] = None
    proposed_definition: Optional[str] = None
    closest_existing_id: Optional[str] = None
    closest_existing_reasoning: Optional[str] = None
    confidence: Literal["high", "medium", "low"] = "low"
    reasoning: str


class MemoAnalysisResult(CamelModel):
    """Deal fields proposed from an investment memo, for human review."""

    name: str
    stage: DealStage
    readiness_state: ReadinessState
    dominant_constraint: Constraint
    summary: str
    description: str = ""
    next_step: str = ""
    investment_value: Optional[str] = None
    economic_impact: Optional[str] = None
    key_stakeholders: Optional[list[str]] = None
    risks: Optional[list[str]] = None
    strategic_actions: Optional[list[str]] = None
    infrastructure_needs: Optional[list[str]] = None
    skills_implications: Optional[str] = None
    market_drivers: Optional[str] = None
    government_programs: Optional[list[GovernmentProgram]] = None
    timeline: Optional[list[TimelineMilestone]] = None
    memo_reference: MemoReference
    suggested_location_text: Optional[str] = None
    suggested_lga_ids: list[str] = Field(default_factory=list)
    suggested_opportunity_type: SuggestedOpportunityType
