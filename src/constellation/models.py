"""Pydantic domain models for constellation.

Field names are snake_case in Python and camelCase on the wire; every
model derives from :class:`CamelModel` so FastAPI responses and stored
JSON documents share one representation.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, StringConstraints
from pydantic.alias_generators import to_camel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CamelModel(BaseModel):
    """Base model: camelCase aliases, population by either name."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]

# ── Enumerations (presentation values) ───────────────────────────────


class DealStage(str, Enum):
    """Development pathway stages, in pathway order."""

    DEFINITION = "definition"
    PRE_FEASIBILITY = "pre-feasibility"
    FEASIBILITY = "feasibility"
    STRUCTURING = "structuring"
    TRANSACTION_CLOSE = "transaction-close"


class ReadinessState(str, Enum):
    """Investment readiness ladder, lowest rung first."""

    NO_VIABLE_PROJECTS = "no-viable-projects"
    CONCEPTUAL_INTEREST = "conceptual-interest"
    FEASIBILITY_UNDERWAY = "feasibility-underway"
    STRUCTURABLE_BUT_STALLED = "structurable-but-stalled"
    INVESTABLE_WITH_MINOR_INTERVENTION = "investable-with-minor-intervention"
    SCALED_AND_REPLICABLE = "scaled-and-replicable"


class Constraint(str, Enum):
    """Dominant constraint blocking a deal."""

    REVENUE_CERTAINTY = "revenue-certainty"
    OFFTAKE_DEMAND_AGGREGATION = "offtake-demand-aggregation"
    PLANNING_AND_APPROVALS = "planning-and-approvals"
    SPONSOR_CAPABILITY = "sponsor-capability"
    EARLY_RISK_CAPITAL = "early-risk-capital"
    BALANCE_SHEET_CONSTRAINTS = "balance-sheet-constraints"
    TECHNOLOGY_RISK = "technology-risk"
    COORDINATION_FAILURE = "coordination-failure"
    SKILLS_AND_WORKFORCE_CONSTRAINT = "skills-and-workforce-constraint"
    COMMON_USER_INFRASTRUCTURE_GAP = "common-user-infrastructure-gap"


class GateStatus(str, Enum):
    PENDING = "pending"
    SATISFIED = "satisfied"
    NOT_APPLICABLE = "not-applicable"


class ArtefactStatus(str, Enum):
    NOT_STARTED = "not-started"
    IN_PROGRESS = "in-progress"
    COMPLETE = "complete"


class GradeLetter(str, Enum):
    """Strategy grade scale, best first."""

    A = "A"
    A_MINUS = "A-"
    B = "B"
    B_MINUS = "B-"
    C = "C"
    D = "D"
    F = "F"


class StrategyStatus(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"


class Role(str, Enum):
    ADMIN = "admin"
    MEMBER = "member"


STRATEGY_COMPONENT_IDS: tuple[str, ...] = ("1", "2", "3", "4", "5", "6")
SECTOR_SECTION_IDS: tuple[str, ...] = tuple(str(i) for i in range(1, 11))

# ── Shared value objects ─────────────────────────────────────────────


class EvidenceRef(CamelModel):
    label: Optional[str] = None
    url: Optional[str] = None
    page_ref: Optional[str] = None


class Note(CamelModel):
    id: str
    content: str
    created_at: datetime = Field(default_factory=utcnow)


class GovernmentProgram(CamelModel):
    name: NonEmptyStr
    description: Optional[str] = None


class TimelineMilestone(CamelModel):
    label: NonEmptyStr
    date: Optional[str] = None


class GateEntry(CamelModel):
    question: NonEmptyStr
    status: GateStatus


class Artefact(CamelModel):
    name: NonEmptyStr
    status: ArtefactStatus
    summary: Optional[str] = None
    url: Optional[str] = None


class StoredDocument(CamelModel):
    """A file attached to a deal or strategy, held in blob storage."""

    id: str
    file_name: str
    mime_type: str
    size_bytes: int
    file_url: str
    added_at: datetime = Field(default_factory=utcnow)
    label: Optional[str] = None


# ── Deals ────────────────────────────────────────────────────────────


class Deal(CamelModel):
    """A tracked investment deal."""

    id: str
    name: str
    opportunity_type_id: str
    lga_ids: list[str] = Field(default_factory=list)
    lat: Optional[float] = None
    lng: Optional[float] = None
    stage: DealStage
    readiness_state: ReadinessState
    dominant_constraint: Constraint
    summary: str = ""
    next_step: str = ""
    description: Optional[str] = None
    investment_value_amount: float = 0
    investment_value_description: str = ""
    economic_impact_amount: float = 0
    economic_impact_description: str = ""
    economic_impact_jobs: Optional[int] = None
    key_stakeholders: list[str] = Field(default_factory=list)
    risks: list[str] = Field(default_factory=list)
    strategic_actions: list[str] = Field(default_factory=list)
    infrastructure_needs: list[str] = Field(default_factory=list)
    skills_implications: Optional[str] = None
    market_drivers: Optional[str] = None
    government_programs: list[GovernmentProgram] = Field(default_factory=list)
    timeline: list[TimelineMilestone] = Field(default_factory=list)
    evidence: list[EvidenceRef] = Field(default_factory=list)
    notes: list[Note] = Field(default_factory=list)
    gate_checklist: dict[DealStage, list[GateEntry]] = Field(default_factory=dict)
    artefacts: dict[DealStage, list[Artefact]] = Field(default_factory=dict)
    documents: list[StoredDocument] = Field(default_factory=list)
    updated_at: datetime = Field(default_factory=utcnow)


class ConstraintEvent(CamelModel):
    """Audit record of a dominant-constraint change."""

    id: str
    entity_type: Literal["deal", "cluster"] = "deal"
    entity_id: str
    dominant_constraint: Constraint
    changed_at: datetime = Field(default_factory=utcnow)
    change_reason: str


# ── Places and opportunities ─────────────────────────────────────────


class LgaOpportunityHypothesis(CamelModel):
    id: str
    name: str
    summary: Optional[str] = None
    dominant_constraint: Optional[Constraint] = None


class LGA(CamelModel):
    """A Queensland local government area."""

    id: str
    name: str
    geometry_ref: str = ""
    notes: list[str] = Field(default_factory=list)
    summary: Optional[str] = None
    opportunity_hypotheses: list[LgaOpportunityHypothesis] = Field(default_factory=list)
    active_deal_ids: list[str] = Field(default_factory=list)
    repeated_constraints: list[Constraint] = Field(default_factory=list)
    evidence: list[EvidenceRef] = Field(default_factory=list)


class OpportunityType(CamelModel):
    id: str
    name: str
    definition: str = ""
    economic_function: str = ""
    typical_capital_stack: str = ""
    typical_risks: str = ""


class SectorOpportunity(CamelModel):
    """Ten-section sector opportunity profile."""

    id: str
    name: str
    version: str = "1"
    tags: list[str] = Field(default_factory=list)
    sections: dict[str, str] = Field(default_factory=lambda: {sid: "" for sid in SECTOR_SECTION_IDS})
    sources: list[str] = Field(default_factory=list)


# ── Strategies ───────────────────────────────────────────────────────


class SelectionLogicFields(CamelModel):
    adjacent_definition: Optional[str] = None
    growth_definition: Optional[str] = None
    criteria: list[str] = Field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.adjacent_definition or self.growth_definition or self.criteria)


class SectorDevelopmentStrategy(CamelModel):
    """A sector development strategy mapped onto the six-component blueprint."""

    id: str
    title: str
    type: str = "sector_development"
    status: StrategyStatus = StrategyStatus.DRAFT
    source_document: Optional[str] = None
    summary: str = ""
    extracted_text: Optional[str] = None
    components: dict[str, str] = Field(default_factory=lambda: {cid: "" for cid in STRATEGY_COMPONENT_IDS})
    selection_logic: Optional[SelectionLogicFields] = None
    cross_cutting_themes: list[str] = Field(default_factory=list)
    stakeholder_categories: list[str] = Field(default_factory=list)
    priority_sector_ids: list[str] = Field(default_factory=list)
    documents: list[StoredDocument] = Field(default_factory=list)
    updated_at: datetime = Field(default_factory=utcnow)

    def has_component_content(self) -> bool:
        return any(self.components.get(cid, "").strip() for cid in STRATEGY_COMPONENT_IDS)


class StrategyGradeMissingElement(CamelModel):
    component_id: str
    reason: str


class StrategyGrade(CamelModel):
    """Latest AI grade for a strategy (one per strategy)."""

    id: str
    strategy_id: str
    grade_letter: GradeLetter
    grade_rationale_short: str
    evidence_notes_by_component: dict[str, str] = Field(default_factory=dict)
    missing_elements: list[StrategyGradeMissingElement] = Field(default_factory=list)
    scope_discipline_notes: Optional[str] = None
    updated_at: datetime = Field(default_factory=utcnow)


# ── Access control ───────────────────────────────────────────────────


class AllowedEmail(CamelModel):
    """An allowlist entry; deactivated entries are kept for audit."""

    id: str
    email: str
    role: Role = Role.MEMBER
    is_active: bool = True
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class AuthAuditEvent(CamelModel):
    id: str
    email: str
    outcome: Literal["allowed", "denied_not_allowlisted", "denied_inactive"]
    occurred_at: datetime = Field(default_factory=utcnow)
