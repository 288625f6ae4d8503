"""Human-readable labels for enum values, used in prompts and CLI output."""

from __future__ import annotations

from constellation.models import (
    ArtefactStatus,
    Constraint,
    DealStage,
    GateStatus,
    ReadinessState,
)

STAGE_LABELS: dict[DealStage, str] = {
    DealStage.DEFINITION: "Definition",
    DealStage.PRE_FEASIBILITY: "Pre-feasibility",
    DealStage.FEASIBILITY: "Feasibility",
    DealStage.STRUCTURING: "Structuring",
    DealStage.TRANSACTION_CLOSE: "Transaction close",
}

READINESS_LABELS: dict[ReadinessState, str] = {
    ReadinessState.NO_VIABLE_PROJECTS: "No viable projects",
    ReadinessState.CONCEPTUAL_INTEREST: "Conceptual interest",
    ReadinessState.FEASIBILITY_UNDERWAY: "Feasibility underway",
    ReadinessState.STRUCTURABLE_BUT_STALLED: "Structurable but stalled",
    ReadinessState.INVESTABLE_WITH_MINOR_INTERVENTION: "Investable with minor intervention",
    ReadinessState.SCALED_AND_REPLICABLE: "Scaled and replicable",
}

CONSTRAINT_LABELS: dict[Constraint, str] = {
    Constraint.REVENUE_CERTAINTY: "Revenue certainty",
    Constraint.OFFTAKE_DEMAND_AGGREGATION: "Offtake / demand aggregation",
    Constraint.PLANNING_AND_APPROVALS: "Planning and approvals",
    Constraint.SPONSOR_CAPABILITY: "Sponsor capability",
    Constraint.EARLY_RISK_CAPITAL: "Early risk capital",
    Constraint.BALANCE_SHEET_CONSTRAINTS: "Balance sheet constraints",
    Constraint.TECHNOLOGY_RISK: "Technology risk",
    Constraint.COORDINATION_FAILURE: "Coordination failure",
    Constraint.SKILLS_AND_WORKFORCE_CONSTRAINT: "Skills and workforce constraint",
    Constraint.COMMON_USER_INFRASTRUCTURE_GAP: "Common-user infrastructure gap",
}

GATE_STATUS_LABELS: dict[GateStatus, str] = {
    GateStatus.PENDING: "Pending",
    GateStatus.SATISFIED: "Satisfied",
    GateStatus.NOT_APPLICABLE: "N/A",
}

ARTEFACT_STATUS_LABELS: dict[ArtefactStatus, str] = {
    ArtefactStatus.NOT_STARTED: "Not started",
    ArtefactStatus.IN_PROGRESS: "In progress",
    ArtefactStatus.COMPLETE: "Complete",
}

# Blueprint component titles keyed by component id
STRATEGY_COMPONENT_TITLES: dict[str, str] = {
    "1": "Sector Diagnostics and Comparative Advantage",
    "2": "Economic Geography and Places of Production",
    "3": "Regulatory and Enabling Environment",
    "4": "Value Chain and Market Integration",
    "5": "Workforce and Skills Alignment",
    "6": "Sector Culture and Norms",
}
