"""Deal search and the tallies behind the analysis views.

Everything here is a single pass over an in-memory list of deals; the
result ordering rules matter more than the arithmetic:

- readiness counts follow the ladder order and drop zero counts;
- constraint counts are sorted by count, descending, ties in first-seen order;
- stage counts keep every stage in pathway order, zeros included.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Sequence
from typing import Optional

from pydantic import Field

from constellation.labels import CONSTRAINT_LABELS, READINESS_LABELS, STAGE_LABELS
from constellation.models import (
    LGA,
    CamelModel,
    Constraint,
    Deal,
    DealStage,
    OpportunityType,
    ReadinessState,
)

# ── Result models ────────────────────────────────────────────────────


class StageCount(CamelModel):
    stage: DealStage
    label: str
    count: int


class ReadinessCount(CamelModel):
    readiness_state: ReadinessState
    label: str
    count: int


class ConstraintCount(CamelModel):
    constraint: Constraint
    label: str
    count: int


class ConstraintLgaSpread(CamelModel):
    constraint: Constraint
    label: str
    lga_count: int


class NamedCount(CamelModel):
    id: str
    name: str
    count: int


class LgaConstraintSummary(CamelModel):
    lga_id: str
    lga_name: str
    constraints: list[ConstraintCount]


class DealAnalysis(CamelModel):
    total: int
    by_stage: list[StageCount]
    by_readiness: list[ReadinessCount]
    by_constraint: list[ConstraintCount]
    by_opportunity_type: list[NamedCount]
    by_lga: list[NamedCount]
    constraints_across_lgas: list[ConstraintLgaSpread]
    stall_points: list[ReadinessCount]
    constraint_summary_by_lga: list[LgaConstraintSummary] = Field(default_factory=list)


# ── Search ───────────────────────────────────────────────────────────


def deal_lga_names(deal: Deal, lgas: Sequence[LGA]) -> list[str]:
    """LGA display names for a deal, falling back to the raw id."""
    names = {lga.id: lga.name for lga in lgas}
    return [names.get(lga_id, lga_id) for lga_id in deal.lga_ids]


def filter_deals(
    deals: Iterable[Deal],
    query: str,
    opportunity_types: Sequence[OpportunityType],
    lgas: Sequence[LGA],
    *,
    stage: Optional[DealStage] = None,
    opportunity_type_id: Optional[str] = None,
    lga_id: Optional[str] = None,
) -> list[Deal]:
    """Apply facet filters, then a case-insensitive text match.

    The text matches the deal name, its opportunity type name, or any of
    its LGA names.
    """
    result = list(deals)
    if stage is not None:
        result = [d for d in result if d.stage == stage]
    if opportunity_type_id:
        result = [d for d in result if d.opportunity_type_id == opportunity_type_id]
    if lga_id:
        result = [d for d in result if lga_id in d.lga_ids]

    q = query.strip().lower()
    if not q:
        return result

    type_names = {ot.id: ot.name.lower() for ot in opportunity_types}

    def _matches(deal: Deal) -> bool:
        if q in deal.name.lower():
            return True
        if q in type_names.get(deal.opportunity_type_id, ""):
            return True
        return any(q in name.lower() for name in deal_lga_names(deal, lgas))

    return [d for d in result if _matches(d)]


# ── Tallies ──────────────────────────────────────────────────────────


def count_by_stage(deals: Iterable[Deal]) -> list[StageCount]:
    counts = Counter(d.stage for d in deals)
    return [StageCount(stage=s, label=STAGE_LABELS[s], count=counts.get(s, 0)) for s in DealStage]


def count_by_readiness(deals: Iterable[Deal]) -> list[ReadinessCount]:
    counts = Counter(d.readiness_state for d in deals)
    return [
        ReadinessCount(readiness_state=r, label=READINESS_LABELS[r], count=counts[r])
        for r in ReadinessState
        if counts.get(r, 0) > 0
    ]


def count_by_constraint(deals: Iterable[Deal]) -> list[ConstraintCount]:
    counts = Counter(d.dominant_constraint for d in deals)
    ordered = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return [ConstraintCount(constraint=c, label=CONSTRAINT_LABELS[c], count=n) for c, n in ordered]


def top_constraints(deals: Iterable[Deal], n: int = 2) -> list[ConstraintCount]:
    return count_by_constraint(deals)[:n]


def constraints_across_lgas(deals: Iterable[Deal]) -> list[ConstraintLgaSpread]:
    """Constraints that recur in two or more distinct LGAs."""
    spread: dict[Constraint, set[str]] = {}
    for deal in deals:
        spread.setdefault(deal.dominant_constraint, set()).update(deal.lga_ids)
    recurring = [(c, len(ids)) for c, ids in spread.items() if len(ids) >= 2]
    recurring.sort(key=lambda item: item[1], reverse=True)
    return [ConstraintLgaSpread(constraint=c, label=CONSTRAINT_LABELS[c], lga_count=n) for c, n in recurring]


def stall_points(deals: Iterable[Deal]) -> list[ReadinessCount]:
    """Readiness states shared by two or more deals."""
    return [r for r in count_by_readiness(deals) if r.count >= 2]


def constraint_summary_by_lga(
    deals: Sequence[Deal],
    lgas: Sequence[LGA],
    top_n: int = 3,
) -> list[LgaConstraintSummary]:
    return [
        LgaConstraintSummary(
            lga_id=lga.id,
            lga_name=lga.name,
            constraints=count_by_constraint([d for d in deals if lga.id in d.lga_ids])[:top_n],
        )
        for lga in lgas
    ]


def _count_named(pairs: Iterable[str], names: dict[str, str]) -> list[NamedCount]:
    counts = Counter(pairs)
    ordered = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return [NamedCount(id=key, name=names.get(key, key), count=n) for key, n in ordered]


def analyse_deals(
    deals: Sequence[Deal],
    opportunity_types: Sequence[OpportunityType],
    lgas: Sequence[LGA],
) -> DealAnalysis:
    """Build every tally shown on the deals analysis view."""
    type_names = {ot.id: ot.name for ot in opportunity_types}
    lga_names = {lga.id: lga.name for lga in lgas}
    return DealAnalysis(
        total=len(deals),
        by_stage=count_by_stage(deals),
        by_readiness=count_by_readiness(deals),
        by_constraint=count_by_constraint(deals),
        by_opportunity_type=_count_named((d.opportunity_type_id for d in deals), type_names),
        by_lga=_count_named((lga_id for d in deals for lga_id in d.lga_ids), lga_names),
        constraints_across_lgas=constraints_across_lgas(deals),
        stall_points=stall_points(deals),
        constraint_summary_by_lga=constraint_summary_by_lga(deals, lgas),
    )
