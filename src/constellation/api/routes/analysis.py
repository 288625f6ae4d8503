"""Deal analysis endpoint: the tallies behind the analysis charts."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from constellation.api.deps import get_store
from constellation.api.guards import rate_limit
from constellation.models import DealStage
from constellation.services.analysis import DealAnalysis, analyse_deals, filter_deals
from constellation.services.store import DataStore

router = APIRouter(tags=["analysis"])


@router.get(
    "/analysis/deals",
    response_model=DealAnalysis,
    dependencies=[Depends(rate_limit("analysis-read", "read"))],
)
async def deal_analysis(
    store: DataStore = Depends(get_store),
    q: str = "",
    stage: Optional[DealStage] = None,
    opportunity_type_id: Optional[str] = Query(default=None, alias="opportunityTypeId"),
    lga_id: Optional[str] = Query(default=None, alias="lgaId"),
) -> DealAnalysis:
    opportunity_types = store.opportunity_types.list()
    lgas = store.lgas.list()
    deals = filter_deals(
        store.deals.list(),
        q,
        opportunity_types,
        lgas,
        stage=stage,
        opportunity_type_id=opportunity_type_id,
        lga_id=lga_id,
    )
    return analyse_deals(deals, opportunity_types, lgas)
