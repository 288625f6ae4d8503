"""Local government area endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from constellation.api.deps import get_store
from constellation.api.guards import rate_limit
from constellation.models import LGA
from constellation.services.store import DataStore

router = APIRouter(tags=["lgas"])


@router.get(
    "/lgas",
    response_model=list[LGA],
    dependencies=[Depends(rate_limit("lga-read", "read"))],
)
async def list_lgas(store: DataStore = Depends(get_store)) -> list[LGA]:
    lgas = sorted(store.lgas.list(), key=lambda lga: lga.name.lower())
    return [store.lga_with_active_deals(lga) for lga in lgas]


@router.get(
    "/lgas/{lga_id}",
    response_model=LGA,
    dependencies=[Depends(rate_limit("lga-read", "read"))],
)
async def get_lga(lga_id: str, store: DataStore = Depends(get_store)) -> LGA:
    """An LGA with ``activeDealIds`` listing the deals located in it."""
    return store.lga_with_active_deals(store.lgas.require(lga_id))
