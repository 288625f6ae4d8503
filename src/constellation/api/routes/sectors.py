"""Sector opportunity endpoints."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import field_validator, model_validator

from constellation.api.auth import Principal, require_auth
from constellation.api.deps import get_store
from constellation.api.guards import body_limit, rate_limit
from constellation.models import SECTOR_SECTION_IDS, CamelModel, NonEmptyStr, SectorOpportunity
from constellation.services.store import DataStore

log = logging.getLogger(__name__)

router = APIRouter(tags=["sectors"])


class PatchSectorInput(CamelModel):
    name: Optional[NonEmptyStr] = None
    version: Optional[str] = None
    tags: Optional[list[str]] = None
    sources: Optional[list[str]] = None
    sections: Optional[dict[str, str]] = None

    @field_validator("sections")
    @classmethod
    def _known_sections(cls, v: Optional[dict[str, str]]) -> Optional[dict[str, str]]:
        if v is not None:
            unknown = sorted(set(v) - set(SECTOR_SECTION_IDS))
            if unknown:
                raise ValueError(f"Unknown section ids: {', '.join(unknown)}")
        return v

    @model_validator(mode="after")
    def _require_a_field(self) -> PatchSectorInput:
        if not any(getattr(self, name) is not None for name in self.model_fields_set):
            raise ValueError("No valid fields provided")
        return self


@router.get(
    "/sectors",
    response_model=list[SectorOpportunity],
    dependencies=[Depends(rate_limit("sector-read", "read"))],
)
async def list_sectors(store: DataStore = Depends(get_store)) -> list[SectorOpportunity]:
    return sorted(store.sectors.list(), key=lambda s: s.name.lower())


@router.get(
    "/sectors/{sector_id}",
    response_model=SectorOpportunity,
    dependencies=[Depends(rate_limit("sector-read", "read"))],
)
async def get_sector(sector_id: str, store: DataStore = Depends(get_store)) -> SectorOpportunity:
    return store.sectors.require(sector_id)


@router.patch(
    "/sectors/{sector_id}",
    response_model=SectorOpportunity,
    dependencies=[Depends(rate_limit("sector-patch", "write")), Depends(body_limit("standard"))],
)
async def patch_sector(
    sector_id: str,
    body: PatchSectorInput,
    store: DataStore = Depends(get_store),
    principal: Principal = Depends(require_auth),
) -> SectorOpportunity:
    """Update sector fields; ``sections`` merges into the stored sections."""
    sector = store.sectors.require(sector_id)
    update: dict[str, object] = {
        name: getattr(body, name)
        for name in ("name", "version", "tags", "sources")
        if getattr(body, name) is not None
    }
    if body.sections:
        update["sections"] = {**sector.sections, **body.sections}
    updated = sector.model_copy(update=update)
    store.sectors.save(updated)
    log.info("Sector updated", extra={"sector_id": sector_id, "by": principal.email})
    return updated
