"""Opportunity type catalogue endpoints."""

from __future__ import annotations

import logging
import re
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from constellation.api.auth import Principal, require_auth
from constellation.api.deps import get_store
from constellation.api.guards import body_limit, rate_limit
from constellation.models import CamelModel, NonEmptyStr, OpportunityType
from constellation.services.repositories import is_valid_id
from constellation.services.store import DataStore

log = logging.getLogger(__name__)

router = APIRouter(tags=["opportunity-types"])

_NON_SLUG = re.compile(r"[^a-z0-9]+")


def slugify(name: str) -> str:
    return _NON_SLUG.sub("-", name.strip().lower()).strip("-")


class CreateOpportunityTypeInput(CamelModel):
    id: Optional[str] = None
    name: NonEmptyStr
    definition: str = ""
    economic_function: str = ""
    typical_capital_stack: str = ""
    typical_risks: str = ""


@router.get(
    "/opportunity-types",
    response_model=list[OpportunityType],
    dependencies=[Depends(rate_limit("opportunity-type-read", "read"))],
)
async def list_opportunity_types(store: DataStore = Depends(get_store)) -> list[OpportunityType]:
    return sorted(store.opportunity_types.list(), key=lambda ot: ot.name.lower())


@router.post(
    "/opportunity-types",
    status_code=201,
    response_model=OpportunityType,
    dependencies=[Depends(rate_limit("opportunity-type-create", "write")), Depends(body_limit("small"))],
)
async def create_opportunity_type(
    body: CreateOpportunityTypeInput,
    store: DataStore = Depends(get_store),
    principal: Principal = Depends(require_auth),
) -> OpportunityType:
    """Add a type; the id defaults to a slug of the name."""
    type_id = body.id or slugify(body.name)
    if not is_valid_id(type_id):
        raise HTTPException(status_code=400, detail=f"Invalid opportunity type id: {type_id!r}")
    if store.opportunity_types.exists(type_id):
        raise HTTPException(status_code=409, detail=f"Opportunity type '{type_id}' already exists")

    opportunity_type = OpportunityType(**body.model_dump(exclude={"id"}), id=type_id)
    store.opportunity_types.save(opportunity_type)
    log.info("Opportunity type created", extra={"opportunity_type_id": type_id, "by": principal.email})
    return opportunity_type
