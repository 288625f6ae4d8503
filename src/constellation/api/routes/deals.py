"""Deal endpoints: CRUD, constraint history, documents and memo analysis."""

from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Request, UploadFile
from fastapi.responses import RedirectResponse
from pydantic import Field, model_validator

from constellation.ai.results import ParseFailure
from constellation.ai.types import MemoAnalysisResult
from constellation.api.auth import Principal, require_auth
from constellation.api.deps import get_ai_service, get_blob_storage, get_settings, get_store
from constellation.api.guards import body_limit, rate_limit
from constellation.api.routes._ai_errors import raise_for_failure
from constellation.core.config import AppSettings
from constellation.exceptions import BlobStorageError, NotFoundError
from constellation.models import (
    LGA,
    Artefact,
    CamelModel,
    Constraint,
    ConstraintEvent,
    Deal,
    DealStage,
    EvidenceRef,
    GateEntry,
    GovernmentProgram,
    NonEmptyStr,
    OpportunityType,
    ReadinessState,
    StoredDocument,
    TimelineMilestone,
    utcnow,
)
from constellation.services.ai_service import AIService
from constellation.services.analysis import filter_deals
from constellation.services.repositories import new_id
from constellation.services.store import DataStore
from constellation.storage import IBlobStorage, validate_upload

log = logging.getLogger(__name__)

router = APIRouter(tags=["deals"])

DEFAULT_PAGE_SIZE = 200
MAX_PAGE_SIZE = 500

# Optional text fields where an empty string clears the value
_NULLABLE_TEXT = ("description", "skills_implications", "market_drivers")


class CreateDealInput(CamelModel):
    """Body of ``POST /api/deals``."""

    name: NonEmptyStr
    opportunity_type_id: NonEmptyStr
    lga_ids: list[str] = Field(default_factory=list)
    lat: Optional[float] = None
    lng: Optional[float] = None
    stage: DealStage
    readiness_state: ReadinessState
    dominant_constraint: Constraint
    summary: str = Field(min_length=1)
    next_step: str = ""
    description: Optional[str] = None
    investment_value: Optional[str] = None
    investment_value_amount: float = Field(default=0, ge=0)
    investment_value_description: Optional[str] = None
    economic_impact: Optional[str] = None
    economic_impact_amount: float = Field(default=0, ge=0)
    economic_impact_description: Optional[str] = None
    economic_impact_jobs: Optional[int] = Field(default=None, ge=0)
    key_stakeholders: list[str] = Field(default_factory=list)
    risks: list[str] = Field(default_factory=list)
    strategic_actions: list[str] = Field(default_factory=list)
    infrastructure_needs: list[str] = Field(default_factory=list)
    skills_implications: Optional[str] = None
    market_drivers: Optional[str] = None
    government_programs: list[GovernmentProgram] = Field(default_factory=list)
    timeline: list[TimelineMilestone] = Field(default_factory=list)
    evidence: list[EvidenceRef] = Field(default_factory=list)
    gate_checklist: dict[DealStage, list[GateEntry]] = Field(default_factory=dict)
    artefacts: dict[DealStage, list[Artefact]] = Field(default_factory=dict)

    def to_deal(self, deal_id: str) -> Deal:
        data = self.model_dump(exclude={"investment_value", "economic_impact"})
        # Free-text value fields are accepted as fallbacks for the descriptions
        data["investment_value_description"] = self.investment_value_description or self.investment_value or ""
        data["economic_impact_description"] = self.economic_impact_description or self.economic_impact or ""
        return Deal.model_validate({**data, "id": deal_id})


class PatchDealInput(CamelModel):
    """Body of ``PATCH /api/deals/{id}``: any subset of editable fields."""

    name: Optional[NonEmptyStr] = None
    stage: Optional[DealStage] = None
    readiness_state: Optional[ReadinessState] = None
    dominant_constraint: Optional[Constraint] = None
    change_reason: Optional[str] = None
    summary: Optional[str] = None
    next_step: Optional[str] = None
    description: Optional[str] = None
    investment_value_amount: Optional[float] = Field(default=None, ge=0)
    investment_value_description: Optional[str] = None
    economic_impact_amount: Optional[float] = Field(default=None, ge=0)
    economic_impact_description: Optional[str] = None
    economic_impact_jobs: Optional[int] = None
    key_stakeholders: Optional[list[str]] = None
    risks: Optional[list[str]] = None
    strategic_actions: Optional[list[str]] = None
    infrastructure_needs: Optional[list[str]] = None
    skills_implications: Optional[str] = None
    market_drivers: Optional[str] = None
    gate_checklist: Optional[dict[DealStage, list[GateEntry]]] = None
    artefacts: Optional[dict[DealStage, list[Artefact]]] = None

    @model_validator(mode="after")
    def _require_a_field(self) -> PatchDealInput:
        if not self.model_fields_set:
            raise ValueError("At least one field must be provided")
        return self

    def updates(self) -> dict[str, Any]:
        """Fields to overwrite on the stored deal."""
        changed: dict[str, Any] = {}
        for name in self.model_fields_set - {"change_reason"}:
            value = getattr(self, name)
            if name in _NULLABLE_TEXT:
                value = value or None
            elif value is None:
                # Explicit null is only meaningful for the nullable fields
                if name != "economic_impact_jobs":
                    continue
            changed[name] = value
        return changed


class DealPage(CamelModel):
    items: list[Deal]
    total: int
    limit: int
    offset: int


class MemoCatalogueType(CamelModel):
    id: str
    name: str
    definition: str = ""


class MemoCatalogueLga(CamelModel):
    id: str
    name: str


class AnalyseMemoRequest(CamelModel):
    """Body of ``POST /api/deals/analyse-memo``.

    Catalogues supplied by the caller take precedence over the stored ones.
    """

    memo_text: str = ""
    memo_label: Optional[str] = None
    opportunity_types: Optional[list[MemoCatalogueType]] = None
    lgas: Optional[list[MemoCatalogueLga]] = None


# ── Listing and CRUD ─────────────────────────────────────────────────


@router.get(
    "/deals",
    response_model=DealPage,
    dependencies=[Depends(rate_limit("deal-read", "read"))],
)
async def list_deals(
    store: DataStore = Depends(get_store),
    q: str = "",
    stage: Optional[DealStage] = None,
    opportunity_type_id: Optional[str] = Query(default=None, alias="opportunityTypeId"),
    lga_id: Optional[str] = Query(default=None, alias="lgaId"),
    limit: int = DEFAULT_PAGE_SIZE,
    offset: int = 0,
) -> DealPage:
    """List deals, most recently updated first, with search and paging."""
    limit = min(max(limit, 1), MAX_PAGE_SIZE)
    offset = max(offset, 0)
    deals = sorted(store.deals.list(), key=lambda d: d.updated_at, reverse=True)
    if q or stage or opportunity_type_id or lga_id:
        deals = filter_deals(
            deals,
            q,
            store.opportunity_types.list(),
            store.lgas.list(),
            stage=stage,
            opportunity_type_id=opportunity_type_id,
            lga_id=lga_id,
        )
    return DealPage(items=deals[offset : offset + limit], total=len(deals), limit=limit, offset=offset)


@router.post(
    "/deals",
    status_code=201,
    dependencies=[Depends(rate_limit("deal-create", "write")), Depends(body_limit("standard"))],
)
async def create_deal(
    body: CreateDealInput,
    store: DataStore = Depends(get_store),
    principal: Principal = Depends(require_auth),
) -> dict[str, str]:
    deal = store.deals.save(body.to_deal(new_id()))
    log.info("Deal created", extra={"deal_id": deal.id, "by": principal.email})
    return {"id": deal.id}


@router.post(
    "/deals/analyse-memo",
    response_model=MemoAnalysisResult,
    dependencies=[Depends(rate_limit("analyse-memo", "ai")), Depends(body_limit("ai"))],
)
async def analyse_memo(
    body: AnalyseMemoRequest,
    store: DataStore = Depends(get_store),
    settings: AppSettings = Depends(get_settings),
    ai: AIService = Depends(get_ai_service),
    principal: Principal = Depends(require_auth),
) -> MemoAnalysisResult:
    """Propose deal fields from investment-memo text for human review."""
    if not body.memo_text.strip():
        raise HTTPException(status_code=400, detail="memoText is required")

    if body.opportunity_types is not None:
        opportunity_types = [OpportunityType(**ot.model_dump()) for ot in body.opportunity_types]
    else:
        opportunity_types = store.opportunity_types.list()
    if body.lgas is not None:
        lgas = [LGA(id=lga.id, name=lga.name) for lga in body.lgas]
    else:
        lgas = store.lgas.list()

    parsed = await ai.analyse_memo(
        body.memo_text,
        memo_label=body.memo_label,
        opportunity_types=opportunity_types,
        lgas=lgas,
    )
    if isinstance(parsed, ParseFailure):
        log.warning("Memo analysis response rejected", extra={"kind": parsed.kind, "by": principal.email})
        raise_for_failure(parsed, settings.extraction)
    return parsed.result


@router.get(
    "/deals/{deal_id}",
    response_model=Deal,
    dependencies=[Depends(rate_limit("deal-read", "read"))],
)
async def get_deal(deal_id: str, store: DataStore = Depends(get_store)) -> Deal:
    return store.deals.require(deal_id)


@router.patch(
    "/deals/{deal_id}",
    response_model=Deal,
    dependencies=[Depends(rate_limit("deal-patch", "write")), Depends(body_limit("standard"))],
)
async def patch_deal(
    deal_id: str,
    body: PatchDealInput,
    store: DataStore = Depends(get_store),
    principal: Principal = Depends(require_auth),
) -> Deal:
    """Apply a partial update.

    ``gateChecklist`` and ``artefacts`` replace the stored maps wholesale.
    A ``dominantConstraint`` change that carries a ``changeReason`` is
    recorded as a constraint event.
    """
    deal = store.deals.require(deal_id)
    updated = Deal.model_validate({**deal.model_dump(), **body.updates(), "updated_at": utcnow()})
    store.deals.save(updated)

    if body.dominant_constraint is not None and body.change_reason:
        store.constraint_events.save(
            ConstraintEvent(
                id=new_id(),
                entity_type="deal",
                entity_id=deal_id,
                dominant_constraint=body.dominant_constraint,
                change_reason=body.change_reason,
            )
        )
        log.info(
            "Constraint change recorded",
            extra={"deal_id": deal_id, "constraint": body.dominant_constraint.value},
        )

    log.info("Deal updated", extra={"deal_id": deal_id, "fields": sorted(body.model_fields_set), "by": principal.email})
    return updated


@router.delete(
    "/deals/{deal_id}",
    dependencies=[Depends(rate_limit("deal-delete", "delete"))],
)
async def delete_deal(
    deal_id: str,
    store: DataStore = Depends(get_store),
    blobs: IBlobStorage = Depends(get_blob_storage),
    principal: Principal = Depends(require_auth),
) -> dict[str, bool]:
    deal = store.deals.require(deal_id)
    for doc in deal.documents:
        try:
            blobs.delete(doc.file_url)
        except BlobStorageError as e:
            log.warning("Orphaned document blob", extra={"deal_id": deal_id, "url": doc.file_url, "error": str(e)})
    store.deals.delete(deal_id)
    log.info("Deal deleted", extra={"deal_id": deal_id, "by": principal.email})
    return {"deleted": True}


@router.get(
    "/deals/{deal_id}/constraint-events",
    response_model=list[ConstraintEvent],
    dependencies=[Depends(rate_limit("deal-read", "read"))],
)
async def list_constraint_events(deal_id: str, store: DataStore = Depends(get_store)) -> list[ConstraintEvent]:
    store.deals.require(deal_id)
    return store.constraint_events.list_for_entity(deal_id)


# ── Documents ────────────────────────────────────────────────────────


def _find_document(documents: list[StoredDocument], doc_id: str) -> StoredDocument:
    for doc in documents:
        if doc.id == doc_id:
            return doc
    raise NotFoundError("Document not found")


@router.get(
    "/deals/{deal_id}/documents",
    response_model=list[StoredDocument],
    dependencies=[Depends(rate_limit("deal-read", "read"))],
)
async def list_deal_documents(deal_id: str, store: DataStore = Depends(get_store)) -> list[StoredDocument]:
    deal = store.deals.require(deal_id)
    return sorted(deal.documents, key=lambda d: d.added_at, reverse=True)


@router.post(
    "/deals/{deal_id}/documents",
    status_code=201,
    response_model=StoredDocument,
    dependencies=[Depends(rate_limit("deal-upload", "upload"))],
)
async def upload_deal_document(
    deal_id: str,
    file: UploadFile = File(...),
    label: Optional[str] = Form(default=None),
    store: DataStore = Depends(get_store),
    blobs: IBlobStorage = Depends(get_blob_storage),
    settings: AppSettings = Depends(get_settings),
    principal: Principal = Depends(require_auth),
) -> StoredDocument:
    deal = store.deals.require(deal_id)
    data = await file.read()
    mime = file.content_type or "application/octet-stream"
    validate_upload(len(data), mime, settings.blob.max_file_bytes)

    file_name = file.filename or "upload"
    url = blobs.upload(file_name, data, mime, folder=f"deals/{deal_id}")
    doc = StoredDocument(
        id=new_id(),
        file_name=file_name,
        mime_type=mime,
        size_bytes=len(data),
        file_url=url,
        label=label or None,
    )
    store.deals.save(deal.model_copy(update={"documents": [*deal.documents, doc], "updated_at": utcnow()}))
    log.info("Deal document uploaded", extra={"deal_id": deal_id, "doc_id": doc.id, "by": principal.email})
    return doc


@router.get(
    "/deals/{deal_id}/documents/{doc_id}",
    dependencies=[Depends(rate_limit("deal-read", "read"))],
)
async def download_deal_document(
    deal_id: str,
    doc_id: str,
    store: DataStore = Depends(get_store),
) -> RedirectResponse:
    doc = _find_document(store.deals.require(deal_id).documents, doc_id)
    return RedirectResponse(doc.file_url, status_code=307)


@router.delete(
    "/deals/{deal_id}/documents/{doc_id}",
    dependencies=[Depends(rate_limit("deal-delete", "delete"))],
)
async def delete_deal_document(
    deal_id: str,
    doc_id: str,
    store: DataStore = Depends(get_store),
    blobs: IBlobStorage = Depends(get_blob_storage),
    principal: Principal = Depends(require_auth),
) -> dict[str, bool]:
    deal = store.deals.require(deal_id)
    doc = _find_document(deal.documents, doc_id)
    blobs.delete(doc.file_url)
    remaining = [d for d in deal.documents if d.id != doc_id]
    store.deals.save(deal.model_copy(update={"documents": remaining, "updated_at": utcnow()}))
    log.info("Deal document deleted", extra={"deal_id": deal_id, "doc_id": doc_id, "by": principal.email})
    return {"deleted": True}
