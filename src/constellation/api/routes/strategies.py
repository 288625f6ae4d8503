"""Sector development strategy endpoints, including AI extraction and grading."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from pydantic import Field, model_validator

from constellation.ai.results import ParseFailure
from constellation.ai.types import StrategyExtractionResult
from constellation.api.auth import Principal, require_auth
from constellation.api.deps import get_ai_service, get_blob_storage, get_settings, get_store
from constellation.api.guards import body_limit, rate_limit
from constellation.api.routes._ai_errors import raise_for_failure
from constellation.core.config import AppSettings
from constellation.models import (
    STRATEGY_COMPONENT_IDS,
    CamelModel,
    NonEmptyStr,
    SectorDevelopmentStrategy,
    SelectionLogicFields,
    StoredDocument,
    StrategyGrade,
    StrategyStatus,
    utcnow,
)
from constellation.services.ai_service import AIService
from constellation.services.repositories import new_id
from constellation.services.store import DataStore
from constellation.storage import IBlobStorage, validate_upload

log = logging.getLogger(__name__)

router = APIRouter(tags=["strategies"])

NO_COMPONENTS_TO_GRADE = "Strategy has no blueprint components to grade. Run AI extraction first."


class CreateStrategyInput(CamelModel):
    title: NonEmptyStr
    source_document: Optional[str] = None
    summary: str = ""
    extracted_text: Optional[str] = None


class SelectionLogicPatch(CamelModel):
    adjacent_definition: Optional[str] = None
    growth_definition: Optional[str] = None
    criteria: Optional[list[str]] = None


class PatchStrategyInput(CamelModel):
    """Any subset of editable strategy fields.

    ``components`` and ``selectionLogic`` merge into the stored values;
    list fields replace them in the given order.
    """

    title: Optional[NonEmptyStr] = None
    summary: Optional[str] = None
    source_document: Optional[str] = None
    extracted_text: Optional[str] = None
    status: Optional[StrategyStatus] = None
    components: Optional[dict[str, str]] = None
    selection_logic: Optional[SelectionLogicPatch] = None
    cross_cutting_themes: Optional[list[str]] = None
    stakeholder_categories: Optional[list[str]] = None
    priority_sector_ids: Optional[list[str]] = None

    @model_validator(mode="after")
    def _require_a_field(self) -> PatchStrategyInput:
        if not self.model_fields_set:
            raise ValueError("At least one field must be provided")
        return self

    def apply(self, strategy: SectorDevelopmentStrategy) -> SectorDevelopmentStrategy:
        update: dict[str, object] = {"updated_at": utcnow()}
        for name in ("title", "summary", "status", "cross_cutting_themes", "stakeholder_categories", "priority_sector_ids"):
            if name in self.model_fields_set and getattr(self, name) is not None:
                update[name] = getattr(self, name)
        for name in ("source_document", "extracted_text"):
            if name in self.model_fields_set:
                update[name] = getattr(self, name)

        if self.components:
            known = {cid: text for cid, text in self.components.items() if cid in STRATEGY_COMPONENT_IDS}
            update["components"] = {**strategy.components, **known}

        if self.selection_logic is not None:
            current = strategy.selection_logic or SelectionLogicFields()
            patch = self.selection_logic.model_dump(exclude_unset=True)
            update["selection_logic"] = current.model_copy(update=patch)

        return strategy.model_copy(update=update)


class StrategyExtractRequest(CamelModel):
    extracted_text: str = ""


class StrategyGradeResult(StrategyGrade):
    warnings: list[str] = Field(default_factory=list)


# ── CRUD ─────────────────────────────────────────────────────────────


@router.get(
    "/strategies",
    response_model=list[SectorDevelopmentStrategy],
    dependencies=[Depends(rate_limit("strategy-read", "read"))],
)
async def list_strategies(store: DataStore = Depends(get_store)) -> list[SectorDevelopmentStrategy]:
    return sorted(store.strategies.list(), key=lambda s: s.title.lower())


@router.post(
    "/strategies",
    status_code=201,
    dependencies=[Depends(rate_limit("strategy-create", "write")), Depends(body_limit("standard"))],
)
async def create_strategy(
    body: CreateStrategyInput,
    store: DataStore = Depends(get_store),
    principal: Principal = Depends(require_auth),
) -> dict[str, str]:
    strategy = SectorDevelopmentStrategy(
        id=new_id(),
        title=body.title,
        status=StrategyStatus.DRAFT,
        source_document=body.source_document,
        summary=body.summary.strip(),
        extracted_text=body.extracted_text,
    )
    store.strategies.save(strategy)
    log.info("Strategy created", extra={"strategy_id": strategy.id, "by": principal.email})
    return {"id": strategy.id}


@router.post(
    "/strategies/extract",
    response_model=StrategyExtractionResult,
    dependencies=[Depends(rate_limit("strategy-extract", "ai")), Depends(body_limit("ai"))],
)
async def extract_strategy(
    body: StrategyExtractRequest,
    settings: AppSettings = Depends(get_settings),
    ai: AIService = Depends(get_ai_service),
    principal: Principal = Depends(require_auth),
) -> StrategyExtractionResult:
    """Map strategy document text onto the six-component blueprint.

    The result carries a ``warnings`` list naming every field the model
    response left missing or empty.
    """
    if not body.extracted_text:
        raise HTTPException(status_code=400, detail="extractedText is required")

    parsed = await ai.extract_strategy(body.extracted_text)
    if isinstance(parsed, ParseFailure):
        log.warning("Strategy extraction response rejected", extra={"kind": parsed.kind, "by": principal.email})
        raise_for_failure(parsed, settings.extraction)
    if parsed.result.warnings:
        log.info("Strategy extraction needed defaults", extra={"warnings": len(parsed.result.warnings)})
    return parsed.result


@router.get(
    "/strategies/{strategy_id}",
    response_model=SectorDevelopmentStrategy,
    dependencies=[Depends(rate_limit("strategy-read", "read"))],
)
async def get_strategy(strategy_id: str, store: DataStore = Depends(get_store)) -> SectorDevelopmentStrategy:
    return store.strategies.require(strategy_id)


@router.patch(
    "/strategies/{strategy_id}",
    dependencies=[Depends(rate_limit("strategy-patch", "strategy_patch")), Depends(body_limit("standard"))],
)
async def patch_strategy(
    strategy_id: str,
    body: PatchStrategyInput,
    store: DataStore = Depends(get_store),
    principal: Principal = Depends(require_auth),
) -> dict[str, bool]:
    strategy = store.strategies.require(strategy_id)
    store.strategies.save(body.apply(strategy))
    log.info(
        "Strategy updated",
        extra={"strategy_id": strategy_id, "fields": sorted(body.model_fields_set), "by": principal.email},
    )
    return {"ok": True}


@router.delete(
    "/strategies/{strategy_id}",
    dependencies=[Depends(rate_limit("strategy-delete", "strategy_delete"))],
)
async def delete_strategy(
    strategy_id: str,
    store: DataStore = Depends(get_store),
    principal: Principal = Depends(require_auth),
) -> dict[str, bool]:
    store.strategies.require(strategy_id)
    store.strategies.delete(strategy_id)
    store.strategy_grades.delete(strategy_id)
    log.info("Strategy deleted", extra={"strategy_id": strategy_id, "by": principal.email})
    return {"ok": True}


# ── Grading ──────────────────────────────────────────────────────────


@router.get(
    "/strategies/{strategy_id}/grade",
    response_model=StrategyGrade,
    dependencies=[Depends(rate_limit("strategy-read", "read"))],
)
async def get_strategy_grade(strategy_id: str, store: DataStore = Depends(get_store)) -> StrategyGrade:
    return store.strategy_grades.require(strategy_id)


@router.post(
    "/strategies/{strategy_id}/grade",
    response_model=StrategyGradeResult,
    dependencies=[Depends(rate_limit("strategy-grade", "ai"))],
)
async def grade_strategy(
    strategy_id: str,
    store: DataStore = Depends(get_store),
    settings: AppSettings = Depends(get_settings),
    ai: AIService = Depends(get_ai_service),
    principal: Principal = Depends(require_auth),
) -> StrategyGradeResult:
    """Grade a strategy against the blueprint and store the result.

    Re-grading replaces the previous grade.
    """
    strategy = store.strategies.require(strategy_id)
    if not strategy.has_component_content():
        raise HTTPException(status_code=400, detail=NO_COMPONENTS_TO_GRADE)

    parsed = await ai.grade_strategy(strategy)
    if isinstance(parsed, ParseFailure):
        log.warning("Strategy grading response rejected", extra={"strategy_id": strategy_id, "kind": parsed.kind})
        raise_for_failure(parsed, settings.extraction)

    assessment = parsed.result
    existing = store.strategy_grades.get(strategy_id)
    grade = StrategyGrade(
        id=existing.id if existing else new_id(),
        strategy_id=strategy_id,
        grade_letter=assessment.grade_letter,
        grade_rationale_short=assessment.grade_rationale_short,
        evidence_notes_by_component=assessment.evidence_notes_by_component,
        missing_elements=assessment.missing_elements,
        scope_discipline_notes=assessment.scope_discipline_notes or None,
    )
    store.strategy_grades.save(grade)
    log.info(
        "Strategy graded",
        extra={"strategy_id": strategy_id, "grade": grade.grade_letter.value, "by": principal.email},
    )
    return StrategyGradeResult(**grade.model_dump(), warnings=assessment.warnings)


# ── Documents ────────────────────────────────────────────────────────


@router.post(
    "/strategies/{strategy_id}/documents",
    status_code=201,
    response_model=StoredDocument,
    dependencies=[Depends(rate_limit("strategy-upload", "upload"))],
)
async def upload_strategy_document(
    strategy_id: str,
    file: UploadFile = File(...),
    label: Optional[str] = Form(default=None),
    store: DataStore = Depends(get_store),
    blobs: IBlobStorage = Depends(get_blob_storage),
    settings: AppSettings = Depends(get_settings),
    principal: Principal = Depends(require_auth),
) -> StoredDocument:
    strategy = store.strategies.require(strategy_id)
    data = await file.read()
    mime = file.content_type or "application/octet-stream"
    validate_upload(len(data), mime, settings.blob.max_file_bytes)

    file_name = file.filename or "upload"
    url = blobs.upload(file_name, data, mime, folder=f"strategies/{strategy_id}")
    doc = StoredDocument(
        id=new_id(),
        file_name=file_name,
        mime_type=mime,
        size_bytes=len(data),
        file_url=url,
        label=label or None,
    )
    store.strategies.save(
        strategy.model_copy(update={"documents": [*strategy.documents, doc], "updated_at": utcnow()})
    )
    log.info("Strategy document uploaded", extra={"strategy_id": strategy_id, "doc_id": doc.id, "by": principal.email})
    return doc
