"""Typed record repositories over a persistence backend.

Each repository owns one key prefix (``deals/``, ``strategies/`` ...)
and stores camelCase JSON documents. Repositories for records carrying
enum fields translate them to storage values on write and back on read
(see :mod:`constellation.enum_maps`).
"""

from __future__ import annotations

import json
import logging
import re
import uuid
from typing import Any, ClassVar, Generic, Optional, TypeVar

from pydantic import BaseModel

from constellation import enum_maps
from constellation.exceptions import NotFoundError
from constellation.models import (
    LGA,
    AllowedEmail,
    AuthAuditEvent,
    ConstraintEvent,
    Deal,
    OpportunityType,
    SectorDevelopmentStrategy,
    SectorOpportunity,
    StrategyGrade,
)
from constellation.persistence.protocols import IPersistenceBackend

log = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

_ID_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.:-]{0,127}$")


def new_id() -> str:
    return uuid.uuid4().hex


def is_valid_id(record_id: str) -> bool:
    return bool(_ID_PATTERN.match(record_id))


class Repository(Generic[T]):
    """JSON document store for one record type."""

    collection: ClassVar[str]
    model: ClassVar[type[BaseModel]]
    label: ClassVar[str] = "Record"
    id_field: ClassVar[str] = "id"

    def __init__(self, backend: IPersistenceBackend) -> None:
        self._backend = backend

    def _key(self, record_id: str) -> str:
        return f"{self.collection}/{record_id}"

    # ── Encoding hooks ───────────────────────────────────────────────

    def _encode(self, record: T) -> dict[str, Any]:
        return record.model_dump(mode="json", by_alias=True)

    def _decode(self, data: dict[str, Any]) -> T:
        return self.model.model_validate(data)  # type: ignore[return-value]

    # ── CRUD ─────────────────────────────────────────────────────────

    def get(self, record_id: str) -> Optional[T]:
        if not is_valid_id(record_id):
            return None
        try:
            raw = self._backend.load(self._key(record_id))
        except KeyError:
            return None
        return self._decode(json.loads(raw))

    def require(self, record_id: str) -> T:
        record = self.get(record_id)
        if record is None:
            raise NotFoundError(f"{self.label} not found")
        return record

    def exists(self, record_id: str) -> bool:
        return is_valid_id(record_id) and self._backend.exists(self._key(record_id))

    def list(self) -> list[T]:
        records = []
        for key in self._backend.list_keys(f"{self.collection}/"):
            try:
                records.append(self._decode(json.loads(self._backend.load(key))))
            except KeyError:
                # Deleted between listing and loading
                continue
        return records

    def save(self, record: T) -> T:
        record_id = getattr(record, self.id_field)
        if not is_valid_id(record_id):
            raise ValueError(f"Invalid {self.label.lower()} id: {record_id!r}")
        self._backend.save(self._key(record_id), json.dumps(self._encode(record)))
        return record

    def delete(self, record_id: str) -> bool:
        if not self.exists(record_id):
            return False
        self._backend.delete(self._key(record_id))
        return True


def _map_keys_and_status(
    grouped: dict[str, list[dict[str, Any]]],
    key_fn,
    status_fn,
) -> dict[str, list[dict[str, Any]]]:
    return {
        key_fn(stage): [{**entry, "status": status_fn(entry["status"])} for entry in entries]
        for stage, entries in grouped.items()
    }


class DealRepository(Repository[Deal]):
    collection = "deals"
    model = Deal
    label = "Deal"

    def _encode(self, record: Deal) -> dict[str, Any]:
        data = super()._encode(record)
        data["stage"] = enum_maps.stage_to_storage(data["stage"])
        data["readinessState"] = enum_maps.readiness_to_storage(data["readinessState"])
        data["dominantConstraint"] = enum_maps.constraint_to_storage(data["dominantConstraint"])
        data["gateChecklist"] = _map_keys_and_status(
            data["gateChecklist"], enum_maps.stage_to_storage, enum_maps.GATE_STATUS.to_storage
        )
        data["artefacts"] = _map_keys_and_status(
            data["artefacts"], enum_maps.stage_to_storage, enum_maps.ARTEFACT_STATUS.to_storage
        )
        return data

    def _decode(self, data: dict[str, Any]) -> Deal:
        data = dict(data)
        data["stage"] = enum_maps.stage_from_storage(data["stage"])
        data["readinessState"] = enum_maps.readiness_from_storage(data["readinessState"])
        data["dominantConstraint"] = enum_maps.constraint_from_storage(data["dominantConstraint"])
        data["gateChecklist"] = _map_keys_and_status(
            data.get("gateChecklist", {}), enum_maps.stage_from_storage, enum_maps.GATE_STATUS.from_storage
        )
        data["artefacts"] = _map_keys_and_status(
            data.get("artefacts", {}), enum_maps.stage_from_storage, enum_maps.ARTEFACT_STATUS.from_storage
        )
        return Deal.model_validate(data)

    def list_for_lga(self, lga_id: str) -> list[Deal]:
        return [d for d in self.list() if lga_id in d.lga_ids]


class ConstraintEventRepository(Repository[ConstraintEvent]):
    collection = "constraint-events"
    model = ConstraintEvent
    label = "Constraint event"

    def _encode(self, record: ConstraintEvent) -> dict[str, Any]:
        data = super()._encode(record)
        data["dominantConstraint"] = enum_maps.constraint_to_storage(data["dominantConstraint"])
        return data

    def _decode(self, data: dict[str, Any]) -> ConstraintEvent:
        data = {**data, "dominantConstraint": enum_maps.constraint_from_storage(data["dominantConstraint"])}
        return ConstraintEvent.model_validate(data)

    def list_for_entity(self, entity_id: str) -> list[ConstraintEvent]:
        events = [e for e in self.list() if e.entity_id == entity_id]
        return sorted(events, key=lambda e: e.changed_at, reverse=True)


class LgaRepository(Repository[LGA]):
    collection = "lgas"
    model = LGA
    label = "LGA"

    def _encode(self, record: LGA) -> dict[str, Any]:
        data = super()._encode(record)
        data["repeatedConstraints"] = [enum_maps.constraint_to_storage(c) for c in data["repeatedConstraints"]]
        for hypothesis in data["opportunityHypotheses"]:
            if hypothesis.get("dominantConstraint"):
                hypothesis["dominantConstraint"] = enum_maps.constraint_to_storage(hypothesis["dominantConstraint"])
        # Computed from deals on read
        data.pop("activeDealIds", None)
        return data

    def _decode(self, data: dict[str, Any]) -> LGA:
        data = dict(data)
        data["repeatedConstraints"] = [
            enum_maps.constraint_from_storage(c) for c in data.get("repeatedConstraints", [])
        ]
        hypotheses = []
        for hypothesis in data.get("opportunityHypotheses", []):
            hypothesis = dict(hypothesis)
            if hypothesis.get("dominantConstraint"):
                hypothesis["dominantConstraint"] = enum_maps.constraint_from_storage(hypothesis["dominantConstraint"])
            hypotheses.append(hypothesis)
        data["opportunityHypotheses"] = hypotheses
        return LGA.model_validate(data)


class OpportunityTypeRepository(Repository[OpportunityType]):
    collection = "opportunity-types"
    model = OpportunityType
    label = "Opportunity type"


class SectorRepository(Repository[SectorOpportunity]):
    collection = "sectors"
    model = SectorOpportunity
    label = "Sector"


class StrategyRepository(Repository[SectorDevelopmentStrategy]):
    collection = "strategies"
    model = SectorDevelopmentStrategy
    label = "Strategy"


class StrategyGradeRepository(Repository[StrategyGrade]):
    """One grade per strategy, keyed by strategy id so re-grading upserts."""

    collection = "strategy-grades"
    model = StrategyGrade
    label = "Strategy grade"
    id_field = "strategy_id"

    def _encode(self, record: StrategyGrade) -> dict[str, Any]:
        data = super()._encode(record)
        data["gradeLetter"] = enum_maps.grade_letter_to_storage(data["gradeLetter"])
        return data

    def _decode(self, data: dict[str, Any]) -> StrategyGrade:
        data = {**data, "gradeLetter": enum_maps.grade_letter_from_storage(data["gradeLetter"])}
        return StrategyGrade.model_validate(data)


class AllowlistRepository(Repository[AllowedEmail]):
    collection = "allowlist"
    model = AllowedEmail
    label = "Allowlist entry"

    def find_by_email(self, email: str) -> Optional[AllowedEmail]:
        wanted = email.strip().lower()
        for entry in self.list():
            if entry.email == wanted:
                return entry
        return None


class AuthAuditRepository(Repository[AuthAuditEvent]):
    collection = "auth-audit"
    model = AuthAuditEvent
    label = "Auth audit event"
