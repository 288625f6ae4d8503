"""DataStore: one handle on every repository, plus seed-file import."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from constellation.models import (
    LGA,
    AllowedEmail,
    Deal,
    OpportunityType,
    SectorDevelopmentStrategy,
    SectorOpportunity,
)
from constellation.persistence import create_backend
from constellation.services.repositories import (
    AllowlistRepository,
    AuthAuditRepository,
    ConstraintEventRepository,
    DealRepository,
    LgaRepository,
    OpportunityTypeRepository,
    SectorRepository,
    StrategyGradeRepository,
    StrategyRepository,
)

if TYPE_CHECKING:
    from constellation.core.config import PersistenceConfig
    from constellation.persistence.protocols import IPersistenceBackend

log = logging.getLogger(__name__)


class DataStore:
    """Aggregates the record repositories sharing one backend."""

    def __init__(self, backend: IPersistenceBackend) -> None:
        self.backend = backend
        self.deals = DealRepository(backend)
        self.constraint_events = ConstraintEventRepository(backend)
        self.lgas = LgaRepository(backend)
        self.opportunity_types = OpportunityTypeRepository(backend)
        self.sectors = SectorRepository(backend)
        self.strategies = StrategyRepository(backend)
        self.strategy_grades = StrategyGradeRepository(backend)
        self.allowlist = AllowlistRepository(backend)
        self.auth_audit = AuthAuditRepository(backend)

    def ping(self) -> None:
        self.backend.ping()

    def lga_with_active_deals(self, lga: LGA) -> LGA:
        """Return ``lga`` with ``active_deal_ids`` computed from stored deals."""
        deal_ids = [d.id for d in self.deals.list_for_lga(lga.id)]
        return lga.model_copy(update={"active_deal_ids": deal_ids})


def create_data_store(config: PersistenceConfig) -> DataStore:
    return DataStore(create_backend(config))


# ── Seeding ──────────────────────────────────────────────────────────

_SEED_SECTIONS: tuple[tuple[str, str, Any], ...] = (
    ("lgas", "lgas", LGA),
    ("opportunityTypes", "opportunity_types", OpportunityType),
    ("sectorOpportunities", "sectors", SectorOpportunity),
    ("deals", "deals", Deal),
    ("strategies", "strategies", SectorDevelopmentStrategy),
    ("allowedEmails", "allowlist", AllowedEmail),
)


def load_seed_data(store: DataStore, data: dict[str, Any]) -> dict[str, int]:
    """Upsert every record in a seed document. Returns counts per section."""
    counts: dict[str, int] = {}
    for section, repo_name, model in _SEED_SECTIONS:
        repo = getattr(store, repo_name)
        records = data.get(section, [])
        for raw in records:
            record = model.model_validate(raw)
            if isinstance(record, AllowedEmail):
                record = record.model_copy(update={"email": record.email.strip().lower()})
            repo.save(record)
        counts[section] = len(records)
    log.info("Seed data loaded", extra={"counts": counts})
    return counts


def load_seed_file(store: DataStore, path: Path) -> dict[str, int]:
    return load_seed_data(store, json.loads(path.read_text(encoding="utf-8")))
