"""Shared fixtures for constellation tests."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Callable, Optional

import pytest
from fastapi import FastAPI

from constellation.api.app import include_routes
from constellation.api.middleware.error_handler import register_error_handlers
from constellation.api.rate_limit import SlidingWindowRateLimiter
from constellation.core.config import AppSettings, AuthConfig
from constellation.models import (
    LGA,
    AllowedEmail,
    Constraint,
    Deal,
    DealStage,
    OpportunityType,
    ReadinessState,
    Role,
)
from constellation.persistence.memory_backend import MemoryPersistenceBackend
from constellation.services.store import DataStore
from constellation.storage import MemoryBlobStorage
from tests.fakes.fake_llm import FakeLLMClient

API_KEY = "test-service-key"
JWT_SECRET = "test-secret-with-enough-bytes-for-hs256"


@pytest.fixture
def store() -> DataStore:
    return DataStore(MemoryPersistenceBackend())


@pytest.fixture
def sample_lgas() -> list[LGA]:
    return [
        LGA(id="mackay", name="Mackay"),
        LGA(id="isaac", name="Isaac"),
        LGA(id="whitsunday", name="Whitsunday"),
    ]


@pytest.fixture
def sample_opportunity_types() -> list[OpportunityType]:
    return [
        OpportunityType(id="critical-minerals", name="Critical Minerals Processing", definition="Refining"),
        OpportunityType(id="bioenergy", name="Bioenergy", definition="Biomass to fuel"),
    ]


def make_deal(
    deal_id: str,
    *,
    name: Optional[str] = None,
    stage: DealStage = DealStage.DEFINITION,
    readiness: ReadinessState = ReadinessState.CONCEPTUAL_INTEREST,
    constraint: Constraint = Constraint.COORDINATION_FAILURE,
    lga_ids: Optional[list[str]] = None,
    opportunity_type_id: str = "bioenergy",
) -> Deal:
    return Deal(
        id=deal_id,
        name=name or f"Deal {deal_id}",
        opportunity_type_id=opportunity_type_id,
        lga_ids=lga_ids if lga_ids is not None else ["mackay"],
        stage=stage,
        readiness_state=readiness,
        dominant_constraint=constraint,
        summary="A regional project.",
    )


@pytest.fixture
def sample_deals() -> list[Deal]:
    return [
        make_deal(
            "d1",
            name="Mackay Biorefinery",
            stage=DealStage.FEASIBILITY,
            readiness=ReadinessState.FEASIBILITY_UNDERWAY,
            constraint=Constraint.REVENUE_CERTAINTY,
            lga_ids=["mackay"],
        ),
        make_deal(
            "d2",
            name="Isaac Rare Earths",
            stage=DealStage.DEFINITION,
            readiness=ReadinessState.CONCEPTUAL_INTEREST,
            constraint=Constraint.REVENUE_CERTAINTY,
            lga_ids=["isaac"],
            opportunity_type_id="critical-minerals",
        ),
        make_deal(
            "d3",
            name="Whitsunday SAF",
            stage=DealStage.DEFINITION,
            readiness=ReadinessState.CONCEPTUAL_INTEREST,
            constraint=Constraint.PLANNING_AND_APPROVALS,
            lga_ids=["whitsunday", "mackay"],
        ),
    ]


@pytest.fixture
def seeded_store(
    store: DataStore,
    sample_lgas: list[LGA],
    sample_opportunity_types: list[OpportunityType],
    sample_deals: list[Deal],
) -> DataStore:
    for lga in sample_lgas:
        store.lgas.save(lga)
    for ot in sample_opportunity_types:
        store.opportunity_types.save(ot)
    for deal in sample_deals:
        store.deals.save(deal)
    store.allowlist.save(AllowedEmail(id="a1", email="admin@example.gov.au", role=Role.ADMIN))
    store.allowlist.save(AllowedEmail(id="a2", email="member@example.gov.au", role=Role.MEMBER))
    store.allowlist.save(AllowedEmail(id="a3", email="former@example.gov.au", is_active=False))
    return store


@pytest.fixture
def fake_llm() -> FakeLLMClient:
    return FakeLLMClient()


def make_settings(*, auth_enabled: bool = True, rate_limit_enabled: bool = False) -> AppSettings:
    settings = AppSettings()
    settings.auth = AuthConfig(enabled=auth_enabled, api_keys=[API_KEY], jwt_secret=JWT_SECRET)
    settings.rate_limit = settings.rate_limit.model_copy(update={"enabled": rate_limit_enabled})
    return settings


@pytest.fixture
def build_app() -> Callable[..., FastAPI]:
    """Factory for a fully-routed app whose lifespan injects test doubles."""

    def _build(
        store: DataStore,
        *,
        settings: Optional[AppSettings] = None,
        llm_client: Optional[FakeLLMClient] = None,
        blob_storage: Optional[MemoryBlobStorage] = None,
    ) -> FastAPI:
        resolved = settings or make_settings()

        @asynccontextmanager
        async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
            app.state.settings = resolved
            app.state.store = store
            app.state.blob_storage = blob_storage or MemoryBlobStorage()
            app.state.llm_client = llm_client or FakeLLMClient()
            app.state.rate_limiter = SlidingWindowRateLimiter()
            yield

        app = FastAPI(lifespan=lifespan)
        register_error_handlers(app)
        include_routes(app)
        return app

    return _build
