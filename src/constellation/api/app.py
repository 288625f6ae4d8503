"""FastAPI application with lifespan management."""

from __future__ import annotations

import importlib.metadata
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI

from constellation.api.middleware.error_handler import register_error_handlers
from constellation.api.rate_limit import SlidingWindowRateLimiter
from constellation.api.routes import (
    allowlist,
    analysis,
    auth,
    client_log,
    deals,
    health,
    lgas,
    opportunity_types,
    sectors,
    strategies,
)
from constellation.core.config import APIConfig, AppSettings
from constellation.core.logging_config import setup_logging
from constellation.core.startup_checks import validate_settings
from constellation.providers.llm_client import LLMClient
from constellation.services.store import create_data_store
from constellation.storage import create_blob_storage

log = logging.getLogger(__name__)


def _get_version() -> str:
    """Read package version from installed metadata, with dev fallback."""
    try:
        return importlib.metadata.version("project-constellation")
    except importlib.metadata.PackageNotFoundError:
        return "0.0.0-dev"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application startup/shutdown lifecycle."""
    settings = AppSettings()
    validate_settings(settings)
    setup_logging(settings.observability)

    app.state.settings = settings
    app.state.store = create_data_store(settings.persistence)
    app.state.blob_storage = create_blob_storage(settings.blob)
    app.state.llm_client = LLMClient(settings.llm)
    app.state.rate_limiter = SlidingWindowRateLimiter(max_tracked_keys=settings.rate_limit.max_tracked_keys)
    log.info(
        "Application started",
        extra={
            "persistence": settings.persistence.backend,
            "blob": settings.blob.backend,
            "auth_enabled": settings.auth.enabled,
        },
    )
    yield
    await app.state.llm_client.close()


def include_routes(app: FastAPI) -> None:
    """Mount every router; write routes carry their own auth dependency."""
    app.include_router(health.router)
    for module in (auth, deals, strategies, sectors, opportunity_types, lgas, allowlist, client_log, analysis):
        app.include_router(module.router, prefix="/api")


_api_config = APIConfig()

app = FastAPI(
    title=_api_config.title,
    description=_api_config.description,
    version=_get_version(),
    lifespan=lifespan,
)

register_error_handlers(app)
include_routes(app)
