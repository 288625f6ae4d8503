"""Health check endpoints."""

from __future__ import annotations

import logging
import time

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from constellation.exceptions import PersistenceError
from constellation.models import utcnow

log = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health")
async def health() -> dict[str, str]:
    """Liveness probe: always returns 200 if the process is up."""
    return {"status": "ok"}


@router.get("/ready")
async def ready(request: Request) -> JSONResponse:
    """Readiness probe: round-trips the persistence backend."""
    started = time.perf_counter()
    try:
        request.app.state.store.ping()
    except (PersistenceError, OSError) as e:
        log.warning("Readiness probe failed", extra={"error": str(e)})
        return JSONResponse(
            status_code=503,
            content={
                "status": "degraded",
                "store": "disconnected",
                "error": str(e),
                "timestamp": utcnow().isoformat(),
            },
        )
    return JSONResponse(
        content={
            "status": "ok",
            "store": "connected",
            "latencyMs": round((time.perf_counter() - started) * 1000),
            "timestamp": utcnow().isoformat(),
        }
    )
