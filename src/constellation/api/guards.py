"""Request guards: per-route rate limits and body-size caps."""

from __future__ import annotations

import math
from typing import Awaitable, Callable

from fastapi import HTTPException, Request

from constellation.api.rate_limit import client_identifier

PAYLOAD_TOO_LARGE = "Request payload too large"


def rate_limit(prefix: str, bucket: str) -> Callable[[Request], Awaitable[None]]:
    """Dependency enforcing ``RateLimitConfig.<bucket>`` requests per window.

    The limiter key is ``"<prefix>:<client ip or anonymous>"``.
    """

    async def _check(request: Request) -> None:
        config = request.app.state.settings.rate_limit
        if not config.enabled:
            return
        key = f"{prefix}:{client_identifier(request.headers.get('x-forwarded-for'))}"
        decision = request.app.state.rate_limiter.check(key, getattr(config, bucket), config.window_seconds)
        if not decision.allowed:
            raise HTTPException(
                status_code=429,
                detail="Too many requests. Please try again later.",
                headers={"Retry-After": str(math.ceil(decision.retry_after_seconds))},
            )

    return _check


def body_limit(bucket: str) -> Callable[[Request], Awaitable[None]]:
    """Dependency rejecting bodies larger than ``BodyLimitConfig.<bucket>`` bytes."""

    async def _check(request: Request) -> None:
        max_bytes: int = getattr(request.app.state.settings.body_limit, bucket)
        declared = request.headers.get("content-length")
        if declared is not None and declared.isdigit() and int(declared) > max_bytes:
            raise HTTPException(status_code=413, detail=PAYLOAD_TOO_LARGE)
        body = await request.body()
        if len(body) > max_bytes:
            raise HTTPException(status_code=413, detail=PAYLOAD_TOO_LARGE)

    return _check
