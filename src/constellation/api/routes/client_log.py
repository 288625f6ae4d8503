"""Browser log sink: forwards client-side log lines to server logging."""

from __future__ import annotations

import logging
from typing import Any, Literal, Optional

from fastapi import APIRouter, Depends
from pydantic import Field

from constellation.api.guards import body_limit, rate_limit
from constellation.models import CamelModel

router = APIRouter(tags=["log"])

client_log = logging.getLogger("constellation.client")

MAX_CONTEXT_ENTRIES = 20
MAX_VALUE_CHARS = 500

_LEVELS = {"info": logging.INFO, "warn": logging.WARNING, "error": logging.ERROR}


class ClientLogInput(CamelModel):
    level: Literal["info", "warn", "error"]
    message: str = Field(min_length=1)
    source: Optional[str] = None
    context: Optional[dict[str, Any]] = None


def sanitize_context(context: Optional[dict[str, Any]]) -> dict[str, Any]:
    """Keep the first entries; numbers and bools pass, everything else is clipped text."""
    if not context:
        return {}
    sanitized: dict[str, Any] = {}
    for key, value in list(context.items())[:MAX_CONTEXT_ENTRIES]:
        if isinstance(value, str):
            sanitized[key] = value[:MAX_VALUE_CHARS]
        elif isinstance(value, (bool, int, float)):
            sanitized[key] = value
        else:
            sanitized[key] = str(value)[:MAX_VALUE_CHARS]
    return sanitized


@router.post(
    "/log",
    dependencies=[Depends(rate_limit("client-log", "log")), Depends(body_limit("log"))],
)
async def post_client_log(body: ClientLogInput) -> dict[str, bool]:
    payload = {"source": body.source or "client", "client_context": sanitize_context(body.context)}
    client_log.log(_LEVELS[body.level], body.message, extra=payload)
    return {"ok": True}
