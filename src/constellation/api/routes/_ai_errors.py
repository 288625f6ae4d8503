"""Shared mapping of AI parse failures onto HTTP errors."""

from __future__ import annotations

from typing import NoReturn

from fastapi import HTTPException

from constellation.ai.results import ParseFailure
from constellation.core.config import ExtractionConfig


def raise_for_failure(failure: ParseFailure, config: ExtractionConfig) -> NoReturn:
    """Raise the configured HTTP status for ``failure``'s kind."""
    status = config.parse_failure_status if failure.kind == "unparseable" else config.shape_failure_status
    raise HTTPException(status_code=status, detail=failure.error)
