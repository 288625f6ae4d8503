"""Global exception handlers mapping domain exceptions to HTTP responses.

Every error body has the shape ``{"error": <message>, ...}``.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from constellation.exceptions import (
    BlobStorageError,
    ConstellationError,
    LLMClientError,
    NotFoundError,
    PersistenceError,
    ValidationFailedError,
)

log = logging.getLogger(__name__)

LLM_RATE_LIMITED = "Rate limit exceeded. Please wait a moment and try again."
LLM_MISCONFIGURED = "API configuration error. Check your LLM API key."


def _issues(exc: RequestValidationError) -> list[dict[str, str]]:
    return [
        {"path": ".".join(str(part) for part in err.get("loc", ()) if part != "body"), "message": err.get("msg", "")}
        for err in exc.errors()
    ]


def register_error_handlers(app: FastAPI) -> None:
    """Register exception-to-HTTP-status mappings."""

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
        if any(err.get("type") == "json_invalid" for err in exc.errors()):
            return JSONResponse(status_code=400, content={"error": "Invalid JSON"})
        return JSONResponse(status_code=400, content={"error": "Validation failed", "issues": _issues(exc)})

    @app.exception_handler(ValidationFailedError)
    async def handle_validation_failed(request: Request, exc: ValidationFailedError) -> JSONResponse:
        content: dict[str, object] = {"error": str(exc)}
        if exc.issues:
            content["issues"] = exc.issues
        return JSONResponse(status_code=400, content=content)

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"error": str(exc)})

    @app.exception_handler(LLMClientError)
    async def handle_llm_error(request: Request, exc: LLMClientError) -> JSONResponse:
        log.error("LLM call failed", extra={"status_code": exc.status_code, "error": str(exc)})
        if exc.status_code == 429:
            return JSONResponse(status_code=429, content={"error": LLM_RATE_LIMITED})
        if exc.status_code == 401:
            return JSONResponse(status_code=500, content={"error": LLM_MISCONFIGURED})
        return JSONResponse(status_code=500, content={"error": str(exc)})

    @app.exception_handler(BlobStorageError)
    async def handle_blob_error(request: Request, exc: BlobStorageError) -> JSONResponse:
        log.error("Blob storage failure", extra={"error": str(exc)})
        return JSONResponse(status_code=502, content={"error": str(exc)})

    @app.exception_handler(PersistenceError)
    async def handle_persistence_error(request: Request, exc: PersistenceError) -> JSONResponse:
        log.error("Persistence failure", extra={"error": str(exc)})
        return JSONResponse(status_code=503, content={"error": "Storage unavailable"})

    @app.exception_handler(ConstellationError)
    async def handle_generic_error(request: Request, exc: ConstellationError) -> JSONResponse:
        return JSONResponse(status_code=500, content={"error": str(exc)})

    @app.exception_handler(KeyError)
    async def handle_key_error(request: Request, exc: KeyError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"error": "Not found"})
