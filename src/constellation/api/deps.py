"""Accessors for the services the lifespan attaches to ``app.state``."""

from __future__ import annotations

from fastapi import Request

from constellation.core.config import AppSettings
from constellation.services.ai_service import AIService
from constellation.services.store import DataStore
from constellation.storage import IBlobStorage


def get_settings(request: Request) -> AppSettings:
    return request.app.state.settings


def get_store(request: Request) -> DataStore:
    return request.app.state.store


def get_blob_storage(request: Request) -> IBlobStorage:
    return request.app.state.blob_storage


def get_ai_service(request: Request) -> AIService:
    return AIService(request.app.state.llm_client, request.app.state.settings.extraction)
