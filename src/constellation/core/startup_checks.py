"""Startup validation: fail-fast on critical misconfigurations."""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from constellation.core.config import AppSettings

log = logging.getLogger(__name__)

# Providers that use IAM/local auth and do not require an API key
_NO_KEY_PROVIDERS = frozenset({"bedrock", "ollama"})


def validate_settings(settings: AppSettings) -> None:
    """Validate application settings at startup. Raises ValueError on fatal misconfig."""
    _check_api_key(settings)
    _check_persistence(settings)
    _check_blob(settings)
    _check_auth(settings)


def llm_is_configured(settings: AppSettings) -> bool:
    """True when the configured provider can be called."""
    if settings.llm.provider in _NO_KEY_PROVIDERS:
        return True
    return bool(settings.llm.api_key)


def _check_api_key(settings: AppSettings) -> None:
    """Warn when AI routes will be unusable; the rest of the API still serves."""
    if not llm_is_configured(settings):
        log.warning(
            "CONSTELLATION_LLM_API_KEY is not set for provider '%s'. "
            "AI extraction, grading and memo analysis will return configuration errors.",
            settings.llm.provider,
        )


def _check_persistence(settings: AppSettings) -> None:
    """Reject S3 without a bucket and warn about file persistence in containers."""
    if settings.persistence.backend == "s3" and not settings.persistence.s3_bucket:
        raise ValueError(
            "CONSTELLATION_PERSISTENCE_BACKEND=s3 requires CONSTELLATION_PERSISTENCE_S3_BUCKET."
        )
    is_container = bool(
        os.environ.get("ECS_CONTAINER_METADATA_URI")
        or os.environ.get("KUBERNETES_SERVICE_HOST")
    )
    if is_container and settings.persistence.backend == "file":
        log.warning(
            "CONSTELLATION_PERSISTENCE_BACKEND=file in a container environment. "
            "Data will be lost on container restart. Consider setting CONSTELLATION_PERSISTENCE_BACKEND=s3."
        )


def _check_blob(settings: AppSettings) -> None:
    if settings.blob.backend == "s3" and not settings.blob.bucket:
        raise ValueError("CONSTELLATION_BLOB_BACKEND=s3 requires CONSTELLATION_BLOB_BUCKET.")


def _check_auth(settings: AppSettings) -> None:
    """Reject auth enabled with no credentials: the API would be fully locked."""
    auth = settings.auth
    if auth.enabled and not auth.api_keys and not auth.jwks_url and not auth.jwt_secret:
        raise ValueError(
            "CONSTELLATION_AUTH_ENABLED=true but no API keys, JWKS URL or JWT secret configured. "
            "All authenticated requests would be rejected. "
            "Set CONSTELLATION_AUTH_API_KEYS, CONSTELLATION_AUTH_JWKS_URL or "
            "CONSTELLATION_AUTH_JWT_SECRET, or disable auth."
        )
