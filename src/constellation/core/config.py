"""Nested pydantic-settings configuration for the application.

Each concern reads its own ``CONSTELLATION_<GROUP>_*`` env vars and the
groups are aggregated by :class:`AppSettings`, so code can reach for
``AppSettings().llm.model`` while deployments set ``CONSTELLATION_LLM_MODEL``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings


class LLMConfig(BaseSettings):
    """LLM backend configuration.

    Env vars use ``CONSTELLATION_LLM_`` prefix::

        export CONSTELLATION_LLM_PROVIDER=openai
        export CONSTELLATION_LLM_API_KEY=sk-...
    """

    model_config = {"env_prefix": "CONSTELLATION_LLM_"}

    provider: Literal["openai", "anthropic", "bedrock", "ollama", "litellm"] = "openai"
    base_url: str = ""
    api_key: str = ""
    model: str = "gpt-4o"
    temperature: float = 0.3
    top_p: float = 1.0
    seed: int | None = None
    timeout: float = 120.0
    max_retries: int = 3
    retry_jitter_factor: float = 0.5
    retry_max_delay: float = 30.0


class ExtractionConfig(BaseSettings):
    """AI extraction, grading and memo-analysis settings.

    The two ``*_failure_status`` values decide how the routes surface the
    two parse-failure kinds to callers.

    Env vars use ``CONSTELLATION_EXTRACTION_`` prefix.
    """

    model_config = {"env_prefix": "CONSTELLATION_EXTRACTION_"}

    strategy_max_tokens: int = 6000
    grade_max_tokens: int = 4000
    memo_max_tokens: int = 6000
    parse_failure_status: int = Field(default=502, ge=400, le=599)
    shape_failure_status: int = Field(default=422, ge=400, le=599)


class AuthConfig(BaseSettings):
    """API authentication configuration.

    Env vars use ``CONSTELLATION_AUTH_`` prefix::

        export CONSTELLATION_AUTH_ENABLED=true
        export CONSTELLATION_AUTH_JWKS_URL=https://accounts.google.com/.well-known/jwks.json
        export CONSTELLATION_AUTH_API_KEYS='["svc-key"]'
    """

    model_config = {"env_prefix": "CONSTELLATION_AUTH_"}

    enabled: bool = False
    jwks_url: str = ""
    jwt_secret: str = ""
    issuer: str = ""
    audience: str = "constellation"
    algorithm: str = "RS256"
    email_claim: str = "email"
    api_keys: list[str] = []


class RateLimitConfig(BaseSettings):
    """Per-bucket request limits for a sliding window.

    Env vars use ``CONSTELLATION_RATE_LIMIT_`` prefix.
    """

    model_config = {"env_prefix": "CONSTELLATION_RATE_LIMIT_"}

    enabled: bool = True
    window_seconds: float = 60.0
    read: int = 120
    write: int = 30
    delete: int = 20
    ai: int = 10
    log: int = 30
    upload: int = 20
    admin: int = 10
    strategy_patch: int = 20
    strategy_delete: int = 10
    allowlist_read: int = 30
    max_tracked_keys: int = 10_000


class BodyLimitConfig(BaseSettings):
    """Maximum request body sizes in bytes.

    Env vars use ``CONSTELLATION_BODY_LIMIT_`` prefix.
    """

    model_config = {"env_prefix": "CONSTELLATION_BODY_LIMIT_"}

    standard: int = 256 * 1024
    small: int = 128 * 1024
    ai: int = 1_000_000
    log: int = 10 * 1024


class PersistenceConfig(BaseSettings):
    """Persistence configuration.

    Env vars use ``CONSTELLATION_PERSISTENCE_`` prefix.
    """

    model_config = {"env_prefix": "CONSTELLATION_PERSISTENCE_"}

    backend: Literal["file", "s3", "memory"] = "file"
    store_path: Path = Path("./data")
    s3_bucket: str = ""
    s3_prefix: str = "constellation/"
    aws_region: str = "ap-southeast-2"
    kms_key_id: str = ""


class BlobConfig(BaseSettings):
    """Document blob storage configuration.

    Env vars use ``CONSTELLATION_BLOB_`` prefix.
    """

    model_config = {"env_prefix": "CONSTELLATION_BLOB_"}

    backend: Literal["memory", "s3"] = "memory"
    bucket: str = ""
    prefix: str = "documents/"
    aws_region: str = "ap-southeast-2"
    public_base_url: str = ""
    max_file_bytes: int = 10 * 1024 * 1024


class ObservabilityConfig(BaseSettings):
    """Observability configuration.

    Env vars use ``CONSTELLATION_OBSERVABILITY_`` prefix.
    """

    model_config = {"env_prefix": "CONSTELLATION_OBSERVABILITY_"}

    service_name: str = "constellation"
    log_level: str = "INFO"


class APIConfig(BaseSettings):
    """REST API configuration.

    Env vars use ``CONSTELLATION_API_`` prefix.
    """

    model_config = {"env_prefix": "CONSTELLATION_API_"}

    title: str = "Project Constellation"
    description: str = "Regional deals, sector opportunities and development strategies for Queensland"
    port: int = 8080


class AppSettings(BaseSettings):
    """Top-level application settings aggregating all sub-configs.

    Each sub-config reads its own ``CONSTELLATION_<GROUP>_*`` env vars.
    """

    llm: LLMConfig = LLMConfig()
    extraction: ExtractionConfig = ExtractionConfig()
    auth: AuthConfig = AuthConfig()
    rate_limit: RateLimitConfig = RateLimitConfig()
    body_limit: BodyLimitConfig = BodyLimitConfig()
    persistence: PersistenceConfig = PersistenceConfig()
    blob: BlobConfig = BlobConfig()
    observability: ObservabilityConfig = ObservabilityConfig()
    api: APIConfig = APIConfig()
