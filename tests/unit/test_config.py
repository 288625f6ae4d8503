"""Tests for env-driven configuration."""

from __future__ import annotations

import pytest

from constellation.core.config import AuthConfig, ExtractionConfig, LLMConfig, PersistenceConfig, RateLimitConfig


class TestEnvPrefixes:
    def test_llm(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CONSTELLATION_LLM_PROVIDER", "anthropic")
        monkeypatch.setenv("CONSTELLATION_LLM_MODEL", "claude-sonnet")
        config = LLMConfig()
        assert config.provider == "anthropic"
        assert config.model == "claude-sonnet"

    def test_auth_api_keys_json_list(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CONSTELLATION_AUTH_ENABLED", "true")
        monkeypatch.setenv("CONSTELLATION_AUTH_API_KEYS", '["k1", "k2"]')
        config = AuthConfig()
        assert config.enabled
        assert config.api_keys == ["k1", "k2"]

    def test_rate_limit_buckets(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CONSTELLATION_RATE_LIMIT_AI", "3")
        assert RateLimitConfig().ai == 3

    def test_persistence_backend_literal(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CONSTELLATION_PERSISTENCE_BACKEND", "sqlite")
        with pytest.raises(ValueError):
            PersistenceConfig()


class TestExtractionDefaults:
    def test_failure_statuses(self) -> None:
        config = ExtractionConfig()
        assert config.parse_failure_status == 502
        assert config.shape_failure_status == 422

    def test_status_must_be_an_error_code(self) -> None:
        with pytest.raises(ValueError):
            ExtractionConfig(parse_failure_status=200)
