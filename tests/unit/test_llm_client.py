"""Tests for LLMClient with mocked litellm.acompletion."""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from constellation.core.config import LLMConfig
from constellation.exceptions import LLMNotConfiguredError, NonRetryableError, RetryableError
from constellation.providers.llm_client import LLMClient


def _config(**overrides: Any) -> LLMConfig:
    defaults: dict[str, Any] = {"provider": "openai", "api_key": "sk-test", "model": "gpt-4o", "max_retries": 2}
    defaults.update(overrides)
    return LLMConfig(**defaults)


def _mock_response(content: str | None = "{}") -> MagicMock:
    message = MagicMock()
    message.content = content
    choice = MagicMock()
    choice.message = message
    response = MagicMock()
    response.choices = [choice]
    return response


class TestModelRouting:
    def test_openai_unprefixed(self) -> None:
        assert LLMClient(_config()).model == "gpt-4o"

    def test_provider_prefix(self) -> None:
        assert LLMClient(_config(provider="anthropic", model="claude-sonnet")).model == "anthropic/claude-sonnet"

    def test_already_prefixed(self) -> None:
        client = LLMClient(_config(provider="bedrock", model="bedrock/anthropic.claude-v2"))
        assert client.model == "bedrock/anthropic.claude-v2"

    def test_is_configured(self) -> None:
        assert LLMClient(_config()).is_configured
        assert not LLMClient(_config(api_key="")).is_configured
        assert LLMClient(_config(provider="ollama", api_key="")).is_configured


class TestComplete:
    @pytest.mark.asyncio
    async def test_system_and_user_messages(self) -> None:
        client = LLMClient(_config(seed=7, base_url="http://localhost:4000"))
        with patch("litellm.acompletion", new_callable=AsyncMock) as mock_acomp:
            mock_acomp.return_value = _mock_response('{"title": "x"}')
            result = await client.complete("extract this", system_prompt="You are an analyst.", max_tokens=6000)

        assert result == '{"title": "x"}'
        kwargs = mock_acomp.call_args.kwargs
        assert kwargs["messages"] == [
            {"role": "system", "content": "You are an analyst."},
            {"role": "user", "content": "extract this"},
        ]
        assert kwargs["max_tokens"] == 6000
        assert kwargs["seed"] == 7
        assert kwargs["api_key"] == "sk-test"
        assert kwargs["api_base"] == "http://localhost:4000"
        assert kwargs["temperature"] == 0.3

    @pytest.mark.asyncio
    async def test_temperature_override_and_empty_content(self) -> None:
        client = LLMClient(_config())
        with patch("litellm.acompletion", new_callable=AsyncMock) as mock_acomp:
            mock_acomp.return_value = _mock_response(None)
            result = await client.complete("prompt", temperature=0.0)
        assert result == ""
        assert mock_acomp.call_args.kwargs["temperature"] == 0.0
        assert "max_tokens" not in mock_acomp.call_args.kwargs

    @pytest.mark.asyncio
    async def test_not_configured(self) -> None:
        client = LLMClient(_config(api_key=""))
        with patch("litellm.acompletion", new_callable=AsyncMock) as mock_acomp:
            with pytest.raises(LLMNotConfiguredError) as exc_info:
                await client.complete("prompt")
        assert exc_info.value.status_code == 401
        mock_acomp.assert_not_called()

    @pytest.mark.asyncio
    async def test_retries_then_succeeds(self) -> None:
        client = LLMClient(_config(max_retries=3))
        with (
            patch("litellm.acompletion", new_callable=AsyncMock) as mock_acomp,
            patch("constellation.providers.llm_client.asyncio.sleep", new_callable=AsyncMock) as mock_sleep,
        ):
            mock_acomp.side_effect = [TimeoutError("slow"), _mock_response("ok")]
            result = await client.complete("prompt")
        assert result == "ok"
        assert mock_acomp.call_count == 2
        mock_sleep.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_retries_exhausted(self) -> None:
        error = RuntimeError("overloaded")
        error.status_code = 429  # type: ignore[attr-defined]
        client = LLMClient(_config(max_retries=2))
        with (
            patch("litellm.acompletion", new_callable=AsyncMock) as mock_acomp,
            patch("constellation.providers.llm_client.asyncio.sleep", new_callable=AsyncMock),
        ):
            mock_acomp.side_effect = error
            with pytest.raises(RetryableError) as exc_info:
                await client.complete("prompt")
        assert exc_info.value.status_code == 429
        assert mock_acomp.call_count == 2

    @pytest.mark.asyncio
    async def test_non_retryable_fails_fast(self) -> None:
        client = LLMClient(_config(max_retries=3))
        with (
            patch("litellm.acompletion", new_callable=AsyncMock) as mock_acomp,
            patch.object(LLMClient, "_is_retryable", return_value=False),
        ):
            mock_acomp.side_effect = RuntimeError("bad request")
            with pytest.raises(NonRetryableError):
                await client.complete("prompt")
        assert mock_acomp.call_count == 1
