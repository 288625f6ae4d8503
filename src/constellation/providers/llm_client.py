"""Async LLM client routed through LiteLLM for multi-provider support.

Every AI feature makes a single system + user completion and parses the
returned text itself, so the client exposes one ``complete`` call with
retry, back-off and error classification.
"""

from __future__ import annotations

import asyncio
import logging
import random
from typing import TYPE_CHECKING, Any

from constellation.exceptions import LLMNotConfiguredError, NonRetryableError, RetryableError

if TYPE_CHECKING:
    from constellation.core.config import LLMConfig

log = logging.getLogger(__name__)

# Providers that use IAM/local auth and do not require an API key
_NO_KEY_PROVIDERS = frozenset({"bedrock", "ollama"})
# Providers whose model ids are passed to LiteLLM unprefixed
_UNPREFIXED_PROVIDERS = frozenset({"openai", "litellm"})


class LLMClient:
    """Async LLM client using LiteLLM ``acompletion``."""

    def __init__(self, config: LLMConfig) -> None:
        self._config = config

    @property
    def model(self) -> str:
        model = self._config.model
        if self._config.provider in _UNPREFIXED_PROVIDERS or "/" in model:
            return model
        return f"{self._config.provider}/{model}"

    @property
    def is_configured(self) -> bool:
        return self._config.provider in _NO_KEY_PROVIDERS or bool(self._config.api_key)

    @staticmethod
    def _is_retryable(exc: Exception) -> bool:
        """Classify whether an LLM API error should be retried.

        Non-retryable: AuthenticationError, BadRequestError, NotFoundError (4xx non-429).
        Retryable (default): everything else including rate limits, timeouts, 5xx.
        """
        from litellm.exceptions import AuthenticationError, BadRequestError, NotFoundError

        return not isinstance(exc, (AuthenticationError, BadRequestError, NotFoundError))

    async def complete(
        self,
        prompt: str,
        *,
        system_prompt: str | None = None,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> str:
        """Single completion, returns content string.

        Args:
            prompt: User message content.
            system_prompt: Optional system message.
            max_tokens: Output token cap for this call.
            temperature: Override the configured temperature.

        Raises:
            LLMNotConfiguredError: no API key for a provider that needs one.
            NonRetryableError: the provider rejected the request.
            RetryableError: retries were exhausted.
        """
        if not self.is_configured:
            raise LLMNotConfiguredError(
                f"No API key configured for LLM provider '{self._config.provider}'", status_code=401
            )

        from litellm import acompletion

        messages: list[dict[str, Any]] = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        kwargs: dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": temperature if temperature is not None else self._config.temperature,
            "top_p": self._config.top_p,
            "timeout": self._config.timeout,
        }
        if max_tokens is not None:
            kwargs["max_tokens"] = max_tokens
        if self._config.seed is not None:
            kwargs["seed"] = self._config.seed
        if self._config.api_key:
            kwargs["api_key"] = self._config.api_key
        if self._config.base_url:
            kwargs["api_base"] = self._config.base_url

        max_retries = max(1, self._config.max_retries)
        last_error: Exception | None = None
        for attempt in range(max_retries):
            try:
                response = await acompletion(**kwargs)
                return response.choices[0].message.content or ""
            except Exception as e:
                last_error = e
                status_code = getattr(e, "status_code", None)

                if not self._is_retryable(e):
                    raise NonRetryableError(f"Non-retryable LLM error: {e}", status_code=status_code) from e

                base_wait = min(2**attempt, self._config.retry_max_delay)
                wait = base_wait + random.uniform(0, base_wait * self._config.retry_jitter_factor)
                log.warning(
                    "LLM retry %d/%d: %s (wait=%.1fs)",
                    attempt + 1,
                    max_retries,
                    e,
                    wait,
                )
                if attempt < max_retries - 1:
                    await asyncio.sleep(wait)

        raise RetryableError(
            f"LLM API failed after {max_retries} retries: {last_error}",
            status_code=getattr(last_error, "status_code", None),
        ) from last_error

    async def close(self) -> None:
        """No-op: LiteLLM manages its own connection pooling."""
