"""Chat-completion client used by the metadata generators.

The client is always built explicitly from an :class:`AppConfig` and handed
to whatever needs it; a missing API key surfaces as a
:class:`ConfigurationError` at build time instead of at import time.
"""

from __future__ import annotations

import logging
from typing import Protocol

import openai

from quotedesk.config import AppConfig
from quotedesk.errors import ConfigurationError, EnrichmentError

LOGGER = logging.getLogger(__name__)


class LLMClient(Protocol):
    def complete(self, prompt: str, *, temperature: float | None = None) -> str: ...


class OpenAIChatClient:
    """Thin wrapper around the OpenAI-compatible chat completions API."""

    def __init__(
        self,
        api_key: str,
        *,
        model: str,
        temperature: float = 0.3,
        base_url: str | None = None,
        timeout: float = 30.0,
    ) -> None:
        client_kwargs: dict = {"api_key": api_key, "timeout": timeout}
        if base_url:
            client_kwargs["base_url"] = base_url
        self._client = openai.OpenAI(**client_kwargs)
        self.model = model
        self.temperature = temperature

    def complete(self, prompt: str, *, temperature: float | None = None) -> str:
        try:
            response = self._client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=self.temperature if temperature is None else temperature,
            )
        except openai.OpenAIError as exc:
            raise EnrichmentError(f"LLM request failed: {exc}") from exc

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise EnrichmentError("LLM returned an empty response")
        LOGGER.debug(
            "LLM completion model=%s tokens=%s",
            self.model,
            response.usage.total_tokens if response.usage else None,
        )
        return content


def build_llm_client(config: AppConfig) -> OpenAIChatClient:
    """Create the chat client described by ``config``."""
    if not config.llm_api_key:
        raise ConfigurationError("OPENAI_API_KEY is not set; AI autofill is unavailable")
    return OpenAIChatClient(
        config.llm_api_key,
        model=config.llm_model,
        temperature=config.llm_temperature,
        base_url=config.llm_base_url,
    )
