"""
LLM Gateway — Wraps the Groq client with retry, timeout, and token tracking.

Every LLM-backed feature depends only on the `LLMClient` protocol,
`generate_content(prompt) -> text`, so tests can substitute a fake.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional, Protocol

from groq import Groq

from govscan.config import Settings, settings as default_settings
from govscan.errors import LLMError

logger = logging.getLogger("govscan.llm")


class LLMClient(Protocol):
    async def generate_content(self, prompt: str) -> str: ...


class LLMGateway:
    """
    Groq LLM client wrapper with:
    - Configurable timeout
    - Retry with exponential backoff
    - Token usage tracking
    """

    def __init__(self, config: Optional[Settings] = None, client: Optional[Groq] = None) -> None:
        config = config or default_settings
        if client is None and not config.llm_enabled:
            raise LLMError("GROQ_API_KEY is not configured")
        self.client = client or Groq(api_key=config.groq_api_key, timeout=config.llm_timeout)
        self.model = config.govscan_model
        self.max_retries = max(1, config.llm_max_retries)
        self.temperature = config.llm_temperature
        self.max_tokens = config.llm_max_tokens
        self.total_tokens_used = 0

    async def generate_content(self, prompt: str) -> str:
        """
        Send a prompt and return the raw completion text.

        Runs the synchronous Groq SDK in a thread pool to avoid blocking
        the event loop. Raises LLMError once retries are exhausted.
        """
        last_error: Exception | None = None

        for attempt in range(self.max_retries):
            try:
                response = await asyncio.to_thread(self._sync_complete, prompt)
                tokens = getattr(response.usage, "total_tokens", 0) if response.usage else 0
                self.total_tokens_used += tokens
                return response.choices[0].message.content or ""
            except Exception as e:
                last_error = e
                logger.warning(
                    f"LLM attempt {attempt + 1}/{self.max_retries} failed: {e}"
                )
                if attempt < self.max_retries - 1:
                    # Exponential backoff: 1s, 2s, 4s
                    await asyncio.sleep(2**attempt)

        logger.error(f"LLM gateway exhausted retries. Last error: {last_error}")
        raise LLMError(f"LLM completion failed: {last_error}")

    def _sync_complete(self, prompt: str):
        """Synchronous Groq completion call."""
        return self.client.chat.completions.create(
            model=self.model,
            messages=[{"role": "user", "content": prompt}],
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )

    def get_tokens_used(self) -> int:
        return self.total_tokens_used


def build_llm_client(config: Optional[Settings] = None) -> Optional[LLMGateway]:
    """Gateway for the given settings, or None when no API key is set."""
    config = config or default_settings
    if not config.llm_enabled:
        return None
    return LLMGateway(config)
