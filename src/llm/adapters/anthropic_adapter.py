# src/llm/adapters/anthropic_adapter.py — v3
"""Anthropic Claude adapter implementing BaseLLMClient.

Uses the official anthropic SDK: ``messages.stream`` for text increments and
``messages.count_tokens`` for exact counts.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Any

from modelplayground.llm.base_client import BaseLLMClient


class AnthropicAdapter(BaseLLMClient):
    """Adapter for Anthropic Claude models."""

    def __init__(
        self,
        model: str = "claude-sonnet-4-20250514",
        api_key: str | None = None,
        temperature: float = 0.7,
        max_tokens: int = 2000,
        **kwargs: Any,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._temperature = temperature
        self._max_tokens = max_tokens
        self.__client = None  # Lazy initialization

    @property
    def _client(self):
        """Lazy-init Anthropic client (only on first API call)."""
        if self.__client is None:
            try:
                import anthropic
            except ImportError as e:
                raise ImportError(
                    "anthropic package required: pip install anthropic"
                ) from e
            self.__client = anthropic.AsyncAnthropic(api_key=self._api_key or "")
        return self.__client

    async def stream(self, prompt: str) -> AsyncIterator[str]:
        """Stream text deltas via the Messages API."""
        async with self._client.messages.stream(
            model=self._model,
            max_tokens=self._max_tokens,
            temperature=self._temperature,
            messages=[self._to_api_message(prompt)],
        ) as stream:
            async for text in stream.text_stream:
                if text:
                    yield text

    async def count_tokens(self, text: str) -> int:
        """Exact count via the token counting endpoint."""
        if not text:
            return 0
        result = await self._client.messages.count_tokens(
            model=self._model,
            messages=[self._to_api_message(text)],
        )
        return result.input_tokens

    @property
    def model(self) -> str:
        return self._model

    @property
    def provider_name(self) -> str:
        return "anthropic"

    @staticmethod
    def _to_api_message(text: str) -> dict[str, Any]:
        return {"role": "user", "content": text}
