# src/llm/adapters/openai_adapter.py — v2
"""OpenAI GPT adapter implementing BaseLLMClient.

Streams through the official openai SDK. Exact token counts come from
tiktoken, using the model's own encoding when tiktoken knows it.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Any

from modelplayground.llm.base_client import BaseLLMClient

_FALLBACK_ENCODING = "cl100k_base"


class OpenAIAdapter(BaseLLMClient):
    """OpenAI chat-completions adapter."""

    def __init__(
        self,
        model: str = "gpt-3.5-turbo",
        api_key: str = "",
        temperature: float = 0.7,
        max_tokens: int = 2000,
        **kwargs: Any,
    ):
        self._model = model
        self._api_key = api_key
        self._temperature = temperature
        self._max_tokens = max_tokens
        self.__client = None
        self.__encoding = None

    @property
    def _client(self):
        """Lazy-init OpenAI client (only on first API call)."""
        if self.__client is None:
            import openai

            self.__client = openai.AsyncOpenAI(api_key=self._api_key)
        return self.__client

    @property
    def _encoding(self):
        if self.__encoding is None:
            import tiktoken

            try:
                self.__encoding = tiktoken.encoding_for_model(self._model)
            except KeyError:
                self.__encoding = tiktoken.get_encoding(_FALLBACK_ENCODING)
        return self.__encoding

    async def stream(self, prompt: str) -> AsyncIterator[str]:
        response = await self._client.chat.completions.create(
            model=self._model,
            messages=[{"role": "user", "content": prompt}],
            temperature=self._temperature,
            max_tokens=self._max_tokens,
            stream=True,
        )
        async for chunk in response:
            if not chunk.choices:
                continue
            content = chunk.choices[0].delta.content
            if content:
                yield content

    async def count_tokens(self, text: str) -> int:
        return len(self._encoding.encode(text))

    @property
    def model(self) -> str:
        return self._model

    @property
    def provider_name(self) -> str:
        return "openai"
