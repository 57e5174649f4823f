# src/llm/adapters/google_adapter.py — v2
"""Google Gemini adapter implementing BaseLLMClient.

Uses the google-generativeai SDK in streaming mode.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Any

from modelplayground.llm.base_client import BaseLLMClient


class GoogleAdapter(BaseLLMClient):
    """Google Gemini adapter."""

    def __init__(
        self,
        model: str = "gemini-2.0-flash",
        api_key: str = "",
        temperature: float = 0.7,
        max_tokens: int = 2000,
        **kwargs: Any,
    ):
        self._model = model
        self._api_key = api_key
        self._temperature = temperature
        self._max_tokens = max_tokens
        self.__model = None

    @property
    def _generative_model(self):
        if self.__model is None:
            import google.generativeai as genai

            genai.configure(api_key=self._api_key)
            self.__model = genai.GenerativeModel(self._model)
        return self.__model

    async def stream(self, prompt: str) -> AsyncIterator[str]:
        gen_config: dict[str, Any] = {
            "max_output_tokens": self._max_tokens,
            "temperature": self._temperature,
        }
        response = await self._generative_model.generate_content_async(
            prompt, generation_config=gen_config, stream=True,
        )
        async for chunk in response:
            # Safety-blocked or empty candidates carry no parts
            if not chunk.parts:
                continue
            if chunk.text:
                yield chunk.text

    async def count_tokens(self, text: str) -> int:
        if not text:
            return 0
        result = await self._generative_model.count_tokens_async(text)
        return result.total_tokens

    @property
    def model(self) -> str:
        return self._model

    @property
    def provider_name(self) -> str:
        return "google"
