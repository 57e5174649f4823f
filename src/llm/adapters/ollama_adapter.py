# src/llm/adapters/ollama_adapter.py — v2
"""Ollama local LLM adapter implementing BaseLLMClient.

Uses the ollama Python SDK. Ollama has no standalone token counter, so
counts always fall back to the estimator.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Any

from modelplayground.llm.base_client import BaseLLMClient


class OllamaAdapter(BaseLLMClient):
    """Ollama local inference adapter."""

    def __init__(
        self,
        model: str = "llama3",
        base_url: str = "http://localhost:11434",
        temperature: float = 0.7,
        max_tokens: int = 2000,
        **kwargs: Any,
    ):
        self._model = model
        self._host = base_url
        self._temperature = temperature
        self._max_tokens = max_tokens

    async def stream(self, prompt: str) -> AsyncIterator[str]:
        import ollama

        client = ollama.AsyncClient(host=self._host)
        options: dict[str, Any] = {
            "num_predict": self._max_tokens,
            "temperature": self._temperature,
        }
        parts = await client.chat(
            model=self._model,
            messages=[{"role": "user", "content": prompt}],
            options=options,
            stream=True,
        )
        async for part in parts:
            content = part["message"]["content"]
            if content:
                yield content

    async def count_tokens(self, text: str) -> int:
        raise NotImplementedError("Ollama does not expose a token counter")

    @property
    def model(self) -> str:
        return self._model

    @property
    def provider_name(self) -> str:
        return "ollama"
