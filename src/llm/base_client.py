# src/llm/base_client.py — v2
"""Abstract streaming LLM client interface.

Every provider implements the same closed capability set: stream text
increments for a prompt and count tokens exactly. Adding a provider means
adding one subclass, nothing else.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator


class BaseLLMClient(ABC):
    """Unified streaming interface for all LLM providers."""

    @abstractmethod
    def stream(self, prompt: str) -> AsyncIterator[str]:
        """Yield text increments for a single-turn prompt, in generation order."""

    @abstractmethod
    async def count_tokens(self, text: str) -> int:
        """Exact token count for ``text``.

        Raises:
            NotImplementedError: If the provider has no counting facility.
        """

    @property
    @abstractmethod
    def model(self) -> str:
        """Model name sent to the provider."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Provider identifier (openai, anthropic, google, ollama)."""
