# tests/conftest.py — v2
"""Shared test fixtures for all unit and integration tests.

Provides scripted fake LLM clients, an in-memory repository, a small model
registry and a comparison service wired to them. No network access.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Sequence

import pytest

from modelplayground.comparison.service import ComparisonService
from modelplayground.config.settings import Settings
from modelplayground.llm.base_client import BaseLLMClient
from modelplayground.llm.registry import ModelRegistry
from modelplayground.storage.memory_repository import MemoryRepository


# === Fake clients ===


class FakeClient(BaseLLMClient):
    """Scripted streaming client.

    Yields ``chunks`` in order. If ``error`` is set it is raised after
    ``fail_after`` chunks (immediately when ``fail_after`` is 0). Exact token
    counts are whitespace word counts unless ``exact_counts`` is False, in
    which case ``count_tokens`` raises NotImplementedError.
    """

    def __init__(
        self,
        chunks: Sequence[str] = (),
        *,
        error: Exception | None = None,
        fail_after: int = 0,
        exact_counts: bool = True,
        provider: str = "fake",
        model: str = "fake-model",
        delay: float = 0.0,
    ) -> None:
        self._chunks = list(chunks)
        self._error = error
        self._fail_after = fail_after
        self._exact_counts = exact_counts
        self._provider = provider
        self._model = model
        self._delay = delay
        self.prompts: list[str] = []

    async def stream(self, prompt: str) -> AsyncIterator[str]:
        self.prompts.append(prompt)
        for i, chunk in enumerate(self._chunks):
            if self._error is not None and i == self._fail_after:
                raise self._error
            if self._delay:
                await asyncio.sleep(self._delay)
            yield chunk
        if self._error is not None:
            raise self._error

    async def count_tokens(self, text: str) -> int:
        if not self._exact_counts:
            raise NotImplementedError("no counter")
        return len(text.split())

    @property
    def model(self) -> str:
        return self._model

    @property
    def provider_name(self) -> str:
        return self._provider


class RecordingSink:
    """Event sink that keeps every published event."""

    def __init__(self) -> None:
        self.events: list = []

    async def publish(self, event) -> None:
        self.events.append(event)

    def names(self) -> list[str]:
        return [e.event for e in self.events]

    def for_model(self, model_id: str) -> list:
        return [e for e in self.events if getattr(e, "model_id", None) == model_id]


# === FIXTURES ===


@pytest.fixture
def settings() -> Settings:
    """Settings that never touch disk or real providers."""
    return Settings(
        _env_file=None,
        openai_api_key="",
        anthropic_api_key="",
        google_api_key="",
        ollama_models="",
        storage_backend="memory",
        default_models="gpt-4,claude-sonnet-4-20250514",
        log_file=None,
    )


@pytest.fixture
def repository() -> MemoryRepository:
    return MemoryRepository()


@pytest.fixture
def gpt4_client() -> FakeClient:
    return FakeClient(
        ["Recursion ", "is when a function ", "calls itself."],
        provider="openai", model="gpt-4",
    )


@pytest.fixture
def claude_client() -> FakeClient:
    return FakeClient(
        ["A function that ", "solves a problem ", "by solving smaller ones."],
        provider="anthropic", model="claude-sonnet-4-20250514",
    )


@pytest.fixture
def registry(gpt4_client: FakeClient, claude_client: FakeClient) -> ModelRegistry:
    """Two healthy models priced from the static table."""
    return ModelRegistry.from_clients({
        "gpt-4": ("GPT-4", gpt4_client),
        "claude-sonnet-4-20250514": ("Claude Sonnet 4", claude_client),
    })


@pytest.fixture
def service(
    repository: MemoryRepository, registry: ModelRegistry, settings: Settings,
) -> ComparisonService:
    return ComparisonService(repository, registry, settings=settings)


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def make_client() -> type[FakeClient]:
    """The FakeClient class, for tests that script their own streams."""
    return FakeClient
