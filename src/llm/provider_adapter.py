# src/llm/provider_adapter.py — v1
"""Uniform streaming contract over a single model.

``ProviderAdapter.invoke`` turns a client's raw text stream into the event
sequence the fan-out coordinator consumes: zero or more ``TextChunk``, then
exactly one ``StreamMetrics``. Any provider failure is raised to the caller
unchanged.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator

from modelplayground.llm.base_client import BaseLLMClient
from modelplayground.llm.models import ModelInfo, ModelPricing, StreamMetrics, TextChunk
from modelplayground.llm.pricing import compute_cost
from modelplayground.llm.token_estimator import estimate_tokens

logger = logging.getLogger(__name__)


class ProviderAdapter:
    """Binds a catalog entry to the client that serves it."""

    def __init__(self, info: ModelInfo, client: BaseLLMClient) -> None:
        self._info = info
        self._client = client

    @property
    def info(self) -> ModelInfo:
        return self._info

    @property
    def model_id(self) -> str:
        return self._info.id

    @property
    def provider(self) -> str:
        return self._info.provider

    @property
    def pricing(self) -> ModelPricing:
        return self._info.pricing

    async def invoke(self, prompt: str) -> AsyncIterator[TextChunk | StreamMetrics]:
        """Stream ``prompt`` through the model.

        Yields:
            ``TextChunk`` per non-empty increment, then one ``StreamMetrics``.
        """
        start = time.monotonic()
        input_tokens = await self.count_tokens(prompt)

        parts: list[str] = []
        async for text in self._client.stream(prompt):
            if not text:
                continue
            parts.append(text)
            yield TextChunk(text=text)

        response_time_ms = int((time.monotonic() - start) * 1000)
        output_tokens = await self.count_tokens("".join(parts))
        cost = compute_cost(
            self.model_id, input_tokens, output_tokens,
            pricing={self.model_id: self.pricing},
        )

        logger.info(
            "Completed stream for %s: in=%d out=%d cost=$%.6f %dms",
            self.model_id, input_tokens, output_tokens, cost, response_time_ms,
        )
        yield StreamMetrics(
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            cost=cost,
            response_time_ms=response_time_ms,
        )

    async def count_tokens(self, text: str) -> int:
        """Exact count from the provider, falling back to the estimator."""
        try:
            return await self._client.count_tokens(text)
        except Exception as e:
            logger.warning(
                "Exact token count unavailable for %s, using estimation: %s",
                self.model_id, e,
            )
            return estimate_tokens(text)
