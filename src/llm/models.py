# src/llm/models.py — v2
"""LLM-specific types: pricing, model metadata and stream events.

A provider stream is a sequence of ``TextChunk`` followed by exactly one
``StreamMetrics``. Failures are raised, never yielded.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ModelPricing(BaseModel):
    """Cost per 1K tokens, in USD."""

    model_config = ConfigDict(frozen=True)

    input: float = 0.0
    output: float = 0.0


class ModelInfo(BaseModel):
    """Catalog entry for one comparable model."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    id: str
    name: str
    provider: str
    pricing: ModelPricing = Field(default_factory=ModelPricing)


class TextChunk(BaseModel):
    """One text increment emitted by a provider."""

    text: str


class StreamMetrics(BaseModel):
    """Final report for a successful stream."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    input_tokens: int
    output_tokens: int
    cost: float
    response_time_ms: int
