# src/llm/pricing.py — v1
"""Static pricing table and per-call cost computation.

Rates are USD per 1K tokens. Unknown models price at zero so that cost
lookup can never fail a stream.
"""

from __future__ import annotations

import logging

from modelplayground.llm.models import ModelPricing

logger = logging.getLogger(__name__)

DEFAULT_PRICING: dict[str, ModelPricing] = {
    "gpt-3.5-turbo": ModelPricing(input=0.0015, output=0.002),
    "gpt-4": ModelPricing(input=0.03, output=0.06),
    "claude-sonnet-4-20250514": ModelPricing(input=0.003, output=0.015),
    "claude-3-5-haiku-20241022": ModelPricing(input=0.00025, output=0.00125),
    "gemini-2.5-flash-lite": ModelPricing(input=0.0001, output=0.0004),
    "gemini-2.0-flash": ModelPricing(input=0.0001, output=0.0004),
}

_ZERO = ModelPricing()


def get_pricing(
    model_id: str, pricing: dict[str, ModelPricing] | None = None
) -> ModelPricing:
    """Return the pricing for a model, or zero rates if it is unknown."""
    table = DEFAULT_PRICING if pricing is None else pricing
    return table.get(model_id, _ZERO)


def compute_cost(
    model_id: str,
    input_tokens: int,
    output_tokens: int,
    pricing: dict[str, ModelPricing] | None = None,
) -> float:
    """Compute the cost of one call in USD."""
    p = get_pricing(model_id, pricing)
    input_cost = input_tokens / 1000 * p.input
    output_cost = output_tokens / 1000 * p.output
    total = input_cost + output_cost
    logger.debug(
        "Cost for %s: input=%d @ %s/1k, output=%d @ %s/1k, total=$%.6f",
        model_id, input_tokens, p.input, output_tokens, p.output, total,
    )
    return total
