# src/comparison/metrics.py — v1
"""Session-level aggregation over model responses.

Only ``completed`` responses count; errored responses contribute nothing,
not even to the latency average.
"""

from __future__ import annotations

from collections.abc import Iterable

from modelplayground.storage.models import ModelResponse, SessionAggregates


def compute_session_aggregates(responses: Iterable[ModelResponse]) -> SessionAggregates:
    """Sum tokens and cost, average latency, over completed responses."""
    completed = [r for r in responses if r.status == "completed"]
    if not completed:
        return SessionAggregates()

    total_tokens = sum((r.input_tokens or 0) + (r.output_tokens or 0) for r in completed)
    total_cost = sum(r.cost or 0.0 for r in completed)
    latencies = [r.response_time_ms or 0 for r in completed]

    return SessionAggregates(
        total_tokens=total_tokens,
        total_cost=total_cost,
        average_response_time=sum(latencies) / len(latencies),
    )
