# src/llm/errors.py — v2
"""Provider error categorisation.

Provider failures are passed through verbatim; the category is attached
alongside so observers can tell a quota problem from a transient network
fault without parsing the message themselves. No retry happens here.
"""

from __future__ import annotations

from typing import Literal

ErrorType = Literal[
    "quota", "rate_limit", "authentication", "network", "model", "unknown"
]

# Checked in order; the first matching category wins.
_RULES: tuple[tuple[ErrorType, tuple[str, ...]], ...] = (
    ("quota", ("quota", "billing", "exceeded your")),
    ("rate_limit", ("rate limit", "rate_limit", "too many requests", "429")),
    ("authentication", ("unauthorized", "401", "api key", "authentication")),
    ("network", ("network", "connection", "timeout", "timed out", "502", "503", "504")),
    ("model", ("invalid model", "not found", "model")),
)


def classify_error(error: BaseException | str) -> ErrorType:
    """Classify a provider failure into a coarse category."""
    if isinstance(error, BaseException):
        msg = str(error).lower()
        name = type(error).__name__.lower()
    else:
        msg = error.lower()
        name = ""

    if "timeout" in name:
        return "network"
    for category, needles in _RULES:
        if any(n in msg for n in needles):
            return category
    return "unknown"


def error_message(error: BaseException) -> str:
    """Return the reason string reported for a failed stream."""
    return str(error) or type(error).__name__
