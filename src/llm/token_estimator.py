# src/llm/token_estimator.py — v1
"""Approximate token counting for providers without an exact counter."""

from __future__ import annotations

import math

_TOKENS_PER_WORD = 1.3
_CHARS_PER_TOKEN = 3.5


def estimate_tokens(text: str) -> int:
    """Estimate the token count of ``text``.

    Takes the larger of a word-based estimate (words x 1.3) and a
    character-based estimate (chars / 3.5). Non-empty text is at least
    one token; empty text is zero.
    """
    if not text:
        return 0

    words = len(text.split())
    word_based = math.ceil(words * _TOKENS_PER_WORD)
    char_based = math.ceil(len(text) / _CHARS_PER_TOKEN)

    return max(word_based, char_based, 1)
