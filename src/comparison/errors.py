# src/comparison/errors.py — v1
"""Comparison-level exceptions.

Per-model provider failures are never raised through these; they are
recorded on the response row instead.
"""

from __future__ import annotations


class ComparisonError(Exception):
    """Base class for comparison failures surfaced to callers."""


class PromptValidationError(ComparisonError, ValueError):
    """Prompt is empty or longer than the configured maximum."""


class SessionNotFoundError(ComparisonError, LookupError):
    """No session with that id exists for the requesting user."""

    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        super().__init__(f"Session {session_id} not found")


class InvalidTransitionError(ComparisonError):
    """A status change would move a session or response backwards."""

    def __init__(self, entity: str, current: str, target: str) -> None:
        self.entity = entity
        self.current = current
        self.target = target
        super().__init__(f"{entity} cannot move from {current!r} to {target!r}")
