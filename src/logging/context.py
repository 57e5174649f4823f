# src/logging/context.py — v1
"""Contextual logging support — attach session_id, model_id, user_id to log records.

Each fan-out task runs in its own copy of the context, so a model_id bound
inside one model's task never leaks into a sibling's log lines.
"""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

_session_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "session_id", default=None
)
_model_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "model_id", default=None
)
_user_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "user_id", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    session_id: str | None = None
    model_id: str | None = None
    user_id: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        session_id=_session_id.get(),
        model_id=_model_id.get(),
        user_id=_user_id.get(),
    )


def set_session_context(session_id: str, user_id: str | None = None) -> None:
    """Set session-level context (called once per comparison run)."""
    _session_id.set(session_id)
    _user_id.set(user_id)


def set_model_context(model_id: str) -> None:
    """Set model-level context (called inside each fan-out task)."""
    _model_id.set(model_id)


def clear_context() -> None:
    """Reset all context variables."""
    _session_id.set(None)
    _model_id.set(None)
    _user_id.set(None)
