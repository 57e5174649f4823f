# src/storage/models.py — v2
"""Storage domain models: Session, ModelResponse and their status machines."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

SessionStatus = Literal["pending", "in_progress", "completed", "failed"]
ResponseStatus = Literal["pending", "streaming", "completed", "error"]

# Allowed forward moves; anything else is a regression.
SESSION_TRANSITIONS: dict[str, frozenset[str]] = {
    "pending": frozenset({"in_progress", "failed"}),
    "in_progress": frozenset({"completed", "failed"}),
    "completed": frozenset(),
    "failed": frozenset(),
}

RESPONSE_TRANSITIONS: dict[str, frozenset[str]] = {
    "pending": frozenset({"streaming", "completed", "error"}),
    "streaming": frozenset({"streaming", "completed", "error"}),
    "completed": frozenset(),
    "error": frozenset(),
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ModelResponse(_CamelModel):
    """One model's streamed answer and metrics within a session."""

    id: str = Field(default_factory=_new_id)
    session_id: str
    model_id: str
    provider: str
    response: str = ""
    status: ResponseStatus = "pending"
    input_tokens: int | None = None
    output_tokens: int | None = None
    cost: float | None = None
    response_time_ms: int | None = None
    error_message: str | None = None
    created_at: datetime = Field(default_factory=_utcnow)

    @property
    def is_terminal(self) -> bool:
        return self.status in ("completed", "error")


class Session(_CamelModel):
    """One prompt compared across N models."""

    id: str = Field(default_factory=_new_id)
    prompt: str
    user_id: str
    status: SessionStatus = "pending"
    total_tokens: int = 0
    total_cost: float = 0.0
    average_response_time: float = 0.0
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)
    responses: list[ModelResponse] = Field(default_factory=list)


class SessionAggregates(_CamelModel):
    """Derived session metrics over completed responses."""

    total_tokens: int = 0
    total_cost: float = 0.0
    average_response_time: float = 0.0
