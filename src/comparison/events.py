# src/comparison/events.py — v1
"""Events broadcast to session observers.

Every event carries the session id and an ISO-8601 timestamp. On the wire
an event is ``{"event": <name>, "data": {...camelCase fields}}``.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from modelplayground.llm.errors import ErrorType
from modelplayground.llm.models import StreamMetrics


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class _SessionEvent(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    event: str
    session_id: str
    timestamp: datetime = Field(default_factory=_utcnow)

    def to_wire(self) -> dict[str, Any]:
        """Serialize to the JSON frame sent to observers."""
        data = self.model_dump(mode="json", by_alias=True, exclude={"event"})
        return {"event": self.event, "data": data}


class ModelChunkEvent(_SessionEvent):
    event: Literal["model_chunk"] = "model_chunk"
    model_id: str
    chunk: str


class ModelCompleteEvent(_SessionEvent):
    event: Literal["model_complete"] = "model_complete"
    model_id: str
    metrics: StreamMetrics


class ModelErrorEvent(_SessionEvent):
    event: Literal["model_error"] = "model_error"
    model_id: str
    error: str
    error_type: ErrorType = "unknown"


class ComparisonCompleteEvent(_SessionEvent):
    event: Literal["comparison_complete"] = "comparison_complete"


class ComparisonErrorEvent(_SessionEvent):
    event: Literal["comparison_error"] = "comparison_error"
    error: str


SessionEvent = Union[
    ModelChunkEvent,
    ModelCompleteEvent,
    ModelErrorEvent,
    ComparisonCompleteEvent,
    ComparisonErrorEvent,
]
