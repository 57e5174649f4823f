# src/api/models.py — v2
"""API-level models: request bodies and response shapes (camelCase on the wire)."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from modelplayground.llm.models import ModelPricing
from modelplayground.storage.models import (
    ModelResponse,
    ResponseStatus,
    Session,
    SessionStatus,
)


class _ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CreateComparisonRequest(_ApiModel):
    """Body of ``POST /comparison``."""

    prompt: str = Field(min_length=1, max_length=10_000)
    model_ids: list[str] | None = None


class StartComparisonRequest(_ApiModel):
    """Body of ``POST /comparison/{sessionId}/start``."""

    model_ids: list[str] | None = None


class ResponseDetail(_ApiModel):
    id: str
    model_id: str
    provider: str
    response: str
    status: ResponseStatus
    input_tokens: int | None = None
    output_tokens: int | None = None
    cost: float | None = None
    response_time_ms: int | None = None
    error_message: str | None = None
    created_at: datetime

    @classmethod
    def from_response(cls, response: ModelResponse) -> ResponseDetail:
        return cls.model_validate(response.model_dump(exclude={"session_id"}))


class SessionDetail(_ApiModel):
    id: str
    prompt: str
    status: SessionStatus
    total_tokens: int
    total_cost: float
    average_response_time: float
    created_at: datetime
    updated_at: datetime
    responses: list[ResponseDetail] = Field(default_factory=list)

    @classmethod
    def from_session(cls, session: Session) -> SessionDetail:
        return cls(
            id=session.id,
            prompt=session.prompt,
            status=session.status,
            total_tokens=session.total_tokens,
            total_cost=session.total_cost,
            average_response_time=session.average_response_time,
            created_at=session.created_at,
            updated_at=session.updated_at,
            responses=[ResponseDetail.from_response(r) for r in session.responses],
        )


class SessionSummary(_ApiModel):
    """History row; the prompt is a truncated preview."""

    id: str
    prompt: str
    status: SessionStatus
    total_tokens: int
    total_cost: float
    average_response_time: float
    response_count: int
    created_at: datetime

    @classmethod
    def from_session(cls, session: Session, preview_chars: int = 100) -> SessionSummary:
        prompt = session.prompt
        if len(prompt) > preview_chars:
            prompt = prompt[:preview_chars] + "..."
        return cls(
            id=session.id,
            prompt=prompt,
            status=session.status,
            total_tokens=session.total_tokens,
            total_cost=session.total_cost,
            average_response_time=session.average_response_time,
            response_count=len(session.responses),
            created_at=session.created_at,
        )


class AvailableModel(_ApiModel):
    id: str
    name: str
    provider: str
    pricing: ModelPricing
