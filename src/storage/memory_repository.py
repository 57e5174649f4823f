# src/storage/memory_repository.py — v1
"""In-process repository (STORAGE_BACKEND=memory).

Keeps everything in dicts; nothing survives a restart. Returned objects are
copies, so callers never alias stored state.
"""

from __future__ import annotations

from datetime import datetime, timezone

from modelplayground.storage.base_repository import BaseRepository, RecordNotFoundError
from modelplayground.storage.models import (
    ModelResponse,
    ResponseStatus,
    Session,
    SessionAggregates,
    SessionStatus,
)


class MemoryRepository(BaseRepository):
    """Dict-backed repository for tests and ephemeral servers."""

    def __init__(self) -> None:
        self._sessions: dict[str, Session] = {}
        self._responses: dict[str, ModelResponse] = {}

    # --- Sessions ---

    async def create_session(self, prompt: str, user_id: str) -> Session:
        session = Session(prompt=prompt, user_id=user_id)
        self._sessions[session.id] = session
        return session.model_copy(deep=True)

    async def get_session(
        self, session_id: str, user_id: str | None = None
    ) -> Session | None:
        session = self._sessions.get(session_id)
        if session is None or (user_id is not None and session.user_id != user_id):
            return None
        return self._with_responses(session)

    async def list_sessions(
        self, user_id: str, limit: int = 20, offset: int = 0
    ) -> list[Session]:
        # Insertion order breaks created_at ties
        owned = [
            (i, s) for i, s in enumerate(self._sessions.values())
            if s.user_id == user_id
        ]
        owned.sort(key=lambda p: (p[1].created_at, p[0]), reverse=True)
        return [self._with_responses(s) for _, s in owned[offset:offset + limit]]

    async def update_session_status(
        self, session_id: str, status: SessionStatus
    ) -> None:
        session = self._require_session(session_id)
        session.status = status
        session.updated_at = datetime.now(timezone.utc)

    async def update_session_metrics(
        self, session_id: str, aggregates: SessionAggregates
    ) -> None:
        session = self._require_session(session_id)
        session.total_tokens = aggregates.total_tokens
        session.total_cost = aggregates.total_cost
        session.average_response_time = aggregates.average_response_time
        session.updated_at = datetime.now(timezone.utc)

    # --- Model responses ---

    async def create_response(
        self, session_id: str, model_id: str, provider: str
    ) -> ModelResponse:
        self._require_session(session_id)
        response = ModelResponse(
            session_id=session_id, model_id=model_id, provider=provider,
        )
        self._responses[response.id] = response
        return response.model_copy()

    async def update_response_text(
        self, response_id: str, text: str, status: ResponseStatus = "streaming"
    ) -> None:
        response = self._require_response(response_id)
        response.response = text
        response.status = status

    async def finalize_response(
        self,
        response_id: str,
        input_tokens: int,
        output_tokens: int,
        cost: float,
        response_time_ms: int,
    ) -> None:
        response = self._require_response(response_id)
        response.input_tokens = input_tokens
        response.output_tokens = output_tokens
        response.cost = cost
        response.response_time_ms = response_time_ms
        response.status = "completed"

    async def mark_response_error(self, response_id: str, error_message: str) -> None:
        response = self._require_response(response_id)
        response.status = "error"
        response.error_message = error_message

    async def list_responses(
        self, session_id: str, status: ResponseStatus | None = None
    ) -> list[ModelResponse]:
        return [
            r.model_copy()
            for r in self._responses.values()
            if r.session_id == session_id and (status is None or r.status == status)
        ]

    # --- Internal helpers ---

    def _with_responses(self, session: Session) -> Session:
        responses = [
            r.model_copy() for r in self._responses.values()
            if r.session_id == session.id
        ]
        return session.model_copy(update={"responses": responses})

    def _require_session(self, session_id: str) -> Session:
        try:
            return self._sessions[session_id]
        except KeyError:
            raise RecordNotFoundError(f"Session {session_id} not found") from None

    def _require_response(self, response_id: str) -> ModelResponse:
        try:
            return self._responses[response_id]
        except KeyError:
            raise RecordNotFoundError(f"Model response {response_id} not found") from None
