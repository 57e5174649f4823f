# src/storage/base_repository.py — v1
"""Abstract session/response repository.

Each method is one durable single-row write or a read. Implementations do
not enforce status ordering; the comparison service does.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from modelplayground.storage.models import (
    ModelResponse,
    ResponseStatus,
    Session,
    SessionAggregates,
    SessionStatus,
)


class RecordNotFoundError(LookupError):
    """Raised when an update targets a row that does not exist."""


class BaseRepository(ABC):
    """Unified interface for session storage backends."""

    # --- Sessions ---

    @abstractmethod
    async def create_session(self, prompt: str, user_id: str) -> Session:
        """Insert a new session in ``pending`` status."""

    @abstractmethod
    async def get_session(
        self, session_id: str, user_id: str | None = None
    ) -> Session | None:
        """Fetch a session with its responses; scoped to ``user_id`` if given."""

    @abstractmethod
    async def list_sessions(
        self, user_id: str, limit: int = 20, offset: int = 0
    ) -> list[Session]:
        """Sessions of a user with their responses, newest first."""

    @abstractmethod
    async def update_session_status(
        self, session_id: str, status: SessionStatus
    ) -> None:
        """Overwrite the session status."""

    @abstractmethod
    async def update_session_metrics(
        self, session_id: str, aggregates: SessionAggregates
    ) -> None:
        """Persist recomputed session aggregates."""

    # --- Model responses ---

    @abstractmethod
    async def create_response(
        self, session_id: str, model_id: str, provider: str
    ) -> ModelResponse:
        """Insert a ``pending`` response with empty text."""

    @abstractmethod
    async def update_response_text(
        self, response_id: str, text: str, status: ResponseStatus = "streaming"
    ) -> None:
        """Replace the accumulated text and status."""

    @abstractmethod
    async def finalize_response(
        self,
        response_id: str,
        input_tokens: int,
        output_tokens: int,
        cost: float,
        response_time_ms: int,
    ) -> None:
        """Write all metrics and mark the response ``completed`` in one update."""

    @abstractmethod
    async def mark_response_error(self, response_id: str, error_message: str) -> None:
        """Mark the response ``error`` with its reason."""

    @abstractmethod
    async def list_responses(
        self, session_id: str, status: ResponseStatus | None = None
    ) -> list[ModelResponse]:
        """Responses of a session, optionally filtered by status."""

    def close(self) -> None:
        """Release resources held by the backend."""
