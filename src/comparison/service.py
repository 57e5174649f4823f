# src/comparison/service.py — v2
"""Comparison sessions: creation, streaming reduction and reads.

``ComparisonService.start_comparison`` is the reducer. It drives the
fan-out for one session and applies every per-model event twice, in this
order: first to the repository, then to the event sink. The sink never
influences persistence; with nobody listening, the run still completes and
is stored in full.

Status policy: a session whose models all errored is still ``completed``.
``failed`` is reserved for orchestration faults (repository errors,
callback failures) and is always re-raised to the caller.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol

from modelplayground.comparison.errors import (
    InvalidTransitionError,
    PromptValidationError,
    SessionNotFoundError,
)
from modelplayground.comparison.events import (
    ComparisonCompleteEvent,
    ComparisonErrorEvent,
    ModelChunkEvent,
    ModelCompleteEvent,
    ModelErrorEvent,
    SessionEvent,
)
from modelplayground.comparison.fanout import FanOutCoordinator
from modelplayground.comparison.metrics import compute_session_aggregates
from modelplayground.config.settings import Settings
from modelplayground.llm.errors import classify_error
from modelplayground.llm.models import ModelInfo, StreamMetrics
from modelplayground.llm.registry import ModelRegistry
from modelplayground.logging.context import set_session_context
from modelplayground.storage.base_repository import BaseRepository
from modelplayground.storage.models import (
    RESPONSE_TRANSITIONS,
    SESSION_TRANSITIONS,
    ResponseStatus,
    Session,
)

logger = logging.getLogger(__name__)


class EventSink(Protocol):
    """Anything that accepts session events (the relay, a test recorder)."""

    async def publish(self, event: SessionEvent) -> None: ...


class _NullSink:
    async def publish(self, event: SessionEvent) -> None:
        return None


@dataclass
class _Accumulator:
    """In-flight state of one model's response within a run."""

    response_id: str
    status: ResponseStatus = "pending"
    parts: list[str] = field(default_factory=list)

    @property
    def text(self) -> str:
        return "".join(self.parts)


def _check_transition(
    entity: str, current: str, target: str, table: dict[str, frozenset[str]]
) -> None:
    if target not in table.get(current, frozenset()):
        raise InvalidTransitionError(entity, current, target)


class ComparisonService:
    """Owns all writes to sessions and model responses."""

    def __init__(
        self,
        repository: BaseRepository,
        registry: ModelRegistry,
        coordinator: FanOutCoordinator | None = None,
        settings: Settings | None = None,
    ) -> None:
        self._repository = repository
        self._registry = registry
        self._coordinator = coordinator or FanOutCoordinator(registry)
        self._settings = settings or Settings()

    # --- Creation ---

    def validate_prompt(self, prompt: str) -> str:
        """Reject empty or oversized prompts before any model is touched."""
        if not prompt or not prompt.strip():
            raise PromptValidationError("Prompt cannot be empty")
        limit = self._settings.max_prompt_length
        if len(prompt) > limit:
            raise PromptValidationError(f"Prompt cannot exceed {limit:,} characters")
        return prompt

    async def create_session(self, prompt: str, user_id: str) -> Session:
        """Create a ``pending`` session for ``user_id``."""
        self.validate_prompt(prompt)
        session = await self._repository.create_session(prompt, user_id)
        logger.debug("Created session %s for user %s", session.id, user_id)
        return session

    async def create_comparison(
        self, prompt: str, user_id: str, model_ids: Sequence[str] | None = None
    ) -> dict[str, Any]:
        """Create a session and describe it for the caller.

        Returns:
            ``sessionId``, ``prompt``, ``models``, ``status`` and ``createdAt``.
        """
        session = await self.create_session(prompt, user_id)
        models = self.resolve_models(model_ids)
        logger.info(
            "Created comparison session %s with models: %s", session.id, ", ".join(models),
        )
        return {
            "sessionId": session.id,
            "prompt": session.prompt,
            "models": models,
            "status": session.status,
            "createdAt": session.created_at.isoformat(),
        }

    def resolve_models(self, model_ids: Sequence[str] | None) -> list[str]:
        """Default the model list and collapse duplicates, keeping order."""
        requested = self._settings.default_models_list if model_ids is None else model_ids
        return list(dict.fromkeys(requested))

    # --- Reduction ---

    async def start_comparison(
        self,
        session_id: str,
        user_id: str,
        model_ids: Sequence[str],
        sink: EventSink | None = None,
    ) -> Session:
        """Stream every model for a pending session and record the outcome.

        Returns:
            The final session with responses and aggregates.

        Raises:
            SessionNotFoundError: No such session for this user (nothing changed).
            InvalidTransitionError: Session is not ``pending`` (nothing changed).
            Exception: Any orchestration failure, after marking the session
                ``failed`` and publishing ``comparison_error``.
        """
        sink = sink or _NullSink()
        set_session_context(session_id, user_id)

        session = await self._repository.get_session(session_id, user_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        _check_transition("Session", session.status, "in_progress", SESSION_TRANSITIONS)

        models = self.resolve_models(model_ids)
        logger.info(
            "Starting comparison for session %s with models: %s",
            session_id, ", ".join(models),
        )

        try:
            await self._repository.update_session_status(session_id, "in_progress")

            accumulators: dict[str, _Accumulator] = {}
            for model_id in models:
                response = await self._repository.create_response(
                    session_id, model_id, self._registry.provider_for(model_id),
                )
                accumulators[model_id] = _Accumulator(response_id=response.id)

            async def on_chunk(model_id: str, chunk: str) -> None:
                acc = accumulators[model_id]
                _check_transition(
                    f"Response {model_id}", acc.status, "streaming", RESPONSE_TRANSITIONS,
                )
                acc.parts.append(chunk)
                acc.status = "streaming"
                await self._repository.update_response_text(acc.response_id, acc.text)
                await sink.publish(ModelChunkEvent(
                    session_id=session_id, model_id=model_id, chunk=chunk,
                ))

            async def on_complete(model_id: str, metrics: StreamMetrics) -> None:
                acc = accumulators[model_id]
                _check_transition(
                    f"Response {model_id}", acc.status, "completed", RESPONSE_TRANSITIONS,
                )
                acc.status = "completed"
                await self._repository.finalize_response(
                    acc.response_id,
                    input_tokens=metrics.input_tokens,
                    output_tokens=metrics.output_tokens,
                    cost=metrics.cost,
                    response_time_ms=metrics.response_time_ms,
                )
                await sink.publish(ModelCompleteEvent(
                    session_id=session_id, model_id=model_id, metrics=metrics,
                ))

            async def on_error(model_id: str, error: str) -> None:
                acc = accumulators[model_id]
                _check_transition(
                    f"Response {model_id}", acc.status, "error", RESPONSE_TRANSITIONS,
                )
                acc.status = "error"
                await self._repository.mark_response_error(acc.response_id, error)
                await sink.publish(ModelErrorEvent(
                    session_id=session_id,
                    model_id=model_id,
                    error=error,
                    error_type=classify_error(error),
                ))

            await self._coordinator.start(
                session_id, session.prompt, models, on_chunk, on_complete, on_error,
            )

            completed = await self._repository.list_responses(session_id, status="completed")
            aggregates = compute_session_aggregates(completed)
            logger.info(
                "Session %s metrics: total_tokens=%d, total_cost=%.6f, average_response_time=%.1f",
                session_id, aggregates.total_tokens, aggregates.total_cost,
                aggregates.average_response_time,
            )
            await self._repository.update_session_metrics(session_id, aggregates)
            await self._repository.update_session_status(session_id, "completed")
        except Exception as e:
            logger.exception("Error in comparison streaming for session %s", session_id)
            await self._mark_failed(session_id)
            await sink.publish(ComparisonErrorEvent(session_id=session_id, error=str(e)))
            raise

        await sink.publish(ComparisonCompleteEvent(session_id=session_id))
        final = await self._repository.get_session(session_id, user_id)
        if final is None:
            raise SessionNotFoundError(session_id)
        return final

    async def _mark_failed(self, session_id: str) -> None:
        try:
            await self._repository.update_session_status(session_id, "failed")
        except Exception:
            # Only logged; the triggering error is re-raised by the caller.
            logger.exception("Could not mark session %s as failed", session_id)

    # --- Reads ---

    async def get_comparison(self, session_id: str, user_id: str) -> Session:
        session = await self._repository.get_session(session_id, user_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    async def get_history(
        self, user_id: str, limit: int | None = None, offset: int = 0
    ) -> list[Session]:
        """Sessions of a user, newest first."""
        limit = self._settings.history_default_limit if limit is None else limit
        return await self._repository.list_sessions(
            user_id, limit=max(limit, 0), offset=max(offset, 0),
        )

    def list_models(self) -> list[ModelInfo]:
        return self._registry.list_models()
