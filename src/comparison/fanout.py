# src/comparison/fanout.py — v1
"""Concurrent fan-out of one prompt to many models.

One asyncio task per requested model, joined before ``start`` returns.
Within a model, callbacks fire in stream order and end with exactly one
terminal callback (complete or error). Across models there is no ordering.

Provider failures (including unknown model ids) are terminal for that model
only and are reported through ``on_error``. An exception raised by a
callback is an orchestration failure: siblings still run to completion and
the first such exception is re-raised from ``start`` after the join.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence

from modelplayground.llm.errors import error_message
from modelplayground.llm.models import StreamMetrics, TextChunk
from modelplayground.llm.registry import ModelRegistry
from modelplayground.logging.context import set_model_context

logger = logging.getLogger(__name__)

ChunkCallback = Callable[[str, str], Awaitable[None]]
CompleteCallback = Callable[[str, StreamMetrics], Awaitable[None]]
ErrorCallback = Callable[[str, str], Awaitable[None]]


class StreamIncompleteError(RuntimeError):
    """Provider stream ended without a metrics report."""


class FanOutCoordinator:
    """Scatter a prompt over models and gather at the join point."""

    def __init__(self, registry: ModelRegistry) -> None:
        self._registry = registry

    async def start(
        self,
        session_id: str,
        prompt: str,
        model_ids: Sequence[str],
        on_chunk: ChunkCallback,
        on_complete: CompleteCallback,
        on_error: ErrorCallback,
    ) -> None:
        """Run every model to a terminal state.

        Raises:
            Exception: The first exception raised by a callback, after all
                models have finished.
        """
        logger.info(
            "Fan-out for session %s: %s", session_id, ", ".join(model_ids),
        )
        tasks = [
            asyncio.create_task(
                self._run_model(model_id, prompt, on_chunk, on_complete, on_error),
                name=f"fanout:{session_id}:{model_id}",
            )
            for model_id in model_ids
        ]
        results = await asyncio.gather(*tasks, return_exceptions=True)

        failures = [r for r in results if isinstance(r, BaseException)]
        if failures:
            for failure in failures[1:]:
                logger.error("Additional callback failure in session %s: %r", session_id, failure)
            raise failures[0]

    async def _run_model(
        self,
        model_id: str,
        prompt: str,
        on_chunk: ChunkCallback,
        on_complete: CompleteCallback,
        on_error: ErrorCallback,
    ) -> None:
        set_model_context(model_id)

        adapter = self._registry.get(model_id)
        if adapter is None:
            logger.warning("Model %s not found", model_id)
            await on_error(model_id, f"Model {model_id} not found")
            return

        metrics: StreamMetrics | None = None
        stream = adapter.invoke(prompt)
        try:
            while True:
                # Only provider failures are caught here; callback errors propagate.
                try:
                    event = await stream.__anext__()
                except StopAsyncIteration:
                    break
                except Exception as e:
                    logger.error("Error streaming response for %s: %s", model_id, e)
                    await on_error(model_id, error_message(e))
                    return

                if isinstance(event, TextChunk):
                    await on_chunk(model_id, event.text)
                elif isinstance(event, StreamMetrics):
                    metrics = event
        finally:
            await stream.aclose()

        if metrics is None:
            await on_error(model_id, error_message(StreamIncompleteError(
                f"Stream for {model_id} ended without metrics"
            )))
            return
        await on_complete(model_id, metrics)
