# src/comparison/relay.py — v2
"""Publish/subscribe relay of session events to live observers.

A topic per session id. Subscribing does not replay history: an observer
joining mid-stream only sees events published after it joined. When the
last observer leaves, the topic is dropped; whatever is producing events
keeps running and ``publish`` becomes a no-op for that session.

Each observer owns a bounded frame queue drained by its own sender task,
so ``publish`` only enqueues and never waits on a socket. A send that
raises, or a queue that fills up, detaches that observer only.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from modelplayground.comparison.events import SessionEvent

logger = logging.getLogger(__name__)

SendFn = Callable[[dict[str, Any]], Awaitable[None]]

DEFAULT_MAX_PENDING = 256


class _Observer:
    """One subscriber's outbound queue and the task that drains it."""

    def __init__(self, send: SendFn, max_pending: int) -> None:
        self.send = send
        self.queue: asyncio.Queue[dict[str, Any]] = asyncio.Queue(maxsize=max_pending)
        self.task: asyncio.Task | None = None

    def close(self, cancel: bool = True) -> None:
        if cancel and self.task is not None:
            self.task.cancel()
        # Discard undelivered frames so queue.join() waiters are released
        while not self.queue.empty():
            self.queue.get_nowait()
            self.queue.task_done()


class EventRelay:
    """Fan session events out to every currently subscribed observer.

    Args:
        max_pending: Frames an observer may have queued before it is
            considered stalled and detached.
    """

    def __init__(self, max_pending: int = DEFAULT_MAX_PENDING) -> None:
        self._max_pending = max_pending
        self._topics: dict[str, dict[str, _Observer]] = {}

    def subscribe(self, session_id: str, observer_id: str, send: SendFn) -> None:
        """Attach an observer to a session topic (idempotent)."""
        observers = self._topics.setdefault(session_id, {})
        if observer_id not in observers:
            observers[observer_id] = _Observer(send, self._max_pending)
        logger.info("Observer %s joined session %s", observer_id, session_id)

    def unsubscribe(self, session_id: str, observer_id: str) -> bool:
        """Detach an observer. Returns True if it was subscribed."""
        return self._detach(session_id, observer_id, cancel=True)

    def unsubscribe_all(self, observer_id: str) -> list[str]:
        """Detach an observer from every session (connection closed)."""
        left = [
            session_id for session_id in list(self._topics)
            if self.unsubscribe(session_id, observer_id)
        ]
        return left

    def subscriber_count(self, session_id: str) -> int:
        return len(self._topics.get(session_id, {}))

    def has_subscribers(self, session_id: str) -> bool:
        return session_id in self._topics

    def is_subscribed(self, session_id: str, observer_id: str) -> bool:
        return observer_id in self._topics.get(session_id, {})

    def pending(self, session_id: str, observer_id: str) -> int:
        """Frames queued for an observer but not yet sent."""
        observer = self._topics.get(session_id, {}).get(observer_id)
        return observer.queue.qsize() if observer is not None else 0

    async def publish(self, event: SessionEvent) -> None:
        """Queue ``event`` for every observer of its session."""
        observers = self._topics.get(event.session_id)
        if not observers:
            return

        frame = event.to_wire()
        for observer_id, observer in list(observers.items()):
            try:
                observer.queue.put_nowait(frame)
            except asyncio.QueueFull:
                logger.warning(
                    "Observer %s has %d undelivered frames on session %s, detaching",
                    observer_id, observer.queue.qsize(), event.session_id,
                )
                self._detach(event.session_id, observer_id, cancel=True)
                continue
            if observer.task is None:
                observer.task = asyncio.create_task(
                    self._pump(event.session_id, observer_id, observer),
                    name=f"relay:{event.session_id}:{observer_id}",
                )

    async def drain(self, session_id: str) -> None:
        """Wait until every frame queued for the session has been handled."""
        observers = list(self._topics.get(session_id, {}).values())
        await asyncio.gather(*(o.queue.join() for o in observers))

    async def close(self) -> None:
        """Detach every observer and stop their sender tasks."""
        tasks = []
        for session_id in list(self._topics):
            for observer_id, observer in list(self._topics[session_id].items()):
                if observer.task is not None:
                    tasks.append(observer.task)
                self._detach(session_id, observer_id, cancel=True)
        await asyncio.gather(*tasks, return_exceptions=True)

    async def _pump(self, session_id: str, observer_id: str, observer: _Observer) -> None:
        while True:
            frame = await observer.queue.get()
            try:
                await observer.send(frame)
            except Exception as e:
                logger.warning(
                    "Dropping observer %s from session %s: %s", observer_id, session_id, e,
                )
                self._detach(session_id, observer_id, cancel=False)
                return
            finally:
                observer.queue.task_done()

    def _detach(self, session_id: str, observer_id: str, cancel: bool) -> bool:
        observers = self._topics.get(session_id)
        if observers is None:
            return False
        observer = observers.pop(observer_id, None)
        if observer is None:
            return False
        observer.close(cancel=cancel)
        if not observers:
            del self._topics[session_id]
        logger.info("Observer %s left session %s", observer_id, session_id)
        return True
