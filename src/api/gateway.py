# src/api/gateway.py — v2
"""WebSocket control channel at /comparison/ws.

Frames are JSON objects ``{"event": name, "data": {...}}``.

Inbound:
    - {"event": "join_session", "data": {"sessionId": "..."}}
    - {"event": "leave_session", "data": {"sessionId": "..."}}
    - {"event": "start_comparison", "data": {"sessionId": "...", "modelIds": [...], "userId": "..."}}

Outbound: ``session_joined``, ``session_left``, the session events from the
relay (``model_chunk``, ``model_complete``, ``model_error``,
``comparison_complete``, ``comparison_error``) and ``error`` for frames that
cannot be handled.

A ``start_comparison`` frame runs as ``data.userId`` when present, otherwise
as the connection's ``user_id`` query parameter, otherwise as the configured
default user.
"""

from __future__ import annotations

import asyncio
import json
import logging
import uuid
from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from modelplayground.comparison.errors import ComparisonError
from modelplayground.comparison.events import ComparisonErrorEvent
from modelplayground.comparison.relay import EventRelay
from modelplayground.comparison.service import ComparisonService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["comparison-websocket"])

# Keeps background comparisons referenced until they finish.
_background: set[asyncio.Task] = set()


def _frame(event: str, **data: Any) -> dict[str, Any]:
    return {"event": event, "data": data}


def _error_frame(message: str) -> dict[str, Any]:
    return _frame("error", message=message)


@router.websocket("/comparison/ws")
async def comparison_websocket_endpoint(websocket: WebSocket) -> None:
    """Stream comparison events to the client over one connection."""
    service: ComparisonService = websocket.app.state.service
    relay: EventRelay = websocket.app.state.relay
    user_id = websocket.query_params.get(
        "user_id", websocket.app.state.settings.default_user_id,
    )

    await websocket.accept()
    observer_id = uuid.uuid4().hex[:16]
    logger.info("Client connected: %s", observer_id)

    try:
        while True:
            raw = await websocket.receive_text()
            for resp in await handle_message(
                websocket, observer_id, user_id, raw, service, relay,
            ):
                await websocket.send_json(resp)
    except WebSocketDisconnect:
        logger.info("Client disconnected: %s", observer_id)
    finally:
        relay.unsubscribe_all(observer_id)


async def handle_message(
    websocket: WebSocket,
    observer_id: str,
    user_id: str,
    raw_message: str,
    service: ComparisonService,
    relay: EventRelay,
) -> list[dict[str, Any]]:
    """Handle one inbound frame.

    Returns:
        Frames to send back to this connection.
    """
    try:
        msg = json.loads(raw_message)
    except json.JSONDecodeError:
        return [_error_frame("Invalid JSON")]
    if not isinstance(msg, dict):
        return [_error_frame("Frame must be a JSON object")]

    event = msg.get("event")
    data = msg.get("data") or {}
    session_id = data.get("sessionId") if isinstance(data, dict) else None

    if event not in ("join_session", "leave_session", "start_comparison"):
        return [_error_frame(f"Unknown event: {event}")]
    if not session_id:
        return [_error_frame(f"{event} requires sessionId")]

    if event == "join_session":
        relay.subscribe(session_id, observer_id, websocket.send_json)
        return [_frame(
            "session_joined",
            sessionId=session_id,
            timestamp=datetime.now(timezone.utc).isoformat(),
        )]

    if event == "leave_session":
        relay.unsubscribe(session_id, observer_id)
        return [_frame("session_left", sessionId=session_id)]

    model_ids = data.get("modelIds")
    run_as = data.get("userId") or user_id
    task = asyncio.create_task(
        _run_comparison(
            websocket, observer_id, run_as, session_id, model_ids, service, relay,
        ),
        name=f"comparison:{session_id}",
    )
    _background.add(task)
    task.add_done_callback(_background.discard)
    return []


async def _run_comparison(
    websocket: WebSocket,
    observer_id: str,
    user_id: str,
    session_id: str,
    model_ids: list[str] | None,
    service: ComparisonService,
    relay: EventRelay,
) -> None:
    try:
        await service.start_comparison(
            session_id, user_id, service.resolve_models(model_ids), sink=relay,
        )
    except ComparisonError as e:
        # Rejected before the run began; nothing reached the relay.
        logger.warning("Comparison %s rejected: %s", session_id, e)
        await _notify_initiator(websocket, observer_id, session_id, str(e))
    except Exception as e:
        if not relay.is_subscribed(session_id, observer_id):
            await _notify_initiator(websocket, observer_id, session_id, str(e))


async def _notify_initiator(
    websocket: WebSocket, observer_id: str, session_id: str, error: str,
) -> None:
    frame = ComparisonErrorEvent(session_id=session_id, error=error).to_wire()
    try:
        await websocket.send_json(frame)
    except (WebSocketDisconnect, RuntimeError):
        logger.debug("Initiator %s gone before error delivery", observer_id)
