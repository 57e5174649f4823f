# src/api/app.py — v2
"""FastAPI application: REST endpoints for comparison sessions.

Usage:
    from modelplayground.api.app import create_app
    app = create_app()

The caller's identity arrives in the ``X-User-Id`` header and is trusted
as-is; authentication happens upstream.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

from fastapi import Depends, FastAPI, Header, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from modelplayground.api.gateway import router as gateway_router
from modelplayground.api.models import (
    AvailableModel,
    CreateComparisonRequest,
    SessionDetail,
    SessionSummary,
    StartComparisonRequest,
)
from modelplayground.comparison.errors import (
    InvalidTransitionError,
    PromptValidationError,
    SessionNotFoundError,
)
from modelplayground.comparison.relay import EventRelay
from modelplayground.comparison.service import ComparisonService
from modelplayground.config.settings import Settings
from modelplayground.llm.registry import ModelRegistry, build_registry
from modelplayground.storage.base_repository import BaseRepository
from modelplayground.storage.repository_factory import create_repository
from modelplayground.version import __version__

logger = logging.getLogger(__name__)

SERVICE_NAME = "AI Model Playground Backend"


def create_app(
    settings: Settings | None = None,
    registry: ModelRegistry | None = None,
    repository: BaseRepository | None = None,
) -> FastAPI:
    """Assemble the application with its registry, repository and relay.

    Args:
        settings: Global settings. Loaded from .env if None.
        registry: Model registry. Built from settings if None.
        repository: Session storage. Created from settings if None.
    """
    settings = settings or Settings()
    registry = registry if registry is not None else build_registry(settings)
    repository = repository if repository is not None else create_repository(settings)
    relay = EventRelay(max_pending=settings.ws_max_pending_frames)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            "%s v%s started with %d models", SERVICE_NAME, __version__, len(registry),
        )
        yield
        await relay.close()
        repository.close()

    app = FastAPI(title="AI Model Playground API", version=__version__, lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "Accept", "X-User-Id"],
    )

    app.state.settings = settings
    app.state.registry = registry
    app.state.service = ComparisonService(repository, registry, settings=settings)
    app.state.relay = relay

    _register_error_handlers(app)
    _register_routes(app)
    app.include_router(gateway_router)
    return app


# ── Dependencies ──────────────────────────────────────────────────────


def get_service(request: Request) -> ComparisonService:
    return request.app.state.service


def get_user_id(
    request: Request, x_user_id: str | None = Header(default=None),
) -> str:
    return x_user_id or request.app.state.settings.default_user_id


# ── Error mapping ─────────────────────────────────────────────────────


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(SessionNotFoundError)
    async def _not_found(request: Request, exc: SessionNotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(PromptValidationError)
    async def _invalid_prompt(request: Request, exc: PromptValidationError) -> JSONResponse:
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    @app.exception_handler(InvalidTransitionError)
    async def _conflict(request: Request, exc: InvalidTransitionError) -> JSONResponse:
        return JSONResponse(status_code=409, content={"detail": str(exc)})


# ── Routes ────────────────────────────────────────────────────────────


def _register_routes(app: FastAPI) -> None:
    @app.get("/")
    async def health() -> dict[str, Any]:
        return {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "service": SERVICE_NAME,
            "version": __version__,
        }

    @app.get("/api/info")
    async def api_info(request: Request) -> dict[str, Any]:
        registry: ModelRegistry = request.app.state.registry
        return {
            "name": "AI Model Playground API",
            "version": __version__,
            "description": "Backend API for comparing multiple AI models in real-time",
            "features": [
                "Real-time AI model comparison",
                "WebSocket streaming support",
                "Multiple AI provider integration",
                "Session management",
                "Performance metrics tracking",
            ],
            "supportedProviders": sorted({m.provider for m in registry.list_models()}),
            "endpoints": {
                "health": "/",
                "apiInfo": "/api/info",
                "comparison": "/comparison",
                "websocket": "/comparison/ws",
            },
        }

    @app.post("/comparison")
    async def create_comparison(
        body: CreateComparisonRequest,
        service: ComparisonService = Depends(get_service),
        user_id: str = Depends(get_user_id),
    ) -> dict[str, Any]:
        return await service.create_comparison(body.prompt, user_id, body.model_ids)

    @app.get("/comparison")
    async def comparison_history(
        request: Request,
        limit: int | None = Query(default=None, ge=0),
        offset: int = Query(default=0, ge=0),
        service: ComparisonService = Depends(get_service),
        user_id: str = Depends(get_user_id),
    ) -> list[dict[str, Any]]:
        preview = request.app.state.settings.history_prompt_preview_chars
        sessions = await service.get_history(user_id, limit=limit, offset=offset)
        return [
            SessionSummary.from_session(s, preview).model_dump(mode="json", by_alias=True)
            for s in sessions
        ]

    @app.get("/comparison/models/available")
    async def available_models(
        service: ComparisonService = Depends(get_service),
    ) -> list[dict[str, Any]]:
        return [
            AvailableModel(
                id=m.id, name=m.name, provider=m.provider, pricing=m.pricing,
            ).model_dump(mode="json", by_alias=True)
            for m in service.list_models()
        ]

    @app.get("/comparison/{session_id}")
    async def get_comparison(
        session_id: str,
        service: ComparisonService = Depends(get_service),
        user_id: str = Depends(get_user_id),
    ) -> dict[str, Any]:
        session = await service.get_comparison(session_id, user_id)
        return SessionDetail.from_session(session).model_dump(mode="json", by_alias=True)

    @app.post("/comparison/{session_id}/start")
    async def start_comparison(
        session_id: str,
        request: Request,
        body: StartComparisonRequest,
        service: ComparisonService = Depends(get_service),
        user_id: str = Depends(get_user_id),
    ) -> dict[str, Any]:
        # Runs to the join point; WebSocket observers of the session still
        # receive the live events.
        await service.start_comparison(
            session_id, user_id, service.resolve_models(body.model_ids),
            sink=request.app.state.relay,
        )
        return {"message": "Comparison started successfully"}
