# src/main.py — v2
"""CLI entry point — serve, models, compare commands.

Usage:
    modelplayground serve [--host HOST] [--port PORT]
    modelplayground models
    modelplayground compare "<prompt>" [-m MODEL ...]
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import TYPE_CHECKING

from modelplayground.version import __version__

if TYPE_CHECKING:
    from modelplayground.comparison.events import SessionEvent
    from modelplayground.config.settings import Settings
    from modelplayground.storage.models import Session

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    from modelplayground.config.settings import Settings

    settings = Settings()
    _setup_logging(settings, args.verbose)

    try:
        return asyncio.run(args.func(args, settings))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="modelplayground",
        description=f"modelplayground v{__version__} — Side-by-side LLM comparison",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- serve ---
    p_serve = subparsers.add_parser(
        "serve", help="Run the HTTP/WebSocket server",
    )
    p_serve.add_argument("--host", default=None, help="Bind address (default: HOST)")
    p_serve.add_argument("--port", type=int, default=None, help="Port (default: PORT)")
    p_serve.set_defaults(func=_cmd_serve)

    # --- models ---
    p_models = subparsers.add_parser(
        "models", help="List configured models and their pricing",
    )
    p_models.set_defaults(func=_cmd_models)

    # --- compare ---
    p_compare = subparsers.add_parser(
        "compare", help="Run one comparison from the terminal",
    )
    p_compare.add_argument("prompt", help="Prompt sent to every model")
    p_compare.add_argument(
        "-m", "--model", dest="models", action="append", default=None,
        help="Model id (repeatable; default: DEFAULT_MODELS)",
    )
    p_compare.add_argument(
        "--user", default=None,
        help="User id recorded on the session (default: DEFAULT_USER_ID)",
    )
    p_compare.set_defaults(func=_cmd_compare)

    return parser


async def _cmd_serve(args: argparse.Namespace, settings: Settings) -> int:
    """Serve the API until interrupted."""
    import uvicorn

    from modelplayground.api.app import create_app

    config = uvicorn.Config(
        create_app(settings),
        host=args.host or settings.host,
        port=args.port or settings.port,
        log_config=None,
    )
    await uvicorn.Server(config).serve()
    return 0


async def _cmd_models(args: argparse.Namespace, settings: Settings) -> int:
    """Print the registry contents."""
    from modelplayground.llm.registry import build_registry

    registry = build_registry(settings)
    if not len(registry):
        print("No models configured. Set provider API keys in .env.")
        return 1

    print(f"\n{'Model':<30} {'Provider':<10} {'Input/1K':>10} {'Output/1K':>10}")
    for info in registry.list_models():
        print(
            f"{info.id:<30} {info.provider:<10} "
            f"{info.pricing.input:>10.5f} {info.pricing.output:>10.5f}"
        )
    return 0


async def _cmd_compare(args: argparse.Namespace, settings: Settings) -> int:
    """Stream one prompt through the selected models and print the outcome."""
    from modelplayground.comparison.service import ComparisonService
    from modelplayground.llm.registry import build_registry
    from modelplayground.storage.repository_factory import create_repository

    repository = create_repository(settings)
    service = ComparisonService(repository, build_registry(settings), settings=settings)
    user_id = args.user or settings.default_user_id
    try:
        session = await service.create_session(args.prompt, user_id)
        session = await service.start_comparison(
            session.id, user_id, service.resolve_models(args.models), sink=_ConsoleSink(),
        )
    finally:
        repository.close()

    _print_session_summary(session)
    return 0


class _ConsoleSink:
    """Prints terminal events as they arrive."""

    async def publish(self, event: SessionEvent) -> None:
        if event.event == "model_complete":
            print(f"  ✓ {event.model_id} ({event.metrics.response_time_ms} ms)")
        elif event.event == "model_error":
            print(f"  ✗ {event.model_id}: {event.error} [{event.error_type}]")


def _print_session_summary(session: Session) -> None:
    """Print each response and the session aggregates."""
    for response in session.responses:
        print(f"\n=== {response.model_id} ({response.provider}): {response.status} ===")
        if response.status == "error":
            print(f"Error: {response.error_message}")
            continue
        print(response.response)
        if response.status == "completed":
            print(
                f"[tokens in={response.input_tokens} out={response.output_tokens} "
                f"cost=${response.cost:.6f} time={response.response_time_ms}ms]"
            )

    print(f"\nSession {session.id}: {session.status}")
    print(f"  Total tokens:      {session.total_tokens}")
    print(f"  Total cost:        ${session.total_cost:.6f}")
    print(f"  Avg response time: {session.average_response_time:.0f} ms")


def _setup_logging(settings: Settings, verbose: bool) -> None:
    """Configure logging for CLI usage."""
    from modelplayground.logging.logger import setup_logging

    setup_logging(
        level="DEBUG" if verbose else settings.log_level,
        log_format=settings.log_format,
        log_file=str(settings.log_file) if settings.log_file else None,
        rotation=settings.log_rotation,
        backup_count=settings.log_backup_count,
    )


if __name__ == "__main__":
    sys.exit(main())
