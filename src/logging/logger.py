# src/logging/logger.py — v2
"""Logger factory with JSON and text formatters.

Records carry the comparison context (session, model, user) of the task
that emitted them, so interleaved output from concurrent model streams can
be told apart.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from modelplayground.logging.context import LogContext, get_context

ROOT_LOGGER = "modelplayground"

# Third-party loggers that are chatty at INFO
_QUIET_LOGGERS = ("httpx", "httpcore", "openai", "anthropic")


def _context_tag(ctx: LogContext) -> str:
    """Short ``[session8](model)`` tag for text output."""
    tag = f"[{ctx.session_id[:8]}]" if ctx.session_id else ""
    if ctx.model_id:
        tag += f"({ctx.model_id})"
    return tag


class JsonFormatter(logging.Formatter):
    """One JSON object per line with the comparison context attached."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        context = get_context().as_dict()
        if context:
            entry["context"] = context

        # extra={"data": {...}}
        data = getattr(record, "data", None)
        if data:
            entry["data"] = data

        if record.exc_info and record.exc_info[1] is not None:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


class TextFormatter(logging.Formatter):
    """Single-line text for terminals."""

    def format(self, record: logging.LogRecord) -> str:
        stamp = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")
        head = f"{stamp} [{record.levelname:8s}] {record.name}"
        tag = _context_tag(get_context())
        if tag:
            head += f" {tag}"
        line = f"{head}: {record.getMessage()}"
        if record.exc_info and record.exc_info[1] is not None:
            line += "\n" + self.formatException(record.exc_info)
        return line


_FORMATTERS: dict[str, type[logging.Formatter]] = {
    "json": JsonFormatter,
    "text": TextFormatter,
}


def get_logger(name: str) -> logging.Logger:
    """Get a named logger. Configuration is applied by setup_logging()."""
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


def setup_logging(
    level: str = "INFO",
    log_format: str = "json",
    log_file: str | None = None,
    rotation: str = "10MB",
    backup_count: int = 5,
) -> logging.Logger:
    """Configure the package root logger and return it.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR).
        log_format: "json" or "text"; anything else falls back to text.
        log_file: Optional file that receives the same records as stdout.
        rotation: File size that triggers a rollover (e.g. "10MB").
        backup_count: Rolled-over files kept next to ``log_file``.
    """
    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    # Re-init replaces handlers instead of stacking them
    root.handlers.clear()

    formatter = _FORMATTERS.get(log_format, TextFormatter)()

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        from modelplayground.logging.handlers import create_rotating_handler

        handlers.append(
            create_rotating_handler(log_file, rotation=rotation, backup_count=backup_count)
        )
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    return root
