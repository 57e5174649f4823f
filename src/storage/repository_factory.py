# src/storage/repository_factory.py — v1
"""Factory: instantiate the session repository from configuration."""

from __future__ import annotations

from modelplayground.config.settings import Settings
from modelplayground.storage.base_repository import BaseRepository


def create_repository(settings: Settings | None = None) -> BaseRepository:
    """Create the repository selected by STORAGE_BACKEND.

    Args:
        settings: Application settings. Defaults to the in-memory backend.

    Raises:
        ValueError: If the backend is not supported.
    """
    backend = "memory" if settings is None else settings.storage_backend

    if backend == "memory":
        from modelplayground.storage.memory_repository import MemoryRepository
        return MemoryRepository()

    if backend == "sqlite":
        from modelplayground.storage.sqlite_repository import SqliteRepository
        return SqliteRepository(db_path=settings.sqlite_path)

    raise ValueError(f"Unsupported storage backend: {backend!r}")
