# src/config/settings.py — v2
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for provider credentials, storage, API and logging
settings. A missing provider key is not an error: the registry simply
leaves that provider's models out.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === LLM PROVIDERS ===
    openai_api_key: str = ""
    anthropic_api_key: str = ""
    google_api_key: str = ""
    ollama_base_url: str = "http://localhost:11434"
    # Comma-separated local models; empty disables Ollama entirely
    ollama_models: str = ""

    llm_temperature: float = 0.7
    llm_max_tokens: int = 2000

    # === Comparison ===
    default_models: str = "gpt-3.5-turbo,gpt-4,claude-sonnet-4-20250514,gemini-2.0-flash"
    max_prompt_length: int = 10_000
    history_default_limit: int = 20
    history_prompt_preview_chars: int = 100

    # === Storage ===
    storage_backend: Literal["memory", "sqlite"] = "sqlite"
    sqlite_path: Path = Path("~/.modelplayground/playground.db")

    # === API ===
    host: str = "0.0.0.0"
    port: int = 3001
    cors_origins: str = "http://localhost:3000,http://localhost:3001"
    default_user_id: str = "anonymous"
    # Frames a WebSocket observer may fall behind before it is detached
    ws_max_pending_frames: int = 256

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "json"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_backup_count: int = 5

    # --- Validators ---

    @field_validator("llm_max_tokens", "max_prompt_length", "ws_max_pending_frames")
    @classmethod
    def validate_positive(cls, v: int) -> int:  # noqa: N805
        if v <= 0:
            raise ValueError("must be > 0")
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        if self.storage_backend == "sqlite" and not str(self.sqlite_path).strip():
            errors.append("STORAGE_BACKEND=sqlite requires SQLITE_PATH")

        if self.history_default_limit <= 0:
            errors.append("HISTORY_DEFAULT_LIMIT must be > 0")

        if not self.default_models_list:
            errors.append("DEFAULT_MODELS must name at least one model")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    # --- Helpers ---

    @property
    def default_models_list(self) -> list[str]:
        """Parse comma-separated default model ids."""
        return [m.strip() for m in self.default_models.split(",") if m.strip()]

    @property
    def ollama_models_list(self) -> list[str]:
        """Parse comma-separated Ollama model names."""
        return [m.strip() for m in self.ollama_models.split(",") if m.strip()]

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse comma-separated CORS origins."""
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or per-process config).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
