# tests/unit/config/test_unit_settings.py — v2
"""Tests for config/settings.py — typed Settings and validation rules."""

from __future__ import annotations

from pathlib import Path

import pytest

from modelplayground.config.settings import ConfigurationError, Settings, load_settings


class TestSettingsDefaults:
    def test_sampling(self):
        s = Settings(_env_file=None)
        assert s.llm_temperature == 0.7
        assert s.llm_max_tokens == 2000

    def test_comparison(self):
        s = Settings(_env_file=None)
        assert s.max_prompt_length == 10_000
        assert s.history_default_limit == 20
        assert s.default_models_list == [
            "gpt-3.5-turbo", "gpt-4", "claude-sonnet-4-20250514", "gemini-2.0-flash",
        ]

    def test_api(self):
        s = Settings(_env_file=None)
        assert s.port == 3001
        assert s.default_user_id == "anonymous"
        assert "http://localhost:3000" in s.cors_origins_list
        assert s.ws_max_pending_frames == 256

    def test_logging(self):
        s = Settings(_env_file=None)
        assert s.log_rotation == "10MB"
        assert s.log_backup_count == 5

    def test_storage(self):
        s = Settings(_env_file=None)
        assert s.storage_backend == "sqlite"
        assert s.sqlite_path == Path("~/.modelplayground/playground.db")


class TestSettingsParsing:
    def test_ollama_models_list(self):
        s = Settings(_env_file=None, ollama_models=" llama3 , ,mistral ")
        assert s.ollama_models_list == ["llama3", "mistral"]

    def test_empty_ollama(self):
        assert Settings(_env_file=None).ollama_models_list == []

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("DEFAULT_MODELS", "gpt-4")
        monkeypatch.setenv("PORT", "8080")
        s = Settings(_env_file=None)
        assert s.default_models_list == ["gpt-4"]
        assert s.port == 8080


class TestSettingsValidation:
    def test_no_default_models(self):
        with pytest.raises(ConfigurationError, match="DEFAULT_MODELS"):
            Settings(_env_file=None, default_models=" , ")

    def test_history_limit_positive(self):
        with pytest.raises(ConfigurationError, match="HISTORY_DEFAULT_LIMIT"):
            Settings(_env_file=None, history_default_limit=0)

    def test_max_tokens_positive(self):
        with pytest.raises(ValueError):
            Settings(_env_file=None, llm_max_tokens=0)

    def test_ws_max_pending_positive(self):
        with pytest.raises(ValueError):
            Settings(_env_file=None, ws_max_pending_frames=0)

    def test_unknown_backend(self):
        with pytest.raises(ValueError):
            Settings(_env_file=None, storage_backend="postgres")


class TestLoadSettings:
    def test_overrides(self):
        s = load_settings(_env_file=None, port=9000)
        assert s.port == 9000
