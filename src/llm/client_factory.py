# src/llm/client_factory.py — v3
"""Factory: instantiate a streaming LLM client from a provider name.

Called by the model registry once per configured model at startup.
"""

from __future__ import annotations

import importlib
import logging

from modelplayground.config.settings import Settings
from modelplayground.llm.base_client import BaseLLMClient

logger = logging.getLogger(__name__)

# Registry of provider name → adapter class path (lazy import).
_PROVIDER_REGISTRY: dict[str, str] = {
    "anthropic": "modelplayground.llm.adapters.anthropic_adapter.AnthropicAdapter",
    "openai": "modelplayground.llm.adapters.openai_adapter.OpenAIAdapter",
    "google": "modelplayground.llm.adapters.google_adapter.GoogleAdapter",
    "ollama": "modelplayground.llm.adapters.ollama_adapter.OllamaAdapter",
}


class UnsupportedProviderError(ValueError):
    """Raised when a provider is not registered."""


def provider_credential(provider: str, settings: Settings) -> str:
    """Return the credential (or endpoint) that enables a provider.

    An empty string means the provider is not configured.
    """
    if provider == "anthropic":
        return settings.anthropic_api_key
    if provider == "openai":
        return settings.openai_api_key
    if provider == "google":
        return settings.google_api_key
    if provider == "ollama":
        return settings.ollama_base_url if settings.ollama_models_list else ""
    return ""


def create_llm_client(
    provider: str,
    model: str,
    settings: Settings | None = None,
    **kwargs: object,
) -> BaseLLMClient:
    """Instantiate the correct adapter from provider name.

    Args:
        provider: Provider identifier (anthropic, openai, google, ollama).
        model: Model name (e.g. claude-sonnet-4-20250514).
        settings: Application settings (for API keys and sampling defaults).
        **kwargs: Additional provider-specific arguments.

    Raises:
        UnsupportedProviderError: If provider is not registered.
    """
    if provider not in _PROVIDER_REGISTRY:
        raise UnsupportedProviderError(
            f"Unsupported LLM provider: {provider!r}. "
            f"Available: {', '.join(sorted(_PROVIDER_REGISTRY))}"
        )

    adapter_cls = _import_class(_PROVIDER_REGISTRY[provider])

    init_kwargs = dict(kwargs)
    init_kwargs["model"] = model

    if settings is not None:
        init_kwargs.setdefault("temperature", settings.llm_temperature)
        init_kwargs.setdefault("max_tokens", settings.llm_max_tokens)
        if provider == "ollama":
            init_kwargs.setdefault("base_url", settings.ollama_base_url)
        else:
            init_kwargs.setdefault("api_key", provider_credential(provider, settings))

    logger.debug("Creating LLM client: provider=%s, model=%s", provider, model)
    return adapter_cls(**init_kwargs)


def register_provider(name: str, class_path: str) -> None:
    """Register a custom provider adapter.

    Args:
        name: Provider identifier.
        class_path: Fully qualified class path implementing BaseLLMClient.
    """
    _PROVIDER_REGISTRY[name] = class_path
    logger.info("Registered LLM provider: %s → %s", name, class_path)


def _import_class(class_path: str) -> type:
    """Dynamically import a class from its fully qualified path."""
    module_path, class_name = class_path.rsplit(".", 1)
    module = importlib.import_module(module_path)
    return getattr(module, class_name)
