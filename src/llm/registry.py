# src/llm/registry.py — v1
"""Model catalog and the immutable registry of configured adapters.

The registry is built once at startup from settings and then passed by
reference to whoever needs it. Providers without credentials are left out
rather than failing startup.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from types import MappingProxyType

from modelplayground.config.settings import Settings
from modelplayground.llm.base_client import BaseLLMClient
from modelplayground.llm.client_factory import create_llm_client, provider_credential
from modelplayground.llm.models import ModelInfo, ModelPricing
from modelplayground.llm.pricing import get_pricing
from modelplayground.llm.provider_adapter import ProviderAdapter

logger = logging.getLogger(__name__)

UNKNOWN_PROVIDER = "unknown"


@dataclass(frozen=True)
class CatalogEntry:
    """A model the playground knows how to offer."""

    id: str
    name: str
    provider: str


MODEL_CATALOG: tuple[CatalogEntry, ...] = (
    CatalogEntry("gpt-3.5-turbo", "GPT-3.5 Turbo", "openai"),
    CatalogEntry("gpt-4", "GPT-4", "openai"),
    CatalogEntry("claude-sonnet-4-20250514", "Claude Sonnet 4", "anthropic"),
    CatalogEntry("claude-3-5-haiku-20241022", "Claude 3.5 Haiku", "anthropic"),
    CatalogEntry("gemini-2.5-flash-lite", "Gemini 2.5 Flash Lite", "google"),
    CatalogEntry("gemini-2.0-flash", "Gemini 2.0 Flash", "google"),
)


class ModelRegistry:
    """Read-only lookup from model id to its ProviderAdapter."""

    def __init__(self, adapters: Mapping[str, ProviderAdapter]) -> None:
        self._adapters = MappingProxyType(dict(adapters))

    def get(self, model_id: str) -> ProviderAdapter | None:
        return self._adapters.get(model_id)

    def list_models(self) -> list[ModelInfo]:
        """All configured models, in catalog order."""
        return [a.info for a in self._adapters.values()]

    def pricing(self, model_id: str) -> ModelPricing:
        """Pricing for a model; zero rates when it is not known. Never raises."""
        adapter = self._adapters.get(model_id)
        if adapter is not None:
            return adapter.pricing
        return get_pricing(model_id)

    def provider_for(self, model_id: str) -> str:
        adapter = self._adapters.get(model_id)
        return adapter.provider if adapter is not None else UNKNOWN_PROVIDER

    def __contains__(self, model_id: object) -> bool:
        return model_id in self._adapters

    def __iter__(self) -> Iterator[str]:
        return iter(self._adapters)

    def __len__(self) -> int:
        return len(self._adapters)

    @classmethod
    def from_clients(cls, clients: Mapping[str, tuple[str, BaseLLMClient]]) -> ModelRegistry:
        """Build a registry from ``{model_id: (display_name, client)}``.

        Pricing comes from the static table.
        """
        adapters = {
            model_id: ProviderAdapter(
                ModelInfo(
                    id=model_id,
                    name=name,
                    provider=client.provider_name,
                    pricing=get_pricing(model_id),
                ),
                client,
            )
            for model_id, (name, client) in clients.items()
        }
        return cls(adapters)


def build_registry(settings: Settings) -> ModelRegistry:
    """Create one adapter per catalog model whose provider is configured."""
    entries = list(MODEL_CATALOG)
    entries.extend(
        CatalogEntry(name, f"{name} (Ollama)", "ollama")
        for name in settings.ollama_models_list
    )

    adapters: dict[str, ProviderAdapter] = {}
    skipped: set[str] = set()
    for entry in entries:
        if not provider_credential(entry.provider, settings):
            skipped.add(entry.provider)
            continue
        client = create_llm_client(entry.provider, entry.id, settings)
        info = ModelInfo(
            id=entry.id,
            name=entry.name,
            provider=entry.provider,
            pricing=get_pricing(entry.id),
        )
        adapters[entry.id] = ProviderAdapter(info, client)

    for provider in sorted(skipped):
        logger.info("%s not configured; its models are unavailable", provider)
    logger.info("Initialized %d AI models", len(adapters))
    return ModelRegistry(adapters)
