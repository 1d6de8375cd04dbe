"""Embedding provider registry driven by ``EmbeddingSettings``.

Each entry names the provider class and the constructor keyword that
carries the vector dimension. Providers are cached per
``(provider, kwargs)`` so repeated lookups with the same configuration
share one client.
"""

from __future__ import annotations

import importlib
import logging
from typing import NamedTuple

from kbrag.config import EmbeddingSettings
from kbrag.embeddings.base import EmbeddingProvider

logger = logging.getLogger(__name__)


class ProviderEntry(NamedTuple):
    module_path: str
    class_name: str
    dimension_kwarg: str


_PROVIDERS: dict[str, ProviderEntry] = {
    "ollama": ProviderEntry("kbrag.embeddings.ollama_provider", "OllamaEmbeddingProvider", "dimension"),
    "openai": ProviderEntry("kbrag.embeddings.openai_provider", "OpenAIEmbeddingProvider", "dimensions"),
}

_provider_cache: dict[tuple, EmbeddingProvider] = {}


def _entry(provider: str) -> tuple[str, ProviderEntry]:
    key = provider.lower()
    if key not in _PROVIDERS:
        raise ValueError(
            f"Unknown embedding provider '{provider}'. Available: {available_providers()}"
        )
    return key, _PROVIDERS[key]


def get_embedding_provider(provider: str = "ollama", **kwargs) -> EmbeddingProvider:
    """Return the provider registered as ``provider``, built with ``kwargs``.

    Keyword values must be hashable; they form part of the cache key.
    """
    key, entry = _entry(provider)
    cache_key = (key, tuple(sorted(kwargs.items())))
    if cache_key in _provider_cache:
        return _provider_cache[cache_key]

    cls = getattr(importlib.import_module(entry.module_path), entry.class_name)
    instance = cls(**kwargs)
    _provider_cache[cache_key] = instance
    logger.debug("Created embedding provider %s (%s)", entry.class_name, kwargs)
    return instance


def provider_from_settings(settings: EmbeddingSettings) -> EmbeddingProvider:
    """Build the configured provider with its model and dimension."""
    key, entry = _entry(settings.provider)
    return get_embedding_provider(
        key, model=settings.model, **{entry.dimension_kwarg: settings.dimension},
    )


def available_providers() -> list[str]:
    return list(_PROVIDERS)


def clear_cache() -> None:
    _provider_cache.clear()
