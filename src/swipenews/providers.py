"""Provider factory: creates search providers and the ingestion backend from config."""

from typing import Optional

import httpx

from swipenews.config import AppConfig, Secrets
from swipenews.feed.cache import ArticleCache
from swipenews.news.base import IngestionBackend, SearchProvider

SEARCH_PROVIDERS = {
    "cached": "swipenews.news.cached:CachedArticleSearchProvider",
    "gnews": "swipenews.news.gnews:GNewsSearchProvider",
    "newsapi": "swipenews.news.newsapi:NewsAPISearchProvider",
    "currents": "swipenews.news.currents:CurrentsSearchProvider",
    "guardian": "swipenews.news.guardian:GuardianSearchProvider",
}

INGESTION_BACKENDS = {
    "storage": "swipenews.news.ingestion:StorageIngestionClient",
}


def _import_class(path: str):
    """Import a class from a 'module:ClassName' string."""
    module_path, class_name = path.split(":")
    import importlib

    module = importlib.import_module(module_path)
    return getattr(module, class_name)


def create_search_providers(
    config: AppConfig,
    secrets: Secrets,
    cache: ArticleCache,
    http: Optional[httpx.AsyncClient] = None,
) -> list[SearchProvider]:
    """Create search providers in config.search.providers priority order."""
    providers: list[SearchProvider] = []
    for name in config.search.providers:
        if name not in SEARCH_PROVIDERS:
            raise ValueError(
                f"Unknown search provider: '{name}'. Available: {list(SEARCH_PROVIDERS.keys())}"
            )
        cls = _import_class(SEARCH_PROVIDERS[name])
        if name == "cached":
            providers.append(cls(cache, config.refresh.categories))
        else:
            providers.append(cls(secrets, http))
    return providers


def create_ingestion_backend(
    config: AppConfig,
    http: Optional[httpx.AsyncClient] = None,
) -> IngestionBackend:
    """Create the ingestion backend based on config.ingestion.backend."""
    name = config.ingestion.backend
    if name not in INGESTION_BACKENDS:
        raise ValueError(
            f"Unknown ingestion backend: '{name}'. Available: {list(INGESTION_BACKENDS.keys())}"
        )
    cls = _import_class(INGESTION_BACKENDS[name])
    return cls(config.ingestion, http)
