"""Tests for provider factory."""

from unittest.mock import MagicMock

import httpx
import pytest

from swipenews.config import Secrets
from swipenews.news.base import IngestionBackend, SearchProvider
from swipenews.news.cached import CachedArticleSearchProvider
from swipenews.news.currents import CurrentsSearchProvider
from swipenews.news.gnews import GNewsSearchProvider
from swipenews.news.guardian import GuardianSearchProvider
from swipenews.news.ingestion import StorageIngestionClient
from swipenews.news.newsapi import NewsAPISearchProvider
from swipenews.providers import create_ingestion_backend, create_search_providers


@pytest.fixture
def http():
    return MagicMock(spec=httpx.AsyncClient)


class TestProviderFactory:
    def test_create_search_providers_in_order(self, test_config, mock_secrets, cache, http):
        test_config.search.providers = ["guardian", "cached", "gnews", "newsapi", "currents"]
        providers = create_search_providers(test_config, mock_secrets, cache, http)
        assert all(isinstance(p, SearchProvider) for p in providers)
        assert [type(p) for p in providers] == [
            GuardianSearchProvider,
            CachedArticleSearchProvider,
            GNewsSearchProvider,
            NewsAPISearchProvider,
            CurrentsSearchProvider,
        ]
        assert [p.name for p in providers] == ["guardian", "cached", "gnews", "newsapi", "currents"]

    def test_cached_only_needs_no_keys(self, test_config, cache):
        secrets = Secrets(gnews_api_key="", newsapi_api_key="", currents_api_key="", guardian_api_key="")
        providers = create_search_providers(test_config, secrets, cache)
        assert len(providers) == 1

    def test_unknown_search_provider_raises(self, test_config, mock_secrets, cache):
        test_config.search.providers = ["cached", "bing"]
        with pytest.raises(ValueError, match="Unknown search provider"):
            create_search_providers(test_config, mock_secrets, cache)

    def test_create_ingestion_backend(self, test_config, http):
        backend = create_ingestion_backend(test_config, http)
        assert isinstance(backend, IngestionBackend)
        assert isinstance(backend, StorageIngestionClient)

    def test_unknown_ingestion_backend_raises(self, test_config):
        test_config.ingestion.backend = "ftp"
        with pytest.raises(ValueError, match="Unknown ingestion backend"):
            create_ingestion_backend(test_config)
