"""Tests for configuration loading and validation."""

from pathlib import Path

import pytest
import yaml

from swipenews.config import DEFAULT_CATEGORIES, AppConfig, CacheConfig, load_config


class TestAppConfig:
    def test_valid_config(self, test_config):
        """A valid config should load without errors."""
        assert test_config.refresh.categories == ["general", "technology", "sports"]
        assert test_config.search.providers == ["cached"]
        assert test_config.logging.level == "DEBUG"

    def test_defaults(self):
        """Every section has defaults matching the reader's documented behavior."""
        config = AppConfig()
        assert config.cache.stale_after_seconds == 1800
        assert config.refresh.interval_seconds == 1200
        assert config.refresh.min_fetch_interval_seconds == 5.0
        assert config.refresh.categories == DEFAULT_CATEGORIES
        assert config.feed.load_more_trigger == 80
        assert config.feed.batch_reset_margin == 50
        assert config.feed.permanent_exclusion is True
        assert config.history.max_entries is None
        assert config.search.freshness_hours == 48
        assert config.search.provider_timeout_seconds == 3.0
        assert config.search.early_exit_threshold == 10
        assert config.ingestion.backend == "storage"

    def test_empty_categories_rejected(self):
        with pytest.raises(ValueError, match="at least one category"):
            AppConfig(refresh={"categories": []})

    def test_refresh_interval_lower_bound(self):
        with pytest.raises(ValueError):
            AppConfig(refresh={"interval_seconds": 1})

    def test_search_timeout_must_be_positive(self):
        with pytest.raises(ValueError):
            AppConfig(search={"provider_timeout_seconds": 0})

    def test_history_cap_must_be_positive(self):
        with pytest.raises(ValueError):
            AppConfig(history={"max_entries": 0})


class TestLoadConfig:
    def test_load_from_yaml(self, tmp_path):
        config_file = tmp_path / "settings.yaml"
        config_file.write_text(
            yaml.safe_dump(
                {
                    "feed": {"load_more_trigger": 40, "permanent_exclusion": False},
                    "search": {"providers": ["cached", "guardian"]},
                }
            )
        )
        config = load_config(config_file)
        assert config.feed.load_more_trigger == 40
        assert config.feed.permanent_exclusion is False
        assert config.search.providers == ["cached", "guardian"]
        assert config.cache.stale_after_seconds == 1800

    def test_empty_file_uses_defaults(self, tmp_path):
        config_file = tmp_path / "settings.yaml"
        config_file.write_text("")
        config = load_config(config_file)
        assert config == AppConfig()

    def test_repo_settings_file_is_valid(self):
        settings = Path(__file__).resolve().parents[2] / "config" / "settings.yaml"
        config = load_config(settings)
        assert config.search.providers[0] == "cached"
        assert len(config.refresh.categories) == 10
        assert config.cache.snapshot_ttl_seconds == 604800

    def test_repo_settings_documents_cache_section(self):
        settings = Path(__file__).resolve().parents[2] / "config" / "settings.yaml"
        raw = yaml.safe_load(settings.read_text())
        assert set(raw["cache"]) == set(CacheConfig.model_fields)
