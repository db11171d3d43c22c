"""Configuration loading and validation using Pydantic."""

from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings

DEFAULT_CATEGORIES = [
    "general",
    "politics",
    "business",
    "technology",
    "entertainment",
    "sports",
    "world",
    "crime",
    "automotive",
    "lifestyle",
]


class CacheConfig(BaseModel):
    stale_after_seconds: int = Field(default=1800, ge=0)
    snapshot_enabled: bool = True
    snapshot_ttl_seconds: int = Field(default=7 * 24 * 60 * 60, gt=0)


class RefreshConfig(BaseModel):
    interval_seconds: int = Field(default=1200, ge=10)
    min_fetch_interval_seconds: float = Field(default=5.0, ge=0)
    categories: list[str] = Field(default_factory=lambda: list(DEFAULT_CATEGORIES))

    @field_validator("categories")
    @classmethod
    def categories_not_empty(cls, v):
        if not v:
            raise ValueError("refresh.categories must list at least one category")
        return v


class FeedConfig(BaseModel):
    """Infinite-scroll and swipe policy for a feed session."""

    load_more_trigger: int = Field(default=80, ge=1)
    batch_reset_margin: int = Field(default=50, ge=0)
    permanent_exclusion: bool = True


class HistoryConfig(BaseModel):
    max_entries: Optional[int] = Field(default=None, ge=1)


class SearchConfig(BaseModel):
    providers: list[str] = Field(default_factory=lambda: ["cached", "gnews", "newsapi", "currents", "guardian"])
    freshness_hours: float = Field(default=48.0, gt=0)
    provider_timeout_seconds: float = Field(default=3.0, gt=0)
    early_exit_threshold: int = Field(default=10, ge=1)
    language: str = "en"
    limit: int = Field(default=20, ge=1, le=100)


class IngestionConfig(BaseModel):
    backend: str = "storage"
    base_url: str = "https://firebasestorage.googleapis.com/v0/b/swipenews.appspot.com/o/news%2Fnews_"
    timeout_seconds: float = Field(default=30.0, gt=0)


class StateConfig(BaseModel):
    namespace: str = "swipenews"


class LoggingConfig(BaseModel):
    level: str = "INFO"
    app_log: str = "logs/swipenews.log"
    decision_log: str = "logs/decisions.log"
    max_bytes: int = 10485760
    backup_count: int = 5


class AppConfig(BaseModel):
    cache: CacheConfig = Field(default_factory=CacheConfig)
    refresh: RefreshConfig = Field(default_factory=RefreshConfig)
    feed: FeedConfig = Field(default_factory=FeedConfig)
    history: HistoryConfig = Field(default_factory=HistoryConfig)
    search: SearchConfig = Field(default_factory=SearchConfig)
    ingestion: IngestionConfig = Field(default_factory=IngestionConfig)
    state: StateConfig = Field(default_factory=StateConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


class Secrets(BaseSettings):
    """Loaded from .env file automatically."""

    gnews_api_key: str = ""
    newsapi_api_key: str = ""
    currents_api_key: str = ""
    guardian_api_key: str = ""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


def load_config(config_path: Path = Path("config/settings.yaml")) -> AppConfig:
    """Load and validate application configuration from YAML."""
    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    return AppConfig(**raw)
