"""Shared test fixtures."""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest
import redis

from swipenews.config import AppConfig, Secrets
from swipenews.feed.cache import ArticleCache
from swipenews.feed.events import RefreshBus
from swipenews.models import Article
from swipenews.news.base import IngestionBackend
from swipenews.state.redis_backend import RedisStateBackend

NOW = datetime(2026, 2, 6, 14, 30, 0, tzinfo=timezone.utc)


class FakeRedis:
    """In-memory stand-in for the redis.Redis calls the backend makes.

    Set ``fail = True`` to make every command raise ConnectionError.
    """

    def __init__(self):
        self.sets: dict[str, set] = {}
        self.lists: dict[str, list] = {}
        self.strings: dict[str, str] = {}
        self.ttls: dict[str, int] = {}
        self.fail = False
        self.closed = False

    def _check(self):
        if self.fail:
            raise redis.ConnectionError("Connection refused")

    def sadd(self, key, *values):
        self._check()
        members = self.sets.setdefault(key, set())
        before = len(members)
        members.update(values)
        return len(members) - before

    def smembers(self, key):
        self._check()
        return set(self.sets.get(key, set()))

    def rpush(self, key, *values):
        self._check()
        items = self.lists.setdefault(key, [])
        items.extend(values)
        return len(items)

    def ltrim(self, key, start, end):
        self._check()
        items = self.lists.get(key, [])
        stop = None if end == -1 else end + 1
        self.lists[key] = items[start:stop]
        return True

    def lrange(self, key, start, end):
        self._check()
        items = self.lists.get(key, [])
        stop = None if end == -1 else end + 1
        return list(items[start:stop])

    def setex(self, key, ttl, value):
        self._check()
        self.strings[key] = value
        self.ttls[key] = ttl
        return True

    def get(self, key):
        self._check()
        return self.strings.get(key)

    def ping(self):
        self._check()
        return True

    def close(self):
        self.closed = True


class ScriptedBackend(IngestionBackend):
    """Returns queued results per category; a held gate blocks the fetch."""

    def __init__(self):
        self.results: dict[str, list] = {}
        self.calls: list[str] = []
        self.gate: asyncio.Event | None = None

    def queue(self, category, result):
        self.results.setdefault(category, []).append(result)

    async def fetch_category(self, category):
        self.calls.append(category)
        result = self.results[category].pop(0)
        if self.gate is not None:
            await self.gate.wait()
        if isinstance(result, Exception):
            raise result
        return result


def build_article(n: int, hours_old: float = 1.0, **overrides) -> Article:
    """Build a distinct article numbered n, published hours_old before NOW."""
    fields = {
        "url": f"https://example.com/article-{n:03d}",
        "title": f"Headline number {n}",
        "description": f"Summary for article {n}",
        "source": "Reuters",
        "published_at": NOW - timedelta(hours=hours_old),
    }
    fields.update(overrides)
    return Article(**fields)


def build_articles(count: int, start: int = 0) -> list[Article]:
    return [build_article(i) for i in range(start, start + count)]


@pytest.fixture
def test_config() -> AppConfig:
    """Provide a test configuration with safe defaults."""
    return AppConfig(
        refresh={
            "interval_seconds": 60,
            "min_fetch_interval_seconds": 0,
            "categories": ["general", "technology", "sports"],
        },
        search={
            "providers": ["cached"],
            "provider_timeout_seconds": 0.5,
        },
        logging={
            "level": "DEBUG",
            "app_log": "/tmp/test_swipenews.log",
            "decision_log": "/tmp/test_decisions.log",
        },
    )


@pytest.fixture
def mock_secrets() -> Secrets:
    """Provide fake API keys for unit tests."""
    return Secrets(
        gnews_api_key="test-gnews-key",
        newsapi_api_key="test-newsapi-key",
        currents_api_key="test-currents-key",
        guardian_api_key="test-guardian-key",
    )


@pytest.fixture
def sample_article() -> Article:
    """Provide a realistic sample article."""
    return Article(
        url="https://example.com/markets/chip-rally",
        title="Chipmakers Rally as AI Demand Lifts Forecasts",
        description="Semiconductor stocks rose after several firms raised guidance.",
        content="Shares of leading chipmakers climbed on Thursday...",
        image_url="https://example.com/images/chips.jpg",
        source="Reuters",
        published_at="2026-02-06T12:00:00Z",
    )


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def state_backend(fake_redis) -> RedisStateBackend:
    return RedisStateBackend(namespace="test", client=fake_redis)


@pytest.fixture
def make_article():
    return build_article


@pytest.fixture
def make_articles():
    return build_articles


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def ingestion() -> ScriptedBackend:
    return ScriptedBackend()


@pytest.fixture
def cache() -> ArticleCache:
    return ArticleCache()


@pytest.fixture
def bus() -> RefreshBus:
    return RefreshBus()
