"""Tests for the reader engine wiring and lifecycle."""

import asyncio
from datetime import datetime, timezone

import pytest

from swipenews.engine import ReaderEngine
from swipenews.feed.cache import ArticleCache
from swipenews.models import Decision, FeedState
from swipenews.state.history import HistoryLog
from swipenews.state.seen import SeenRegistry


async def settle(rounds: int = 20) -> None:
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def engine(test_config, mock_secrets, state_backend, ingestion):
    return ReaderEngine(test_config, mock_secrets, state_backend=state_backend, ingestion=ingestion)


class TestReaderEngine:
    def test_builds_providers_from_config(self, engine):
        assert engine.search_engine.provider_names == ["cached"]

    def test_restore_state(self, test_config, mock_secrets, state_backend, ingestion, make_article, make_articles):
        SeenRegistry(state_backend).mark_seen(make_article(1))
        HistoryLog(state_backend).append(make_article(1), Decision.READ)
        ArticleCache(state_backend).put("technology", make_articles(4))

        engine = ReaderEngine(test_config, mock_secrets, state_backend=state_backend, ingestion=ingestion)
        engine.restore_state()

        assert engine.seen.is_seen(make_article(1))
        assert len(engine.history) == 1
        assert len(engine.cache.get("technology").articles) == 4

    def test_restore_failure_is_logged(self, engine, fake_redis):
        fake_redis.fail = True
        engine.restore_state()
        assert engine.seen.seen_count() == 0

    @pytest.mark.asyncio
    async def test_open_feed_and_swipe(self, engine, ingestion, make_articles):
        ingestion.queue("general", make_articles(5))

        feed = await engine.open_feed("general")
        await settle()

        assert feed.state is FeedState.READY
        feed.advance(feed.current_article(), Decision.READ)
        assert engine.seen.seen_count() == 1
        assert len(engine.history) == 1
        await engine.shutdown()

    @pytest.mark.asyncio
    async def test_tick_refreshes_all_categories(self, engine, ingestion, make_articles):
        for category in ("general", "technology", "sports"):
            ingestion.queue(category, make_articles(2))

        await engine._tick()

        assert sorted(ingestion.calls) == ["general", "sports", "technology"]
        assert engine.cache.total_articles() == 6
        await engine.shutdown()

    @pytest.mark.asyncio
    async def test_search_uses_cached_articles(self, engine, make_article):
        fresh = make_article(1, title="Transit strike called off", published_at=datetime.now(timezone.utc))
        engine.cache.put("general", [fresh])

        result = await engine.search("strike")

        assert result.articles == [fresh]
        await engine.shutdown()

    @pytest.mark.asyncio
    async def test_start_runs_until_stopped(self, engine, ingestion, fake_redis, make_articles):
        for category in ("general", "technology", "sports"):
            ingestion.queue(category, make_articles(1))

        task = asyncio.create_task(engine.start())
        await settle()
        engine.stop()
        await asyncio.wait_for(task, timeout=3)

        assert len(ingestion.calls) == 3
        assert fake_redis.closed

    @pytest.mark.asyncio
    async def test_tick_flushes_deferred_state_writes(self, engine, fake_redis, state_backend, make_article):
        fake_redis.fail = True
        engine.seen.mark_seen(make_article(1))
        engine.history.append(make_article(1), Decision.READ)
        assert engine.history.pending_count == 1

        fake_redis.fail = False
        await engine._tick()

        assert engine.seen.pending_count == 0
        assert engine.history.pending_count == 0
        assert [e.article for e in state_backend.load_history()] == [make_article(1)]
        await engine.shutdown()
