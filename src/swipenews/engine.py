"""Application shell wiring the reader's data layer together."""

import asyncio
import signal as signal_mod
from datetime import datetime, timezone
from typing import Optional, Sequence

import structlog

from swipenews.config import AppConfig, Secrets
from swipenews.feed.cache import ArticleCache
from swipenews.feed.controller import FeedController
from swipenews.feed.events import RefreshBus
from swipenews.feed.refresh import RefreshCoordinator
from swipenews.news.base import IngestionBackend, SearchProvider
from swipenews.providers import create_ingestion_backend, create_search_providers
from swipenews.search.engine import SearchEngine, SearchResult
from swipenews.state.history import HistoryLog
from swipenews.state.redis_backend import RedisStateBackend
from swipenews.state.seen import SeenRegistry

logger = structlog.get_logger(__name__)


class ReaderEngine:
    """Owns every shared component and the background refresh loop.

    Components are built from config unless injected. Feed sessions share
    the cache, seen registry, history and refresh bus owned here.
    """

    def __init__(
        self,
        config: AppConfig,
        secrets: Secrets,
        state_backend: Optional[RedisStateBackend] = None,
        ingestion: Optional[IngestionBackend] = None,
        search_providers: Optional[Sequence[SearchProvider]] = None,
    ):
        self._config = config
        self._secrets = secrets
        self._state_backend = state_backend or RedisStateBackend(config.state.namespace)

        self.cache = ArticleCache(
            backend=self._state_backend if config.cache.snapshot_enabled else None,
            snapshot_ttl_seconds=config.cache.snapshot_ttl_seconds,
        )
        self.seen = SeenRegistry(self._state_backend)
        self.history = HistoryLog(self._state_backend, max_entries=config.history.max_entries)
        self.bus = RefreshBus()

        self._ingestion = ingestion or create_ingestion_backend(config)
        self.coordinator = RefreshCoordinator(
            self._ingestion,
            self.cache,
            self.bus,
            config.refresh,
            stale_after_seconds=config.cache.stale_after_seconds,
        )

        if search_providers is None:
            search_providers = create_search_providers(config, secrets, self.cache)
        self._search_providers = list(search_providers)
        self.search_engine = SearchEngine(self._search_providers, config.search)

        self._feeds: list[FeedController] = []
        self._running = False
        self._tick_count = 0

    async def start(self) -> None:
        """Start the engine. Runs until shutdown signal received."""
        logger.info(
            "swipenews.starting",
            namespace=self._config.state.namespace,
            categories=len(self._config.refresh.categories),
            refresh_interval_s=self._config.refresh.interval_seconds,
            search_providers=self.search_engine.provider_names,
        )

        self._running = True
        self._register_signal_handlers()
        self.restore_state()

        try:
            while self._running:
                await self._tick()
                # Sleep until next refresh, but check for shutdown every second
                for _ in range(self._config.refresh.interval_seconds):
                    if not self._running:
                        break
                    await asyncio.sleep(1)
        except asyncio.CancelledError:
            logger.info("swipenews.cancelled")
        finally:
            await self.shutdown()

    def stop(self) -> None:
        self._request_shutdown()

    def restore_state(self) -> None:
        """Load seen URLs, history and cache snapshots from Redis."""
        try:
            seen = self.seen.load()
            entries = self.history.load()
            restored = self.cache.restore(self._config.refresh.categories)
            logger.info(
                "swipenews.state_restored",
                seen=seen,
                history=entries,
                cached_categories=restored,
            )
        except Exception as e:
            logger.error("swipenews.state_restore_failed", error=str(e), exc_info=True)

    async def open_feed(self, category: str) -> FeedController:
        """Start a feed session for category."""
        controller = FeedController(
            category,
            self.cache,
            self.seen,
            self.history,
            self.coordinator,
            self.bus,
            self._config.feed,
        )
        await controller.start()
        self._feeds.append(controller)
        logger.info("swipenews.feed_opened", category=category, sessions=len(self._feeds))
        return controller

    async def close_feed(self, controller: FeedController) -> None:
        await controller.close()
        if controller in self._feeds:
            self._feeds.remove(controller)

    async def search(self, query: str) -> SearchResult:
        return await self.search_engine.search(query)

    async def _tick(self) -> None:
        """Refresh every stale category once."""
        self._tick_count += 1
        tick_start = datetime.now(timezone.utc)

        try:
            events = await self.coordinator.refresh_all()
            self.seen.flush()
            self.history.flush()
            logger.debug(
                "swipenews.tick_complete",
                tick=self._tick_count,
                refreshed=len(events),
                cached_articles=self.cache.total_articles(),
            )
        except Exception as e:
            logger.error(
                "swipenews.tick_error",
                error=str(e),
                tick=self._tick_count,
                exc_info=True,
            )

        tick_duration = (datetime.now(timezone.utc) - tick_start).total_seconds()
        if tick_duration > 30:
            logger.info("swipenews.slow_tick", duration_s=round(tick_duration, 2))

    def _request_shutdown(self) -> None:
        """Signal handler: request graceful shutdown."""
        logger.info("swipenews.shutdown_requested")
        self._running = False

    def _register_signal_handlers(self) -> None:
        """Register SIGINT/SIGTERM handlers for graceful shutdown."""
        loop = asyncio.get_running_loop()
        for sig in (signal_mod.SIGINT, signal_mod.SIGTERM):
            loop.add_signal_handler(sig, self._request_shutdown)

    async def shutdown(self) -> None:
        """Graceful shutdown: end sessions, cancel fetches, close clients."""
        logger.info("swipenews.shutting_down")
        for controller in list(self._feeds):
            await self.close_feed(controller)
        await self.coordinator.shutdown()

        if not self.seen.flush():
            logger.warning("swipenews.seen_unflushed", pending=self.seen.pending_count)
        if not self.history.flush():
            logger.warning("swipenews.history_unflushed", pending=self.history.pending_count)

        for provider in self._search_providers:
            try:
                await provider.aclose()
            except Exception as e:
                logger.warning("swipenews.provider_close_failed", provider=provider.name, error=str(e))
        await self._ingestion.aclose()

        logger.info(
            "swipenews.final_stats",
            seen=self.seen.seen_count(),
            history=len(self.history),
            cached_articles=self.cache.total_articles(),
        )
        logger.info("swipenews.stopped")
        self._state_backend.close()
