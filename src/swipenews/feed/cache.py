"""Per-category in-memory article store."""

import threading
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable, Optional

import structlog

from swipenews.models import Article, CacheEntry
from swipenews.state.redis_backend import RedisStateBackend

logger = structlog.get_logger(__name__)


class ArticleCache:
    """Latest fetch per category with its fetch timestamp.

    Entries are immutable and replaced wholesale on put, so a reader sees
    either the previous entry or the new one, never a mix. No size cap.

    When a backend is given, every put is snapshotted to it and restore()
    reloads the snapshots at startup with their original fetch times.
    """

    def __init__(
        self,
        backend: Optional[RedisStateBackend] = None,
        snapshot_ttl_seconds: int = 7 * 24 * 60 * 60,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self._backend = backend
        self._snapshot_ttl = snapshot_ttl_seconds
        self._clock = clock

    def get(self, category: str) -> Optional[CacheEntry]:
        with self._lock:
            return self._entries.get(category)

    def put(
        self,
        category: str,
        articles: Iterable[Article],
        fetched_at: Optional[datetime] = None,
    ) -> CacheEntry:
        """Replace the entry for a category."""
        entry = CacheEntry(
            category=category,
            articles=tuple(articles),
            fetched_at=fetched_at or self._clock(),
        )
        with self._lock:
            self._entries[category] = entry

        logger.debug("cache.stored", category=category, count=len(entry.articles))

        if self._backend is not None:
            try:
                self._backend.save_cache_entry(entry, self._snapshot_ttl)
            except Exception as e:
                # Memory entry stays authoritative
                logger.warning("cache.snapshot_failed", category=category, error=str(e))
        return entry

    def age_of(self, category: str) -> Optional[timedelta]:
        entry = self.get(category)
        if entry is None:
            return None
        return self._clock() - entry.fetched_at

    def clear(self, category: str) -> None:
        with self._lock:
            self._entries.pop(category, None)
        logger.debug("cache.cleared", category=category)

    def categories(self) -> list[str]:
        with self._lock:
            return list(self._entries)

    def total_articles(self) -> int:
        with self._lock:
            return sum(len(e.articles) for e in self._entries.values())

    def restore(self, categories: Iterable[str]) -> int:
        """Load snapshots for categories not already in memory. Returns count restored."""
        if self._backend is None:
            return 0

        restored = 0
        for category in categories:
            if self.get(category) is not None:
                continue
            try:
                entry = self._backend.load_cache_entry(category)
            except Exception as e:
                logger.warning("cache.restore_failed", category=category, error=str(e))
                continue
            if entry is None:
                continue
            with self._lock:
                self._entries.setdefault(category, entry)
            restored += 1

        if restored:
            logger.info(
                "cache.restored",
                categories=restored,
                articles=self.total_articles(),
            )
        return restored
