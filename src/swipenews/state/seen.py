"""Permanent registry of articles the user has already swiped."""

import threading
from typing import Iterable, Optional

import structlog

from swipenews.models import Article
from swipenews.state.redis_backend import RedisStateBackend

logger = structlog.get_logger(__name__)


class SeenRegistry:
    """Monotonic set of seen article URLs, persisted on every mark.

    Entries are never removed. A mark whose backend write fails stays seen
    in memory and is queued; the queue is flushed before the next
    filter_unseen so a restart cannot resurface it once the backend recovers.
    """

    def __init__(self, backend: Optional[RedisStateBackend] = None):
        self._backend = backend
        self._seen: set[str] = set()
        self._pending: set[str] = set()
        self._lock = threading.Lock()

    def load(self) -> int:
        """Restore seen URLs from the backend. Returns the registry size."""
        if self._backend is None:
            return len(self._seen)
        restored = self._backend.load_seen()
        with self._lock:
            self._seen |= restored
            count = len(self._seen)
        logger.info("seen.loaded", count=count)
        return count

    def mark_seen(self, article: Article) -> bool:
        """Mark an article as seen forever. Returns False if it already was."""
        url = article.url
        with self._lock:
            if url in self._seen:
                return False
            self._seen.add(url)

        if self._backend is not None:
            try:
                self._backend.add_seen(url)
            except Exception as e:
                with self._lock:
                    self._pending.add(url)
                logger.warning("seen.persist_deferred", url=url, error=str(e))

        logger.debug("seen.marked", url=url, title=article.title[:80])
        return True

    def is_seen(self, article: Article) -> bool:
        with self._lock:
            return article.url in self._seen

    def filter_unseen(self, articles: Iterable[Article]) -> list[Article]:
        """Drop seen articles, preserving order.

        If every article has been seen, the full input is returned instead so
        the feed never goes blank.
        """
        self.flush()
        articles = list(articles)
        with self._lock:
            unseen = [a for a in articles if a.url not in self._seen]

        if articles and not unseen:
            logger.info("seen.all_seen_fallback", total=len(articles))
            return articles

        logger.debug("seen.filtered", total=len(articles), unseen=len(unseen))
        return unseen

    def flush(self) -> bool:
        """Retry persisting queued marks. Returns True when nothing is pending."""
        with self._lock:
            pending = sorted(self._pending)
        if not pending or self._backend is None:
            return True
        try:
            self._backend.add_seen(*pending)
        except Exception as e:
            logger.warning("seen.flush_failed", pending=len(pending), error=str(e))
            return False
        with self._lock:
            self._pending.difference_update(pending)
        logger.info("seen.flushed", count=len(pending))
        return True

    def seen_count(self) -> int:
        with self._lock:
            return len(self._seen)

    @property
    def pending_count(self) -> int:
        with self._lock:
            return len(self._pending)
