"""Append-only log of swipe decisions."""

import threading
from datetime import datetime, timezone
from typing import Callable, Optional

import structlog

from swipenews.models import Article, Decision, HistoryEntry
from swipenews.state.redis_backend import RedisStateBackend

logger = structlog.get_logger(__name__)


class HistoryLog:
    """Ordered swipe history, most recent first.

    Repeated decisions on the same article are kept as separate entries.
    The log is unbounded unless max_entries is set. An entry is recorded in
    memory before it is persisted; a failed write is queued and retried, in
    order, ahead of the next append and on every flush.
    """

    def __init__(
        self,
        backend: Optional[RedisStateBackend] = None,
        max_entries: Optional[int] = None,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self._backend = backend
        self._max_entries = max_entries
        self._clock = clock
        self._entries: list[HistoryEntry] = []  # oldest first
        self._pending: list[HistoryEntry] = []
        self._lock = threading.Lock()

    def load(self) -> int:
        if self._backend is None:
            return len(self._entries)
        restored = self._backend.load_history()
        with self._lock:
            self._entries = restored + self._entries
            self._trim()
            count = len(self._entries)
        logger.info("history.loaded", count=count)
        return count

    def append(self, article: Article, decision: Decision) -> HistoryEntry:
        entry = HistoryEntry(article=article, decision=decision, timestamp=self._clock())
        with self._lock:
            self._entries.append(entry)
            self._trim()
            if self._backend is not None:
                self._pending.append(entry)
        self.flush()
        return entry

    def flush(self) -> bool:
        """Persist queued entries oldest first. Returns True when nothing is pending."""
        with self._lock:
            pending = list(self._pending)
        if not pending or self._backend is None:
            return True

        written = 0
        try:
            for entry in pending:
                self._backend.append_history(entry, max_entries=self._max_entries)
                written += 1
        except Exception as e:
            logger.warning(
                "history.persist_deferred",
                pending=len(pending) - written,
                error=str(e),
            )
        with self._lock:
            del self._pending[:written]

        if written < len(pending):
            return False
        if written > 1:
            logger.info("history.flushed", count=written)
        return True

    @property
    def pending_count(self) -> int:
        with self._lock:
            return len(self._pending)

    def all_entries(self) -> list[HistoryEntry]:
        """Every entry, most recent first."""
        with self._lock:
            return list(reversed(self._entries))

    def recently_seen(self, limit: Optional[int] = None) -> list[Article]:
        """Distinct articles ordered by their latest decision, newest first."""
        articles: list[Article] = []
        urls: set[str] = set()
        for entry in self.all_entries():
            if entry.article.url in urls:
                continue
            urls.add(entry.article.url)
            articles.append(entry.article)
            if limit is not None and len(articles) >= limit:
                break
        return articles

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _trim(self) -> None:
        if self._max_entries is not None and len(self._entries) > self._max_entries:
            del self._entries[: len(self._entries) - self._max_entries]
