"""Coordinates fetches from the ingestion backend into the article cache."""

import asyncio
import time
import weakref
from typing import Callable, Iterable, Optional

import structlog

from swipenews.config import RefreshConfig
from swipenews.feed.cache import ArticleCache
from swipenews.feed.events import RefreshBus
from swipenews.models import RefreshEvent, RefreshState
from swipenews.news.base import IngestionBackend

logger = structlog.get_logger(__name__)


class RefreshCoordinator:
    """Single writer of ArticleCache entries.

    At most one fetch task exists per category. A scheduled refresh joins a
    fetch already in flight; a forced refresh cancels it and starts over.
    A fetch is abandoned only when its last waiter is cancelled, so one
    session leaving a category never stalls another session waiting on the
    same fetch. A cancelled fetch never touches the cache. Every completed
    attempt, successful or not, is published on the RefreshBus.
    """

    def __init__(
        self,
        backend: IngestionBackend,
        cache: ArticleCache,
        bus: RefreshBus,
        config: RefreshConfig,
        stale_after_seconds: float = 1800,
        monotonic: Callable[[], float] = time.monotonic,
    ):
        self._backend = backend
        self._cache = cache
        self._bus = bus
        self._config = config
        self._stale_after = stale_after_seconds
        self._monotonic = monotonic
        self._tasks: dict[str, asyncio.Task] = {}
        self._last_attempt: dict[str, float] = {}
        self._successors: weakref.WeakKeyDictionary = weakref.WeakKeyDictionary()
        self._waiters: weakref.WeakKeyDictionary = weakref.WeakKeyDictionary()

    def state(self, category: str) -> RefreshState:
        if self._in_flight(category) is not None:
            return RefreshState.FETCHING
        return RefreshState.IDLE

    async def scheduled_refresh_if_stale(
        self,
        category: str,
        stale_after: Optional[float] = None,
    ) -> Optional[RefreshEvent]:
        """Fetch only if the category is absent or older than stale_after seconds.

        A stale entry is not refetched within min_fetch_interval_seconds of
        the last attempt; an absent one always is. Returns the resulting
        event, or None when no fetch was needed.
        """
        in_flight = self._in_flight(category)
        if in_flight is not None:
            logger.debug("refresh.join_in_flight", category=category)
            return await self._await(category, in_flight)

        age = self._cache.age_of(category)
        if age is not None:
            if stale_after is None:
                stale_after = self._stale_after
            if age.total_seconds() <= stale_after:
                logger.debug(
                    "refresh.fresh_skip",
                    category=category,
                    age_s=round(age.total_seconds()),
                )
                return None

            last = self._last_attempt.get(category)
            if last is not None and self._monotonic() - last < self._config.min_fetch_interval_seconds:
                logger.debug("refresh.debounced", category=category)
                return None

        return await self._await(category, self._start(category, forced=False))

    async def force_refresh(self, category: str) -> Optional[RefreshEvent]:
        """Fetch unconditionally, superseding any fetch in flight."""
        in_flight = self._in_flight(category)
        task = self._start(category, forced=True)
        if in_flight is not None:
            self._successors[in_flight] = task
            in_flight.cancel()
            logger.info("refresh.superseded", category=category)
        return await self._await(category, task)

    def cancel(self, category: str) -> bool:
        """Cancel the in-flight fetch for a category. Returns True if one was running.

        This stops the fetch for every waiter; sessions that only want to
        stop waiting cancel their own request instead.
        """
        in_flight = self._in_flight(category)
        if in_flight is None:
            return False
        in_flight.cancel()
        self._last_attempt.pop(category, None)
        logger.info("refresh.cancel_requested", category=category)
        return True

    async def refresh_all(
        self,
        categories: Optional[Iterable[str]] = None,
        force: bool = False,
    ) -> list[RefreshEvent]:
        """Refresh every configured category concurrently."""
        categories = list(categories or self._config.categories)
        if force:
            coros = [self.force_refresh(c) for c in categories]
        else:
            coros = [self.scheduled_refresh_if_stale(c) for c in categories]
        results = await asyncio.gather(*coros)
        events = [e for e in results if e is not None]
        logger.info(
            "refresh.all_complete",
            requested=len(categories),
            fetched=len(events),
            failed=sum(1 for e in events if not e.ok),
        )
        return events

    async def shutdown(self) -> None:
        tasks = [t for t in self._tasks.values() if not t.done()]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.wait(tasks)

    def _in_flight(self, category: str) -> Optional[asyncio.Task]:
        task = self._tasks.get(category)
        if task is None or task.done() or task.cancelling():
            return None
        return task

    def _start(self, category: str, forced: bool) -> asyncio.Task:
        self._last_attempt[category] = self._monotonic()
        task = asyncio.create_task(self._run(category, forced), name=f"refresh:{category}")
        self._tasks[category] = task
        task.add_done_callback(lambda t: self._forget(category, t))
        return task

    def _forget(self, category: str, task: asyncio.Task) -> None:
        if self._tasks.get(category) is task:
            del self._tasks[category]

    async def _await(self, category: str, task: asyncio.Task) -> Optional[RefreshEvent]:
        # asyncio.wait neither raises for a cancelled task nor cancels it
        # when the caller is cancelled. A superseded task hands waiters on
        # to the forced fetch that replaced it.
        while True:
            self._waiters[task] = self._waiters.get(task, 0) + 1
            try:
                await asyncio.wait({task})
            except asyncio.CancelledError:
                self._leave(category, task, abandon=True)
                raise
            self._leave(category, task, abandon=False)
            if not task.cancelled():
                return task.result()
            task = self._successors.get(task)
            if task is None:
                return None

    def _leave(self, category: str, task: asyncio.Task, abandon: bool) -> None:
        remaining = self._waiters.get(task, 1) - 1
        if remaining > 0:
            self._waiters[task] = remaining
            return
        self._waiters.pop(task, None)
        if abandon and not task.done():
            task.cancel()
            if self._tasks.get(category) is task:
                self._last_attempt.pop(category, None)
            logger.info("refresh.abandoned", category=category)

    async def _run(self, category: str, forced: bool) -> Optional[RefreshEvent]:
        started = self._monotonic()
        logger.info("refresh.started", category=category, forced=forced)
        try:
            articles = await self._backend.fetch_category(category)
        except asyncio.CancelledError:
            logger.info("refresh.cancelled", category=category)
            raise
        except Exception as e:
            logger.error(
                "refresh.failed",
                category=category,
                forced=forced,
                error=str(e),
            )
            event = RefreshEvent(
                category=category,
                error=str(e) or type(e).__name__,
                forced=forced,
            )
            self._bus.publish(event)
            return event

        if self._tasks.get(category) is not asyncio.current_task():
            logger.info("refresh.discarded_superseded", category=category)
            return None

        entry = self._cache.put(category, articles)
        event = RefreshEvent(
            category=category,
            count=len(entry.articles),
            fetched_at=entry.fetched_at,
            forced=forced,
        )
        self._bus.publish(event)
        logger.info(
            "refresh.completed",
            category=category,
            count=event.count,
            forced=forced,
            duration_s=round(self._monotonic() - started, 2),
        )
        return event
