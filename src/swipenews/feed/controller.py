"""Per-session feed controller for one category."""

import asyncio
from typing import Callable, Optional

import structlog

from swipenews.config import FeedConfig
from swipenews.feed.cache import ArticleCache
from swipenews.feed.events import RefreshBus, Subscription
from swipenews.feed.refresh import RefreshCoordinator
from swipenews.logging_config import get_decision_logger
from swipenews.models import Article, Decision, FeedState, RefreshEvent, is_rate_limit_message
from swipenews.state.history import HistoryLog
from swipenews.state.seen import SeenRegistry

logger = structlog.get_logger(__name__)

RECENTLY_SEEN = "recently_seen"

ChangeCallback = Callable[["FeedController"], None]


class FeedController:
    """Owns the visible article list for one category session.

    The controller never fetches by itself: it reads ArticleCache, filters
    through SeenRegistry, and re-reads the cache whenever a refresh event for
    its category arrives. Refreshes it needs (session start, category change,
    pull-to-refresh, load-more) are requested from the RefreshCoordinator as
    a single loading task, which is cancelled on category change and close.

    State: IDLE -> LOADING -> READY, or ERROR when a refresh fails and there
    is nothing to show. A failure never clears the displayed list; it sets
    error_message instead.
    """

    def __init__(
        self,
        category: str,
        cache: ArticleCache,
        seen: SeenRegistry,
        history: HistoryLog,
        coordinator: RefreshCoordinator,
        bus: RefreshBus,
        config: FeedConfig,
    ):
        self._category = category
        self._cache = cache
        self._seen = seen
        self._history = history
        self._coordinator = coordinator
        self._bus = bus
        self._config = config
        self._decision_log = get_decision_logger()

        self._state = FeedState.IDLE
        self._articles: list[Article] = []
        self._error_message: Optional[str] = None
        self._index = 0
        self._load_more_fired = False
        self._batch_landed_since_fire = False
        self._refreshing = False

        self._subscription: Optional[Subscription] = None
        self._listener_task: Optional[asyncio.Task] = None
        self._loading_task: Optional[asyncio.Task] = None
        self._callbacks: list[ChangeCallback] = []

    # Presentation surface

    @property
    def category(self) -> str:
        return self._category

    @property
    def state(self) -> FeedState:
        return self._state

    @property
    def is_loading(self) -> bool:
        return self._state is FeedState.LOADING or self._refreshing

    @property
    def error_message(self) -> Optional[str]:
        return self._error_message

    @property
    def is_rate_limited(self) -> bool:
        return is_rate_limit_message(self._error_message)

    @property
    def current_index(self) -> int:
        return self._index

    @property
    def load_more_fired(self) -> bool:
        return self._load_more_fired

    def current_articles(self) -> list[Article]:
        return list(self._articles)

    def current_article(self) -> Optional[Article]:
        if self._index < len(self._articles):
            return self._articles[self._index]
        return None

    def subscribe(self, callback: ChangeCallback) -> Callable[[], None]:
        """Register a change callback. Returns a function that removes it."""
        self._callbacks.append(callback)

        def unsubscribe() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return unsubscribe

    # Session lifecycle

    async def start(self) -> None:
        """Begin listening for refresh events and show whatever is cached."""
        if self._listener_task is None:
            self._subscription = self._bus.subscribe()
            self._listener_task = asyncio.create_task(
                self._listen(), name=f"feed-listener:{id(self)}"
            )
        self.load_articles()
        self._request_refresh(forced=False, silent=True)

    async def close(self) -> None:
        """End the session: cancel loading and stop listening."""
        self._cancel_loading()
        if self._listener_task is not None:
            self._listener_task.cancel()
            await asyncio.wait({self._listener_task})
            self._listener_task = None
        if self._subscription is not None:
            self._subscription.close()
            self._subscription = None
        logger.debug("feed.closed", category=self._category)

    # Operations

    def load_articles(self) -> FeedState:
        """Populate the visible list from the cache.

        On a miss the controller stays LOADING until a refresh event arrives.
        """
        if self._category == RECENTLY_SEEN:
            self._replace_articles(self._history.recently_seen())
            self._error_message = None
            self._set_state(FeedState.READY)
            return self._state

        entry = self._cache.get(self._category)
        if entry is None:
            if not self._articles:
                self._set_state(FeedState.LOADING)
            return self._state

        self._replace_articles(self._seen.filter_unseen(entry.articles))
        self._error_message = None
        self._set_state(FeedState.READY)
        logger.debug(
            "feed.loaded",
            category=self._category,
            cached=len(entry.articles),
            visible=len(self._articles),
            index=self._index,
        )
        return self._state

    def change_category(self, category: str) -> None:
        """Switch this session to another category, starting from the top."""
        if category == self._category:
            logger.debug("feed.category_unchanged", category=category)
            return

        old = self._category
        self._cancel_loading()
        self._category = category
        self._articles = []
        self._index = 0
        self._load_more_fired = False
        self._batch_landed_since_fire = False
        self._error_message = None
        self._set_state(FeedState.IDLE)
        logger.info("feed.category_changed", old=old, new=category)

        self.load_articles()
        self._request_refresh(forced=False, silent=True)

    async def refresh(self, forced: bool = False) -> Optional[RefreshEvent]:
        """Ask the coordinator for fresh content and wait for the outcome.

        Returns None if no fetch was needed or the request was cancelled.
        """
        if self._category == RECENTLY_SEEN:
            self.load_articles()
            return None
        task = self._request_refresh(forced=forced, silent=False)
        if task is None:
            return None
        await asyncio.wait({task})
        if task.cancelled():
            return None
        return task.result()

    def advance(self, article: Article, decision: Decision) -> bool:
        """Record a swipe and move to the next card.

        Returns True when this swipe fired the load-more prefetch.
        """
        if self._config.permanent_exclusion:
            self._seen.mark_seen(article)
        self._history.append(article, decision)

        self._decision_log.info(
            "feed.decision",
            category=self._category,
            decision=decision.value,
            url=article.url,
            title=article.title[:80],
        )

        self._index += 1
        fired = self._check_load_more()
        self._notify()
        return fired

    # Internals

    def _check_load_more(self) -> bool:
        if self._category == RECENTLY_SEEN:
            return False

        position = self._index  # 1-based position of the card just swiped
        total = len(self._articles)

        if (
            self._load_more_fired
            and self._batch_landed_since_fire
            and total > position + self._config.batch_reset_margin
        ):
            self._load_more_fired = False
            self._batch_landed_since_fire = False
            logger.debug("feed.load_more_rearmed", position=position, total=total)

        if position >= self._config.load_more_trigger and not self._load_more_fired:
            self._load_more_fired = True
            self._batch_landed_since_fire = False
            logger.info(
                "feed.load_more",
                category=self._category,
                position=position,
                total=total,
            )
            self._request_refresh(forced=True, silent=True)
            return True
        return False

    def _request_refresh(self, forced: bool, silent: bool) -> Optional[asyncio.Task]:
        if self._category == RECENTLY_SEEN:
            return None
        if self._loading_task is not None and not self._loading_task.done():
            if not forced:
                return self._loading_task
            self._loading_task.cancel()

        category = self._category
        if forced:
            coro = self._coordinator.force_refresh(category)
        else:
            coro = self._coordinator.scheduled_refresh_if_stale(category)

        self._refreshing = not silent
        task = asyncio.create_task(coro, name=f"feed-refresh:{category}")
        task.add_done_callback(self._loading_done)
        self._loading_task = task
        if not silent:
            self._notify()
        return task

    def _loading_done(self, task: asyncio.Task) -> None:
        if task is self._loading_task:
            self._loading_task = None
            if self._refreshing:
                self._refreshing = False
                self._notify()

    def _cancel_loading(self) -> None:
        # Only this session's request is cancelled; the coordinator drops the
        # fetch itself once no other session is waiting on it.
        task = self._loading_task
        if task is None or task.done():
            return
        task.cancel()
        self._loading_task = None
        self._refreshing = False
        logger.info("feed.loading_cancelled", category=self._category)

    async def _listen(self) -> None:
        assert self._subscription is not None
        async for event in self._subscription:
            if event.category != self._category:
                continue
            try:
                self._handle_event(event)
            except Exception as e:
                logger.error(
                    "feed.event_handling_failed",
                    category=self._category,
                    error=str(e),
                    exc_info=True,
                )

    def _handle_event(self, event: RefreshEvent) -> None:
        if event.ok:
            self._batch_landed_since_fire = True
            self.load_articles()
            return

        # Re-read the cache: a stale entry beats an empty feed
        self.load_articles()
        self._error_message = event.error or "Failed to refresh articles"
        if not self._articles:
            self._set_state(FeedState.ERROR)
        logger.warning(
            "feed.refresh_error",
            category=self._category,
            error=self._error_message,
            visible=len(self._articles),
            rate_limited=self.is_rate_limited,
        )
        self._notify()

    def _replace_articles(self, articles: list[Article]) -> None:
        # Keep the card on screen in place when it survives the reload
        current = self.current_article()
        self._articles = list(articles)
        if current is not None and current in self._articles:
            self._index = self._articles.index(current)
        else:
            self._index = 0

    def _set_state(self, state: FeedState) -> None:
        if state is not self._state:
            logger.debug(
                "feed.state_changed",
                category=self._category,
                old=self._state.value,
                new=state.value,
            )
            self._state = state
        self._notify()

    def _notify(self) -> None:
        for callback in list(self._callbacks):
            try:
                callback(self)
            except Exception as e:
                logger.error("feed.callback_failed", error=str(e), exc_info=True)
