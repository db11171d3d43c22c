"""Article cache, refresh coordination and per-session feed control."""

from swipenews.feed.cache import ArticleCache
from swipenews.feed.controller import RECENTLY_SEEN, FeedController
from swipenews.feed.events import RefreshBus, Subscription
from swipenews.feed.refresh import RefreshCoordinator

__all__ = [
    "ArticleCache",
    "FeedController",
    "RECENTLY_SEEN",
    "RefreshBus",
    "RefreshCoordinator",
    "Subscription",
]
