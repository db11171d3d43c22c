"""Search over articles already held in the local cache."""

from typing import Iterable

import structlog

from swipenews.feed.cache import ArticleCache
from swipenews.models import Article
from swipenews.news.base import SearchProvider

logger = structlog.get_logger(__name__)


class CachedArticleSearchProvider(SearchProvider):
    """Case-insensitive substring match on title, description, content and source.

    Title matches rank ahead of body matches. Makes no network calls.
    """

    name = "cached"

    def __init__(self, cache: ArticleCache, categories: Iterable[str]):
        self._cache = cache
        self._categories = list(categories)

    async def search(self, query: str, language: str, limit: int) -> list[Article]:
        needle = query.lower()
        title_hits: list[Article] = []
        body_hits: list[Article] = []
        scanned = 0

        for category in self._categories:
            entry = self._cache.get(category)
            if entry is None:
                continue
            for article in entry.articles:
                scanned += 1
                if needle in article.title.lower():
                    title_hits.append(article)
                elif any(
                    needle in (text or "").lower()
                    for text in (article.description, article.content, article.source)
                ):
                    body_hits.append(article)

        results = (title_hits + body_hits)[:limit]
        logger.debug("search.cached_results", scanned=scanned, count=len(results))
        return results
