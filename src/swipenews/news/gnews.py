"""GNews search API provider."""

from typing import Optional

import httpx
import structlog

from swipenews.config import Secrets
from swipenews.models import Article
from swipenews.news.http import HttpSearchProvider

logger = structlog.get_logger(__name__)

GNEWS_SEARCH_URL = "https://gnews.io/api/v4/search"


class GNewsSearchProvider(HttpSearchProvider):
    """Searches gnews.io (free tier: 100 requests/day, max 10 per call)."""

    name = "gnews"

    def __init__(self, secrets: Secrets, http: Optional[httpx.AsyncClient] = None):
        if not secrets.gnews_api_key:
            raise ValueError(
                "GNEWS_API_KEY is required when using the gnews provider. "
                "Set it in .env or as an environment variable."
            )
        super().__init__(secrets.gnews_api_key, http)

    async def search(self, query: str, language: str, limit: int) -> list[Article]:
        data = await self._get_json(
            GNEWS_SEARCH_URL,
            {
                "q": query,
                "lang": language,
                "max": min(limit, 10),
                "sortby": "publishedAt",
                "apikey": self._api_key,
            },
        )
        articles = [self._normalize_article(raw) for raw in data.get("articles", [])]
        articles = [a for a in articles if a is not None]
        logger.debug("search.provider_results", provider=self.name, count=len(articles))
        return articles

    def _normalize_article(self, raw: dict) -> Optional[Article]:
        """Convert a GNews article to our domain model."""
        if not raw.get("url") or not raw.get("title"):
            return None
        return Article(
            url=raw["url"],
            title=raw["title"],
            description=raw.get("description"),
            content=raw.get("content"),
            image_url=raw.get("image"),
            source=(raw.get("source") or {}).get("name") or "GNews",
            published_at=raw.get("publishedAt"),
        )
