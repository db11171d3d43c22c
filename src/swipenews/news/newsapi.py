"""NewsAPI.org `everything` endpoint provider."""

from typing import Optional

import httpx
import structlog

from swipenews.config import Secrets
from swipenews.models import Article
from swipenews.news.base import ProviderError
from swipenews.news.http import HttpSearchProvider

logger = structlog.get_logger(__name__)

NEWSAPI_EVERYTHING_URL = "https://newsapi.org/v2/everything"


class NewsAPISearchProvider(HttpSearchProvider):
    """Searches newsapi.org, newest first."""

    name = "newsapi"

    def __init__(self, secrets: Secrets, http: Optional[httpx.AsyncClient] = None):
        if not secrets.newsapi_api_key:
            raise ValueError(
                "NEWSAPI_API_KEY is required when using the newsapi provider. "
                "Set it in .env or as an environment variable."
            )
        super().__init__(secrets.newsapi_api_key, http)

    async def search(self, query: str, language: str, limit: int) -> list[Article]:
        data = await self._get_json(
            NEWSAPI_EVERYTHING_URL,
            {
                "q": query,
                "language": language,
                "pageSize": limit,
                "sortBy": "publishedAt",
                "apiKey": self._api_key,
            },
        )
        if data.get("status") == "error":
            # e.g. code=rateLimited, message="You have made too many requests..."
            raise ProviderError(self.name, f"{data.get('code', 'error')}: {data.get('message', '')}")

        articles = []
        for raw in data.get("articles", []):
            # Deleted upstream items come back as "[Removed]"
            if not raw.get("url") or not raw.get("title") or raw.get("title") == "[Removed]":
                continue
            articles.append(
                Article(
                    url=raw["url"],
                    title=raw["title"],
                    description=raw.get("description"),
                    content=raw.get("content"),
                    image_url=raw.get("urlToImage"),
                    source=(raw.get("source") or {}).get("name") or "NewsAPI",
                    published_at=raw.get("publishedAt"),
                )
            )
        logger.debug("search.provider_results", provider=self.name, count=len(articles))
        return articles
