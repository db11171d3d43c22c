"""Currents API search provider."""

from typing import Optional

import httpx
import structlog

from swipenews.config import Secrets
from swipenews.models import Article
from swipenews.news.base import ProviderError
from swipenews.news.http import HttpSearchProvider

logger = structlog.get_logger(__name__)

CURRENTS_SEARCH_URL = "https://api.currentsapi.services/v1/search"


class CurrentsSearchProvider(HttpSearchProvider):
    """Searches currentsapi.services (free tier: 600 requests/day)."""

    name = "currents"

    def __init__(self, secrets: Secrets, http: Optional[httpx.AsyncClient] = None):
        if not secrets.currents_api_key:
            raise ValueError(
                "CURRENTS_API_KEY is required when using the currents provider. "
                "Set it in .env or as an environment variable."
            )
        super().__init__(secrets.currents_api_key, http)

    async def search(self, query: str, language: str, limit: int) -> list[Article]:
        data = await self._get_json(
            CURRENTS_SEARCH_URL,
            {"keywords": query, "language": language, "apiKey": self._api_key},
        )
        if data.get("status") not in (None, "ok"):
            raise ProviderError(self.name, str(data.get("msg") or data.get("status")))

        articles = []
        for raw in data.get("news", [])[:limit]:
            if not raw.get("url") or not raw.get("title"):
                continue
            image = raw.get("image")
            articles.append(
                Article(
                    url=raw["url"],
                    title=raw["title"],
                    description=raw.get("description"),
                    image_url=image if image and image != "None" else None,
                    source=raw.get("author") or "Currents",
                    # "2026-10-18 09:12:44 +0000"
                    published_at=raw.get("published"),
                )
            )
        logger.debug("search.provider_results", provider=self.name, count=len(articles))
        return articles
