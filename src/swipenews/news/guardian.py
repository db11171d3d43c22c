"""Guardian Open Platform content search provider."""

from typing import Optional

import httpx
import structlog

from swipenews.config import Secrets
from swipenews.models import Article
from swipenews.news.base import ProviderError
from swipenews.news.http import HttpSearchProvider

logger = structlog.get_logger(__name__)

GUARDIAN_SEARCH_URL = "https://content.guardianapis.com/search"


class GuardianSearchProvider(HttpSearchProvider):
    name = "guardian"

    def __init__(self, secrets: Secrets, http: Optional[httpx.AsyncClient] = None):
        if not secrets.guardian_api_key:
            raise ValueError(
                "GUARDIAN_API_KEY is required when using the guardian provider. "
                "Set it in .env or as an environment variable."
            )
        super().__init__(secrets.guardian_api_key, http)

    async def search(self, query: str, language: str, limit: int) -> list[Article]:
        # The Guardian only publishes in English; language is not a filter here.
        data = await self._get_json(
            GUARDIAN_SEARCH_URL,
            {
                "q": query,
                "page-size": limit,
                "order-by": "newest",
                "show-fields": "trailText,thumbnail",
                "api-key": self._api_key,
            },
        )
        response = data.get("response") or {}
        if response.get("status") != "ok":
            raise ProviderError(self.name, str(response.get("message") or data.get("message") or "bad response"))

        articles = []
        for raw in response.get("results", []):
            if not raw.get("webUrl") or not raw.get("webTitle"):
                continue
            fields = raw.get("fields") or {}
            articles.append(
                Article(
                    url=raw["webUrl"],
                    title=raw["webTitle"],
                    description=fields.get("trailText"),
                    image_url=fields.get("thumbnail"),
                    source="The Guardian",
                    published_at=raw.get("webPublicationDate"),
                )
            )
        logger.debug("search.provider_results", provider=self.name, count=len(articles))
        return articles
