"""Storage-bucket client for the per-category ingestion output."""

from typing import Optional

import httpx
import structlog
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from swipenews.config import IngestionConfig
from swipenews.models import Article
from swipenews.news.base import IngestionBackend, IngestionError

logger = structlog.get_logger(__name__)


class StorageIngestionClient(IngestionBackend):
    """Downloads `news_{category}.json` files written by the ingestion pipeline.

    Payload format:
        {"category": str, "updated_at": str,
         "articles": [{"title", "url", "summary", "image", "published_at"}]}
    """

    def __init__(self, config: IngestionConfig, http: Optional[httpx.AsyncClient] = None):
        self._base_url = config.base_url
        self._http = http or httpx.AsyncClient(timeout=config.timeout_seconds)

    async def fetch_category(self, category: str) -> list[Article]:
        """Fetch one category batch. Raises IngestionError on any failure."""
        url = f"{self._base_url}{category}.json"
        try:
            response = await self._download(url)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(
                "ingestion.http_error",
                category=category,
                status=e.response.status_code,
            )
            raise IngestionError(f"HTTP {e.response.status_code} for {category}") from e
        except (httpx.HTTPError, ValueError) as e:
            logger.error("ingestion.fetch_failed", category=category, error=str(e))
            raise IngestionError(f"Failed to fetch {category}: {e}") from e

        raw_articles = payload.get("articles") if isinstance(payload, dict) else None
        if not isinstance(raw_articles, list):
            raise IngestionError(f"Malformed payload for {category}: missing articles")

        articles = []
        skipped = 0
        for raw in raw_articles:
            article = self._normalize_article(raw)
            if article is None:
                skipped += 1
                continue
            articles.append(article)

        logger.info(
            "ingestion.fetched",
            category=category,
            updated_at=payload.get("updated_at"),
            count=len(articles),
            skipped=skipped,
        )
        return articles

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=2, min=2, max=8),
        retry=retry_if_exception_type(httpx.TransportError),
        reraise=True,
    )
    async def _download(self, url: str) -> httpx.Response:
        """GET with retry on transport errors only (2s, 4s backoff)."""
        logger.debug("ingestion.download_attempt", url=url)
        return await self._http.get(url, params={"alt": "media"}, headers={"Cache-Control": "no-cache"})

    def _normalize_article(self, raw: dict) -> Optional[Article]:
        """Convert a pipeline article to our domain model. None if unusable."""
        if not isinstance(raw, dict):
            return None
        title = (raw.get("title") or "").strip()
        url = (raw.get("url") or "").strip()
        if not title or not url:
            return None

        summary = raw.get("summary") or title
        return Article(
            url=url,
            title=title,
            description=summary,
            image_url=raw.get("image"),
            source=raw.get("source") or "News",
            published_at=raw.get("published_at"),
        )

    async def aclose(self) -> None:
        await self._http.aclose()
