"""Multi-provider news search with fallback and post-processing."""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Callable, Sequence

import structlog
from pydantic import BaseModel

from swipenews.config import SearchConfig
from swipenews.models import Article, is_rate_limit_message
from swipenews.news.base import ProviderError, ProviderTimeoutError, SearchProvider
from swipenews.search.validation import validate_query

logger = structlog.get_logger(__name__)


class AllProvidersFailedError(Exception):
    """Raised when no search provider returned successfully."""

    def __init__(self, errors: dict[str, str]):
        self.errors = dict(errors)
        detail = "; ".join(f"{name}: {msg}" for name, msg in self.errors.items())
        super().__init__(f"All search providers failed ({detail or 'none configured'})")

    @property
    def rate_limited(self) -> bool:
        return any(is_rate_limit_message(msg) for msg in self.errors.values())


class SearchResult(BaseModel):
    """Outcome of one search. An empty article list is a valid result."""

    query: str
    articles: list[Article]
    providers_succeeded: list[str]
    providers_failed: list[str]

    @property
    def is_empty(self) -> bool:
        return not self.articles


class SearchEngine:
    """Runs a query through providers in priority order.

    Each provider is raced against a timeout. The chain stops early once
    enough raw results have accumulated. Results are then filtered to the
    freshness window, de-duplicated by URL and sorted newest first.
    """

    def __init__(
        self,
        providers: Sequence[SearchProvider],
        config: SearchConfig,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self._providers = list(providers)
        self._config = config
        self._clock = clock

    @property
    def provider_names(self) -> list[str]:
        return [p.name for p in self._providers]

    async def search(self, query: str) -> SearchResult:
        """Search all providers for query.

        Raises:
            QueryValidationError: If the query is malformed. No provider is called.
            AllProvidersFailedError: If every provider failed or timed out.
        """
        trimmed = validate_query(query)
        log = logger.bind(query=trimmed)

        collected: list[Article] = []
        succeeded: list[str] = []
        errors: dict[str, str] = {}

        for provider in self._providers:
            try:
                articles = await self._call_provider(provider, trimmed)
            except ProviderTimeoutError as e:
                log.warning("search.provider_timeout", provider=provider.name)
                errors[provider.name] = e.message
                continue
            except ProviderError as e:
                log.warning("search.provider_failed", provider=provider.name, error=e.message)
                errors[provider.name] = e.message
                continue
            except Exception as e:
                log.error(
                    "search.provider_error",
                    provider=provider.name,
                    error=str(e),
                    exc_info=True,
                )
                errors[provider.name] = str(e) or type(e).__name__
                continue

            succeeded.append(provider.name)
            collected.extend(articles)
            log.debug(
                "search.provider_succeeded",
                provider=provider.name,
                count=len(articles),
                total=len(collected),
            )
            if len(collected) >= self._config.early_exit_threshold:
                log.debug("search.early_exit", provider=provider.name, total=len(collected))
                break

        if not succeeded:
            error = AllProvidersFailedError(errors)
            log.error(
                "search.all_providers_failed",
                providers=list(errors),
                rate_limited=error.rate_limited,
            )
            raise error

        articles = self._post_process(collected)
        log.info(
            "search.completed",
            raw=len(collected),
            count=len(articles),
            succeeded=succeeded,
            failed=list(errors),
        )
        return SearchResult(
            query=trimmed,
            articles=articles,
            providers_succeeded=succeeded,
            providers_failed=list(errors),
        )

    async def _call_provider(self, provider: SearchProvider, query: str) -> list[Article]:
        timeout = self._config.provider_timeout_seconds
        try:
            return await asyncio.wait_for(
                provider.search(query, self._config.language, self._config.limit),
                timeout=timeout,
            )
        except asyncio.TimeoutError as e:
            raise ProviderTimeoutError(provider.name, f"timed out after {timeout}s") from e

    def _post_process(self, articles: list[Article]) -> list[Article]:
        cutoff = self._clock() - timedelta(hours=self._config.freshness_hours)
        fresh = [a for a in articles if a.published_at is not None and a.published_at >= cutoff]

        unique: list[Article] = []
        urls: set[str] = set()
        for article in fresh:
            if article.url in urls:
                continue
            urls.add(article.url)
            unique.append(article)

        # sort() is stable: equal timestamps keep provider order
        unique.sort(key=lambda a: a.published_at, reverse=True)
        return unique
