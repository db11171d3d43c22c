"""Shared HTTP plumbing for JSON search APIs."""

from typing import Any, Optional

import httpx
import structlog

from swipenews.news.base import ProviderError, SearchProvider

logger = structlog.get_logger(__name__)


class HttpSearchProvider(SearchProvider):
    """Search provider backed by a JSON HTTP API.

    Subclasses build the request and map the payload; this class turns
    transport and status failures into ProviderError. HTTP 429 is reported
    with rate-limit wording so callers can show the rate-limited message.
    """

    def __init__(self, api_key: str, http: Optional[httpx.AsyncClient] = None):
        self._api_key = api_key
        self._http = http or httpx.AsyncClient(timeout=10.0)

    async def _get_json(self, url: str, params: dict[str, Any]) -> Any:
        try:
            response = await self._http.get(url, params=params)
        except httpx.HTTPError as e:
            raise ProviderError(self.name, f"request failed: {e}") from e

        if response.status_code == 429:
            raise ProviderError(self.name, "rate limit exceeded (HTTP 429)")
        if response.status_code >= 400:
            raise ProviderError(self.name, f"HTTP {response.status_code}")

        try:
            return response.json()
        except ValueError as e:
            raise ProviderError(self.name, f"invalid JSON: {e}") from e

    async def aclose(self) -> None:
        await self._http.aclose()
