"""Abstract interfaces for the ingestion backend and search providers."""

from abc import ABC, abstractmethod

from swipenews.models import Article


class ProviderError(Exception):
    """Raised when a search provider call fails upstream."""

    def __init__(self, provider: str, message: str):
        super().__init__(f"{provider}: {message}")
        self.provider = provider
        self.message = message


class ProviderTimeoutError(ProviderError):
    """Raised when a search provider exceeds its time budget."""


class IngestionError(Exception):
    """Raised when the ingestion backend cannot deliver a category batch."""


class IngestionBackend(ABC):
    """Source of raw article batches per category."""

    @abstractmethod
    async def fetch_category(self, category: str) -> list[Article]:
        """Fetch the current batch for a category, in ingestion order.

        Raises:
            IngestionError: If the batch cannot be downloaded or decoded.
        """
        ...

    async def aclose(self) -> None:
        """Release network resources."""


class SearchProvider(ABC):
    """Interface for full-text news search against one external service."""

    name: str = "provider"

    @abstractmethod
    async def search(self, query: str, language: str, limit: int) -> list[Article]:
        """Search for articles matching query.

        Raises:
            ProviderError: If the upstream call fails.
        """
        ...

    async def aclose(self) -> None:
        """Release network resources."""
