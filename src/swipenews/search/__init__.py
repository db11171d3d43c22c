"""Query validation and multi-provider search."""

from swipenews.search.engine import AllProvidersFailedError, SearchEngine, SearchResult
from swipenews.search.validation import QueryValidationError, validate_query

__all__ = [
    "AllProvidersFailedError",
    "QueryValidationError",
    "SearchEngine",
    "SearchResult",
    "validate_query",
]
