"""Search query validation."""

MIN_QUERY_LENGTH = 2
MAX_QUERY_LENGTH = 200

_ALLOWED_PUNCTUATION = " -\"'"


class QueryValidationError(ValueError):
    """Raised when a search query is rejected before any provider is called."""


def validate_query(query: str) -> str:
    """Return the trimmed query, or raise QueryValidationError.

    A valid query is 2-200 characters after trimming and contains only
    letters, digits, spaces, hyphens and quotes.
    """
    trimmed = (query or "").strip()
    if not trimmed:
        raise QueryValidationError("Search query is empty")
    if len(trimmed) < MIN_QUERY_LENGTH:
        raise QueryValidationError(
            f"Search query must be at least {MIN_QUERY_LENGTH} characters"
        )
    if len(trimmed) > MAX_QUERY_LENGTH:
        raise QueryValidationError(
            f"Search query must be at most {MAX_QUERY_LENGTH} characters"
        )
    invalid = sorted({ch for ch in trimmed if not (ch.isalnum() or ch in _ALLOWED_PUNCTUATION)})
    if invalid:
        raise QueryValidationError(
            f"Search query contains invalid characters: {''.join(invalid)}"
        )
    return trimmed
