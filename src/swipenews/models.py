"""Domain models for the swipenews data layer."""

from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

_FALLBACK_DATE_FORMATS = ("%Y-%m-%d %H:%M:%S %z", "%Y-%m-%d %H:%M:%S", "%a, %d %b %Y %H:%M:%S")


def parse_published_at(value: Any) -> Optional[datetime]:
    """Parse a provider timestamp into an aware UTC datetime.

    Accepts ISO 8601 (with or without fractional seconds and ``Z``),
    RFC 822 as used by RSS feeds, and a bare ``YYYY-MM-DD HH:MM:SS``.
    Returns None when the value cannot be parsed.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    elif isinstance(value, str):
        text = value.strip()
        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            try:
                parsed = parsedate_to_datetime(text)
            except (TypeError, ValueError):
                parsed = None
            if parsed is None:
                for fmt in _FALLBACK_DATE_FORMATS:
                    try:
                        parsed = datetime.strptime(text, fmt)
                        break
                    except ValueError:
                        continue
            if parsed is None:
                return None
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


class Decision(str, Enum):
    SKIP = "skip"
    READ = "read"


class Article(BaseModel):
    """Normalized news article. Identity is the canonical URL."""

    url: str
    title: str
    description: Optional[str] = None
    content: Optional[str] = None
    image_url: Optional[str] = None
    source: str = "unknown"
    published_at: Optional[datetime] = None

    model_config = {"frozen": True}

    @field_validator("published_at", mode="before")
    @classmethod
    def parse_timestamp(cls, v):
        return parse_published_at(v)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Article):
            return NotImplemented
        return self.url == other.url

    def __hash__(self) -> int:
        return hash(self.url)


class CacheEntry(BaseModel):
    """Most recent fetch for one category, in ingestion order."""

    category: str
    articles: tuple[Article, ...]
    fetched_at: datetime

    model_config = {"frozen": True}


class HistoryEntry(BaseModel):
    """One swipe decision."""

    article: Article
    decision: Decision
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    model_config = {"frozen": True}


class RefreshEvent(BaseModel):
    """Completion signal broadcast after every refresh attempt."""

    category: str
    count: int = 0
    fetched_at: Optional[datetime] = None
    error: Optional[str] = None
    forced: bool = False

    model_config = {"frozen": True}

    @property
    def ok(self) -> bool:
        return self.error is None


class FeedState(str, Enum):
    IDLE = "IDLE"
    LOADING = "LOADING"
    READY = "READY"
    ERROR = "ERROR"


class RefreshState(str, Enum):
    IDLE = "IDLE"
    FETCHING = "FETCHING"


_RATE_LIMIT_PHRASES = ("rate limit", "api limit", "daily limit", "too many requests")


def is_rate_limit_message(message: Optional[str]) -> bool:
    """True when an error message reads like a provider rate-limit response."""
    if not message:
        return False
    lowered = message.lower()
    return any(phrase in lowered for phrase in _RATE_LIMIT_PHRASES)
