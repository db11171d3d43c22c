"""Redis-based state management backend."""

import os
from typing import Optional

import redis
import structlog

from swipenews.models import CacheEntry, HistoryEntry

logger = structlog.get_logger(__name__)


class RedisStateBackend:
    """Redis-backed persistence for the seen set, swipe history and cache snapshots.

    Storage structure:
    - Set `{namespace}:seen` of article URLs (SADD is idempotent)
    - List `{namespace}:history` of JSON HistoryEntry blobs, oldest first
    - String `{namespace}:cache:{category}` JSON CacheEntry with a TTL
    """

    def __init__(self, namespace: str = "swipenews", client: Optional[redis.Redis] = None):
        """
        Initialize Redis connection.

        Args:
            namespace: Key prefix for this reader profile
            client: Pre-built Redis client; built from REDIS_* env vars when omitted
        """
        self.SEEN_KEY = f"{namespace}:seen"
        self.HISTORY_KEY = f"{namespace}:history"
        self.CACHE_PREFIX = f"{namespace}:cache"
        self._namespace = namespace

        if client is None:
            redis_host = os.getenv("REDIS_HOST", "localhost")
            redis_port = int(os.getenv("REDIS_PORT", "6379"))
            redis_password = os.getenv("REDIS_PASSWORD")

            client = redis.Redis(
                host=redis_host,
                port=redis_port,
                password=redis_password,
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
            )

            logger.info(
                "redis.backend_initialized",
                namespace=namespace,
                host=redis_host,
                port=redis_port,
            )

        self._client = client

    # Seen set

    def add_seen(self, *urls: str) -> None:
        """Persist article URLs as seen."""
        if not urls:
            return
        try:
            self._client.sadd(self.SEEN_KEY, *urls)
        except Exception as e:
            logger.error(
                "redis.seen_save_failed",
                namespace=self._namespace,
                count=len(urls),
                error=str(e),
                exc_info=True,
            )
            raise

    def load_seen(self) -> set[str]:
        """Load every persisted seen URL."""
        members = self._client.smembers(self.SEEN_KEY)
        logger.info("redis.seen_loaded", namespace=self._namespace, count=len(members))
        return set(members)

    # History log

    def append_history(self, entry: HistoryEntry, max_entries: Optional[int] = None) -> None:
        """Append one history entry, trimming to the newest max_entries if set."""
        try:
            self._client.rpush(self.HISTORY_KEY, entry.model_dump_json())
            if max_entries is not None:
                self._client.ltrim(self.HISTORY_KEY, -max_entries, -1)
        except Exception as e:
            logger.error(
                "redis.history_save_failed",
                namespace=self._namespace,
                url=entry.article.url,
                error=str(e),
                exc_info=True,
            )
            raise

    def load_history(self) -> list[HistoryEntry]:
        """Load history entries in insertion order (oldest first)."""
        entries = []
        for raw in self._client.lrange(self.HISTORY_KEY, 0, -1):
            try:
                entries.append(HistoryEntry.model_validate_json(raw))
            except ValueError as e:
                logger.warning("redis.history_entry_skipped", error=str(e))
        return entries

    # Cache snapshots

    def save_cache_entry(self, entry: CacheEntry, ttl_seconds: int) -> None:
        """Persist a cache entry so the next launch can show it immediately."""
        key = f"{self.CACHE_PREFIX}:{entry.category}"
        try:
            self._client.setex(key, ttl_seconds, entry.model_dump_json())
            logger.debug(
                "redis.cache_saved",
                category=entry.category,
                articles=len(entry.articles),
            )
        except Exception as e:
            logger.error(
                "redis.cache_save_failed",
                category=entry.category,
                error=str(e),
                exc_info=True,
            )
            raise

    def load_cache_entry(self, category: str) -> Optional[CacheEntry]:
        """Load a cache snapshot, or None when missing or unreadable."""
        raw = self._client.get(f"{self.CACHE_PREFIX}:{category}")
        if raw is None:
            return None
        try:
            return CacheEntry.model_validate_json(raw)
        except ValueError as e:
            logger.error("redis.cache_parse_failed", category=category, error=str(e))
            return None

    def ping(self) -> bool:
        return bool(self._client.ping())

    def close(self) -> None:
        """Close Redis connection."""
        try:
            self._client.close()
            logger.debug("redis.connection_closed", namespace=self._namespace)
        except Exception as e:
            logger.warning("redis.close_failed", error=str(e))
