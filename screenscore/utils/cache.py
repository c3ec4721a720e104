"""
Caching Utilities
=================
Process-local cache used by the catalog service for genre maps and
short-lived TMDB responses.

Features:
- In-memory cache with TTL (Time To Live)
- Injectable clock so expiry can be driven from tests
- Explicit invalidation (key prefix or everything)
- LRU (Least Recently Used) eviction

Usage:
    from screenscore.utils.cache import CacheStore

    genres = CacheStore(max_size=16, default_ttl=86400)
    genres.set("movie", {28: "Action"})
    genres.get("movie")
    genres.invalidate_prefix("movie")
"""
from typing import Any, Callable, Optional, Tuple
from collections import OrderedDict
from datetime import datetime, timedelta, timezone
from threading import Lock
import hashlib
import json
import logging

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CacheStore:
    """
    Simple in-memory cache with TTL and LRU eviction.
    For production with multiple workers, use Redis instead.
    """

    def __init__(
        self,
        max_size: int = 1000,
        default_ttl: Optional[int] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        """
        Initialize cache store.

        Args:
            max_size: Maximum number of items in cache (LRU eviction)
            default_ttl: TTL in seconds applied when set() gets none (None = never expires)
            clock: Returns the current time; swapped out in tests
        """
        self._cache: "OrderedDict[str, Tuple[Any, Optional[datetime]]]" = OrderedDict()
        self._max_size = max_size
        self._default_ttl = default_ttl
        self._clock = clock
        self._lock = Lock()
        self._hits = 0
        self._misses = 0

    @staticmethod
    def make_key(name: str, *args, **kwargs) -> str:
        """
        Create a stable cache key from a name and call arguments.

        Args:
            name: Logical name of the cached call
            *args: Positional arguments
            **kwargs: Keyword arguments

        Returns:
            "<name>:<md5 of arguments>"
        """
        key_data = {
            'args': args,
            'kwargs': sorted(kwargs.items())
        }
        key_str = json.dumps(key_data, sort_keys=True, default=str)
        return f"{name}:{hashlib.md5(key_str.encode()).hexdigest()}"

    def get(self, key: str) -> Optional[Any]:
        """
        Get value from cache if exists and not expired.

        Args:
            key: Cache key

        Returns:
            Cached value or None if not found/expired
        """
        with self._lock:
            if key not in self._cache:
                self._misses += 1
                return None

            value, expiry = self._cache[key]

            # Check if expired
            if expiry is not None and self._clock() >= expiry:
                del self._cache[key]
                self._misses += 1
                return None

            # Move to end (LRU)
            self._cache.move_to_end(key)
            self._hits += 1
            return value

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        """
        Set value in cache with optional TTL.

        Args:
            key: Cache key
            value: Value to cache
            ttl: Time to live in seconds (falls back to default_ttl)
        """
        ttl = ttl if ttl is not None else self._default_ttl
        expiry = self._clock() + timedelta(seconds=ttl) if ttl else None

        with self._lock:
            self._cache[key] = (value, expiry)
            self._cache.move_to_end(key)

            # Evict oldest if over max_size (LRU)
            if len(self._cache) > self._max_size:
                oldest_key = next(iter(self._cache))
                del self._cache[oldest_key]
                logger.debug(f"Evicted cache key: {oldest_key}")

    def get_or_set(self, key: str, factory: Callable[[], Any], ttl: Optional[int] = None) -> Any:
        """Return the cached value, computing and storing it on a miss."""
        cached = self.get(key)
        if cached is not None:
            return cached
        value = factory()
        self.set(key, value, ttl)
        return value

    def invalidate_prefix(self, prefix: str) -> int:
        """Delete every key starting with prefix. Returns how many were dropped."""
        with self._lock:
            doomed = [key for key in self._cache if key.startswith(prefix)]
            for key in doomed:
                del self._cache[key]
        if doomed:
            logger.debug(f"Invalidated {len(doomed)} cache entries with prefix {prefix!r}")
        return len(doomed)

    def clear(self) -> None:
        """Clear all cache."""
        with self._lock:
            self._cache.clear()
            self._hits = 0
            self._misses = 0
        logger.info("Cache cleared")

    def __len__(self) -> int:
        return len(self._cache)

    def get_stats(self) -> dict:
        """
        Get cache statistics.

        Returns:
            Dictionary with cache stats
        """
        total_requests = self._hits + self._misses
        hit_rate = (self._hits / total_requests * 100) if total_requests > 0 else 0

        return {
            'size': len(self._cache),
            'max_size': self._max_size,
            'hits': self._hits,
            'misses': self._misses,
            'hit_rate': f"{hit_rate:.2f}%"
        }
