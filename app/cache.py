"""Short-lived cache for enriched issue lists."""

import logging
import threading
import time
from collections.abc import Callable, Sequence

from cachetools import TTLCache

from .models import Issue

logger = logging.getLogger(__name__)

# Freshness window for cached issue lists (seconds)
DEFAULT_TTL = 5.0
DEFAULT_MAXSIZE = 128

CacheKey = tuple[str, tuple[str, ...]]


def cache_key(repository: str, usernames: Sequence[str]) -> CacheKey:
    """Build the cache key for a repository and username list.

    The username order is part of the key: ["a", "b"] and ["b", "a"] are
    cached separately.
    """
    return (repository, tuple(usernames))


class IssueCache:
    """Bounded TTL cache of issue lists keyed by (repository, usernames).

    Entries expire ``ttl`` seconds after they are written. The clock is
    injectable so tests can advance time without sleeping.
    """

    def __init__(
        self,
        ttl: float = DEFAULT_TTL,
        maxsize: int = DEFAULT_MAXSIZE,
        timer: Callable[[], float] = time.monotonic,
    ):
        self.ttl = ttl
        self._lock = threading.Lock()
        self._entries: TTLCache[CacheKey, tuple[Issue, ...]] = TTLCache(
            maxsize=maxsize, ttl=ttl, timer=timer
        )

    def get(self, repository: str, usernames: Sequence[str]) -> list[Issue] | None:
        """Return the cached issues if still fresh, else None."""
        key = cache_key(repository, usernames)
        with self._lock:
            entry = self._entries.get(key)
        if entry is None:
            logger.debug("Cache miss for %s", key)
            return None
        logger.debug("Cache hit for %s", key)
        return list(entry)

    def put(
        self, repository: str, usernames: Sequence[str], issues: Sequence[Issue]
    ) -> None:
        """Store a snapshot of the issues, replacing any previous entry."""
        key = cache_key(repository, usernames)
        snapshot = tuple(issues)
        with self._lock:
            self._entries[key] = snapshot

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
