"""In-memory TTL cache for changelog lookups.

Entries are keyed by the exact ``(repo_url, version)`` pair and carry
their own time-to-live. Expiry is checked when an entry is read; there is
no background sweeper.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

from chartkeeper.models.changelog import ChangelogResult
from chartkeeper.utils.logger import get_logger

logger = get_logger("changelog.cache")

CacheKey = Tuple[str, str]


@dataclass(frozen=True)
class CacheEntry:
    value: ChangelogResult
    created_at: float
    ttl_seconds: float

    def is_expired(self, now: float) -> bool:
        return now - self.created_at > self.ttl_seconds


class ChangelogCache:
    """Thread-safe TTL cache of :class:`ChangelogResult` values.

    Args:
        clock: Monotonic time source in seconds. Tests inject a fake one.

    Example::

        >>> cache = ChangelogCache()
        >>> cache.set("https://github.com/org/repo", "1.2.0", result, ttl=3600)
        >>> cache.get("https://github.com/org/repo", "1.2.0") is result
        True
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: Dict[CacheKey, CacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, repo_url: str, version: str) -> Optional[ChangelogResult]:
        """Return the live entry for the key, evicting it if expired."""
        key = (repo_url, version)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.is_expired(self._clock()):
                del self._entries[key]
                logger.debug("Cache entry expired for %s@%s", repo_url, version)
                return None
            return entry.value

    def set(self, repo_url: str, version: str, value: ChangelogResult, ttl: float) -> None:
        """Store *value*, replacing any entry under the same key.

        Raises:
            ValueError: If *ttl* is negative.
        """
        if ttl < 0:
            raise ValueError(f"ttl must be non-negative, got {ttl}")
        with self._lock:
            self._entries[(repo_url, version)] = CacheEntry(
                value=value,
                created_at=self._clock(),
                ttl_seconds=ttl,
            )

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def size(self) -> int:
        """Number of stored entries, including expired ones not yet read."""
        with self._lock:
            return len(self._entries)

    def __len__(self) -> int:
        return self.size()

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, tuple) or len(key) != 2:
            return False
        return self.get(*key) is not None
