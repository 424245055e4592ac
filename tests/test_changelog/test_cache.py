"""Unit tests for chartkeeper.changelog.cache."""

from __future__ import annotations

import threading
import time

import pytest

from chartkeeper.changelog.cache import CacheEntry, ChangelogCache
from chartkeeper.models import ChangelogResult

REPO = "https://github.com/org/repo"


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def result() -> ChangelogResult:
    return ChangelogResult(source_url=REPO, found=True, changelog_text="## 1.0.0")


@pytest.mark.unit
class TestCacheEntry:
    def test_expiry_boundary(self, result: ChangelogResult) -> None:
        entry = CacheEntry(value=result, created_at=10.0, ttl_seconds=5.0)

        assert entry.is_expired(15.0) is False
        assert entry.is_expired(15.01) is True


@pytest.mark.unit
class TestChangelogCache:
    """Tests for ChangelogCache."""

    def test_set_and_get(self, clock: FakeClock, result: ChangelogResult) -> None:
        cache = ChangelogCache(clock=clock)
        cache.set(REPO, "1.0.0", result, ttl=60)

        assert cache.get(REPO, "1.0.0") is result
        assert (REPO, "1.0.0") in cache
        assert len(cache) == 1

    def test_miss(self, clock: FakeClock) -> None:
        cache = ChangelogCache(clock=clock)

        assert cache.get(REPO, "1.0.0") is None
        assert (REPO, "1.0.0") not in cache
        assert "not-a-key" not in cache

    def test_keys_are_exact(self, clock: FakeClock, result: ChangelogResult) -> None:
        """Edge case: no normalization of URL or version."""
        cache = ChangelogCache(clock=clock)
        cache.set(REPO, "1.0.0", result, ttl=60)

        assert cache.get(REPO + "/", "1.0.0") is None
        assert cache.get(REPO, "v1.0.0") is None

    def test_expired_entry_evicted_on_read(self, clock: FakeClock, result: ChangelogResult) -> None:
        cache = ChangelogCache(clock=clock)
        cache.set(REPO, "1.0.0", result, ttl=10)

        clock.advance(11)

        assert cache.size() == 1
        assert cache.get(REPO, "1.0.0") is None
        assert cache.size() == 0

    def test_set_replaces_and_restarts_ttl(self, clock: FakeClock, result: ChangelogResult) -> None:
        cache = ChangelogCache(clock=clock)
        replacement = ChangelogResult.not_found(REPO, "Changelog not found")
        cache.set(REPO, "1.0.0", result, ttl=10)

        clock.advance(8)
        cache.set(REPO, "1.0.0", replacement, ttl=10)
        clock.advance(8)

        assert cache.get(REPO, "1.0.0") is replacement
        assert cache.size() == 1

    def test_negative_results_are_cached(self, clock: FakeClock) -> None:
        cache = ChangelogCache(clock=clock)
        negative = ChangelogResult.not_found(REPO, "Changelog not found")
        cache.set(REPO, "2.0.0", negative, ttl=60)

        cached = cache.get(REPO, "2.0.0")
        assert cached is not None and cached.found is False

    def test_negative_ttl_rejected(self, result: ChangelogResult) -> None:
        with pytest.raises(ValueError, match="non-negative"):
            ChangelogCache().set(REPO, "1.0.0", result, ttl=-1)

    def test_clear(self, clock: FakeClock, result: ChangelogResult) -> None:
        cache = ChangelogCache(clock=clock)
        cache.set(REPO, "1.0.0", result, ttl=60)
        cache.set(REPO, "1.1.0", result, ttl=60)

        cache.clear()

        assert cache.size() == 0

    def test_real_clock_expiry(self, result: ChangelogResult) -> None:
        """Entries with a short TTL disappear after it elapses."""
        cache = ChangelogCache()
        cache.set(REPO, "1.0.0", result, ttl=0.1)
        cache.set(REPO, "1.1.0", result, ttl=60)

        time.sleep(0.25)

        assert cache.get(REPO, "1.0.0") is None
        assert cache.get(REPO, "1.1.0") is result
        assert cache.size() == 1

    def test_concurrent_writers(self, result: ChangelogResult) -> None:
        cache = ChangelogCache()

        def write(offset: int) -> None:
            for i in range(100):
                cache.set(REPO, f"{offset}.{i}.0", result, ttl=60)

        threads = [threading.Thread(target=write, args=(n,)) for n in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert cache.size() == 400
