"""Tests for the in-memory cache and file store."""

from __future__ import annotations

import pytest

from waypoint.core.exceptions import ArtifactStoreError, CacheError
from waypoint.persistence.memory_backend import MemoryCacheBackend, MemoryFileStore


class Clock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return Clock()


@pytest.fixture
def cache(clock):
    return MemoryCacheBackend(clock=clock)


class TestCacheExpiry:
    def test_value_readable_before_ttl(self, cache, clock):
        cache.setex("wizard:s1", 60, "{}")
        clock.now = 59.0
        assert cache.get("wizard:s1") == "{}"

    def test_value_gone_after_ttl(self, cache, clock):
        cache.setex("wizard:s1", 60, "{}")
        clock.now = 60.0
        assert cache.get("wizard:s1") is None

    def test_expire_extends_live_key(self, cache, clock):
        cache.setex("wizard:s1", 60, "{}")
        clock.now = 50.0
        assert cache.expire("wizard:s1", 60) is True
        clock.now = 100.0
        assert cache.get("wizard:s1") == "{}"

    def test_expire_cannot_revive_expired_key(self, cache, clock):
        cache.setex("wizard:s1", 60, "{}")
        clock.now = 61.0
        assert cache.expire("wizard:s1", 60) is False

    def test_non_positive_ttl_rejected(self, cache):
        with pytest.raises(CacheError):
            cache.setex("wizard:s1", -1, "{}")


class TestFileStore:
    def test_read_missing_raises(self):
        with pytest.raises(ArtifactStoreError):
            MemoryFileStore().read("users/u/csvBuilder/x/mapped.csv")

    def test_list_is_sorted_and_prefixed(self):
        files = MemoryFileStore()
        files.write("users/a/2.csv", b"")
        files.write("users/a/1.csv", b"")
        files.write("users/b/3.csv", b"")
        assert files.list_files("users/a/") == ["users/a/1.csv", "users/a/2.csv"]
