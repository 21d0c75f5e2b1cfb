"""In-memory backends for local development and unit tests."""

from __future__ import annotations

import time
from collections.abc import Callable

from waypoint.core.exceptions import ArtifactStoreError, CacheError


class MemoryCacheBackend:
    """Dict-backed ICacheBackend with Redis-like TTL expiry.

    ``clock`` returns seconds and defaults to ``time.monotonic``.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._store: dict[str, tuple[str, float]] = {}

    def _live(self, key: str) -> str | None:
        entry = self._store.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if self._clock() >= expires_at:
            del self._store[key]
            return None
        return value

    def get(self, key: str) -> str | None:
        return self._live(key)

    def setex(self, key: str, ttl: int, value: str) -> None:
        if ttl <= 0:
            raise CacheError(f"TTL must be positive, got {ttl} for key={key!r}")
        self._store[key] = (value, self._clock() + ttl)

    def delete(self, key: str) -> None:
        self._store.pop(key, None)

    def expire(self, key: str, ttl: int) -> bool:
        value = self._live(key)
        if value is None:
            return False
        self._store[key] = (value, self._clock() + ttl)
        return True

    def ping(self) -> bool:
        return True


class MemoryFileStore:
    """Dict-backed IFileStore."""

    def __init__(self) -> None:
        self._files: dict[str, bytes] = {}
        self.content_types: dict[str, str] = {}

    def read(self, path: str) -> bytes:
        try:
            return self._files[path]
        except KeyError as exc:
            raise ArtifactStoreError(f"No artifact at {path!r}") from exc

    def write(self, path: str, data: bytes, content_type: str = "application/octet-stream") -> str:
        self._files[path] = data
        self.content_types[path] = content_type
        return path

    def list_files(self, prefix: str) -> list[str]:
        return sorted(k for k in self._files if k.startswith(prefix))
