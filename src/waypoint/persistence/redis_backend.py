"""Redis cache backend implementing ICacheBackend."""

from __future__ import annotations

import redis

from waypoint.core.config import RedisConfig
from waypoint.core.exceptions import CacheError


class RedisCacheBackend:
    """ICacheBackend for wizard sessions in a shared Redis.

    Every key is stored under ``namespace`` so sessions never collide with
    other tenants of the same database. Values are JSON text.
    """

    def __init__(self, client: redis.Redis, namespace: str = "waypoint:") -> None:
        self._client = client
        self._namespace = namespace

    @classmethod
    def from_config(cls, config: RedisConfig) -> RedisCacheBackend:
        client = redis.Redis(
            host=config.host,
            port=config.port,
            db=config.db,
            decode_responses=True,
            socket_timeout=config.socket_timeout,
        )
        return cls(client, namespace=config.namespace)

    def _key(self, key: str) -> str:
        return f"{self._namespace}{key}"

    def get(self, key: str) -> str | None:
        try:
            return self._client.get(self._key(key))
        except redis.RedisError as exc:
            raise CacheError(f"Redis GET failed for key={key!r}: {exc}") from exc

    def setex(self, key: str, ttl: int, value: str) -> None:
        if ttl <= 0:
            raise CacheError(f"TTL must be positive, got {ttl} for key={key!r}")
        try:
            self._client.setex(self._key(key), ttl, value)
        except redis.RedisError as exc:
            raise CacheError(f"Redis SETEX failed for key={key!r}: {exc}") from exc

    def delete(self, key: str) -> None:
        try:
            self._client.delete(self._key(key))
        except redis.RedisError as exc:
            raise CacheError(f"Redis DELETE failed for key={key!r}: {exc}") from exc

    def expire(self, key: str, ttl: int) -> bool:
        """Restart the key's TTL; False when the key is gone."""
        try:
            return bool(self._client.expire(self._key(key), ttl))
        except redis.RedisError as exc:
            raise CacheError(f"Redis EXPIRE failed for key={key!r}: {exc}") from exc

    def ttl(self, key: str) -> int:
        """Seconds left on the key; negative when missing or persistent."""
        try:
            return int(self._client.ttl(self._key(key)))
        except redis.RedisError as exc:
            raise CacheError(f"Redis TTL failed for key={key!r}: {exc}") from exc

    def ping(self) -> bool:
        try:
            return bool(self._client.ping())
        except redis.RedisError as exc:
            raise CacheError(f"Redis PING failed: {exc}") from exc
