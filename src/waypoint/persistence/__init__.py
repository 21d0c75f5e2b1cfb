"""Pluggable persistence backends behind Protocol interfaces."""

from __future__ import annotations

from waypoint.core.config import AppSettings
from waypoint.core.protocols import ICacheBackend, IFileStore
from waypoint.persistence.memory_backend import MemoryCacheBackend, MemoryFileStore
from waypoint.persistence.redis_backend import RedisCacheBackend
from waypoint.persistence.s3_backend import S3FileStore


def create_persistence(settings: AppSettings | None = None) -> tuple[ICacheBackend, IFileStore]:
    """Create wired-up persistence backends from application settings.

    Returns:
        Tuple of (session_cache, file_store).
    """
    if settings is None:
        settings = AppSettings()

    if settings.session.backend == "redis":
        cache: ICacheBackend = RedisCacheBackend.from_config(settings.redis)
    else:
        cache = MemoryCacheBackend()

    if settings.s3.enabled:
        file_store: IFileStore = S3FileStore.from_config(settings.s3)
    else:
        file_store = MemoryFileStore()

    return cache, file_store
