"""Protocol interfaces for Waypoint collaborators.

All inter-layer communication uses these Protocols: structural typing,
no inheritance required, easy to test with isinstance().
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


# ---------------------------------------------------------------------------
# Persistence: Cache Backend
# ---------------------------------------------------------------------------

@runtime_checkable
class ICacheBackend(Protocol):
    """Redis-compatible cache interface."""

    def get(self, key: str) -> str | None: ...

    def setex(self, key: str, ttl: int, value: str) -> None: ...

    def delete(self, key: str) -> None: ...

    def expire(self, key: str, ttl: int) -> bool: ...

    def ping(self) -> bool: ...


# ---------------------------------------------------------------------------
# Persistence: File Store
# ---------------------------------------------------------------------------

@runtime_checkable
class IFileStore(Protocol):
    """S3-compatible file storage interface."""

    def read(self, path: str) -> bytes: ...

    def write(self, path: str, data: bytes, content_type: str = "application/octet-stream") -> str: ...

    def list_files(self, prefix: str) -> list[str]: ...


# ---------------------------------------------------------------------------
# Authentication collaborator
# ---------------------------------------------------------------------------

@runtime_checkable
class ICredentialProvider(Protocol):
    """Source of the current user and a fresh bearer credential."""

    def current_user(self) -> str | None: ...

    def get_token(self, force_refresh: bool = True) -> str: ...


# ---------------------------------------------------------------------------
# Compliance-calculation service
# ---------------------------------------------------------------------------

@runtime_checkable
class ICalculationService(Protocol):
    """Remote service running the nondiscrimination tests."""

    def upload(self, test_code: str, csv_bytes: bytes, plan_year: int, token: str) -> dict[str, Any]: ...

    def preview(self, test_code: str, csv_bytes: bytes, plan_year: int, token: str) -> dict[str, Any]: ...
