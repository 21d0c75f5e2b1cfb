"""Waypoint exception hierarchy."""

from __future__ import annotations


class WaypointError(Exception):
    """Base exception for all Waypoint errors."""


class InputValidationError(WaypointError):
    """User input blocks the requested action (no test, no file, bad plan year, ...)."""

    def __init__(self, message: str, problems: list[str] | None = None) -> None:
        self.problems = problems or [message]
        super().__init__(message)


class CSVParseError(WaypointError):
    """Uploaded CSV could not be read."""


class AuthenticationError(WaypointError):
    """No bearer credential is available for the current user."""


class CalculationServiceError(WaypointError):
    """The compliance-calculation service rejected or failed a request."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class SessionNotFoundError(WaypointError):
    """No wizard session stored under the given id."""

    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        super().__init__(f"Wizard session {session_id!r} not found or expired")


class CacheError(WaypointError):
    """Redis cache operation failed."""


class ArtifactStoreError(WaypointError):
    """S3 artifact storage operation failed."""
