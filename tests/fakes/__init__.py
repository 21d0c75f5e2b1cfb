"""Shared test doubles: memory backends and a scripted calculation service."""

from __future__ import annotations

from typing import Any

from waypoint.core.exceptions import CalculationServiceError
from waypoint.persistence.memory_backend import MemoryCacheBackend, MemoryFileStore

__all__ = ["FakeCalculationService", "MemoryCacheBackend", "MemoryFileStore"]


class FakeCalculationService:
    """ICalculationService that records calls and replays canned responses.

    Codes listed in ``failing`` raise CalculationServiceError.
    """

    def __init__(
        self,
        responses: dict[str, dict[str, Any]] | None = None,
        failing: dict[str, str] | None = None,
    ) -> None:
        self.responses = responses or {}
        self.failing = failing or {}
        self.calls: list[tuple[str, str, bytes, int, str]] = []

    def _respond(self, mode: str, test_code: str, csv_bytes: bytes, plan_year: int, token: str):
        self.calls.append((mode, test_code, csv_bytes, plan_year, token))
        if test_code in self.failing:
            raise CalculationServiceError(self.failing[test_code], status_code=400)
        return self.responses.get(test_code, {"Test Result": "Passed"})

    def upload(self, test_code: str, csv_bytes: bytes, plan_year: int, token: str) -> dict[str, Any]:
        return self._respond("upload", test_code, csv_bytes, plan_year, token)

    def preview(self, test_code: str, csv_bytes: bytes, plan_year: int, token: str) -> dict[str, Any]:
        return self._respond("preview", test_code, csv_bytes, plan_year, token)
