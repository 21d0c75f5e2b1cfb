"""Per-test results returned by the compliance-calculation service."""

from __future__ import annotations

from enum import StrEnum
from typing import Any, Optional

from pydantic import BaseModel, Field


class RunMode(StrEnum):
    UPLOAD = "upload"
    PREVIEW = "preview"


class TestRunResult(BaseModel):
    """Outcome of one test's request within a batch."""

    __test__ = False  # not a pytest class

    code: str
    label: str
    ok: bool
    result: dict[str, Any] = Field(default_factory=dict)
    error: Optional[str] = None


class SummaryCounts(BaseModel):
    """Preview counts added up across every test in a batch."""

    total_employees: float = 0
    total_eligible: float = 0
    total_excluded: float = 0
    total_hces: float = 0
    total_participating: float = 0


class BatchRunResult(BaseModel):
    """Every test's outcome for one upload or preview batch."""

    mode: RunMode
    plan_year: int
    results: list[TestRunResult] = Field(default_factory=list)
    combined: Optional[SummaryCounts] = None

    @property
    def failed(self) -> list[TestRunResult]:
        return [r for r in self.results if not r.ok]

    @property
    def succeeded(self) -> list[TestRunResult]:
        return [r for r in self.results if r.ok]


class SavedArtifact(BaseModel):
    """Metadata for a file written to the artifact store."""

    filename: str
    path: str
    content_type: str
    size_bytes: int = 0
