"""HTTP client for the external compliance-calculation service."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

import httpx

from waypoint.core.config import CalcServiceConfig
from waypoint.core.exceptions import CalculationServiceError, WaypointError
from waypoint.core.protocols import ICalculationService, ICredentialProvider
from waypoint.models.catalog import CATALOG_BY_CODE
from waypoint.models.results import BatchRunResult, RunMode, SummaryCounts, TestRunResult
from waypoint.wizard.plan_calculations import to_number

logger = logging.getLogger(__name__)

UPLOAD_FAILED = "Upload failed"
UPLOAD_FILENAME = "temp.csv"

# Summary keys differ between test handlers; first present key wins.
SUMMARY_ALIASES: dict[str, tuple[str, ...]] = {
    "total_employees": ("total_employees", "Total Employees"),
    "total_eligible": ("total_eligible", "Total Eligible Employees"),
    "total_excluded": ("total_excluded", "Total Excluded Employees"),
    "total_hces": ("total_key_employees", "Total Key Employees", "total_hces"),
    "total_participating": ("total_participants", "Total Participants", "total_participating"),
}


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return UPLOAD_FAILED
    if isinstance(body, dict):
        detail = body.get("detail") or body.get("error")
        if isinstance(detail, str) and detail:
            return detail
        if detail:
            return str(detail)
    return UPLOAD_FAILED


class CalculationServiceClient:
    """ICalculationService over HTTP (multipart CSV upload, bearer auth)."""

    def __init__(self, base_url: str, timeout: float | None = None,
                 transport: httpx.BaseTransport | None = None) -> None:
        self._base_url = base_url.rstrip("/")
        self._client = httpx.Client(base_url=self._base_url, timeout=timeout, transport=transport)

    @classmethod
    def from_config(cls, config: CalcServiceConfig) -> CalculationServiceClient:
        return cls(base_url=config.base_url, timeout=config.timeout)

    def close(self) -> None:
        self._client.close()

    def _post(self, path: str, test_code: str, csv_bytes: bytes, plan_year: int, token: str) -> dict[str, Any]:
        try:
            response = self._client.post(
                path,
                files={"file": (UPLOAD_FILENAME, csv_bytes, "text/csv")},
                data={"test_type": test_code, "plan_year": str(plan_year)},
                headers={"Authorization": f"Bearer {token}"},
            )
        except httpx.HTTPError as exc:
            raise CalculationServiceError(f"{UPLOAD_FAILED}: {exc}") from exc

        if not response.is_success:
            raise CalculationServiceError(_error_detail(response), status_code=response.status_code)
        try:
            body = response.json()
        except ValueError as exc:
            raise CalculationServiceError("Calculation service returned invalid JSON") from exc
        if not isinstance(body, dict):
            raise CalculationServiceError("Calculation service returned an unexpected payload")
        return body

    def upload(self, test_code: str, csv_bytes: bytes, plan_year: int, token: str) -> dict[str, Any]:
        """Run one test; returns that test's result section."""
        body = self._post(f"/upload-csv/{test_code}", test_code, csv_bytes, plan_year, token)
        sections = body.get("Test Results") or {}
        if not isinstance(sections, dict):
            raise CalculationServiceError("Calculation service returned malformed test results")
        section = sections.get(test_code) or body.get("Result")
        if not isinstance(section, dict) or not section:
            label = CATALOG_BY_CODE[test_code].label if test_code in CATALOG_BY_CODE else test_code
            raise CalculationServiceError(f"No {label} results found in response.")
        return section

    def preview(self, test_code: str, csv_bytes: bytes, plan_year: int, token: str) -> dict[str, Any]:
        """Per-employee preview plus summary counts for one test."""
        body = self._post("/preview-csv", test_code, csv_bytes, plan_year, token)
        return {
            "employees": body.get("employees") or [],
            "summary": body.get("summary") or {},
        }


def summary_value(summary: dict[str, Any], *keys: str) -> float:
    for key in keys:
        if summary.get(key) is not None:
            return to_number(summary[key])
    return 0


def run_batch(
    service: ICalculationService,
    tests: Sequence[str],
    csv_bytes: bytes,
    plan_year: int,
    credentials: ICredentialProvider,
    mode: RunMode = RunMode.UPLOAD,
) -> BatchRunResult:
    """Send the CSV once per selected test, one request at a time.

    A failed test is recorded in its own result and does not stop the
    remaining tests. Raises AuthenticationError before any request when no
    credential is available.
    """
    token = credentials.get_token(force_refresh=True)
    batch = BatchRunResult(mode=mode, plan_year=plan_year)
    combined = SummaryCounts() if mode == RunMode.PREVIEW else None

    for code in tests:
        label = CATALOG_BY_CODE[code].label if code in CATALOG_BY_CODE else code
        try:
            if mode == RunMode.PREVIEW:
                result = service.preview(code, csv_bytes, plan_year, token)
            else:
                result = service.upload(code, csv_bytes, plan_year, token)
        except WaypointError as exc:
            logger.warning("%s %s failed: %s", label, mode.value, exc)
            batch.results.append(TestRunResult(code=code, label=label, ok=False, error=str(exc)))
            continue

        batch.results.append(TestRunResult(code=code, label=label, ok=True, result=result))
        if combined is not None:
            summary = result.get("summary") or {}
            for name, keys in SUMMARY_ALIASES.items():
                setattr(combined, name, getattr(combined, name) + summary_value(summary, *keys))

    batch.combined = combined
    logger.info(
        "%s batch for plan year %s: %d ok, %d failed",
        mode.value, plan_year, len(batch.succeeded), len(batch.failed),
    )
    return batch
