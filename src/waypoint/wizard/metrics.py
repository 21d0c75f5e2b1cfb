"""Per-employee metrics added to a single-test preview.

The calculation service returns one employee record per uploaded row, in
upload order; each record is paired with the raw row at the same position.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Optional

from waypoint.core.types import RawRow
from waypoint.models.catalog import COMPENSATION, DOB, DOH, EMPLOYEE_DEFERRAL, YEARS_OF_SERVICE
from waypoint.models.mapping import ColumnMap
from waypoint.wizard.dates import parse_date_flexible, plan_year_end, whole_years_between
from waypoint.wizard.plan_calculations import calculate_years_of_service, to_number

AGE = "Age"
DEFERRAL_PCT = "Deferral %"


def age_at_plan_year_end(dob: str | None, plan_year: Optional[int]) -> Optional[int]:
    """Whole years from date of birth to December 31 of the plan year; None if unknown."""
    birth_date = parse_date_flexible(dob)
    if birth_date is None or not plan_year:
        return None
    return whole_years_between(birth_date, plan_year_end(plan_year))


def deferral_pct(employee: dict[str, Any]) -> float:
    compensation = to_number(employee.get(COMPENSATION))
    deferral = to_number(employee.get(EMPLOYEE_DEFERRAL))
    return (deferral / compensation) * 100 if compensation > 0 else 0


def employee_metrics(
    employees: Sequence[dict[str, Any]],
    rows: Sequence[RawRow],
    column_map: ColumnMap,
    plan_year: Optional[int],
) -> list[dict[str, Any]]:
    """Copies of ``employees`` with Years of Service, Age and Deferral %."""
    enriched: list[dict[str, Any]] = []
    for i, employee in enumerate(employees):
        row = rows[i] if i < len(rows) else {}
        out = dict(employee)
        out[YEARS_OF_SERVICE] = calculate_years_of_service(column_map.cell(row, DOH), plan_year)
        out[AGE] = age_at_plan_year_end(column_map.cell(row, DOB), plan_year)
        out[DEFERRAL_PCT] = deferral_pct(employee)
        enriched.append(out)
    return enriched
