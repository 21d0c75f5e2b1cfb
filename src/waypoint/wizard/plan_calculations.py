"""HCE, Key Employee, and years-of-service derivation rules.

Thresholds are the IRS annual limits by plan year:
- HCE: compensation threshold under IRC 414(q)
- Key Employee: officer compensation threshold under IRC 416(i)
"""

from __future__ import annotations

import math
from typing import Optional

from waypoint.core.types import EmployeeIndex, RawRow
from waypoint.models.catalog import (
    COMPENSATION,
    EMPLOYMENT_STATUS,
    FAMILY_MEMBER_OWNER_ID,
    FAMILY_RELATIONSHIP,
    OWNERSHIP_PERCENTAGE,
)
from waypoint.models.mapping import ColumnMap
from waypoint.wizard.dates import parse_date_flexible, plan_year_end, whole_years_between

HCE_THRESHOLDS: dict[int, int] = {
    2016: 120000, 2017: 120000, 2018: 120000, 2019: 120000,
    2020: 125000, 2021: 130000, 2022: 130000, 2023: 135000,
    2024: 150000, 2025: 155000, 2026: 160000,
}

KEY_EMPLOYEE_THRESHOLDS: dict[int, int] = {
    2010: 160000, 2011: 160000, 2012: 165000, 2013: 165000, 2014: 170000,
    2015: 170000, 2016: 170000, 2017: 175000, 2018: 175000, 2019: 180000,
    2020: 185000, 2021: 185000, 2022: 200000, 2023: 200000, 2024: 215000,
    2025: 220000, 2026: 235000,
}

FAMILY_RELATIONSHIPS = frozenset({"spouse", "child", "parent", "grandparent"})

HCE_OWNERSHIP_PCT = 5.0
KEY_OWNERSHIP_PCT = 5.0
KEY_SMALL_OWNER_PCT = 1.0
KEY_SMALL_OWNER_COMP = 150000.0

YES = "Yes"
NO = "No"

_IGNORE_CHARS = str.maketrans("", "", "$, ")


def to_number(value: object) -> float:
    """Read a numeric cell leniently; blanks and junk read as 0."""
    if value is None:
        return 0.0
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        number = float(value)
    else:
        text = str(value).strip().translate(_IGNORE_CHARS)
        if not text:
            return 0.0
        try:
            number = float(text)
        except ValueError:
            return 0.0
    return number if math.isfinite(number) else 0.0


def _year(plan_year: object) -> Optional[int]:
    if plan_year is None or plan_year == "":
        return None
    try:
        return int(plan_year)  # type: ignore[call-overload]
    except (TypeError, ValueError):
        return None


def employee_key(value: object) -> str:
    """Index key for an Employee ID cell."""
    return str(value or "").strip().lower()


def is_hce(
    compensation: object,
    plan_year: object,
    row: Optional[RawRow] = None,
    column_map: Optional[ColumnMap] = None,
    employee_index: Optional[EmployeeIndex] = None,
) -> str:
    """Highly Compensated Employee status for one employee.

    Any of: compensation at or above the plan-year threshold, more than 5%
    ownership, or family attribution to another employee owning more than 5%.
    """
    year = _year(plan_year)
    threshold = HCE_THRESHOLDS.get(year, 0) if year is not None else 0
    meets_compensation = to_number(compensation) >= threshold

    meets_ownership = False
    meets_family = False
    if row is not None and column_map is not None:
        meets_ownership = to_number(column_map.cell(row, OWNERSHIP_PERCENTAGE)) > HCE_OWNERSHIP_PCT

        relationship = column_map.cell(row, FAMILY_RELATIONSHIP).strip().lower()
        owner_id = employee_key(column_map.cell(row, FAMILY_MEMBER_OWNER_ID))
        if relationship in FAMILY_RELATIONSHIPS and owner_id and employee_index:
            owner = employee_index.get(owner_id)
            if owner is not None and owner is not row:
                meets_family = (
                    to_number(column_map.cell(owner, OWNERSHIP_PERCENTAGE)) > HCE_OWNERSHIP_PCT
                )

    return YES if (meets_compensation or meets_ownership or meets_family) else NO


def is_key_employee(row: RawRow, column_map: ColumnMap, plan_year: object) -> str:
    """Key Employee status for top-heavy purposes.

    Officer above the plan-year threshold, 5% owner, 1% owner earning over
    $150,000, or any row naming a family-member owner.
    """
    year = _year(plan_year)
    threshold = KEY_EMPLOYEE_THRESHOLDS.get(year, math.inf) if year is not None else math.inf

    compensation = to_number(column_map.cell(row, COMPENSATION))
    ownership = to_number(column_map.cell(row, OWNERSHIP_PERCENTAGE))
    status = column_map.cell(row, EMPLOYMENT_STATUS).strip().lower()
    owner_id = column_map.cell(row, FAMILY_MEMBER_OWNER_ID).strip()

    meets_officer = compensation >= threshold and status == "officer"
    meets_ownership = ownership >= KEY_OWNERSHIP_PCT
    meets_small_owner = ownership >= KEY_SMALL_OWNER_PCT and compensation > KEY_SMALL_OWNER_COMP
    meets_family = bool(owner_id)

    return YES if (meets_officer or meets_ownership or meets_small_owner or meets_family) else NO


def calculate_years_of_service(doh: str | None, plan_year: object) -> int:
    """Whole years from date of hire to December 31 of the plan year; 0 if unknown."""
    hire_date = parse_date_flexible(doh)
    year = _year(plan_year)
    if hire_date is None or not year:
        return 0
    return whole_years_between(hire_date, plan_year_end(year))
