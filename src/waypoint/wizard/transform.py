"""Row transformation engine: raw rows + column map -> output rows -> CSV.

Every output path (download, preview, upload) goes through
``transform_rows`` so the same input always yields the same cells.
"""

from __future__ import annotations

import csv
import io
import logging
from collections.abc import Iterable, Sequence
from typing import Optional

from waypoint.core.types import Cell, EmployeeIndex, RawRow
from waypoint.models.catalog import (
    BOOLEAN_FIELDS,
    COMPENSATION,
    CONTRIBUTION_PERCENTAGE,
    DOH,
    EMPLOYEE_DEFERRAL,
    EMPLOYER_MATCH,
    HCE,
    KEY_EMPLOYEE,
    PARTICIPATING,
    PLAN_YEAR_COLUMN,
    TOTAL_CONTRIBUTION,
    YEARS_OF_SERVICE,
)
from waypoint.models.mapping import ColumnMap, OutputRow, RawTable
from waypoint.wizard.ingest import build_employee_index
from waypoint.wizard.plan_calculations import (
    NO,
    YES,
    calculate_years_of_service,
    is_hce,
    is_key_employee,
    to_number,
)

logger = logging.getLogger(__name__)

ACP_CODE = "acp"
TRUE_TOKENS = frozenset({"true", "1", "yes"})


def normalize_boolean(value: Cell) -> Cell:
    """"true"/"1"/"yes" (any case) -> "Yes"; other non-empty values -> "No"."""
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return value
    return YES if text.lower() in TRUE_TOKENS else NO


def acp_values(row: RawRow, column_map: ColumnMap) -> dict[str, Cell]:
    """Contribution Percentage, Participating, and Total Contribution for the ACP test."""
    match = to_number(column_map.cell(row, EMPLOYER_MATCH))
    compensation = to_number(column_map.cell(row, COMPENSATION))
    deferral = to_number(column_map.cell(row, EMPLOYEE_DEFERRAL))
    return {
        CONTRIBUTION_PERCENTAGE: (match / compensation) * 100 if compensation > 0 else 0,
        PARTICIPATING: YES if match > 0 else NO,
        TOTAL_CONTRIBUTION: deferral + match,
    }


def transform_row(
    row: RawRow,
    required: Sequence[str],
    column_map: ColumnMap,
    plan_year: Optional[int],
    *,
    employee_index: Optional[EmployeeIndex] = None,
    selected_tests: Iterable[str] = (),
) -> OutputRow:
    """Build one OutputRow from one raw row."""
    values: dict[str, Cell] = {}
    for field in required:
        column = column_map.source_for(field)
        if column:
            values[field] = row.get(column) or ""
        elif field == HCE and column_map.auto_hce:
            values[field] = is_hce(
                column_map.cell(row, COMPENSATION) or 0,
                plan_year,
                row,
                column_map,
                employee_index,
            )
        elif field == KEY_EMPLOYEE and column_map.auto_key:
            values[field] = is_key_employee(row, column_map, plan_year)
        else:
            values[field] = None

    doh = column_map.cell(row, DOH)
    if doh.strip() and not column_map.is_mapped(YEARS_OF_SERVICE):
        values[YEARS_OF_SERVICE] = calculate_years_of_service(doh, plan_year)

    if ACP_CODE in selected_tests:
        values.update(acp_values(row, column_map))

    for field in BOOLEAN_FIELDS.intersection(values):
        values[field] = normalize_boolean(values[field])

    return OutputRow(values=values)


def transform_rows(
    table: RawTable,
    required: Sequence[str],
    column_map: ColumnMap,
    plan_year: Optional[int],
    selected_tests: Iterable[str] = (),
) -> list[OutputRow]:
    """OutputRows for every row of ``table``, in file order."""
    selected = tuple(selected_tests)
    employee_index = build_employee_index(table, column_map)
    rows = [
        transform_row(
            row,
            required,
            column_map,
            plan_year,
            employee_index=employee_index,
            selected_tests=selected,
        )
        for row in table.rows
    ]
    logger.debug("Transformed %d rows for tests %s", len(rows), selected)
    return rows


def format_cell(value: Cell) -> str:
    """CSV text for one cell; unset cells are empty, whole numbers drop ".0"."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return YES if value else NO
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return str(round(value, 6))
    return str(value)


def rows_to_csv(rows: Sequence[OutputRow], plan_year: Optional[int]) -> str:
    """Serialize OutputRows with PlanYear as the first column."""
    columns: dict[str, None] = {}
    for row in rows:
        for key in row.keys():
            columns.setdefault(key, None)
    columns.pop(PLAN_YEAR_COLUMN, None)
    header = [PLAN_YEAR_COLUMN, *columns]

    buf = io.StringIO()
    writer = csv.writer(buf)
    writer.writerow(header)
    year = "" if plan_year is None else str(plan_year)
    for row in rows:
        writer.writerow([year, *(format_cell(row.get(c)) for c in columns)])
    return buf.getvalue()


def template_csv(required: Sequence[str]) -> str:
    """Header-only CSV listing the required fields."""
    buf = io.StringIO()
    csv.writer(buf).writerow(list(required))
    return buf.getvalue()
