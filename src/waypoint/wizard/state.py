"""Wizard state transitions.

Each user action is a function ``(state, ...) -> new state``. Validation
failures raise ``InputValidationError`` and leave the caller's state as it was.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Optional

from waypoint.core.exceptions import InputValidationError
from waypoint.models.catalog import (
    CATALOG_BY_CODE,
    COMPENSATION,
    EMPLOYMENT_STATUS,
    FAMILY_MEMBER_OWNER_ID,
    OWNERSHIP_PERCENTAGE,
)
from waypoint.models.mapping import ColumnMap, OutputRow
from waypoint.models.results import BatchRunResult, RunMode
from waypoint.models.session import WizardState
from waypoint.wizard.automap import auto_map
from waypoint.wizard.ingest import parse_csv
from waypoint.wizard.metrics import employee_metrics
from waypoint.wizard.requirements import (
    expand_selection,
    lookup_test,
    mandatory_fields,
    resolve_required_fields,
)
from waypoint.wizard.transform import rows_to_csv, template_csv, transform_rows

logger = logging.getLogger(__name__)

MIN_PLAN_YEAR = 1900
MAX_PLAN_YEAR = 2100

HCE_DERIVE_INPUTS = (COMPENSATION,)
KEY_DERIVE_INPUTS = (COMPENSATION, OWNERSHIP_PERCENTAGE, FAMILY_MEMBER_OWNER_ID, EMPLOYMENT_STATUS)


# ---------------------------------------------------------------------------
# Derived views
# ---------------------------------------------------------------------------

def required_fields(state: WizardState) -> list[str]:
    return resolve_required_fields(state.selected_tests)


def missing_mandatory(state: WizardState) -> list[str]:
    """Mandatory fields still without a source column."""
    return state.column_map.unmapped(mandatory_fields(required_fields(state)))


def _checked_flags(column_map: ColumnMap) -> ColumnMap:
    """Switch off any derive flag whose input columns are no longer mapped."""
    auto_hce = column_map.auto_hce and not column_map.unmapped(HCE_DERIVE_INPUTS)
    auto_key = column_map.auto_key and not column_map.unmapped(KEY_DERIVE_INPUTS)
    if (auto_hce, auto_key) != (column_map.auto_hce, column_map.auto_key):
        logger.info("Derive flags reset: auto_hce=%s auto_key=%s", auto_hce, auto_key)
    return column_map.with_flags(auto_hce=auto_hce, auto_key=auto_key)


def _remap(state: WizardState, selected: list[str]) -> WizardState:
    required = resolve_required_fields(selected)
    flags = {"auto_hce": state.column_map.auto_hce, "auto_key": state.column_map.auto_key}
    if state.table is not None:
        column_map = auto_map(state.table.headers, required, **flags)
    else:
        column_map = ColumnMap.for_fields(required, **flags)
    column_map = _checked_flags(column_map)
    return state.model_copy(update={"selected_tests": selected, "column_map": column_map})


# ---------------------------------------------------------------------------
# Transitions
# ---------------------------------------------------------------------------

def select_tests(state: WizardState, tests: Iterable[str]) -> WizardState:
    """Replace the selection; the column map is rebuilt for the new field set."""
    return _remap(state, expand_selection(tests))


def toggle_test(state: WizardState, test: str) -> WizardState:
    code = lookup_test(test).code
    if code in state.selected_tests:
        selected = [c for c in state.selected_tests if c != code]
    else:
        selected = [*state.selected_tests, code]
    return _remap(state, selected)


def set_plan_year(state: WizardState, value: object) -> WizardState:
    """Set the plan year from user input; must be a numeric four-digit year."""
    text = str(value).strip() if value is not None else ""
    if not text:
        raise InputValidationError("Please select a plan year.")
    try:
        year = int(text)
    except ValueError as exc:
        raise InputValidationError("Plan year must be a numeric year.") from exc
    if not MIN_PLAN_YEAR <= year <= MAX_PLAN_YEAR:
        raise InputValidationError(f"Plan year {year} is out of range.")
    return state.model_copy(update={"plan_year": year})


def load_file(state: WizardState, content: bytes | str, filename: str = "") -> WizardState:
    """Ingest a CSV and propose a mapping for the current field set."""
    table = parse_csv(content)
    column_map = auto_map(
        table.headers,
        required_fields(state),
        auto_hce=state.column_map.auto_hce,
        auto_key=state.column_map.auto_key,
    )
    column_map = _checked_flags(column_map)
    logger.info("Loaded %s: %d rows", filename or "upload", table.row_count)
    return state.model_copy(update={"table": table, "filename": filename, "column_map": column_map})


def map_field(state: WizardState, field: str, column: Optional[str]) -> WizardState:
    """Point one required field at a raw column, or unmap it with None."""
    if field not in required_fields(state):
        raise InputValidationError(f"{field!r} is not required by the selected tests.")
    if column and column not in state.headers:
        raise InputValidationError(f"Column {column!r} is not in the uploaded file.")
    column_map = _checked_flags(state.column_map.with_mapping(field, column))
    return state.model_copy(update={"column_map": column_map})


def set_derive_flags(
    state: WizardState, *, auto_hce: Optional[bool] = None, auto_key: Optional[bool] = None
) -> WizardState:
    """Turn HCE / Key Employee derivation on or off.

    Derivation can only be enabled once its input columns are mapped.
    """
    column_map = state.column_map
    if auto_hce:
        missing = column_map.unmapped(HCE_DERIVE_INPUTS)
        if missing:
            raise InputValidationError(
                f"Map {', '.join(missing)} before auto-generating HCE.", missing
            )
    if auto_key:
        missing = column_map.unmapped(KEY_DERIVE_INPUTS)
        if missing:
            raise InputValidationError(
                f"Map {', '.join(missing)} before auto-generating Key Employee status.", missing
            )
    return state.model_copy(
        update={"column_map": column_map.with_flags(auto_hce=auto_hce, auto_key=auto_key)}
    )


# ---------------------------------------------------------------------------
# Outputs
# ---------------------------------------------------------------------------

def require_ready(state: WizardState) -> None:
    """Raise unless the state can be downloaded, previewed, or uploaded."""
    problems: list[str] = []
    if not state.selected_tests:
        problems.append("Select at least one test.")
    if state.table is None:
        problems.append("Please upload a CSV file.")
    if state.plan_year is None:
        problems.append("Please select a plan year.")
    missing = missing_mandatory(state)
    if state.selected_tests and state.table is not None and missing:
        problems.append(f"Please map the following required headers: {', '.join(missing)}")
    if problems:
        raise InputValidationError(" ".join(problems), problems)


def output_rows(state: WizardState) -> list[OutputRow]:
    """Transformed rows for the current state; empty until a file is loaded."""
    if state.table is None:
        return []
    return transform_rows(
        state.table,
        required_fields(state),
        state.column_map,
        state.plan_year,
        state.selected_tests,
    )


def mapped_csv(state: WizardState) -> str:
    require_ready(state)
    return rows_to_csv(output_rows(state), state.plan_year)


def blank_template(state: WizardState) -> str:
    if not state.selected_tests:
        raise InputValidationError("Select at least one test.")
    return template_csv(required_fields(state))


def download_filename(state: WizardState) -> str:
    return f"Combined_Tests_{state.plan_year or ''}.csv"


def next_route(state: WizardState) -> Optional[str]:
    """Result page for a single-test mapping; None when several tests are selected."""
    if len(state.selected_tests) != 1:
        return None
    return CATALOG_BY_CODE[state.selected_tests[0]].route


def enrich_preview(state: WizardState, batch: BatchRunResult) -> BatchRunResult:
    """Add per-employee metrics to a single-test preview; other batches pass through."""
    if batch.mode != RunMode.PREVIEW or len(state.selected_tests) != 1 or state.table is None:
        return batch
    results = []
    for result in batch.results:
        employees = result.result.get("employees") if result.ok else None
        if employees:
            enriched = employee_metrics(employees, state.table.rows, state.column_map, state.plan_year)
            result = result.model_copy(update={"result": {**result.result, "employees": enriched}})
        results.append(result)
    return batch.model_copy(update={"results": results})
