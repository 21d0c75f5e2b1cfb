"""Header requirement resolver: which fields the selected tests need."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from waypoint.core.exceptions import InputValidationError
from waypoint.models.catalog import (
    CATALOG,
    CATALOG_BY_CODE,
    CATALOG_BY_LABEL,
    OPTIONAL_FIELDS,
    SELECT_ALL,
    TestDefinition,
)


def lookup_test(test: str) -> TestDefinition:
    """Find a test by internal code or by label."""
    definition = CATALOG_BY_CODE.get(test) or CATALOG_BY_LABEL.get(test)
    if definition is None:
        raise InputValidationError(f"Unknown test: {test!r}")
    return definition


def expand_selection(selected: Iterable[str]) -> list[str]:
    """Turn a user selection (codes, labels, or "all") into unique test codes.

    Order follows the selection; "all" expands to the whole catalog in
    catalog order.
    """
    codes: list[str] = []
    for test in selected:
        if test == SELECT_ALL:
            candidates = [t.code for t in CATALOG]
        else:
            candidates = [lookup_test(test).code]
        for code in candidates:
            if code not in codes:
                codes.append(code)
    return codes


def resolve_required_fields(
    selected: Sequence[str], catalog: Sequence[TestDefinition] = CATALOG
) -> list[str]:
    """Union of the selected tests' required fields, first-seen order, no duplicates."""
    by_code = {t.code: t for t in catalog}
    required: dict[str, None] = {}
    for code in selected:
        definition = by_code.get(code)
        if definition is None:
            continue
        for field in definition.required_fields:
            required.setdefault(field, None)
    return list(required)


def mandatory_fields(required: Iterable[str]) -> list[str]:
    """Required fields that must be mapped; HCE and Key Employee can be derived instead."""
    return [f for f in required if f not in OPTIONAL_FIELDS]
