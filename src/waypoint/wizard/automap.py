"""Auto-mapper: propose a ColumnMap from raw CSV headers."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from waypoint.models.catalog import DOH
from waypoint.models.mapping import ColumnMap
from waypoint.wizard.dates import normalize_header

logger = logging.getLogger(__name__)

# Hire-date columns are named inconsistently across payroll exports.
DOH_SYNONYMS = frozenset({"doh", "dateofhire", "hiredate", "startdate", "date_hired"})


def _match(field: str, normalized: Sequence[tuple[str, str]]) -> str | None:
    if field == DOH:
        candidates = DOH_SYNONYMS
    else:
        candidates = frozenset({normalize_header(field)})
    for original, norm in normalized:
        if norm in candidates:
            return original
    return None


def auto_map(
    headers: Sequence[str],
    required: Sequence[str],
    *,
    auto_hce: bool = False,
    auto_key: bool = False,
) -> ColumnMap:
    """Best-guess mapping for every required field.

    Fields with no matching header are left unmapped; this never raises.
    The derive flags are passed through unchanged.
    """
    normalized = [(h, normalize_header(h)) for h in headers]
    column_map = ColumnMap.for_fields(required, auto_hce=auto_hce, auto_key=auto_key)
    for field in required:
        column = _match(field, normalized)
        if column is not None:
            column_map = column_map.with_mapping(field, column)

    unmapped = column_map.unmapped(required)
    logger.debug(
        "Auto-mapped %d of %d fields; unmapped: %s",
        len(required) - len(unmapped), len(required), unmapped,
    )
    return column_map
