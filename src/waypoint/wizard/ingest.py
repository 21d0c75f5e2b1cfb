"""CSV ingestion: bytes to a RawTable, plus the Employee ID index."""

from __future__ import annotations

import csv
import io
import logging
from collections.abc import Iterable

from waypoint.core.exceptions import CSVParseError
from waypoint.core.types import EmployeeIndex, RawRow
from waypoint.models.catalog import EMPLOYEE_ID
from waypoint.models.mapping import ColumnMap, RawTable
from waypoint.wizard.dates import normalize_header
from waypoint.wizard.plan_calculations import employee_key

logger = logging.getLogger(__name__)


def parse_csv(content: bytes | str) -> RawTable:
    """Parse an uploaded CSV into headers and row dicts keyed by raw header.

    Raises:
        CSVParseError: empty file, no header row, no data rows, undecodable
            bytes, or a malformed record.
    """
    if isinstance(content, bytes):
        try:
            text = content.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise CSVParseError(f"CSV file is not valid UTF-8: {exc}") from exc
    else:
        text = content.lstrip("\ufeff")

    reader = csv.reader(io.StringIO(text, newline=""))
    try:
        header_row = next(reader, None)
        while header_row is not None and not any(cell.strip() for cell in header_row):
            header_row = next(reader, None)
        if header_row is None:
            raise CSVParseError("CSV file is empty or has no header row")

        headers = tuple(cell.strip() for cell in header_row)
        rows: list[RawRow] = []
        for record in reader:
            if not any(cell.strip() for cell in record):
                continue
            padded = list(record[: len(headers)]) + [""] * (len(headers) - len(record))
            rows.append(dict(zip(headers, padded)))
    except csv.Error as exc:
        raise CSVParseError(f"Row {reader.line_num}: {exc}") from exc

    if not rows:
        raise CSVParseError("CSV file contains no data rows")

    logger.info("Parsed CSV with %d columns and %d rows", len(headers), len(rows))
    return RawTable(headers=headers, rows=tuple(rows))


def employee_id_column(headers: Iterable[str], column_map: ColumnMap | None = None) -> str | None:
    """Column holding Employee ID: the mapped one, else a header that reads as "employeeid"."""
    if column_map is not None and column_map.is_mapped(EMPLOYEE_ID):
        return column_map.source_for(EMPLOYEE_ID)
    target = normalize_header(EMPLOYEE_ID)
    for header in headers:
        if normalize_header(header) == target:
            return header
    return None


def build_employee_index(table: RawTable, column_map: ColumnMap | None = None) -> EmployeeIndex:
    """Map lower-cased Employee ID to its row. Later duplicates win."""
    column = employee_id_column(table.headers, column_map)
    if column is None:
        return {}
    index: EmployeeIndex = {}
    for row in table.rows:
        key = employee_key(row.get(column))
        if key:
            index[key] = row
    return index
