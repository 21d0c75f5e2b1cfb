"""Date and header-text helpers shared by the auto-mapper and the derivation rules."""

from __future__ import annotations

import re
from datetime import date, datetime

from dateutil import parser as dateutil_parser

# Tried in order; the first that parses wins.
DATE_FORMATS = (
    "%m/%d/%y",   # M/d/yy
    "%m/%d/%Y",   # M/d/yyyy
    "%m-%d-%Y",   # MM-dd-yyyy
    "%Y-%m-%d",   # yyyy-MM-dd
    "%d/%m/%Y",   # dd/MM/yyyy
)

_NON_ALNUM = re.compile(r"[^a-z0-9]")


def normalize_header(text: str | None) -> str:
    """Lower-case and drop every non-alphanumeric character.

    >>> normalize_header("Date of Hire")
    'dateofhire'
    """
    return _NON_ALNUM.sub("", (text or "").lower())


def parse_date_flexible(text: str | None) -> date | None:
    """Parse a date cell written in any of the common payroll-export styles.

    Tries the fixed formats in ``DATE_FORMATS``, then ISO-8601, then a
    generic parser. Returns None when nothing fits.
    """
    if not text or not text.strip():
        return None
    value = text.strip()

    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            continue

    try:
        return datetime.fromisoformat(value).date()
    except ValueError:
        pass

    try:
        return dateutil_parser.parse(value).date()
    except (ValueError, OverflowError):
        return None


def whole_years_between(start: date, end: date) -> int:
    """Full years elapsed from ``start`` to ``end``; negative when ``end`` is earlier."""
    if end < start:
        return -whole_years_between(end, start)
    years = end.year - start.year
    if (end.month, end.day) < (start.month, start.day):
        years -= 1
    return years


def plan_year_end(plan_year: int) -> date:
    """December 31 of the plan year."""
    return date(plan_year, 12, 31)
