"""Tests for date parsing and header normalization."""

from __future__ import annotations

from datetime import date

import pytest

from waypoint.wizard.dates import (
    normalize_header,
    parse_date_flexible,
    plan_year_end,
    whole_years_between,
)


class TestNormalizeHeader:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("Employee ID", "employeeid"),
            ("  Date_of-Hire ", "dateofhire"),
            ("Part-Time / Seasonal", "parttimeseasonal"),
            ("", ""),
            (None, ""),
        ],
    )
    def test_normalizes(self, raw, expected):
        assert normalize_header(raw) == expected


class TestParseDateFlexible:
    @pytest.mark.parametrize(
        "text, expected",
        [
            ("1/15/15", date(2015, 1, 15)),
            ("01/15/2015", date(2015, 1, 15)),
            ("01-15-2015", date(2015, 1, 15)),
            ("2015-01-15", date(2015, 1, 15)),
            ("25/12/2010", date(2010, 12, 25)),
            ("2015-01-15T08:30:00", date(2015, 1, 15)),
            ("January 15, 2015", date(2015, 1, 15)),
        ],
    )
    def test_known_formats(self, text, expected):
        assert parse_date_flexible(text) == expected

    def test_month_first_wins_when_ambiguous(self):
        assert parse_date_flexible("03/04/2020") == date(2020, 3, 4)

    @pytest.mark.parametrize("text", [None, "", "   ", "not a date", "13/45/2020"])
    def test_unparseable_returns_none(self, text):
        assert parse_date_flexible(text) is None


class TestWholeYearsBetween:
    def test_before_anniversary(self):
        assert whole_years_between(date(2015, 6, 1), date(2024, 5, 31)) == 8

    def test_on_anniversary(self):
        assert whole_years_between(date(2015, 6, 1), date(2024, 6, 1)) == 9

    def test_end_before_start_is_negative(self):
        assert whole_years_between(date(2026, 1, 1), date(2024, 12, 31)) == -1


def test_plan_year_end():
    assert plan_year_end(2024) == date(2024, 12, 31)
