"""Tests for the test catalog and required-field resolution."""

from __future__ import annotations

import pytest

from waypoint.core.exceptions import InputValidationError
from waypoint.models.catalog import CATALOG, CATALOG_BY_CODE, FieldKind, TestDefinition, field_kind
from waypoint.wizard.requirements import (
    expand_selection,
    lookup_test,
    mandatory_fields,
    resolve_required_fields,
)


class TestCatalog:
    def test_twelve_tests_with_unique_codes(self):
        assert len(CATALOG) == 12
        assert len(CATALOG_BY_CODE) == 12

    def test_no_duplicate_fields_within_a_test(self):
        for definition in CATALOG:
            assert len(set(definition.required_fields)) == len(definition.required_fields)

    def test_field_kinds(self):
        assert field_kind("HCE") == FieldKind.DERIVABLE
        assert field_kind("Years of Service") == FieldKind.DERIVABLE
        assert field_kind("Compensation") == FieldKind.MANDATORY


class TestLookup:
    def test_by_code_or_label(self):
        assert lookup_test("adp").label == "ADP Test"
        assert lookup_test("Top Heavy Test").code == "top_heavy"

    def test_unknown_raises(self):
        with pytest.raises(InputValidationError):
            lookup_test("xyz")


class TestExpandSelection:
    def test_all_expands_in_catalog_order(self):
        assert expand_selection(["all"]) == [t.code for t in CATALOG]

    def test_deduplicates_keeping_first(self):
        assert expand_selection(["acp", "ADP Test", "acp"]) == ["acp", "adp"]

    def test_empty(self):
        assert expand_selection([]) == []


class TestResolveRequiredFields:
    def test_single_test_keeps_template_order(self):
        assert resolve_required_fields(["adp"]) == list(CATALOG_BY_CODE["adp"].required_fields)

    def test_union_is_first_seen_order_without_duplicates(self):
        fields = resolve_required_fields(["adp", "acp"])
        assert len(fields) == len(set(fields))
        adp = list(CATALOG_BY_CODE["adp"].required_fields)
        assert fields[: len(adp)] == adp
        assert fields[len(adp):] == [
            "Employer Match", "Contribution Percentage", "Participating", "Total Contribution",
        ]

    def test_order_depends_on_selection_order(self):
        assert resolve_required_fields(["acp", "adp"])[0] == "Last Name"

    def test_empty_selection(self):
        assert resolve_required_fields([]) == []

    def test_custom_catalog(self):
        catalog = (
            TestDefinition(label="A", code="a", route="/a", required_fields=("X", "Y")),
            TestDefinition(label="B", code="b", route="/b", required_fields=("Y", "Z")),
        )
        assert resolve_required_fields(["b", "a"], catalog) == ["Y", "Z", "X"]


def test_mandatory_fields_drop_derivable_flags():
    assert mandatory_fields(["Employee ID", "HCE", "Key Employee", "Compensation"]) == [
        "Employee ID", "Compensation",
    ]
