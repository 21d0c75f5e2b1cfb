"""Test catalog endpoints."""

from __future__ import annotations

from fastapi import APIRouter

from waypoint.models.catalog import CATALOG, field_kind
from waypoint.wizard.requirements import expand_selection, mandatory_fields, resolve_required_fields

router = APIRouter(tags=["catalog"])


@router.get("/tests")
async def list_tests() -> list[dict]:
    """Every supported test with its required fields."""
    return [
        {
            "label": t.label,
            "code": t.code,
            "route": t.route,
            "required_fields": [
                {"name": f, "kind": field_kind(f).value} for f in t.required_fields
            ],
        }
        for t in CATALOG
    ]


@router.get("/tests/requirements")
async def requirements(tests: str) -> dict:
    """Field union for a comma-separated selection (codes, labels, or "all")."""
    codes = expand_selection(t.strip() for t in tests.split(",") if t.strip())
    required = resolve_required_fields(codes)
    return {
        "tests": codes,
        "required_fields": required,
        "mandatory_fields": mandatory_fields(required),
    }
