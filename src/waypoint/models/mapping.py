"""Column mapping, raw table, and output row models for the CSV builder."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from pydantic import BaseModel, Field

from waypoint.core.types import Cell, RawRow

# A field mapped to None has no source column.
UNMAPPED = None


class ColumnMap(BaseModel):
    """Assignment of semantic fields to raw CSV columns plus derive flags.

    Every required field always has an entry: a raw header name, or
    ``UNMAPPED``. Edits return a new map.
    """

    fields: dict[str, str | None] = Field(default_factory=dict)
    auto_hce: bool = False
    auto_key: bool = False

    @classmethod
    def for_fields(
        cls, required: Iterable[str], *, auto_hce: bool = False, auto_key: bool = False
    ) -> ColumnMap:
        """Fresh map with every field unmapped."""
        return cls(
            fields={f: UNMAPPED for f in required},
            auto_hce=auto_hce,
            auto_key=auto_key,
        )

    def source_for(self, field: str) -> str | None:
        return self.fields.get(field)

    def is_mapped(self, field: str) -> bool:
        return bool(self.fields.get(field))

    def unmapped(self, fields: Iterable[str]) -> list[str]:
        """Fields from ``fields`` with no source column, in input order."""
        return [f for f in fields if not self.is_mapped(f)]

    def with_mapping(self, field: str, column: str | None) -> ColumnMap:
        return self.model_copy(update={"fields": {**self.fields, field: column or UNMAPPED}})

    def with_flags(self, *, auto_hce: bool | None = None, auto_key: bool | None = None) -> ColumnMap:
        update: dict[str, Any] = {}
        if auto_hce is not None:
            update["auto_hce"] = auto_hce
        if auto_key is not None:
            update["auto_key"] = auto_key
        return self.model_copy(update=update)

    def cell(self, row: RawRow, field: str) -> str:
        """Raw cell for ``field`` in ``row``; empty when unmapped or absent."""
        column = self.source_for(field)
        if not column:
            return ""
        return row.get(column) or ""


class RawTable(BaseModel):
    """Parsed CSV: raw headers in file order and one dict per data row."""

    model_config = {"frozen": True}

    headers: tuple[str, ...]
    rows: tuple[RawRow, ...]

    @property
    def row_count(self) -> int:
        return len(self.rows)


class OutputRow(BaseModel):
    """One transformed employee record.

    ``None`` marks a field that is neither mapped nor derived; it is kept
    apart from an empty string that came from the source file.
    """

    values: dict[str, Cell] = Field(default_factory=dict)

    def __getitem__(self, field: str) -> Cell:
        return self.values[field]

    def __contains__(self, field: object) -> bool:
        return field in self.values

    def get(self, field: str, default: Cell = None) -> Cell:
        return self.values.get(field, default)

    def keys(self) -> list[str]:
        return list(self.values)
