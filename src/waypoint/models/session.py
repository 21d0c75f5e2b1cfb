"""Wizard session state: the single record every wizard action transforms."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from waypoint.models.mapping import ColumnMap, RawTable


class WizardState(BaseModel):
    """Everything one CSV-builder session knows.

    Transitions in ``waypoint.wizard.state`` return new instances; nothing
    mutates a state in place.
    """

    selected_tests: list[str] = Field(default_factory=list)  # test codes
    plan_year: Optional[int] = None
    table: Optional[RawTable] = None
    filename: str = ""
    column_map: ColumnMap = Field(default_factory=ColumnMap)

    @property
    def headers(self) -> tuple[str, ...]:
        return self.table.headers if self.table is not None else ()
