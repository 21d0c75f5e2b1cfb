"""Type aliases used across Waypoint."""

from __future__ import annotations

RawHeader = str
RawRow = dict[RawHeader, str]
EmployeeIndex = dict[str, RawRow]  # lower-cased Employee ID -> row
Cell = str | int | float | None
