"""ORDER BY clause builder.

Pure rendering: fields are emitted verbatim in append order, without
validation or de-duplication.  Policy checks (allow-list, mapping, maximum
count) happen upstream in :func:`sqld.parse.sort.validate_and_build`.
"""
from __future__ import annotations

from sqld.schema.filters import SortDirection, SortField


class OrderByBuilder:
    """Accumulates ``(field, direction)`` pairs for an ORDER BY clause."""

    def __init__(self) -> None:
        self._fields: list[SortField] = []

    def add(self, field: str, direction: SortDirection | str = SortDirection.ASC) -> OrderByBuilder:
        self._fields.append(SortField(field=field, direction=SortDirection(direction)))
        return self

    def asc(self, field: str) -> OrderByBuilder:
        return self.add(field, SortDirection.ASC)

    def desc(self, field: str) -> OrderByBuilder:
        return self.add(field, SortDirection.DESC)

    def clear(self) -> OrderByBuilder:
        self._fields.clear()
        return self

    def has_fields(self) -> bool:
        return bool(self._fields)

    def get_fields(self) -> list[SortField]:
        """Return a copy of the accumulated sort fields."""
        return list(self._fields)

    def build(self) -> str:
        """Render ``"field1 DIR1, field2 DIR2"``; empty string when no fields."""
        return ", ".join(f.to_sql() for f in self._fields)

    def build_with_prefix(self) -> str:
        """Render ``"ORDER BY …"``; empty string (no prefix) when no fields."""
        if not self._fields:
            return ""
        return "ORDER BY " + self.build()

    def __len__(self) -> int:
        return len(self._fields)
