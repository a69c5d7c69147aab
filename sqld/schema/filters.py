"""Pydantic models for parsed filter and sort input.

A :class:`Filter` is the ephemeral result of parsing one query-string key;
it is consumed immediately by :func:`sqld.parse.filters.apply_filters`.  A
:class:`SortField` is one ``(field, direction)`` pair of an ORDER BY.
"""
from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict

from sqld.schema.operators import Operator


class SortDirection(str, Enum):
    """ORDER BY direction keyword."""

    ASC = "ASC"
    DESC = "DESC"

    def __str__(self) -> str:
        return self.value


class SortField(BaseModel):
    """One ORDER BY entry.

    Attributes:
        field: Column (or mapped column) name, inserted verbatim.
        direction: ``ASC`` or ``DESC``.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    field: str
    direction: SortDirection = SortDirection.ASC

    def to_sql(self) -> str:
        return f"{self.field} {self.direction.value}"


class Filter(BaseModel):
    """A single parsed filter.

    The shape of ``value`` depends on ``operator``:

    * ``between`` – a 2-tuple of strings.
    * ``in`` / ``notIn`` – a list of strings.
    * ``before`` / ``after`` – a ``datetime`` (or the raw string).
    * numeric comparisons – ``int``, ``float`` or the raw string.
    * null checks – ``None``.
    * everything else – the raw string.

    Attributes:
        field: Field name after mapping.
        operator: Parsed operator.
        value: Coerced value.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    field: str
    operator: Operator
    value: Any = None
