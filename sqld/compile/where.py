"""WHERE condition builder.

``WhereBuilder`` accumulates predicate fragments in call order and renders
them AND-joined, together with a flat parameter list whose order matches
the placeholders in the SQL text.

Parameter numbering
-------------------
The builder owns a running counter that starts at ``0`` and is incremented
once per placeholder emitted (``$N`` for PostgreSQL, ``?`` elsewhere).  OR
groups are built by a sub-builder seeded with the parent's counter, and raw
fragments advance it by their parameter count, so for the ordinal dialect
the rendered placeholders are always exactly ``$1 … $k``.

Absent values
-------------
Every method is a no-op when handed an absent value (``None``, an empty
pattern, an empty list), so optional filters can be chained
unconditionally::

    where = (
        WhereBuilder(Dialect.POSTGRES)
        .equal("status", params.get("status"))
        .ilike("name", search_pattern(params.get("q", ""), "contains"))
        .in_("role", params.get("roles", []))
    )
    sql, args = where.build()

A builder is meant for a single query build on a single thread.
"""
from __future__ import annotations

import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

from sqld.compile.base import UNIVERSAL_PLACEHOLDER, DialectCompiler
from sqld.compile.registry import CompilerFactory
from sqld.schema.dialect import Dialect

_WHERE_KEYWORD = re.compile(r"\bWHERE\b", re.IGNORECASE)


@dataclass(frozen=True)
class Condition:
    """One rendered predicate.

    Attributes:
        sql: SQL fragment with dialect placeholders already inserted.
        param_count: Number of parameters the fragment consumes.
    """

    sql: str
    param_count: int


class WhereBuilder:
    """Builds dynamic WHERE conditions for one dialect.

    Args:
        dialect: Target dialect (``Dialect`` member or its name).
        start_index: Initial value of the placeholder counter.  Only OR
            sub-builders start above zero.
    """

    def __init__(self, dialect: Dialect | str, start_index: int = 0) -> None:
        self._compiler: DialectCompiler = CompilerFactory.create(dialect)
        self._conditions: list[Condition] = []
        self._params: list[Any] = []
        self._param_index = start_index

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def dialect(self) -> Dialect:
        return self._compiler.dialect

    @property
    def compiler(self) -> DialectCompiler:
        return self._compiler

    @property
    def param_index(self) -> int:
        """The number of the last placeholder emitted."""
        return self._param_index

    @property
    def conditions(self) -> list[Condition]:
        return list(self._conditions)

    @property
    def params(self) -> list[Any]:
        return list(self._params)

    def has_conditions(self) -> bool:
        """Return ``True`` if at least one condition was added."""
        return bool(self._conditions)

    # ------------------------------------------------------------------
    # Comparisons
    # ------------------------------------------------------------------

    def equal(self, column: str, value: Any) -> WhereBuilder:
        return self._compare(column, "=", value)

    def not_equal(self, column: str, value: Any) -> WhereBuilder:
        return self._compare(column, "!=", value)

    def greater_than(self, column: str, value: Any) -> WhereBuilder:
        return self._compare(column, ">", value)

    def greater_or_equal(self, column: str, value: Any) -> WhereBuilder:
        return self._compare(column, ">=", value)

    def less_than(self, column: str, value: Any) -> WhereBuilder:
        return self._compare(column, "<", value)

    def less_or_equal(self, column: str, value: Any) -> WhereBuilder:
        return self._compare(column, "<=", value)

    # ------------------------------------------------------------------
    # Pattern matching
    # ------------------------------------------------------------------

    def like(self, column: str, pattern: str) -> WhereBuilder:
        """Case-sensitive ``LIKE``; skipped for an empty pattern."""
        if not pattern:
            return self
        self._add(f"{column} LIKE {self._placeholder()}", [pattern])
        return self

    def ilike(self, column: str, pattern: str) -> WhereBuilder:
        """Case-insensitive match; skipped for an empty pattern.

        Rendered as ``ILIKE`` on PostgreSQL and as
        ``LOWER(col) LIKE LOWER(?)`` on MySQL / SQLite.
        """
        if not pattern:
            return self
        self._add(self._compiler.ilike(column, self._placeholder()), [pattern])
        return self

    # ------------------------------------------------------------------
    # Sets and ranges
    # ------------------------------------------------------------------

    def in_(self, column: str, values: Sequence[Any]) -> WhereBuilder:
        """``column IN (…)`` with one placeholder per value; skipped when empty.

        Raises:
            TypeError: If ``values`` is a string, which would otherwise be
                split into one parameter per character.
        """
        if isinstance(values, (str, bytes)):
            raise TypeError(
                f"in_() expects a sequence of values for {column!r}, "
                f"got {type(values).__name__}"
            )
        if not values:
            return self
        placeholders = ", ".join(self._placeholder() for _ in values)
        self._add(f"{column} IN ({placeholders})", list(values))
        return self

    def between(self, column: str, start: Any, end: Any) -> WhereBuilder:
        """``column BETWEEN start AND end``; skipped if either bound is ``None``."""
        if start is None or end is None:
            return self
        low = self._placeholder()
        high = self._placeholder()
        self._add(f"{column} BETWEEN {low} AND {high}", [start, end])
        return self

    # ------------------------------------------------------------------
    # Null checks
    # ------------------------------------------------------------------

    def is_null(self, column: str) -> WhereBuilder:
        self._add(f"{column} IS NULL", [])
        return self

    def is_not_null(self, column: str) -> WhereBuilder:
        self._add(f"{column} IS NOT NULL", [])
        return self

    # ------------------------------------------------------------------
    # Escape hatches
    # ------------------------------------------------------------------

    def raw(self, sql: str, *params: Any) -> WhereBuilder:
        """Append a caller-written fragment.

        Each ``?`` in ``sql`` stands for one of ``params`` and is translated
        to the dialect's placeholder, numbered against the running counter.
        The fragment is not validated; the caller is responsible for it.
        """
        rendered = self._compiler.translate(sql, self._param_index, len(params))
        self._param_index += len(params)
        self._add(rendered, list(params))
        return self

    def or_(self, fn: Callable[[WhereBuilder], Any]) -> WhereBuilder:
        """Group the conditions added by ``fn`` with ``OR``.

        ``fn`` receives a sub-builder that continues this builder's
        placeholder numbering.  The group is appended as one parenthesised
        condition; an empty group adds nothing.
        """
        sub = WhereBuilder(self._compiler.dialect, start_index=self._param_index)
        fn(sub)
        if not sub._conditions:
            return self
        or_sql = " OR ".join(cond.sql for cond in sub._conditions)
        self._add(f"({or_sql})", sub._params)
        self._param_index = sub._param_index
        return self

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def build(self) -> tuple[str, list[Any]]:
        """Return the AND-joined SQL and the parameter list.

        Returns ``("", [])`` when no condition was added.  Calling it again
        returns the same result.
        """
        if not self._conditions:
            return "", []
        return " AND ".join(cond.sql for cond in self._conditions), list(self._params)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _compare(self, column: str, op: str, value: Any) -> WhereBuilder:
        if value is None:
            return self
        self._add(f"{column} {op} {self._placeholder()}", [value])
        return self

    def _placeholder(self) -> str:
        self._param_index += 1
        return self._compiler.placeholder(self._param_index)

    def _add(self, sql: str, params: list[Any]) -> None:
        self._conditions.append(Condition(sql=sql, param_count=len(params)))
        self._params.extend(params)

    def _append_built(self, sql: str, params: Sequence[Any]) -> None:
        """Append SQL rendered by another builder that numbered from zero."""
        self._add(self._compiler.renumber(sql, self._param_index), list(params))
        self._param_index += len(params)


# ---------------------------------------------------------------------------
# Utilities
# ---------------------------------------------------------------------------


def combine_conditions(dialect: Dialect | str, *builders: WhereBuilder | None) -> WhereBuilder:
    """AND-combine independently built builders into a new one.

    For the ordinal dialect each builder's placeholders are shifted by the
    number of parameters already combined, so the result stays gapless.

    Args:
        dialect: Dialect of the combined builder.
        *builders: Builders to combine; ``None`` and empty builders are skipped.

    Returns:
        A new :class:`WhereBuilder` holding one condition per non-empty input.
    """
    combined = WhereBuilder(dialect)
    for builder in builders:
        if builder is None or not builder.has_conditions():
            continue
        sql, params = builder.build()
        combined._append_built(sql, params)
    return combined


def append_where(base_query: str, builder: WhereBuilder | None) -> tuple[str, list[Any]]:
    """Append a builder's conditions to a plain, unannotated query.

    The conditions are joined with ``AND`` when ``base_query`` already has a
    ``WHERE`` keyword, otherwise a ``WHERE`` clause is opened.  Nothing is
    appended for a ``None`` or empty builder.

    Returns:
        ``(sql, params)`` ready for execution.
    """
    if builder is None or not builder.has_conditions():
        return base_query, []
    sql, params = builder.build()
    keyword = " AND " if _WHERE_KEYWORD.search(base_query) else " WHERE "
    return base_query + keyword + sql, params


def conditional_where(builder: WhereBuilder, column: str, value: Any) -> WhereBuilder:
    """Add ``column = value`` only when ``value`` is present.

    Empty strings and zero integers count as absent, as does ``None``.
    Booleans are always present.
    """
    if value is None:
        return builder
    if isinstance(value, bool):
        return builder.equal(column, value)
    if isinstance(value, str) and value == "":
        return builder
    if isinstance(value, int) and value == 0:
        return builder
    return builder.equal(column, value)


def search_pattern(text: str, mode: str = "contains") -> str:
    """Wrap ``text`` in ``%`` wildcards for a LIKE / ILIKE match.

    Args:
        text: The search text.  An empty text yields an empty pattern so the
            builder skips the condition.
        mode: ``prefix``, ``suffix``, ``contains`` or ``exact``.  Anything
            else behaves like ``contains``.
    """
    if not text:
        return ""
    if mode == "prefix":
        return f"{text}%"
    if mode == "suffix":
        return f"%{text}"
    if mode == "exact":
        return text
    return f"%{text}%"


def not_in_fragment(column: str, count: int) -> str:
    """Return a raw ``NOT column IN (?, …)`` fragment with ``count`` markers."""
    markers = ", ".join(UNIVERSAL_PLACEHOLDER for _ in range(count))
    return f"NOT {column} IN ({markers})"


class ParameterAdjuster:
    """Shifts ordinal placeholders in already-rendered SQL.

    Used when SQL built for a standalone statement is appended after ``offset``
    parameters that already exist.  Positional dialects are returned unchanged.
    """

    def __init__(self, dialect: Dialect | str) -> None:
        self._compiler = CompilerFactory.create(dialect)

    def adjust(self, sql: str, offset: int) -> str:
        return self._compiler.renumber(sql, offset)
