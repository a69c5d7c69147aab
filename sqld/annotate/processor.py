"""Annotation-driven template composition.

Base queries are written (or generated) as ordinary SQL with comment
markers at the points where dynamic SQL may be spliced in::

    SELECT id, name, email, created_at
    FROM users
    WHERE deleted_at IS NULL /* sqld:where */ /* sqld:cursor */
    ORDER BY created_at DESC /* sqld:orderby */
    /* sqld:limit */

The markers are SQL comments, so the template runs unchanged before
processing.  :class:`AnnotationProcessor` substitutes them in a fixed order
and keeps the parameter list aligned with the placeholders:

1. cursor condition (only if the cursor marker is present),
2. dynamic WHERE conditions, renumbered after the parameters already used,
3. the WHERE marker becomes ``AND <conditions>``,
4. the cursor marker is removed,
5. the ORDER BY marker replaces the static ORDER BY list in front of it,
6. the LIMIT marker becomes ``LIMIT <placeholder>``.

Templates come from trusted code; malformed or adversarial templates are
not supported input.
"""
from __future__ import annotations

import re
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from typing import Any

import structlog

from sqld.compile.base import DialectCompiler
from sqld.compile.order_by import OrderByBuilder
from sqld.compile.registry import CompilerFactory
from sqld.compile.where import WhereBuilder
from sqld.errors import TemplateError
from sqld.schema.cursor import Cursor
from sqld.schema.dialect import Dialect
from sqld.validate.identifiers import validate_column_name
from sqld.validate.validator import QueryValidator

logger = structlog.get_logger(__name__)

# ---------------------------------------------------------------------------
# Markers (bit-exact)
# ---------------------------------------------------------------------------

WHERE_MARKER = "/* sqld:where */"
CURSOR_MARKER = "/* sqld:cursor */"
ORDER_BY_MARKER = "/* sqld:orderby */"
LIMIT_MARKER = "/* sqld:limit */"

ALL_MARKERS: tuple[str, ...] = (WHERE_MARKER, CURSOR_MARKER, ORDER_BY_MARKER, LIMIT_MARKER)


def _leading_space(marker: str) -> re.Pattern[str]:
    return re.compile(r"[ \t]*" + re.escape(marker))


_WHERE_SLOT = _leading_space(WHERE_MARKER)
_ORDER_BY_SLOT = _leading_space(ORDER_BY_MARKER)
_LIMIT_SLOT = _leading_space(LIMIT_MARKER)

_ORDER_BY_KEYWORD = re.compile(r"\bORDER\s+BY\b", re.IGNORECASE)


def _static_order_by_span(sql: str) -> tuple[int, int] | None:
    """Span of the static ORDER BY that ends at the orderby marker.

    Only a clause at the same nesting level as the marker counts, so an
    ORDER BY inside a window, subquery or CTE is never picked up.
    """
    end = sql.find(ORDER_BY_MARKER)
    if end < 0:
        return None
    for match in reversed(list(_ORDER_BY_KEYWORD.finditer(sql, 0, end))):
        span = sql[match.start() : end]
        if ";" in span:
            return None
        depth = 0
        for char in span:
            if char == "(":
                depth += 1
            elif char == ")":
                depth -= 1
                if depth < 0:
                    break
        if depth == 0:
            return match.start(), end + len(ORDER_BY_MARKER)
    return None


@dataclass
class ProcessedQuery:
    """The result of processing a template.

    Attributes:
        sql: Final SQL with every marker substituted or removed.
        params: Positional parameters in placeholder order, starting with
            the template's own parameters.
        dialect: Dialect the placeholders were rendered for.
    """

    sql: str
    params: list[Any] = field(default_factory=list)
    dialect: Dialect = Dialect.POSTGRES

    def __iter__(self) -> Iterator[Any]:
        # Allows ``sql, params = processor.process(...)``.
        yield self.sql
        yield self.params


class AnnotationProcessor:
    """Splices dynamic SQL into annotated templates for one dialect.

    The processor holds no per-call state and can be shared.

    Args:
        dialect: Target dialect.
        cursor_column: Primary keyset column compared against the cursor value.
        id_column: Tie-breaking keyset column compared against the cursor id.
        descending: ``True`` for a descending keyset (``<``), ``False`` for
            ascending (``>``).  Must agree with the ORDER BY of the query.
        validator: Optional guard run over the final SQL and parameters.
    """

    def __init__(
        self,
        dialect: Dialect | str,
        cursor_column: str = "created_at",
        id_column: str = "id",
        descending: bool = True,
        validator: QueryValidator | None = None,
    ) -> None:
        validate_column_name(cursor_column)
        validate_column_name(id_column)
        self._compiler: DialectCompiler = CompilerFactory.create(dialect)
        self._cursor_column = cursor_column
        self._id_column = id_column
        self._comparison = "<" if descending else ">"
        self._validator = validator

    @property
    def dialect(self) -> Dialect:
        return self._compiler.dialect

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def process(
        self,
        template: str,
        where: WhereBuilder | None = None,
        cursor: Cursor | None = None,
        order_by: OrderByBuilder | None = None,
        limit: int = 0,
        params: Sequence[Any] = (),
    ) -> ProcessedQuery:
        """Substitute the markers in ``template``.

        Args:
            template: Annotated base SQL.
            where: Dynamic conditions, built from a zero counter.
            cursor: Keyset position; ignored unless the template carries the
                cursor marker.
            order_by: Dynamic ordering.  Replaces the static ORDER BY list in
                front of the marker, or adds ``ORDER BY`` if there is none.
            limit: Page size; ``0`` or less means no LIMIT.
            params: Parameters already referenced by the template
                (``$1 … $N``).  New placeholders continue from ``N + 1``.

        Returns:
            A :class:`ProcessedQuery`.  With no dynamic input the SQL equals
            the template minus the marker text.

        Raises:
            TemplateError: When conditions, a sort, or a positive limit are
                supplied but the template lacks the matching marker.
            ValidationError: When a configured validator rejects the result.
        """
        sql = template
        out_params: list[Any] = list(params)
        index = len(out_params)
        conditions: list[str] = []

        if cursor is not None:
            if CURSOR_MARKER in sql:
                conditions.append(self._cursor_condition(index))
                cursor_params = self._cursor_params(cursor)
                out_params.extend(cursor_params)
                index += len(cursor_params)
            else:
                logger.debug("template.cursor_ignored", reason="no_cursor_marker")

        if where is not None and where.has_conditions():
            where_sql, where_params = where.build()
            conditions.append(self._compiler.renumber(where_sql, index))
            out_params.extend(where_params)
            index += len(where_params)

        sql = self._substitute_where(sql, conditions)
        sql = sql.replace(CURSOR_MARKER, "", 1)
        sql = self._substitute_order_by(sql, order_by)
        sql = self._substitute_limit(sql, limit, index, out_params)

        if self._validator is not None:
            self._validator.validate(sql, out_params)

        logger.debug(
            "template.processed",
            dialect=str(self.dialect),
            conditions=len(conditions),
            params=len(out_params),
        )
        return ProcessedQuery(sql=sql, params=out_params, dialect=self.dialect)

    # ------------------------------------------------------------------
    # Cursor
    # ------------------------------------------------------------------

    def _cursor_condition(self, index: int) -> str:
        col, id_col, cmp = self._cursor_column, self._id_column, self._comparison
        if self._compiler.is_ordinal:
            value_ph = self._compiler.placeholder(index + 1)
            id_ph = self._compiler.placeholder(index + 2)
            return f"({col} {cmp} {value_ph} OR ({col} = {value_ph} AND {id_col} {cmp} {id_ph}))"
        ph = self._compiler.placeholder(index + 1)
        return f"({col} {cmp} {ph} OR ({col} = {ph} AND {id_col} {cmp} {ph}))"

    def _cursor_params(self, cursor: Cursor) -> list[Any]:
        # Positional placeholders cannot repeat a parameter.
        if self._compiler.is_ordinal:
            return [cursor.value, cursor.id]
        return [cursor.value, cursor.value, cursor.id]

    # ------------------------------------------------------------------
    # Markers
    # ------------------------------------------------------------------

    def _substitute_where(self, sql: str, conditions: list[str]) -> str:
        if not conditions:
            return sql.replace(WHERE_MARKER, "", 1)
        if WHERE_MARKER not in sql:
            raise TemplateError(
                "dynamic conditions supplied but the template has no where marker",
                marker=WHERE_MARKER,
            )
        fragment = " AND " + " AND ".join(conditions)
        return _WHERE_SLOT.sub(lambda _: fragment, sql, count=1)

    def _substitute_order_by(self, sql: str, order_by: OrderByBuilder | None) -> str:
        if order_by is None or not order_by.has_fields():
            return sql.replace(ORDER_BY_MARKER, "", 1)
        if ORDER_BY_MARKER not in sql:
            raise TemplateError(
                "dynamic ordering supplied but the template has no orderby marker",
                marker=ORDER_BY_MARKER,
            )
        clause = order_by.build_with_prefix()
        span = _static_order_by_span(sql)
        if span is not None:
            start, end = span
            return sql[:start] + clause + sql[end:]
        return _ORDER_BY_SLOT.sub(lambda _: " " + clause, sql, count=1)

    def _substitute_limit(self, sql: str, limit: int, index: int, out_params: list[Any]) -> str:
        if limit <= 0:
            return sql.replace(LIMIT_MARKER, "", 1)
        if LIMIT_MARKER not in sql:
            raise TemplateError(
                "limit supplied but the template has no limit marker", marker=LIMIT_MARKER
            )
        out_params.append(limit)
        fragment = " LIMIT " + self._compiler.placeholder(index + 1)
        return _LIMIT_SLOT.sub(lambda _: fragment, sql, count=1)


def search_query(
    template: str,
    dialect: Dialect | str,
    where: WhereBuilder | None = None,
    cursor: Cursor | None = None,
    order_by: OrderByBuilder | None = None,
    limit: int = 0,
    params: Sequence[Any] = (),
) -> ProcessedQuery:
    """One-shot :meth:`AnnotationProcessor.process` with default keyset columns."""
    return AnnotationProcessor(dialect).process(
        template, where=where, cursor=cursor, order_by=order_by, limit=limit, params=params
    )
