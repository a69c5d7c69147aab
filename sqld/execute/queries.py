"""Query facade: process a template, execute it, shape the result."""
from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any

import structlog
from pydantic import BaseModel

from sqld.annotate.processor import AnnotationProcessor, ProcessedQuery
from sqld.compile.order_by import OrderByBuilder
from sqld.compile.where import WhereBuilder
from sqld.errors import NoRowsError, QueryError, SqldError, TooManyRowsError, ValidationError
from sqld.execute.executor import Executor
from sqld.schema.cursor import Cursor, encode_cursor
from sqld.schema.dialect import Dialect

logger = structlog.get_logger(__name__)

#: Returns ``(ordering value, id)`` of a row for the next-page cursor.
CursorFields = Callable[[Any], tuple[Any, int]]


class PaginatedResult(BaseModel):
    """One page of a keyset-paginated query.

    Attributes:
        items: Rows on this page (at most ``limit``).
        next_cursor: Token for the next page; ``None`` on the last page.
        has_more: ``True`` when at least one more row exists.
        limit: The requested page size.
    """

    items: list[Any]
    next_cursor: str | None = None
    has_more: bool = False
    limit: int


class Queries:
    """Binds an executor to a dialect and runs annotated templates.

    Example::

        queries = Queries(SQLAlchemyExecutor(conn), Dialect.SQLITE)
        page = queries.query_paginated(
            LIST_USERS,
            where=where,
            order_by=order_by,
            cursor=decode_cursor(token),
            limit=20,
            cursor_fields=lambda row: (row["created_at"], row["id"]),
        )

    Args:
        executor: Runs the final SQL.
        dialect: Dialect the templates are written for.
        processor: Custom processor (keyset columns, validator); defaults to
            ``AnnotationProcessor(dialect)``.
    """

    def __init__(
        self,
        executor: Executor,
        dialect: Dialect | str,
        processor: AnnotationProcessor | None = None,
    ) -> None:
        self._executor = executor
        self._processor = processor or AnnotationProcessor(dialect)
        if self._processor.dialect != Dialect(str(dialect)):
            raise ValueError(
                f"processor dialect {self._processor.dialect} does not match {dialect}"
            )

    @property
    def dialect(self) -> Dialect:
        return self._processor.dialect

    @property
    def executor(self) -> Executor:
        return self._executor

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def query_all(
        self,
        template: str,
        where: WhereBuilder | None = None,
        cursor: Cursor | None = None,
        order_by: OrderByBuilder | None = None,
        limit: int = 0,
        params: Sequence[Any] = (),
    ) -> list[Any]:
        """Process ``template`` and return every row.

        Raises:
            QueryError: If the executor fails.
        """
        processed = self._processor.process(
            template, where=where, cursor=cursor, order_by=order_by, limit=limit, params=params
        )
        return self._fetch(processed, "query_all")

    def query_one(
        self,
        template: str,
        where: WhereBuilder | None = None,
        params: Sequence[Any] = (),
    ) -> Any:
        """Process ``template`` and return its single row.

        Raises:
            NoRowsError: If the query returned no rows.
            TooManyRowsError: If it returned more than one.
            QueryError: If the executor fails.
        """
        processed = self._processor.process(template, where=where, params=params)
        rows = self._fetch(processed, "query_one")
        if not rows:
            raise NoRowsError("query returned no rows")
        if len(rows) > 1:
            raise TooManyRowsError(f"query returned {len(rows)} rows, expected one")
        return rows[0]

    def query_paginated(
        self,
        template: str,
        limit: int,
        where: WhereBuilder | None = None,
        cursor: Cursor | None = None,
        order_by: OrderByBuilder | None = None,
        cursor_fields: CursorFields | None = None,
        params: Sequence[Any] = (),
    ) -> PaginatedResult:
        """Fetch one page of a keyset-paginated query.

        One extra row is requested to detect whether another page exists.
        ``cursor_fields`` extracts ``(ordering value, id)`` from the last row
        kept; without it no ``next_cursor`` is produced.

        Raises:
            ValidationError: If ``limit`` is not positive.
            QueryError: If the executor fails.
        """
        if limit <= 0:
            raise ValidationError(
                "limit must be positive", code="INVALID_LIMIT", field="limit", value=limit
            )

        processed = self._processor.process(
            template, where=where, cursor=cursor, order_by=order_by, limit=limit + 1, params=params
        )
        rows = self._fetch(processed, "query_paginated")

        if len(rows) <= limit:
            return PaginatedResult(items=rows, has_more=False, limit=limit)

        items = rows[:limit]
        next_cursor = None
        if cursor_fields is not None:
            value, row_id = cursor_fields(items[-1])
            next_cursor = encode_cursor(value, row_id)
        return PaginatedResult(items=items, next_cursor=next_cursor, has_more=True, limit=limit)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _fetch(self, processed: ProcessedQuery, context: str) -> list[Any]:
        try:
            return list(self._executor.fetch_all(processed.sql, processed.params))
        except SqldError:
            raise
        except Exception as exc:
            logger.warning("query.failed", context=context, error=str(exc))
            raise QueryError(str(exc), processed.sql, processed.params, context) from exc
