"""Whole-request parsing: filters, sort, cursor and page size in one call.

Typical HTTP handler usage::

    parsed = parse_request(request.query_string, Dialect.POSTGRES, USERS_CONFIG)
    result = queries.query_paginated(
        LIST_USERS,
        where=parsed.where,
        order_by=parsed.order_by,
        cursor=parsed.cursor,
        limit=parsed.limit,
        cursor_fields=lambda row: (row["created_at"], row["id"]),
    )
"""
from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import parse_qs

import structlog

from sqld.compile.order_by import OrderByBuilder
from sqld.compile.where import WhereBuilder
from sqld.parse.filters import RequestValues, apply_filters, last_value, parse_values
from sqld.parse.sort import is_sort_key, parse_sort_from_values
from sqld.schema.config import QueryConfig
from sqld.schema.cursor import Cursor, decode_cursor
from sqld.schema.dialect import Dialect

logger = structlog.get_logger(__name__)

CURSOR_PARAM = "cursor"
LIMIT_PARAM = "limit"

_PAGINATION_PARAMS = frozenset({CURSOR_PARAM, LIMIT_PARAM})


@dataclass
class ParsedRequest:
    """Everything the annotation processor needs from one request."""

    where: WhereBuilder
    order_by: OrderByBuilder
    cursor: Cursor | None
    limit: int


def parse_request(
    values: RequestValues | str,
    dialect: Dialect | str,
    config: QueryConfig | None = None,
) -> ParsedRequest:
    """Parse filters, sort, cursor and limit from request parameters.

    Sort keys and the ``cursor`` / ``limit`` keys are not treated as filters.

    Args:
        values: A raw query string or a key → value(s) mapping.
        dialect: Dialect of the returned :class:`WhereBuilder`.
        config: Parsing policy; defaults to ``QueryConfig()``.

    Raises:
        ValidationError: (or subclass) for filter, sort or cursor input that
            violates the policy.
    """
    if config is None:
        config = QueryConfig()
    if isinstance(values, str):
        values = parse_qs(values, keep_blank_values=True)

    filter_values = {
        key: raw
        for key, raw in values.items()
        if key not in _PAGINATION_PARAMS and not is_sort_key(key)
    }
    where = apply_filters(parse_values(filter_values, config), WhereBuilder(dialect))
    order_by = parse_sort_from_values(values, config)
    cursor = decode_cursor(last_value(values.get(CURSOR_PARAM)))
    limit = parse_limit(last_value(values.get(LIMIT_PARAM)), config)

    return ParsedRequest(where=where, order_by=order_by, cursor=cursor, limit=limit)


def parse_limit(raw: str, config: QueryConfig) -> int:
    """Return ``raw`` as a page size, or ``config.default_limit`` if unusable.

    Non-integers and values outside ``1..config.max_limit`` fall back to the
    default.
    """
    if not raw:
        return config.default_limit
    try:
        limit = int(raw)
    except ValueError:
        logger.warning("limit.ignored", value=raw, reason="not_an_integer")
        return config.default_limit
    if not 1 <= limit <= config.max_limit:
        logger.warning("limit.ignored", value=raw, reason="out_of_range", max_limit=config.max_limit)
        return config.default_limit
    return limit
