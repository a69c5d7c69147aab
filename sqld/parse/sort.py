"""Sort parsing and policy checks.

Accepted token forms (all equivalent)::

    "name:desc,email:asc"
    "-name,+email"
    ["name:desc", "email:asc"]

Request parameters may carry the sort string under any of
:data:`SORT_PARAM_ALIASES` (first match wins) or as independent
``sort_<field>=<direction>`` parameters.
"""
from __future__ import annotations

from collections.abc import Iterable
from urllib.parse import parse_qs

import structlog

from sqld.compile.order_by import OrderByBuilder
from sqld.errors import DisallowedFieldError, TooManySortFieldsError
from sqld.parse.filters import RequestValues, last_value
from sqld.schema.config import QueryConfig
from sqld.schema.filters import SortDirection, SortField
from sqld.validate.identifiers import validate_column_name

logger = structlog.get_logger(__name__)

SORT_PARAM_ALIASES: tuple[str, ...] = ("sort", "sort_by", "order_by", "orderby", "order")
SORT_FIELD_PREFIX = "sort_"

_DESCENDING = frozenset({"DESC", "DESCENDING", "-", "D"})


def parse_sort_direction(token: str) -> SortDirection:
    """Map a direction token to :class:`SortDirection`.

    ``desc``, ``descending``, ``-`` and ``d`` (any case, surrounding spaces
    ignored) are descending; everything else is ascending.
    """
    if token.strip().upper() in _DESCENDING:
        return SortDirection.DESC
    return SortDirection.ASC


def sort_field_from_string(token: str) -> SortField:
    """Parse ``name``, ``name:desc``, ``-name`` or ``+name``."""
    token = token.strip()
    if token.startswith("-"):
        return SortField(field=token[1:], direction=SortDirection.DESC)
    if token.startswith("+"):
        return SortField(field=token[1:], direction=SortDirection.ASC)

    field, sep, direction = token.partition(":")
    if not sep:
        return SortField(field=field)
    return SortField(field=field, direction=parse_sort_direction(direction.split(":")[0]))


def parse_sort_fields(sort_value: str | Iterable[str] | None) -> list[SortField]:
    """Parse a comma-joined sort string or a pre-split token list.

    Blank tokens are skipped; an empty input yields ``[]``.
    """
    if not sort_value:
        return []
    tokens = sort_value.split(",") if isinstance(sort_value, str) else sort_value
    return [sort_field_from_string(token) for token in tokens if token.strip()]


def validate_and_build(fields: list[SortField], config: QueryConfig | None = None) -> OrderByBuilder:
    """Apply the sort policy and render into an :class:`OrderByBuilder`.

    * More than ``config.max_sort_fields`` fields fails.
    * No fields at all falls back to ``config.default_sort``; default entries
      outside the allow-list are skipped.
    * Otherwise every field must be allowed, and is mapped to its column.

    Raises:
        TooManySortFieldsError: When the field count exceeds the maximum.
        DisallowedFieldError: For the first field outside the allow-list.
        UnsafeSQLError: For an injection-shaped field name.
    """
    if config is None:
        config = QueryConfig()

    if len(fields) > config.max_sort_fields:
        raise TooManySortFieldsError(len(fields), config.max_sort_fields)

    builder = OrderByBuilder()

    if not fields:
        for default in config.default_sort:
            if config.is_field_allowed(default.field):
                builder.add(config.map_field(default.field), default.direction)
            else:
                logger.warning("sort.default_skipped", field=default.field)
        if builder.has_fields():
            logger.debug("sort.default_applied", order_by=builder.build())
        return builder

    for sort_field in fields:
        if not config.is_field_allowed(sort_field.field):
            raise DisallowedFieldError(sort_field.field, sorted(config.allowed_fields))
        column = config.map_field(sort_field.field)
        validate_column_name(column)
        builder.add(column, sort_field.direction)
    return builder


def sort_fields_from_values(values: RequestValues) -> list[SortField]:
    """Extract sort fields from request parameters without applying policy."""
    for alias in SORT_PARAM_ALIASES:
        sort_value = last_value(values.get(alias))
        if sort_value:
            return parse_sort_fields(sort_value)

    fields: list[SortField] = []
    for key, raw in values.items():
        if not is_sort_key(key) or key in SORT_PARAM_ALIASES:
            continue
        direction = last_value(raw)
        fields.append(
            SortField(field=key[len(SORT_FIELD_PREFIX):], direction=parse_sort_direction(direction))
        )
    return fields


def parse_sort_from_values(values: RequestValues, config: QueryConfig | None = None) -> OrderByBuilder:
    """Parse and validate the sort carried by request parameters."""
    return validate_and_build(sort_fields_from_values(values), config)


def parse_sort_from_query_string(query_string: str, config: QueryConfig | None = None) -> OrderByBuilder:
    """Parse and validate the sort carried by a raw query string."""
    return parse_sort_from_values(parse_qs(query_string, keep_blank_values=True), config)


def is_sort_key(key: str) -> bool:
    """Return ``True`` for keys consumed by sort parsing."""
    if key in SORT_PARAM_ALIASES:
        return True
    return key.startswith(SORT_FIELD_PREFIX) and len(key) > len(SORT_FIELD_PREFIX)
