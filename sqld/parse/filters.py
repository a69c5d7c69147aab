"""Query-string filter parsing and application.

Parsing turns request keys into :class:`~sqld.schema.filters.Filter`
objects; application turns filters into :class:`WhereBuilder` calls.

Key syntax
----------
* ``age[gte]=18``    – bracket operator (unknown operators fall back to the
  configured default).
* ``age_gte=18``     – underscore operator, only when the part after the last
  ``_`` is a known operator token, so ``user_name=bob`` stays a plain field.
* ``status=active``  – plain field with the default operator.

After extraction the field is mapped (``QueryConfig.field_mappings``) and
checked against the allow-list.  Disallowed fields are dropped silently from
the result (a warning is logged).  Keys are processed in mapping order.

Application
-----------
Each operator has a handler registered with
:class:`~sqld.compile.registry.OperatorRegistry`; see the ``_apply_*``
functions at the bottom of this module.
"""
from __future__ import annotations

import json
import re
from collections.abc import Iterable, Mapping, Sequence
from datetime import datetime
from typing import Any
from urllib.parse import parse_qs

import structlog

from sqld.compile.registry import OperatorRegistry
from sqld.compile.where import WhereBuilder, not_in_fragment, search_pattern
from sqld.errors import InvalidFilterValueError, TooManyFiltersError, UnsupportedOperatorError
from sqld.schema.config import QueryConfig
from sqld.schema.dialect import Dialect
from sqld.schema.filters import Filter
from sqld.schema.operators import (
    DATE_OPS,
    LIST_OPS,
    NULL_OPS,
    NUMERIC_OPS,
    Operator,
    is_operator_token,
    map_operator,
)
from sqld.validate.identifiers import validate_column_name

logger = structlog.get_logger(__name__)

#: Request values: a single string or the list produced by ``parse_qs``.
RequestValues = Mapping[str, str | Sequence[str]]

_INT = re.compile(r"^[+-]?\d+$")


# ---------------------------------------------------------------------------
# Key and value parsing
# ---------------------------------------------------------------------------


def parse_field_operator(key: str, default: Operator = Operator.EQ) -> tuple[str, Operator]:
    """Split a request key into ``(field, operator)``.

    Args:
        key: The raw request key (``age[gte]``, ``age_gte`` or ``age``).
        default: Operator for plain keys and unknown bracket operators.

    Returns:
        The field name (before mapping) and the operator.
    """
    if "[" in key and key.endswith("]"):
        field, _, token = key.partition("[")
        return field, map_operator(token[:-1], default)

    if "_" in key:
        field, _, token = key.rpartition("_")
        if field and is_operator_token(token):
            return field, map_operator(token, default)

    return key, default


def convert_value(field: str, value: str, op: Operator, date_layout: str = "%Y-%m-%d") -> Any:
    """Coerce a raw request value into the shape ``op`` expects.

    Raises:
        InvalidFilterValueError: For a ``between`` value that is not exactly
            two comma-separated parts.
    """
    if op is Operator.BETWEEN:
        parts = value.split(",")
        if len(parts) != 2:
            raise InvalidFilterValueError(
                field,
                str(op),
                "between operator requires exactly 2 comma-separated values",
                value=value,
            )
        return (parts[0].strip(), parts[1].strip())

    if op in LIST_OPS:
        return [part.strip() for part in value.split(",")]

    if op in DATE_OPS:
        if date_layout:
            try:
                return datetime.strptime(value, date_layout)
            except ValueError:
                pass
        return value

    if op in NULL_OPS:
        return None

    if op in NUMERIC_OPS:
        if _INT.match(value):
            return int(value)
        try:
            return float(value)
        except ValueError:
            return value

    return value


def parse_values(values: RequestValues, config: QueryConfig | None = None) -> list[Filter]:
    """Parse a key → value(s) mapping into filters.

    When a key carries several values the last one is used.  Empty values
    are skipped.

    Args:
        values: Request parameters, e.g. the output of ``parse_qs`` or a
            framework's query dict.
        config: Parsing policy; defaults to ``QueryConfig()``.

    Returns:
        Filters in key order.

    Raises:
        TooManyFiltersError: When more than ``config.max_filters`` filters
            would be produced.  No partial result is returned.
        InvalidFilterValueError: For a malformed ``between`` value.
        UnsafeSQLError: For an injection-shaped field name.
    """
    if config is None:
        config = QueryConfig()

    filters: list[Filter] = []
    for key, raw in values.items():
        value = last_value(raw)
        if not value:
            continue

        field, op = parse_field_operator(key, config.default_operator)
        field = config.map_field(field)
        if not field:
            logger.warning("filter.dropped", key=key, reason="empty_field")
            continue
        if not config.is_field_allowed(field):
            logger.warning("filter.dropped", key=key, field=field, reason="not_allowed")
            continue
        validate_column_name(field)

        if len(filters) >= config.max_filters:
            raise TooManyFiltersError(config.max_filters)

        filters.append(
            Filter(field=field, operator=op, value=convert_value(field, value, op, config.date_layout))
        )

    logger.debug("filter.parsed", count=len(filters))
    return filters


def parse_query_string(query_string: str, config: QueryConfig | None = None) -> list[Filter]:
    """Parse a raw query string (``"age[gte]=18&status=active"``) into filters."""
    return parse_values(parse_qs(query_string, keep_blank_values=True), config)


def last_value(raw: str | Sequence[str] | None) -> str:
    if raw is None:
        return ""
    if isinstance(raw, str):
        return raw
    if not raw:
        return ""
    return raw[-1]


# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------


def apply_filters(filters: Iterable[Filter], builder: WhereBuilder) -> WhereBuilder:
    """Apply each filter to ``builder`` in order.

    Raises:
        InvalidFilterValueError: When a value does not have the shape its
            operator needs (e.g. ``LIKE`` with a number).
        UnsupportedOperatorError: When no handler is registered for an operator.
    """
    for flt in filters:
        handler = OperatorRegistry.get(str(flt.operator))
        if handler is None:
            raise UnsupportedOperatorError(flt.field, str(flt.operator))
        handler(builder, flt.field, flt.value)
    return builder


def build_from_values(
    values: RequestValues, dialect: Dialect | str, config: QueryConfig | None = None
) -> WhereBuilder:
    """Parse ``values`` and apply the filters to a fresh :class:`WhereBuilder`."""
    return apply_filters(parse_values(values, config), WhereBuilder(dialect))


def build_from_query_string(
    query_string: str, dialect: Dialect | str, config: QueryConfig | None = None
) -> WhereBuilder:
    """Parse ``query_string`` and apply the filters to a fresh :class:`WhereBuilder`."""
    return apply_filters(parse_query_string(query_string, config), WhereBuilder(dialect))


def filters_to_json(filters: Iterable[Filter]) -> str:
    """Render filters as indented JSON for debugging."""
    return json.dumps([flt.model_dump(mode="json") for flt in filters], indent=2)


# ---------------------------------------------------------------------------
# Operator handlers
# ---------------------------------------------------------------------------


def _require_str(field: str, op: Operator, value: Any) -> str:
    if not isinstance(value, str):
        raise InvalidFilterValueError(
            field, str(op), f"{op} operator requires a string value", value=value
        )
    return value


def _require_list(field: str, op: Operator, value: Any) -> list[Any]:
    if not isinstance(value, (list, tuple)):
        raise InvalidFilterValueError(
            field, str(op), f"{op} operator requires a list value", value=value
        )
    return list(value)


@OperatorRegistry.register(Operator.EQ)
def _apply_eq(builder: WhereBuilder, field: str, value: Any) -> None:
    builder.equal(field, value)


@OperatorRegistry.register(Operator.NE)
def _apply_ne(builder: WhereBuilder, field: str, value: Any) -> None:
    builder.not_equal(field, value)


@OperatorRegistry.register(Operator.GT, Operator.AFTER)
def _apply_gt(builder: WhereBuilder, field: str, value: Any) -> None:
    builder.greater_than(field, value)


@OperatorRegistry.register(Operator.GTE)
def _apply_gte(builder: WhereBuilder, field: str, value: Any) -> None:
    builder.greater_or_equal(field, value)


@OperatorRegistry.register(Operator.LT, Operator.BEFORE)
def _apply_lt(builder: WhereBuilder, field: str, value: Any) -> None:
    builder.less_than(field, value)


@OperatorRegistry.register(Operator.LTE)
def _apply_lte(builder: WhereBuilder, field: str, value: Any) -> None:
    builder.less_or_equal(field, value)


@OperatorRegistry.register(Operator.LIKE)
def _apply_like(builder: WhereBuilder, field: str, value: Any) -> None:
    builder.like(field, _require_str(field, Operator.LIKE, value))


@OperatorRegistry.register(Operator.ILIKE)
def _apply_ilike(builder: WhereBuilder, field: str, value: Any) -> None:
    builder.ilike(field, _require_str(field, Operator.ILIKE, value))


def _register_pattern_handler(op: Operator, mode: str, negate: bool) -> None:
    def handler(builder: WhereBuilder, field: str, value: Any) -> None:
        pattern = search_pattern(_require_str(field, op, value), mode)
        if not negate:
            builder.ilike(field, pattern)
        elif pattern:
            builder.raw("NOT " + builder.compiler.ilike(field, "?"), pattern)

    OperatorRegistry.register(op)(handler)


_register_pattern_handler(Operator.CONTAINS, "contains", negate=False)
_register_pattern_handler(Operator.INCLUDES, "contains", negate=False)
_register_pattern_handler(Operator.STARTS_WITH, "prefix", negate=False)
_register_pattern_handler(Operator.ENDS_WITH, "suffix", negate=False)
_register_pattern_handler(Operator.DOES_NOT_CONTAIN, "contains", negate=True)
_register_pattern_handler(Operator.DOES_NOT_START_WITH, "prefix", negate=True)
_register_pattern_handler(Operator.DOES_NOT_END_WITH, "suffix", negate=True)


@OperatorRegistry.register(Operator.BETWEEN)
def _apply_between(builder: WhereBuilder, field: str, value: Any) -> None:
    bounds = _require_list(field, Operator.BETWEEN, value)
    if len(bounds) != 2:
        raise InvalidFilterValueError(
            field, str(Operator.BETWEEN), "between operator requires exactly 2 values", value=value
        )
    builder.between(field, bounds[0], bounds[1])


@OperatorRegistry.register(Operator.IN)
def _apply_in(builder: WhereBuilder, field: str, value: Any) -> None:
    builder.in_(field, _require_list(field, Operator.IN, value))


@OperatorRegistry.register(Operator.NOT_IN)
def _apply_not_in(builder: WhereBuilder, field: str, value: Any) -> None:
    values = _require_list(field, Operator.NOT_IN, value)
    if values:
        builder.raw(not_in_fragment(field, len(values)), *values)


@OperatorRegistry.register(Operator.IS_NULL)
def _apply_is_null(builder: WhereBuilder, field: str, value: Any) -> None:
    builder.is_null(field)


@OperatorRegistry.register(Operator.IS_NOT_NULL)
def _apply_is_not_null(builder: WhereBuilder, field: str, value: Any) -> None:
    builder.is_not_null(field)
