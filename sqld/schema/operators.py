"""Filter operators and the query-string token table.

Operators arrive from the outside world as short tokens inside a key
(``age[gte]`` or ``age_gte``).  This module defines the canonical
:class:`Operator` values, the token → operator table, and the operator
groups that decide how a raw string value is coerced.
"""

from __future__ import annotations

from enum import Enum


class Operator(str, Enum):
    """Filter operator understood by the filter parser and applier."""

    EQ = "="
    NE = "!="
    GT = ">"
    GTE = ">="
    LT = "<"
    LTE = "<="
    LIKE = "LIKE"
    ILIKE = "ILIKE"
    CONTAINS = "contains"
    INCLUDES = "includes"
    DOES_NOT_CONTAIN = "doesNotContain"
    STARTS_WITH = "startsWith"
    ENDS_WITH = "endsWith"
    DOES_NOT_START_WITH = "doesNotStartWith"
    DOES_NOT_END_WITH = "doesNotEndWith"
    BETWEEN = "between"
    BEFORE = "before"
    AFTER = "after"
    IN = "in"
    NOT_IN = "notIn"
    IS_NULL = "isNull"
    IS_NOT_NULL = "isNotNull"

    def __str__(self) -> str:
        return self.value


# ---------------------------------------------------------------------------
# Token table (keys are lower-case)
# ---------------------------------------------------------------------------

OPERATOR_TOKENS: dict[str, Operator] = {
    "eq": Operator.EQ,
    "ne": Operator.NE,
    "neq": Operator.NE,
    "gt": Operator.GT,
    "gte": Operator.GTE,
    "lt": Operator.LT,
    "lte": Operator.LTE,
    "like": Operator.LIKE,
    "ilike": Operator.ILIKE,
    "sw": Operator.STARTS_WITH,
    "startswith": Operator.STARTS_WITH,
    "ew": Operator.ENDS_WITH,
    "endswith": Operator.ENDS_WITH,
    "contains": Operator.CONTAINS,
    "includes": Operator.CONTAINS,
    "notcontains": Operator.DOES_NOT_CONTAIN,
    "doesnotcontain": Operator.DOES_NOT_CONTAIN,
    "notstartswith": Operator.DOES_NOT_START_WITH,
    "doesnotstartswith": Operator.DOES_NOT_START_WITH,
    "notendswith": Operator.DOES_NOT_END_WITH,
    "doesnotendwith": Operator.DOES_NOT_END_WITH,
    "between": Operator.BETWEEN,
    "before": Operator.BEFORE,
    "after": Operator.AFTER,
    "in": Operator.IN,
    "notin": Operator.NOT_IN,
    "isnull": Operator.IS_NULL,
    "null": Operator.IS_NULL,
    "isnotnull": Operator.IS_NOT_NULL,
    "notnull": Operator.IS_NOT_NULL,
}

# ---------------------------------------------------------------------------
# Operator groups (value coercion)
# ---------------------------------------------------------------------------

#: Numeric comparisons: value is parsed as int, then float, else kept as text.
NUMERIC_OPS: frozenset[Operator] = frozenset(
    {Operator.GT, Operator.GTE, Operator.LT, Operator.LTE}
)

#: Date comparisons: value is parsed with the configured date layout.
DATE_OPS: frozenset[Operator] = frozenset({Operator.BEFORE, Operator.AFTER})

#: List operators: value is split on commas.
LIST_OPS: frozenset[Operator] = frozenset({Operator.IN, Operator.NOT_IN})

#: Null checks: value is discarded.
NULL_OPS: frozenset[Operator] = frozenset({Operator.IS_NULL, Operator.IS_NOT_NULL})

#: Pattern operators: value must be a string when applied.
PATTERN_OPS: frozenset[Operator] = frozenset(
    {
        Operator.LIKE,
        Operator.ILIKE,
        Operator.CONTAINS,
        Operator.INCLUDES,
        Operator.DOES_NOT_CONTAIN,
        Operator.STARTS_WITH,
        Operator.ENDS_WITH,
        Operator.DOES_NOT_START_WITH,
        Operator.DOES_NOT_END_WITH,
    }
)


def is_operator_token(token: str) -> bool:
    """Return ``True`` if ``token`` names a known operator (case-insensitive)."""
    return token.lower() in OPERATOR_TOKENS


def map_operator(token: str, default: Operator = Operator.EQ) -> Operator:
    """Map an operator token to an :class:`Operator`.

    Args:
        token: Operator token as written by the client (``gte``, ``in``, ...).
        default: Returned for unrecognised tokens.

    Returns:
        The matching operator, or ``default``.
    """
    return OPERATOR_TOKENS.get(token.lower(), default)
