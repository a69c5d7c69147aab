"""Identifier heuristics and sanitisation.

These checks are a secondary defence.  Values never reach SQL text (they
are always bound parameters); identifiers do, so anything that is inserted
verbatim (filter fields, sort fields, cursor columns) can be passed through
:func:`validate_column_name` first.
"""
from __future__ import annotations

import re

from sqld.compile.registry import CompilerFactory
from sqld.errors import UnsafeSQLError, ValidationError
from sqld.schema.dialect import Dialect

# ---------------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------------

#: Injection-shaped fragments.  Only consulted for names that are not plain
#: (optionally schema-qualified) identifiers.
INJECTION_PATTERNS: tuple[re.Pattern[str], ...] = (
    # comment tokens
    re.compile(r"(--|#|/\*|\*/)"),
    # union-based
    re.compile(r"\bUNION\b.*\bSELECT\b", re.IGNORECASE),
    # stacked statements
    re.compile(r";\s*(SELECT|INSERT|UPDATE|DELETE|DROP|CREATE|ALTER)", re.IGNORECASE),
    # time-based blind
    re.compile(r"(SLEEP|WAITFOR|BENCHMARK|pg_sleep)", re.IGNORECASE),
    # boolean tautologies
    re.compile(
        r"(\bOR\b|\bAND\b)\s+(['\"]?)[\w\s]+['\"]?\s*=\s*['\"]?[\w\s]+['\"]?",
        re.IGNORECASE,
    ),
    # string functions
    re.compile(r"(CONCAT|CHAR|ASCII|SUBSTRING|LENGTH|HEX|UNHEX)", re.IGNORECASE),
    # system information
    re.compile(r"(VERSION|DATABASE|USER|CURRENT_USER|SESSION_USER|@@version)", re.IGNORECASE),
    # file operations
    re.compile(r"(LOAD_FILE|INTO\s+OUTFILE|INTO\s+DUMPFILE)", re.IGNORECASE),
    # SQL Server extended procedures
    re.compile(r"(xp_cmdshell|sp_configure|sp_addextendedproc)", re.IGNORECASE),
)

_SAFE_NAME = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*(\.[a-zA-Z_][a-zA-Z0-9_]*)?$")
_UNSAFE_CHARS = frozenset(";-/*")
_SANITIZE = re.compile(r"[^a-zA-Z0-9_.]")

_DIRECTIONS = frozenset({"ASC", "DESC"})


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def validate_column_name(column: str) -> None:
    """Reject column names that look like injection attempts.

    Plain names (``email``, ``u.email``, optionally double-quoted) always
    pass.  Anything else passes only if it matches none of
    :data:`INJECTION_PATTERNS` and contains none of ``; - / *``, which lets
    simple expressions through.

    Raises:
        ValidationError: If ``column`` is empty.
        UnsafeSQLError: If ``column`` looks injection-shaped.
    """
    if not column:
        raise ValidationError("column name cannot be empty", code="INVALID_IDENTIFIER", field="column")

    if _SAFE_NAME.match(column.strip('"')):
        return

    for pattern in INJECTION_PATTERNS:
        if pattern.search(column):
            raise UnsafeSQLError(
                "column", "potential SQL injection detected in column name", value=column
            )
    if any(ch in _UNSAFE_CHARS for ch in column):
        raise UnsafeSQLError("column", "unsafe characters in column name", value=column)


def validate_table_name(table: str) -> None:
    """Require a plain, optionally schema-qualified, table name.

    Raises:
        ValidationError: If ``table`` is empty or not a plain identifier.
    """
    if not table:
        raise ValidationError("table name cannot be empty", code="INVALID_IDENTIFIER", field="table")
    if not _SAFE_NAME.match(table.strip('"')):
        raise ValidationError(
            "invalid table name format", code="INVALID_IDENTIFIER", field="table", value=table
        )


def validate_order_by(order_by: str) -> None:
    """Check a rendered ORDER BY list such as ``"name ASC, id DESC"``.

    Each comma-separated part must be a valid column optionally followed by
    ``ASC`` or ``DESC``.

    Raises:
        ValidationError: On the first malformed part.
    """
    if not order_by:
        raise ValidationError(
            "order by clause cannot be empty", code="INVALID_ORDER_BY", field="order_by"
        )

    for part in order_by.split(","):
        tokens = part.split()
        if not tokens:
            raise ValidationError(
                "empty order by clause part",
                code="INVALID_ORDER_BY",
                field="order_by",
                value=part,
            )
        try:
            validate_column_name(tokens[0])
        except ValidationError as exc:
            raise ValidationError(
                f"invalid column in ORDER BY: {exc}",
                code="INVALID_ORDER_BY",
                field="order_by",
                value=tokens[0],
            ) from exc
        if len(tokens) > 1 and tokens[1].upper() not in _DIRECTIONS:
            raise ValidationError(
                "invalid sort direction, must be ASC or DESC",
                code="INVALID_ORDER_BY",
                field="order_by",
                value=tokens[1],
            )
        if len(tokens) > 2:
            raise ValidationError(
                "invalid ORDER BY clause format",
                code="INVALID_ORDER_BY",
                field="order_by",
                value=part.strip(),
            )


def sanitize_identifier(identifier: str, dialect: Dialect | str) -> str:
    """Strip everything but ``[A-Za-z0-9_.]`` and quote for ``dialect``.

    Example::

        sanitize_identifier("users; DROP", Dialect.MYSQL)  # -> "`usersDROP`"
    """
    cleaned = _SANITIZE.sub("", identifier)
    return CompilerFactory.create(dialect).quote_identifier(cleaned)
