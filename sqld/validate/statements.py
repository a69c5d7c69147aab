"""Whole-statement checks."""
from __future__ import annotations

from sqld.errors import UnsafeSQLError, ValidationError


def validate_query(query: str) -> None:
    """Reject an empty query or one that stacks several statements.

    Semicolons inside string literals, comments or parentheses do not count,
    and neither does a single trailing ``;``.

    Raises:
        ValidationError: If ``query`` is empty.
        UnsafeSQLError: If more than one statement is detected.
    """
    if not query or not query.strip():
        raise ValidationError("query cannot be empty", code="EMPTY_QUERY", field="query")
    if count_statements(query) > 1:
        raise UnsafeSQLError("query", "multiple statements detected", value=query)


def count_statements(query: str) -> int:
    """Count top-level statements in ``query``."""
    cleaned = strip_literals_and_comments(query).rstrip()
    if cleaned.endswith(";"):
        cleaned = cleaned[:-1]

    count = 1
    depth = 0
    for ch in cleaned:
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
        elif ch == ";" and depth == 0:
            count += 1
    return count


def strip_literals_and_comments(query: str) -> str:
    """Return ``query`` with string literals and comments removed.

    Handles ``'…'`` and ``"…"`` literals (a doubled delimiter is an escaped
    quote), ``-- …`` line comments and ``/* … */`` block comments.
    """
    out: list[str] = []
    i = 0
    n = len(query)
    while i < n:
        ch = query[i]
        nxt = query[i + 1] if i + 1 < n else ""

        if ch == "/" and nxt == "*":
            end = query.find("*/", i + 2)
            i = n if end == -1 else end + 2
            continue

        if ch == "-" and nxt == "-":
            end = query.find("\n", i + 2)
            i = n if end == -1 else end
            continue

        if ch in ("'", '"'):
            i += 1
            while i < n:
                if query[i] == ch:
                    if i + 1 < n and query[i + 1] == ch:
                        i += 2
                        continue
                    break
                i += 1
            i += 1
            continue

        out.append(ch)
        i += 1
    return "".join(out)
