"""MySQL dialect compiler."""

from __future__ import annotations

from sqld.compile.base import DialectCompiler
from sqld.schema.dialect import Dialect


class MySQLCompiler(DialectCompiler):
    """Renders MySQL-flavoured parameterized SQL.

    Parameter style: ``?`` – positional, matched in order of appearance.

    Note: MySQL does not support ``ILIKE``; case-insensitive matches are
    rendered as ``LOWER(col) LIKE LOWER(?)`` so the result does not depend on
    the column collation.

    Identifiers are quoted with backticks (`` ` ``) rather than double-quotes.
    """

    @property
    def dialect(self) -> Dialect:
        return Dialect.MYSQL

    def placeholder(self, index: int) -> str:
        return "?"

    def ilike(self, column: str, placeholder: str) -> str:
        return f"LOWER({column}) LIKE LOWER({placeholder})"

    def quote_identifier(self, name: str) -> str:
        escaped = name.replace("`", "``")
        return f"`{escaped}`"
