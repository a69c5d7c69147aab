"""SQLite dialect compiler."""
from __future__ import annotations

from sqld.compile.base import DialectCompiler
from sqld.schema.dialect import Dialect


class SQLiteCompiler(DialectCompiler):
    """Renders SQLite-flavoured parameterized SQL.

    Parameter style: ``?`` – compatible with Python's built-in ``sqlite3``
    qmark execution (``cursor.execute(sql, params)``).

    Note: SQLite does not support ``ILIKE``; it is rendered as
    ``LOWER(col) LIKE LOWER(?)``.
    """

    @property
    def dialect(self) -> Dialect:
        return Dialect.SQLITE

    def placeholder(self, index: int) -> str:
        return "?"

    def ilike(self, column: str, placeholder: str) -> str:
        return f"LOWER({column}) LIKE LOWER({placeholder})"

    def quote_identifier(self, name: str) -> str:
        escaped = name.replace('"', '""')
        return f'"{escaped}"'
