"""PostgreSQL dialect compiler."""

from __future__ import annotations

from sqld.compile.base import DialectCompiler
from sqld.schema.dialect import Dialect


class PostgresCompiler(DialectCompiler):
    """Renders PostgreSQL-flavoured parameterized SQL.

    Parameter style: ``$1``, ``$2``, … – the native numbered style of the
    PostgreSQL wire protocol (``asyncpg``, ``pgx``-style drivers, psycopg raw
    cursors).
    """

    @property
    def dialect(self) -> Dialect:
        return Dialect.POSTGRES

    @property
    def is_ordinal(self) -> bool:
        return True

    def placeholder(self, index: int) -> str:
        return f"${index}"

    def ilike(self, column: str, placeholder: str) -> str:
        return f"{column} ILIKE {placeholder}"

    def quote_identifier(self, name: str) -> str:
        escaped = name.replace('"', '""')
        return f'"{escaped}"'
