"""Execution seam.

sqld never talks to a database itself.  It hands ``(sql, params)`` to an
:class:`Executor`, which only has to run one statement and return its rows.
Two adapters are provided:

``DBAPIExecutor``
    Any PEP 249 connection whose ``paramstyle`` matches the dialect's
    placeholders (``sqlite3`` for SQLite, a qmark-capable MySQL driver).

``SQLAlchemyExecutor``
    A SQLAlchemy ``Connection``.  Statements go through
    ``exec_driver_sql`` so the rendered placeholders reach the driver
    untouched.

Connection lifecycle and transactions stay with the caller.
"""
from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from sqlalchemy.engine import Connection


@runtime_checkable
class Executor(Protocol):
    """Runs one statement and returns all rows."""

    def fetch_all(self, sql: str, params: Sequence[Any]) -> list[Any]:
        ...


class DBAPIExecutor:
    """Executor over a PEP 249 connection.

    Args:
        connection: An open DB-API connection.
        as_mappings: Return each row as a ``dict`` keyed by column name
            instead of the driver's native row type.
    """

    def __init__(self, connection: Any, as_mappings: bool = True) -> None:
        self._connection = connection
        self._as_mappings = as_mappings

    def fetch_all(self, sql: str, params: Sequence[Any]) -> list[Any]:
        cursor = self._connection.cursor()
        try:
            cursor.execute(sql, tuple(params))
            rows = cursor.fetchall()
            if not self._as_mappings or cursor.description is None:
                return list(rows)
            columns = [col[0] for col in cursor.description]
            return [dict(zip(columns, row)) for row in rows]
        finally:
            cursor.close()


class SQLAlchemyExecutor:
    """Executor over a SQLAlchemy ``Connection``.

    Rows are returned as plain ``dict`` objects.
    """

    def __init__(self, connection: Connection) -> None:
        self._connection = connection

    def fetch_all(self, sql: str, params: Sequence[Any]) -> list[Any]:
        result = self._connection.exec_driver_sql(sql, tuple(params))
        return [dict(row) for row in result.mappings().all()]
